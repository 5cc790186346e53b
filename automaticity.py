"""
Automaticity update math.

Automaticity is an exponential moving average of per-trial observation
scores in [0, 1]:

    observation = 0                                   (incorrect)
                = 1                                   (correct, no baseline)
                = CORRECTNESS_WEIGHT
                  + SPEED_WEIGHT * relative_speed     (correct, with baseline)

    relative_speed = clamp(baseline / latency, 0, 1)

    automaticity' = automaticity + rate * (observation - automaticity)

The learning rate starts at INITIAL_LEARNING_RATE and shrinks with the
number of prior trials (rate = INITIAL / sqrt(n + 1)) down to
MIN_LEARNING_RATE, so new items converge quickly and well-practiced items
are stable.
"""

import bisect
import math
import random
from typing import Sequence


# Constants
INITIAL_LEARNING_RATE = 0.5  # rate for an item's first trial
MIN_LEARNING_RATE = 0.1      # floor once an item has many trials
CORRECTNESS_WEIGHT = 0.6     # share of a correct observation from correctness
SPEED_WEIGHT = 0.4           # share from relative speed
EWMA_ALPHA = 0.3             # smoothing for the response-time average
MAX_STORED_TIMES = 10        # recent correct response times kept per item
MAX_RESPONSE_FACTOR = 9.0    # response times clamp at baseline * this
DEFAULT_MAX_RESPONSE_MS = 9000.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def learning_rate(trial_count: int) -> float:
    """Learning rate for an item that has `trial_count` prior trials."""
    if trial_count < 0:
        raise ValueError(f"trial_count must be >= 0, got {trial_count}")
    return max(MIN_LEARNING_RATE, INITIAL_LEARNING_RATE / math.sqrt(trial_count + 1))


def relative_speed(latency_ms: float, baseline_ms: float | None) -> float | None:
    """
    Normalize a response latency against the motor baseline.

    Returns None when there is no baseline (speed contributes neutrally).
    A latency at or below the baseline scores 1.0.
    """
    if baseline_ms is None:
        return None
    if latency_ms <= 0:
        return 1.0
    return clamp(baseline_ms / latency_ms, 0.0, 1.0)


def observation_score(correct: bool, speed: float | None) -> float:
    """Blend correctness and relative speed into a single trial score."""
    if not correct:
        return 0.0
    if speed is None:
        return 1.0
    return CORRECTNESS_WEIGHT + SPEED_WEIGHT * speed


def update_automaticity(
    current: float,
    trial_count: int,
    correct: bool,
    speed: float | None,
) -> float:
    """
    Apply one trial to an automaticity score.

    Args:
        current: Automaticity before this trial.
        trial_count: Number of trials recorded before this one.
        correct: Whether the answer was correct.
        speed: relative_speed() of the response, or None without a baseline.

    Returns:
        The updated automaticity, always within [0, 1].
    """
    rate = learning_rate(trial_count)
    target = observation_score(correct, speed)
    return clamp(current + rate * (target - current), 0.0, 1.0)


def max_response_ms(baseline_ms: float | None) -> float:
    """Ceiling applied to recorded response times."""
    if baseline_ms is None:
        return DEFAULT_MAX_RESPONSE_MS
    return baseline_ms * MAX_RESPONSE_FACTOR


def compute_ewma(old: float | None, new: float, alpha: float = EWMA_ALPHA) -> float:
    if old is None:
        return new
    return alpha * new + (1 - alpha) * old


def compute_median(values: Sequence[float]) -> float | None:
    """Median of a sequence (does not mutate it). None when empty."""
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def cumulative_weights(weights: Sequence[float]) -> list[float]:
    """Running totals of `weights`, for bisect-based sampling."""
    totals: list[float] = []
    running = 0.0
    for weight in weights:
        if weight < 0:
            raise ValueError(f"weights must be non-negative, got {weight}")
        running += weight
        totals.append(running)
    return totals


def draw_weighted(items: Sequence[str], weights: Sequence[float], rng: random.Random) -> str:
    """
    Pick one item with probability proportional to its weight.

    Falls back to a uniform draw when every weight is zero.
    """
    if not items:
        raise ValueError("items cannot be empty")
    if len(items) != len(weights):
        raise ValueError("items and weights must be the same length")

    totals = cumulative_weights(weights)
    total = totals[-1]
    if total <= 0:
        return items[rng.randrange(len(items))]

    point = rng.random() * total
    index = bisect.bisect_right(totals, point)
    return items[min(index, len(items) - 1)]
