"""
Motor-baseline calibration.

The learner taps a series of trivial targets as fast as possible. The first
few trials are warm-up and ignored; taps on the wrong target are invalid.
The baseline is the median of the remaining latencies after rejecting
implausibly fast taps and slow outliers.
"""

import random
from typing import Callable, Sequence

from loguru import logger
from pydantic import BaseModel

from automaticity import compute_median
from errors import CalibrationIncompleteError
from learner import LearnerModel


# Constants
DEFAULT_TRIAL_COUNT = 10
WARMUP_TRIALS = 2          # first taps are slower while orienting
MIN_VALID_TRIALS = 5
MIN_PLAUSIBLE_MS = 100.0   # faster than this is an accidental double tap
OUTLIER_FACTOR = 2.5       # reject latencies above median * this


class SpeedBand(BaseModel):
    """Human-readable response-time band derived from a baseline."""

    label: str
    max_ms: float | None
    meaning: str


def calibration_thresholds(baseline_ms: float) -> list[SpeedBand]:
    """Describe what response times mean relative to a baseline."""
    return [
        SpeedBand(
            label="Automatic",
            max_ms=round(baseline_ms * 1.5),
            meaning="Fully memorized, instant recall",
        ),
        SpeedBand(
            label="Good",
            max_ms=round(baseline_ms * 3.0),
            meaning="Solid recall, minor hesitation",
        ),
        SpeedBand(
            label="Developing",
            max_ms=round(baseline_ms * 4.5),
            meaning="Working on it, needs practice",
        ),
        SpeedBand(
            label="Slow",
            max_ms=round(baseline_ms * 6.0),
            meaning="Significant hesitation",
        ),
        SpeedBand(label="Very slow", max_ms=None, meaning="Not yet learned"),
    ]


def derive_baseline(
    latencies: Sequence[float],
    min_valid_trials: int = MIN_VALID_TRIALS,
) -> float:
    """
    Robust central tendency of calibration latencies.

    Raises:
        CalibrationIncompleteError: Fewer than `min_valid_trials` latencies
            survive outlier rejection.
    """
    plausible = [ms for ms in latencies if ms >= MIN_PLAUSIBLE_MS]
    median = compute_median(plausible)
    if median is not None:
        plausible = [ms for ms in plausible if ms <= median * OUTLIER_FACTOR]

    baseline = compute_median(plausible)
    if baseline is None or len(plausible) < min_valid_trials:
        raise CalibrationIncompleteError(
            f"Only {len(plausible)} valid calibration trials "
            f"(need {max(min_valid_trials, 1)}); please try again"
        )
    return baseline


class CalibrationSession:
    """
    Incremental calibration driven one tap at a time.

    Call next_target() to get the stimulus, then record_response() with what
    the learner pressed and how long it took. When is_complete, finish()
    returns the baseline.
    """

    def __init__(
        self,
        choices: Sequence[str],
        trial_count: int = DEFAULT_TRIAL_COUNT,
        warmup_trials: int = WARMUP_TRIALS,
        min_valid_trials: int = MIN_VALID_TRIALS,
        rng: random.Random | None = None,
    ):
        if not choices:
            raise ValueError("calibration needs at least one target choice")
        if warmup_trials >= trial_count:
            raise ValueError("warmup_trials must be smaller than trial_count")
        self.choices = list(choices)
        self.trial_count = trial_count
        self.warmup_trials = warmup_trials
        self.min_valid_trials = min_valid_trials
        self.rng = rng or random.Random()

        self.trial_index = 0
        self.current_target: str | None = None
        self.latencies: list[float] = []
        self._previous_target: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.trial_index >= self.trial_count

    def next_target(self) -> str:
        """Pick the next target, never repeating the previous one."""
        if self.is_complete:
            raise RuntimeError("calibration already complete")
        pool = [c for c in self.choices if c != self._previous_target] or self.choices
        self.current_target = pool[self.rng.randrange(len(pool))]
        return self.current_target

    def record_response(self, response: str, latency_ms: float) -> bool:
        """
        Record one tap for the current target.

        Returns True if the tap counts toward the baseline.
        """
        if self.current_target is None:
            raise RuntimeError("next_target() must be called before record_response()")

        valid = (
            self.trial_index >= self.warmup_trials
            and response.strip().lower() == self.current_target.lower()
        )
        if valid:
            self.latencies.append(latency_ms)

        self.trial_index += 1
        self._previous_target = self.current_target
        self.current_target = None
        return valid

    def finish(self) -> float:
        """Derive the baseline from the recorded taps."""
        return derive_baseline(self.latencies, self.min_valid_trials)


def run_calibration(
    learner: LearnerModel,
    choices: Sequence[str],
    respond: Callable[[str, int], tuple[str, float]],
    trial_count: int = DEFAULT_TRIAL_COUNT,
    warmup_trials: int = WARMUP_TRIALS,
    min_valid_trials: int = MIN_VALID_TRIALS,
    rng: random.Random | None = None,
) -> float:
    """
    Run a full calibration and persist the resulting baseline.

    Args:
        learner: Learner model whose motor baseline is replaced.
        choices: Target labels to tap.
        respond: Presents a target (with its 0-based trial number) and
            returns (what was pressed, latency in ms).

    Returns:
        The new motor baseline in milliseconds.

    Raises:
        CalibrationIncompleteError: Too few valid trials; caller should retry.
    """
    session = CalibrationSession(
        choices,
        trial_count=trial_count,
        warmup_trials=warmup_trials,
        min_valid_trials=min_valid_trials,
        rng=rng,
    )
    while not session.is_complete:
        target = session.next_target()
        response, latency_ms = respond(target, session.trial_index)
        session.record_response(response, latency_ms)

    baseline = session.finish()
    logger.info(f"{learner.mode}: motor baseline {baseline:.0f}ms")
    learner.set_motor_baseline(baseline)
    return baseline
