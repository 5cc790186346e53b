"""Unit tests for the automaticity update math."""

import random

import pytest

from automaticity import (
    INITIAL_LEARNING_RATE,
    MIN_LEARNING_RATE,
    compute_ewma,
    compute_median,
    cumulative_weights,
    draw_weighted,
    learning_rate,
    max_response_ms,
    observation_score,
    relative_speed,
    update_automaticity,
)


class TestLearningRate:
    """Tests for the learning-rate schedule."""

    def test_first_trial_uses_initial_rate(self):
        assert learning_rate(0) == INITIAL_LEARNING_RATE

    def test_rate_shrinks_with_trials(self):
        rates = [learning_rate(n) for n in range(30)]
        for earlier, later in zip(rates, rates[1:]):
            assert later <= earlier

    def test_rate_never_below_floor(self):
        assert learning_rate(10_000) == MIN_LEARNING_RATE

    def test_negative_trial_count_rejected(self):
        with pytest.raises(ValueError):
            learning_rate(-1)


class TestRelativeSpeed:
    """Tests for latency normalization."""

    def test_no_baseline_is_neutral(self):
        assert relative_speed(1200, None) is None

    def test_at_or_below_baseline_is_full_speed(self):
        assert relative_speed(500, 500) == 1.0
        assert relative_speed(300, 500) == 1.0

    def test_slower_than_baseline_scales_down(self):
        assert relative_speed(1000, 500) == pytest.approx(0.5)

    def test_zero_latency_is_full_speed(self):
        assert relative_speed(0, 500) == 1.0


class TestUpdateAutomaticity:
    """Tests for the exponential update."""

    def test_wrong_answer_scores_zero(self):
        assert observation_score(False, 1.0) == 0.0

    def test_correct_without_baseline_scores_one(self):
        assert observation_score(True, None) == 1.0

    def test_slow_correct_scores_less_than_fast_correct(self):
        assert observation_score(True, 0.2) < observation_score(True, 1.0)

    def test_first_correct_fast_trial(self):
        """Rate 0.5 from zero toward 1.0 gives 0.5."""
        assert update_automaticity(0.0, 0, True, 1.0) == pytest.approx(0.5)

    def test_bounded_for_any_sequence(self):
        """Automaticity stays in [0, 1] for random trial sequences."""
        rng = random.Random(7)
        value = 0.0
        for n in range(500):
            correct = rng.random() < 0.5
            speed = rng.choice([None, rng.random()])
            value = update_automaticity(value, n, correct, speed)
            assert 0.0 <= value <= 1.0

    def test_all_correct_fast_is_non_decreasing(self):
        value = 0.0
        for n in range(50):
            new = update_automaticity(value, n, True, 1.0)
            assert new >= value
            value = new

    def test_all_wrong_is_non_increasing(self):
        value = 0.9
        for n in range(50):
            new = update_automaticity(value, n, False, 1.0)
            assert new <= value
            value = new

    def test_fluent_by_fifth_trial(self):
        """Correct at 400ms against a 500ms baseline crosses 0.8 within five trials."""
        value = 0.0
        speed = relative_speed(400, 500)
        for n in range(5):
            value = update_automaticity(value, n, True, speed)
        assert value >= 0.8


class TestHelpers:
    """Tests for the EWMA, median and weighted draw helpers."""

    def test_max_response_scales_with_baseline(self):
        assert max_response_ms(500) == 4500
        assert max_response_ms(None) == 9000

    def test_ewma_first_value_is_taken_as_is(self):
        assert compute_ewma(None, 800) == 800

    def test_ewma_blends(self):
        assert compute_ewma(1000, 500) == pytest.approx(0.3 * 500 + 0.7 * 1000)

    def test_median_odd_and_even(self):
        assert compute_median([3, 1, 2]) == 2
        assert compute_median([4, 1, 3, 2]) == 2.5
        assert compute_median([]) is None

    def test_median_does_not_mutate(self):
        values = [3, 1, 2]
        compute_median(values)
        assert values == [3, 1, 2]

    def test_cumulative_weights(self):
        assert cumulative_weights([0.5, 0.25, 0.25]) == [0.5, 0.75, 1.0]

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            cumulative_weights([1.0, -0.1])

    def test_zero_weight_never_drawn(self):
        rng = random.Random(3)
        for _ in range(200):
            assert draw_weighted(["x", "y", "z"], [1.0, 0.0, 1.0], rng) != "y"

    def test_all_zero_weights_falls_back_to_uniform(self):
        rng = random.Random(3)
        drawn = {draw_weighted(["x", "y"], [0.0, 0.0], rng) for _ in range(100)}
        assert drawn == {"x", "y"}

    def test_empty_or_mismatched_input_rejected(self):
        rng = random.Random(3)
        with pytest.raises(ValueError):
            draw_weighted([], [], rng)
        with pytest.raises(ValueError):
            draw_weighted(["x"], [1.0, 2.0], rng)
