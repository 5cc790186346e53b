"""
Quiz engine: the per-mode practice session state machine.

    idle -> calibrating -> active -> round_complete -> idle
                  (stop() from any phase goes straight to idle)

The engine advances only on discrete calls (start, submit_answer, tick,
continue_quiz, stop). Recoverable conditions never escape a public method;
they are reported through EngineState.condition and, where the session can
no longer continue, the engine returns to idle.
"""

import random
import time
from typing import Callable, Iterable

from loguru import logger

import recommendations
from automaticity import compute_median
from calibration import (
    DEFAULT_TRIAL_COUNT,
    MIN_VALID_TRIALS,
    WARMUP_TRIALS,
    CalibrationSession,
)
from errors import EmptyScopeError, PersistenceUnavailableError, TrainerError
from learner import LearnerModel
from models import (
    Classification,
    EnginePhase,
    EngineState,
    Feedback,
    RecommendationResult,
    RoundState,
    RoundSummary,
)
from modes import PracticeMode
from scheduler import select_next_item
from scope import ScopeManager
from timers import ManualTimer, TimerHandle, TimerService


# Constants
ROUND_DURATION_S = 60.0
TICK_INTERVAL_S = 1.0
MASTERY_MESSAGE = "Looks like you've got this!"


class QuizEngine:
    """
    One practice session for one mode.

    Owns the round state, the current question and the round timer. Reads
    the scope, writes trials to the learner model, and never changes the
    scope except through set_enabled()/apply_recommendation().
    """

    def __init__(
        self,
        mode: PracticeMode,
        learner: LearnerModel,
        scope: ScopeManager,
        *,
        round_duration_s: float = ROUND_DURATION_S,
        expansion_threshold: float = recommendations.EXPANSION_THRESHOLD,
        calibration_trials: int = DEFAULT_TRIAL_COUNT,
        calibration_warmup_trials: int = WARMUP_TRIALS,
        min_calibration_trials: int = MIN_VALID_TRIALS,
        timer: TimerService | None = None,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ):
        self.mode = mode
        self.learner = learner
        self.scope = scope
        self.round_duration_s = round_duration_s
        self.expansion_threshold = expansion_threshold
        self.calibration_trials = calibration_trials
        self.calibration_warmup_trials = calibration_warmup_trials
        self.min_calibration_trials = min_calibration_trials
        self.timer = timer or ManualTimer()
        self.clock = clock
        self.rng = rng or random.Random()

        self.phase = EnginePhase.IDLE
        self.round_number = 0
        self.question_count = 0

        self._round: RoundState | None = None
        self._summary: RoundSummary | None = None
        self._timer_handle: TimerHandle | None = None
        self._calibration: CalibrationSession | None = None
        self._activate_after_calibration = False

        self._current_item: str | None = None
        self._prompt: str | None = None
        self._presented_at = 0.0
        self._previous_item: str | None = None
        self._last_feedback: Feedback | None = None

        self._condition: TrainerError | None = None

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def start(self) -> EngineState:
        """Start practicing: calibrate first if there is no motor baseline."""
        if self.phase != EnginePhase.IDLE:
            return self.get_state()

        self._condition = None
        self._last_feedback = None
        self._summary = None
        try:
            if not self.scope.enabled_item_ids():
                raise EmptyScopeError("Nothing is enabled; choose something to practice")
            if self.learner.motor_baseline is None:
                self._begin_calibration(activate_after=True)
            else:
                self._begin_round()
        except TrainerError as e:
            self._recover(e)
        return self.get_state()

    def calibrate(self) -> EngineState:
        """(Re)calibrate the motor baseline, returning to idle afterwards."""
        self._reset()
        self._condition = None
        try:
            self._begin_calibration(activate_after=False)
        except TrainerError as e:
            self._recover(e)
        return self.get_state()

    def submit_answer(self, user_input: str) -> EngineState:
        """Answer the current question (or calibration target)."""
        try:
            if self.phase == EnginePhase.CALIBRATING:
                self._submit_calibration(user_input)
            elif self.phase == EnginePhase.ACTIVE:
                self._submit_item(user_input)
        except TrainerError as e:
            self._recover(e)
        return self.get_state()

    def tick(self) -> EngineState:
        """Countdown callback: close the round once time is up."""
        try:
            if self.phase == EnginePhase.ACTIVE:
                if not self.scope.enabled_item_ids():
                    raise EmptyScopeError("Everything was disabled mid-round")
                now = self.clock()
                if self._expired(now):
                    self._complete_round(now)
        except TrainerError as e:
            self._recover(e)
        return self.get_state()

    def continue_quiz(self) -> EngineState:
        """Start a fresh round straight from the round summary."""
        if self.phase != EnginePhase.ROUND_COMPLETE:
            return self.get_state()
        self._condition = None
        self._last_feedback = None
        try:
            self._begin_round()
        except TrainerError as e:
            self._recover(e)
        return self.get_state()

    def stop(self) -> EngineState:
        """
        Return to idle from any phase.

        Round tallies and any calibration in progress are discarded; trials
        already recorded stay recorded.
        """
        if self.phase != EnginePhase.IDLE:
            logger.info(f"{self.mode.name}: stopped during {self.phase.value}")
        self._reset()
        self._summary = None
        self._condition = None
        return self.get_state()

    # ------------------------------------------------------------------
    # Scope advisory
    # ------------------------------------------------------------------

    def compute_recommendation(self) -> RecommendationResult:
        return recommendations.compute_recommendation(
            self.learner.all_stats(),
            self.mode.groups(),
            self.scope.enabled_groups,
            enabled_items=self.scope.enabled_item_ids(),
            expansion_threshold=self.expansion_threshold,
            fluency_threshold=self.learner.fluency_threshold,
            order_key=self.mode.order_key,
        )

    def apply_recommendation(self, result: RecommendationResult) -> bool:
        """Apply a recommendation to the scope. Returns True if scope changed."""
        try:
            return self.scope.apply_recommendation(result)
        except TrainerError as e:
            self._report(e)
            return result.enabled is not None and self.scope.enabled_groups == result.enabled

    def set_enabled(self, values: Iterable[int] | Iterable[str]) -> EngineState:
        """Replace the enabled groups (ints) or items (strings)."""
        try:
            self.scope.set_enabled(values)
        except PersistenceUnavailableError as e:
            self._report(e)
        except TrainerError as e:
            self._report(e)
            return self.get_state()

        if self.phase == EnginePhase.ACTIVE and not self.scope.enabled_item_ids():
            self._recover(EmptyScopeError("Everything was disabled mid-round"))
        return self.get_state()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def time_remaining(self) -> float:
        if self.phase != EnginePhase.ACTIVE or self._round is None:
            return 0.0
        elapsed = self.clock() - self._round.started_at
        return max(0.0, self.round_duration_s - elapsed)

    def get_state(self) -> EngineState:
        enabled = self.scope.enabled_item_ids()
        aggregate = self.learner.aggregate(enabled)

        state = EngineState(
            phase=self.phase,
            time_remaining=self.time_remaining(),
            current_item_id=self._current_item,
            prompt=self._prompt,
            mastered_count=aggregate.fluent_count,
            total_enabled_count=aggregate.total_count,
            last_feedback=self._last_feedback,
            round_number=self.round_number,
            question_count=self.question_count,
            summary=self._summary,
            motor_baseline=self.learner.motor_baseline,
        )
        if self._condition is not None:
            state.condition = self._condition.condition
            state.condition_message = str(self._condition)
        if self._round is not None:
            state.round_answered = self._round.answered
            state.round_correct = self._round.correct
        if self._calibration is not None:
            state.calibration_target = self._calibration.current_target
            state.calibration_trial = self._calibration.trial_index
            state.calibration_total = self._calibration.trial_count
        if (
            self.phase in (EnginePhase.IDLE, EnginePhase.ROUND_COMPLETE)
            and aggregate.total_count > 0
            and aggregate.fluent_count == aggregate.total_count
        ):
            state.mastery_message = MASTERY_MESSAGE
        return state

    # ------------------------------------------------------------------
    # Calibration phase
    # ------------------------------------------------------------------

    def _begin_calibration(self, activate_after: bool) -> None:
        self._calibration = CalibrationSession(
            self.mode.answer_choices(),
            trial_count=self.calibration_trials,
            warmup_trials=self.calibration_warmup_trials,
            min_valid_trials=self.min_calibration_trials,
            rng=self.rng,
        )
        self._activate_after_calibration = activate_after
        self.phase = EnginePhase.CALIBRATING
        logger.info(f"{self.mode.name}: calibrating")
        self._calibration.next_target()
        self._presented_at = self.clock()

    def _submit_calibration(self, user_input: str) -> None:
        session = self._calibration
        latency_ms = max(0.0, (self.clock() - self._presented_at) * 1000)
        session.record_response(user_input, latency_ms)
        if not session.is_complete:
            session.next_target()
            self._presented_at = self.clock()
            return

        self._calibration = None
        self.phase = EnginePhase.IDLE
        baseline = session.finish()
        try:
            self.learner.set_motor_baseline(baseline)
        except PersistenceUnavailableError as e:
            self._report(e)
        logger.info(f"{self.mode.name}: motor baseline {baseline:.0f}ms")

        if self._activate_after_calibration:
            self._begin_round()

    # ------------------------------------------------------------------
    # Active phase
    # ------------------------------------------------------------------

    def _begin_round(self) -> None:
        if not self.scope.enabled_item_ids():
            raise EmptyScopeError("Nothing is enabled; choose something to practice")

        self.round_number += 1
        self._round = RoundState(round_number=self.round_number, started_at=self.clock())
        self._summary = None
        self._previous_item = None
        self.phase = EnginePhase.ACTIVE
        self._cancel_timer()
        self._timer_handle = self.timer.schedule_repeating(TICK_INTERVAL_S, self.tick)
        logger.info(f"{self.mode.name}: round {self.round_number} started")
        self._present_next()

    def _present_next(self) -> None:
        item_id = select_next_item(
            self.scope.enabled_item_ids(),
            self.learner.get_stat,
            self._previous_item,
            self.rng,
        )
        self._current_item = item_id
        self._prompt = self.mode.get_question(item_id)
        self._presented_at = self.clock()
        self.question_count += 1

    def _submit_item(self, user_input: str) -> None:
        now = self.clock()
        item_id = self._current_item
        latency_ms = max(0.0, (now - self._presented_at) * 1000)
        correct, expected = self.mode.check_answer(item_id, user_input)

        was_fluent = self.learner.classify(item_id) == Classification.FLUENT
        try:
            stat = self.learner.record_trial(item_id, correct, latency_ms)
        except PersistenceUnavailableError as e:
            self._report(e)
            stat = self.learner.get_stat(item_id)

        tally = self._round
        tally.answered += 1
        tally.correct += int(correct)
        tally.response_times.append(latency_ms)
        if (
            not was_fluent
            and stat.classify(self.learner.fluency_threshold) == Classification.FLUENT
            and item_id not in tally.newly_fluent
        ):
            tally.newly_fluent.append(item_id)

        self._last_feedback = Feedback(
            item_id=item_id,
            correct=correct,
            expected=expected,
            given=user_input,
            latency_ms=latency_ms,
        )
        self._previous_item = item_id

        if self._expired(now):
            self._complete_round(now)
        else:
            self._present_next()

    def _expired(self, now: float) -> bool:
        return now - self._round.started_at >= self.round_duration_s

    def _complete_round(self, now: float) -> None:
        self._cancel_timer()
        tally = self._round
        enabled = self.scope.enabled_item_ids()
        aggregate = self.learner.aggregate(enabled)
        self._summary = RoundSummary(
            round_number=tally.round_number,
            answered=tally.answered,
            correct=tally.correct,
            duration_ms=(now - tally.started_at) * 1000,
            median_response_ms=compute_median(tally.response_times),
            newly_fluent=list(tally.newly_fluent),
            fluent_count=aggregate.fluent_count,
            total_enabled_count=aggregate.total_count,
        )
        self._round = None
        self._current_item = None
        self._prompt = None
        self.phase = EnginePhase.ROUND_COMPLETE
        logger.info(
            f"{self.mode.name}: round {tally.round_number} complete, "
            f"{tally.correct}/{tally.answered} correct"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

    def _reset(self) -> None:
        self._cancel_timer()
        self._calibration = None
        self._round = None
        self._current_item = None
        self._prompt = None
        self._previous_item = None
        self.phase = EnginePhase.IDLE

    def _report(self, error: TrainerError) -> None:
        logger.warning(f"{self.mode.name}: {error.condition.value}: {error}")
        self._condition = error

    def _recover(self, error: TrainerError) -> None:
        """Fail safe: back to idle with the condition reported."""
        self._reset()
        self._report(error)
