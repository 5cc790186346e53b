"""Tests for the quiz engine state machine."""

import random

import pytest

from errors import PersistenceUnavailableError
from learner import LearnerModel
from models import Condition, EnginePhase
from modes.note_semitones import NATURAL_NOTES
from quiz_engine import MASTERY_MESSAGE, QuizEngine
from scope import ScopeManager
from simulate import FakeClock
from storage import MemoryModeStore
from timers import ManualTimer


class FailingStatStore(MemoryModeStore):
    """Store whose item-stat writes fail."""

    def save_stat(self, mode, stat):
        raise PersistenceUnavailableError("disk full")


def answer_correctly(engine, clock, seconds=0.4):
    clock.advance(seconds)
    item_id = engine.get_state().current_item_id
    return engine.submit_answer(engine.mode.correct_answer(item_id))


def uncalibrated_engine(note_mode, clock, timer, **kwargs):
    store = MemoryModeStore()
    learner = LearnerModel(note_mode.name, note_mode.item_ids(), store)
    scope = ScopeManager(note_mode.name, note_mode.item_ids(), note_mode.groups(), store)
    return QuizEngine(
        note_mode, learner, scope, timer=timer, clock=clock, rng=random.Random(3), **kwargs
    )


class TestStart:
    """Tests for starting a session."""

    def test_idle_snapshot(self, engine):
        state = engine.get_state()
        assert state.phase == EnginePhase.IDLE
        assert state.current_item_id is None
        assert state.mastered_count == 0
        assert state.total_enabled_count == 7
        assert state.time_remaining == 0.0

    def test_start_with_baseline_goes_active(self, engine, timer, note_scope):
        state = engine.start()
        assert state.phase == EnginePhase.ACTIVE
        assert state.current_item_id in note_scope.enabled_item_ids()
        assert state.prompt
        assert state.time_remaining == 60.0
        assert state.round_number == 1
        assert len(timer.active) == 1

    def test_start_without_baseline_calibrates(self, note_mode, clock, timer):
        engine = uncalibrated_engine(note_mode, clock, timer)
        state = engine.start()
        assert state.phase == EnginePhase.CALIBRATING
        assert state.calibration_target in NATURAL_NOTES
        assert state.calibration_total == 10

    def test_start_with_empty_scope(self, engine, note_scope, timer):
        """Zero enabled items: idle with EmptyScope, never active."""
        note_scope.set_enabled([])
        state = engine.start()
        assert state.phase == EnginePhase.IDLE
        assert state.condition == Condition.EMPTY_SCOPE
        assert state.condition_message
        assert timer.active == []

    def test_start_while_active_is_ignored(self, engine):
        engine.start()
        state = engine.start()
        assert state.phase == EnginePhase.ACTIVE
        assert state.round_number == 1


class TestCalibrationPhase:
    """Tests for the calibrating phase."""

    def test_successful_calibration_starts_round(self, note_mode, clock, timer):
        engine = uncalibrated_engine(note_mode, clock, timer)
        state = engine.start()
        while state.phase == EnginePhase.CALIBRATING:
            clock.advance(0.45)
            state = engine.submit_answer(state.calibration_target)

        assert state.phase == EnginePhase.ACTIVE
        assert state.motor_baseline == pytest.approx(450)
        assert engine.learner.motor_baseline == pytest.approx(450)

    def test_failed_calibration_returns_to_idle(self, note_mode, clock, timer):
        engine = uncalibrated_engine(note_mode, clock, timer)
        state = engine.start()
        while state.phase == EnginePhase.CALIBRATING:
            clock.advance(0.45)
            state = engine.submit_answer("wrong")

        assert state.phase == EnginePhase.IDLE
        assert state.condition == Condition.CALIBRATION_INCOMPLETE
        assert engine.learner.motor_baseline is None

    def test_retry_after_failure(self, note_mode, clock, timer):
        engine = uncalibrated_engine(note_mode, clock, timer)
        state = engine.start()
        while state.phase == EnginePhase.CALIBRATING:
            state = engine.submit_answer("wrong")

        state = engine.start()
        assert state.phase == EnginePhase.CALIBRATING
        assert state.condition is None

    def test_recalibrate_returns_to_idle(self, engine, clock):
        state = engine.calibrate()
        assert state.phase == EnginePhase.CALIBRATING
        while state.phase == EnginePhase.CALIBRATING:
            clock.advance(0.3)
            state = engine.submit_answer(state.calibration_target)

        assert state.phase == EnginePhase.IDLE
        assert engine.learner.motor_baseline == pytest.approx(300)

    def test_stop_discards_calibration(self, note_mode, clock, timer):
        engine = uncalibrated_engine(note_mode, clock, timer)
        engine.start()
        state = engine.stop()
        assert state.phase == EnginePhase.IDLE
        assert state.calibration_target is None
        assert engine.learner.motor_baseline is None


class TestSubmitAnswer:
    """Tests for answering during a round."""

    def test_correct_answer_recorded(self, engine, clock, note_learner):
        engine.start()
        item_id = engine.get_state().current_item_id
        state = answer_correctly(engine, clock, 0.8)

        assert state.last_feedback.correct is True
        assert state.last_feedback.item_id == item_id
        assert state.last_feedback.latency_ms == pytest.approx(800)
        assert state.round_answered == 1
        assert state.round_correct == 1
        assert note_learner.get_stat(item_id).trial_count == 1

    def test_wrong_answer_shows_expected(self, engine, clock):
        engine.start()
        item_id = engine.get_state().current_item_id
        clock.advance(1.0)
        state = engine.submit_answer("nope")

        assert state.last_feedback.correct is False
        assert state.last_feedback.expected == engine.mode.correct_answer(item_id)
        assert state.round_correct == 0

    def test_next_item_is_never_the_previous(self, engine, clock):
        engine.start()
        previous = engine.get_state().current_item_id
        for _ in range(50):
            state = answer_correctly(engine, clock, 0.5)
            assert state.current_item_id != previous
            previous = state.current_item_id

    def test_submit_while_idle_is_ignored(self, engine):
        state = engine.submit_answer("0")
        assert state.phase == EnginePhase.IDLE
        assert state.last_feedback is None

    def test_persistence_failure_is_reported_not_raised(self, note_mode, clock, timer):
        store = FailingStatStore()
        learner = LearnerModel(note_mode.name, note_mode.item_ids(), store)
        learner.set_motor_baseline(500)
        scope = ScopeManager(note_mode.name, note_mode.item_ids(), note_mode.groups(), store)
        engine = QuizEngine(note_mode, learner, scope, timer=timer, clock=clock, rng=random.Random(1))

        engine.start()
        item_id = engine.get_state().current_item_id
        state = answer_correctly(engine, clock)

        assert state.phase == EnginePhase.ACTIVE
        assert state.condition == Condition.PERSISTENCE_UNAVAILABLE
        assert learner.get_stat(item_id).trial_count == 1


class TestRoundTimer:
    """Tests for round expiry."""

    def test_answer_before_deadline_keeps_round_open(self, engine, clock):
        engine.start()
        clock.now = 100.0 + 59.5
        item_id = engine.get_state().current_item_id
        state = engine.submit_answer(engine.mode.correct_answer(item_id))
        assert state.phase == EnginePhase.ACTIVE

    def test_answer_at_deadline_is_scored_then_round_closes(self, engine, clock, note_learner):
        engine.start()
        item_id = engine.get_state().current_item_id
        clock.now = 160.0
        state = engine.submit_answer(engine.mode.correct_answer(item_id))

        assert state.phase == EnginePhase.ROUND_COMPLETE
        assert state.summary.answered == 1
        assert state.summary.correct == 1
        assert note_learner.get_stat(item_id).trial_count == 1
        assert state.current_item_id is None

    def test_round_completes_exactly_once(self, engine, clock, timer):
        engine.start()
        clock.now = 170.0
        engine.submit_answer("0")
        summary = engine.get_state().summary

        state = engine.submit_answer("0")
        engine.tick()
        timer.fire()
        assert state.phase == EnginePhase.ROUND_COMPLETE
        assert engine.get_state().summary == summary
        assert engine.get_state().summary.answered == 1

    def test_tick_closes_round(self, engine, clock, timer):
        engine.start()
        clock.now = 130.0
        timer.fire()
        assert engine.get_state().phase == EnginePhase.ACTIVE
        assert engine.get_state().time_remaining == pytest.approx(30.0)

        clock.now = 160.0
        timer.fire()
        state = engine.get_state()
        assert state.phase == EnginePhase.ROUND_COMPLETE
        assert state.summary.answered == 0
        assert timer.active == []

    def test_summary_contents(self, engine, clock, note_scope):
        note_scope.set_enabled(["C:fwd", "D:fwd"])
        engine.start()
        for _ in range(10):
            answer_correctly(engine, clock, 0.4)
        clock.now = 160.0
        state = engine.tick()

        summary = state.summary
        assert summary.answered == 10
        assert summary.accuracy == 1.0
        assert summary.median_response_ms == pytest.approx(400)
        assert sorted(summary.newly_fluent) == ["C:fwd", "D:fwd"]
        assert summary.fluent_count == 2
        assert summary.total_enabled_count == 2
        assert summary.context_line == "2 / 2 fluent"
        assert state.mastery_message == MASTERY_MESSAGE

    def test_continue_starts_fresh_round(self, engine, clock, timer):
        engine.start()
        answer_correctly(engine, clock)
        clock.now = 200.0
        engine.tick()

        state = engine.continue_quiz()
        assert state.phase == EnginePhase.ACTIVE
        assert state.round_number == 2
        assert state.round_answered == 0
        assert state.summary is None
        assert state.time_remaining == 60.0
        assert len(timer.active) == 1

    def test_many_rounds_keep_one_timer_handle(self, engine, clock, timer):
        engine.start()
        for _ in range(10):
            clock.advance(61.0)
            engine.tick()
            engine.continue_quiz()
        assert engine.get_state().round_number == 11
        assert len(timer.handles) == 1

    def test_continue_only_from_round_complete(self, engine):
        engine.start()
        state = engine.continue_quiz()
        assert state.round_number == 1


class TestStopAndScope:
    """Tests for stop() and scope changes mid-round."""

    def test_stop_keeps_recorded_trials(self, engine, clock, timer, note_learner):
        engine.start()
        item_id = engine.get_state().current_item_id
        answer_correctly(engine, clock)

        state = engine.stop()
        assert state.phase == EnginePhase.IDLE
        assert state.round_answered == 0
        assert state.current_item_id is None
        assert timer.active == []
        assert note_learner.get_stat(item_id).trial_count == 1

    def test_no_stale_tick_after_stop(self, engine, clock, timer):
        engine.start()
        handles = list(timer.handles)
        engine.stop()
        clock.now = 500.0
        assert timer.fire() == 0
        assert all(h.cancelled for h in handles)
        assert engine.get_state().phase == EnginePhase.IDLE

    def test_disabling_everything_mid_round(self, engine):
        engine.start()
        state = engine.set_enabled([])
        assert state.phase == EnginePhase.IDLE
        assert state.condition == Condition.EMPTY_SCOPE

    def test_scope_emptied_externally_caught_on_tick(self, engine, note_scope):
        engine.start()
        note_scope.set_enabled([])
        state = engine.tick()
        assert state.phase == EnginePhase.IDLE
        assert state.condition == Condition.EMPTY_SCOPE

    def test_scope_emptied_externally_caught_on_answer(self, engine, note_scope, clock):
        engine.start()
        note_scope.set_enabled([])
        state = answer_correctly(engine, clock)
        assert state.phase == EnginePhase.IDLE
        assert state.condition == Condition.EMPTY_SCOPE

    def test_invalid_group_reported(self, engine):
        state = engine.set_enabled([42])
        assert state.condition == Condition.INVALID_ITEM
        assert engine.scope.enabled_groups == {0}

    def test_mixed_groups_and_items_reported(self, engine):
        engine.start()
        current = engine.get_state().current_item_id

        state = engine.set_enabled([0, "C:fwd"])

        assert state.condition == Condition.INVALID_ITEM
        assert state.phase == EnginePhase.ACTIVE
        assert state.current_item_id == current
        assert engine.scope.enabled_groups == {0}

    def test_new_scope_used_for_next_selection(self, engine, clock):
        engine.start()
        engine.set_enabled([1])
        state = answer_correctly(engine, clock)
        assert state.current_item_id.endswith(":rev")


class TestRecommendations:
    """Tests for the engine's scope advisory."""

    def test_recommends_and_applies_next_group(self, engine, note_learner, note_scope):
        for item_id in note_scope.enabled_item_ids():
            for _ in range(5):
                note_learner.record_trial(item_id, True, 400)

        result = engine.compute_recommendation()
        assert result.enabled == {0, 1}
        assert result.justification

        assert engine.apply_recommendation(result) is True
        assert note_scope.enabled_groups == {0, 1}
        assert engine.get_state().total_enabled_count == 14

    def test_item_level_scope(self, engine, note_learner, note_scope):
        naturals = [f"{note}:fwd" for note in NATURAL_NOTES]
        engine.set_enabled(naturals)
        assert note_scope.enabled_groups == set()
        for item_id in naturals:
            for _ in range(5):
                note_learner.record_trial(item_id, True, 400)

        result = engine.compute_recommendation()
        assert result.enabled == {0, 1}
        assert result.fluent_count == 7
        assert result.total_count == 7
        assert not result.justification.startswith("Start with")

        assert engine.apply_recommendation(result) is True
        assert set(naturals) <= set(note_scope.enabled_item_ids())
        assert engine.get_state().total_enabled_count == 14

    def test_no_suggestion_below_threshold(self, engine):
        result = engine.compute_recommendation()
        assert result.enabled is None
        assert engine.apply_recommendation(result) is False

    def test_mastery_message_when_all_fluent(self, engine, note_learner, note_scope):
        assert engine.get_state().mastery_message == ""
        for item_id in note_scope.enabled_item_ids():
            for _ in range(5):
                note_learner.record_trial(item_id, True, 400)
        assert engine.get_state().mastery_message == MASTERY_MESSAGE


class TestIndependence:
    """Engines for different modes do not share state."""

    def test_two_engines(self, note_mode):
        store = MemoryModeStore()
        clock = FakeClock()
        engines = []
        for name in ("one", "two"):
            learner = LearnerModel(name, note_mode.item_ids(), store)
            learner.set_motor_baseline(500)
            scope = ScopeManager(name, note_mode.item_ids(), note_mode.groups(), store)
            engines.append(
                QuizEngine(note_mode, learner, scope, timer=ManualTimer(), clock=clock)
            )

        engines[0].start()
        engines[0].stop()
        assert engines[1].get_state().phase == EnginePhase.IDLE
        engines[1].start()
        assert engines[0].get_state().phase == EnginePhase.IDLE
        assert engines[1].get_state().phase == EnginePhase.ACTIVE
