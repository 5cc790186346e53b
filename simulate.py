"""Core simulation logic for the learner simulator.

Drives a real QuizEngine with a simulated learner, a fake clock and a
manual timer, so whole practice histories run instantly and reproducibly.
"""

import json
import random
from datetime import datetime, timedelta
from pathlib import Path

from loguru import logger

from learner import LearnerModel
from models import Condition, EnginePhase, EngineState
from modes import PracticeMode
from quiz_engine import QuizEngine
from scope import ScopeManager
from simulator_models import (
    AnswerRecord,
    ItemSnapshot,
    ItemTrajectory,
    RoundReport,
    SimulatedLearner,
    SimulatedLearnerConfig,
    SimulationResults,
)
from storage import MemoryModeStore, ModeStore
from timers import ManualTimer

MAX_CALIBRATION_ATTEMPTS = 3


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ResponseGenerator:
    """Generates simulated answers based on true skill."""

    def __init__(self, learner: SimulatedLearner, mode: PracticeMode, rng: random.Random):
        self.learner = learner
        self.mode = mode
        self.rng = rng

    def generate_response(self, item_id: str) -> tuple[str, float]:
        """Return (typed answer, latency in ms) for an item."""
        latency = self.learner.response_latency_ms(item_id, self.rng)
        if self.rng.random() < self.learner.p_correct(item_id):
            return self.mode.correct_answer(item_id), latency
        return "?", latency


class Simulator:
    """Runs the learner simulation."""

    def __init__(
        self,
        mode: PracticeMode,
        config: SimulatedLearnerConfig,
        round_duration_s: float = 60.0,
        auto_apply: bool = True,
        seed: int | None = None,
        store: ModeStore | None = None,
    ):
        self.mode = mode
        self.config = config
        self.round_duration_s = round_duration_s
        self.auto_apply = auto_apply
        self.rng = random.Random(seed)

        self.clock = FakeClock()
        self.timer = ManualTimer()
        self._epoch = datetime(2024, 1, 1)

        # Initialize fresh state
        self.student = SimulatedLearner(config=config)
        self.responses = ResponseGenerator(self.student, mode, self.rng)
        store = store or MemoryModeStore()
        self.learner = LearnerModel(
            mode.name,
            mode.item_ids(),
            store,
            now=lambda: self._epoch + timedelta(seconds=self.clock.now),
        )
        self.scope = ScopeManager(mode.name, mode.item_ids(), mode.groups(), store)
        self.engine = QuizEngine(
            mode,
            self.learner,
            self.scope,
            round_duration_s=round_duration_s,
            timer=self.timer,
            clock=self.clock,
            rng=self.rng,
        )

        # Results tracking
        self.answers: list[AnswerRecord] = []
        self.round_reports: list[RoundReport] = []
        self.item_trajectories: dict[str, ItemTrajectory] = {}

    def run(self, rounds: int, verbose: bool = False) -> SimulationResults:
        """Run the full simulation."""
        start_time = datetime.now()

        state = self._start()
        for round_index in range(rounds):
            if state.phase != EnginePhase.ACTIVE:
                logger.warning(f"simulation stopped early: engine is {state.phase.value}")
                break
            state = self._simulate_round(state, verbose)
            if round_index < rounds - 1:
                state = self.engine.continue_quiz()

        self.engine.stop()
        end_time = datetime.now()

        return self._compile_results(start_time, end_time, rounds)

    def _start(self) -> EngineState:
        """Start the engine, answering calibration taps if asked."""
        for _ in range(MAX_CALIBRATION_ATTEMPTS):
            state = self.engine.start()
            while state.phase == EnginePhase.CALIBRATING:
                self.clock.advance(self.student.motor_latency_ms(self.rng) / 1000)
                state = self.engine.submit_answer(state.calibration_target)
            if state.condition != Condition.CALIBRATION_INCOMPLETE:
                return state
        return state

    def _simulate_round(self, state: EngineState, verbose: bool) -> EngineState:
        """Answer questions until the round closes."""
        round_number = state.round_number
        question_number = 0

        while state.phase == EnginePhase.ACTIVE:
            item_id = state.current_item_id
            skill_before = self.student.get_skill(item_id)
            answer, latency_ms = self.responses.generate_response(item_id)

            self.clock.advance(latency_ms / 1000)
            state = self.engine.submit_answer(answer)
            self.student.practice(item_id)
            question_number += 1

            feedback = state.last_feedback
            stat = self.learner.get_stat(item_id)
            self.answers.append(
                AnswerRecord(
                    round_number=round_number,
                    question_number=question_number,
                    item_id=item_id,
                    correct=feedback.correct,
                    latency_ms=feedback.latency_ms,
                    true_skill_before=skill_before,
                    automaticity_after=stat.automaticity,
                )
            )
            self._update_trajectory(item_id, round_number, question_number)

            if verbose:
                self._print_answer(round_number, question_number, item_id, feedback.correct)

            if state.phase == EnginePhase.ACTIVE:
                state = self.engine.tick()

        if state.phase == EnginePhase.ROUND_COMPLETE:
            self._report_round(state)
        return state

    def _update_trajectory(self, item_id: str, round_number: int, question_number: int) -> None:
        stat = self.learner.get_stat(item_id)
        trajectory = self.item_trajectories.setdefault(item_id, ItemTrajectory(item_id=item_id))
        if trajectory.first_practiced_round is None:
            trajectory.first_practiced_round = round_number
        if (
            trajectory.became_fluent_round is None
            and stat.automaticity >= self.learner.fluency_threshold
        ):
            trajectory.became_fluent_round = round_number
        trajectory.snapshots.append(
            ItemSnapshot(
                round_number=round_number,
                question_number=question_number,
                true_skill=self.student.get_skill(item_id),
                automaticity=stat.automaticity,
                trial_count=stat.trial_count,
            )
        )

    def _report_round(self, state: EngineState) -> None:
        summary = state.summary
        recommendation = self.engine.compute_recommendation()
        applied = False
        if self.auto_apply and recommendation.enabled is not None:
            applied = self.engine.apply_recommendation(recommendation)

        self.round_reports.append(
            RoundReport(
                round_number=summary.round_number,
                answered=summary.answered,
                correct=summary.correct,
                accuracy=summary.accuracy,
                median_response_ms=summary.median_response_ms,
                newly_fluent=summary.newly_fluent,
                fluent_count=summary.fluent_count,
                total_enabled_count=summary.total_enabled_count,
                enabled_groups=sorted(self.scope.enabled_groups),
                recommendation=recommendation.justification,
                recommendation_applied=applied,
            )
        )

    def _print_answer(
        self, round_number: int, question_number: int, item_id: str, correct: bool
    ) -> None:
        """Print verbose answer result."""
        status = "correct" if correct else "incorrect"
        stat = self.learner.get_stat(item_id)
        print(
            f"  Round {round_number}, Q {question_number}: {item_id} - {status} | "
            f"skill={self.student.get_skill(item_id):.2f}, "
            f"automaticity={stat.automaticity:.2f}"
        )

    def _compile_results(
        self,
        start_time: datetime,
        end_time: datetime,
        rounds: int,
    ) -> SimulationResults:
        """Compile all results into final output."""
        total_correct = sum(1 for a in self.answers if a.correct)
        total_answers = len(self.answers)
        final = self.learner.aggregate(self.mode.item_ids())

        return SimulationResults(
            config=self.config,
            mode=self.mode.name,
            rounds_simulated=len(self.round_reports),
            round_duration_s=self.round_duration_s,
            random_seed=None,  # Will be set by caller if applicable
            start_time=start_time,
            end_time=end_time,
            motor_baseline_ms=self.learner.motor_baseline,
            total_answers=total_answers,
            total_correct=total_correct,
            overall_accuracy=total_correct / total_answers if total_answers > 0 else 0.0,
            round_reports=self.round_reports,
            answers=self.answers,
            item_trajectories=self.item_trajectories,
            final_fluent_count=final.fluent_count,
            final_enabled_groups=sorted(self.scope.enabled_groups),
        )


def print_console_summary(results: SimulationResults) -> None:
    """Print formatted console summary of simulation results."""
    print()
    print("=" * 80)
    print("                        SIMULATION COMPLETE")
    print("=" * 80)
    print()
    print("Configuration:")
    print(f"  Mode:               {results.mode}")
    print(f"  Rounds simulated:   {results.rounds_simulated}")
    print(f"  Round duration:     {results.round_duration_s:.0f}s")
    baseline = results.motor_baseline_ms
    print(f"  Motor baseline:     {baseline:.0f}ms" if baseline else "  Motor baseline:     -")
    print()
    print("Learner Parameters:")
    print(f"  Base latency:       {results.config.base_latency_ms:.0f}ms")
    print(f"  Learning rate:      {results.config.learning_rate:.2f}")
    print(f"  Slip rate:          {results.config.slip_rate:.2f}")
    print(f"  Guess rate:         {results.config.guess_rate:.2f}")
    print()
    print("=" * 80)
    print("                        OVERALL RESULTS")
    print("=" * 80)
    print()
    print(
        f"Total correct:        {results.total_correct} / {results.total_answers} "
        f"({results.overall_accuracy * 100:.1f}%)"
    )
    print(f"Fluent items:         {results.final_fluent_count}")
    print(f"Enabled groups:       {results.final_enabled_groups}")
    print()
    print("=" * 80)
    print("                        ROUND BREAKDOWN")
    print("=" * 80)
    print()
    print("Round  Answered  Correct  Accuracy  Fluent   Groups")
    print("-----  --------  -------  --------  -------  ------")

    for report in results.round_reports:
        fluent = f"{report.fluent_count}/{report.total_enabled_count}"
        print(
            f"{report.round_number:5d}  {report.answered:8d}  {report.correct:7d}  "
            f"{report.accuracy * 100:7.1f}%  {fluent:>7s}  {report.enabled_groups}"
        )

    print()


def save_json_results(results: SimulationResults, output_path: Path) -> None:
    """Save simulation results to JSON file."""
    data = json.loads(results.model_dump_json())

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)


def run_simulation_and_report(
    mode: PracticeMode,
    config: SimulatedLearnerConfig,
    rounds: int,
    round_duration_s: float,
    output_path: Path,
    verbose: bool = False,
    seed: int | None = None,
) -> SimulationResults:
    """Run simulation and generate all outputs."""
    simulator = Simulator(mode, config, round_duration_s=round_duration_s, seed=seed)
    results = simulator.run(rounds, verbose)

    results.random_seed = seed

    print_console_summary(results)

    save_json_results(results, output_path)
    print(f"Results saved to: {output_path}")

    return results
