import argparse
import signal
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console

from calibration import calibration_thresholds
from config import Settings, configure_logging, get_settings
from learner import LearnerModel
from models import EnginePhase
from modes import MODES, PracticeMode, get_mode
from quiz_engine import QuizEngine
from scope import ScopeManager
from storage import get_mode_store
from timers import ManualTimer
from ui import TrainerUI


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(description="Fluency Trainer")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite database path (default: DRILL_DB_PATH or data/trainer.db)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    mode_names = sorted(MODES)

    practice_parser = subparsers.add_parser("practice", help="Timed practice rounds")
    practice_parser.add_argument("mode", choices=mode_names)

    calibrate_parser = subparsers.add_parser("calibrate", help="Measure your motor baseline")
    calibrate_parser.add_argument("mode", choices=mode_names)

    stats_parser = subparsers.add_parser("stats", help="Show per-item statistics")
    stats_parser.add_argument("mode", choices=mode_names)

    recommend_parser = subparsers.add_parser("recommend", help="Suggest what to practice")
    recommend_parser.add_argument("mode", choices=mode_names)
    recommend_parser.add_argument(
        "--apply",
        action="store_true",
        help="Apply the suggested scope change",
    )

    scope_parser = subparsers.add_parser("scope", help="Show or set enabled groups")
    scope_parser.add_argument("mode", choices=mode_names)
    scope_parser.add_argument(
        "groups",
        type=int,
        nargs="*",
        help="Group indices to enable (omit to show the current scope)",
    )

    reset_parser = subparsers.add_parser("reset", help="Clear item statistics for a mode")
    reset_parser.add_argument("mode", choices=mode_names)
    reset_parser.add_argument(
        "--baseline",
        action="store_true",
        help="Also forget the motor baseline",
    )

    sim_parser = subparsers.add_parser("simulate", help="Run learner simulation")
    sim_parser.add_argument("mode", choices=mode_names, nargs="?", default="note_semitones")
    sim_parser.add_argument(
        "--rounds",
        "-n",
        type=int,
        default=10,
        help="Number of rounds to simulate (default: 10)",
    )
    sim_parser.add_argument(
        "--learning-rate",
        "-l",
        type=float,
        default=0.25,
        help="Learner learning rate 0.0-1.0 (default: 0.25)",
    )
    sim_parser.add_argument(
        "--base-latency",
        "-b",
        type=float,
        default=450.0,
        help="Learner motor reaction time in ms (default: 450)",
    )
    sim_parser.add_argument(
        "--slip-rate",
        "-s",
        type=float,
        default=0.05,
        help="Error/slip rate 0.0-0.5 (default: 0.05)",
    )
    sim_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="simulation_results.json",
        help="Output JSON file path (default: simulation_results.json)",
    )
    sim_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print detailed answer-by-answer output",
    )
    sim_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )

    return parser


def build_engine(
    mode: PracticeMode, settings: Settings, timer: ManualTimer | None = None
) -> QuizEngine:
    """Wire the learner model, scope and quiz engine for one mode."""
    store = get_mode_store(settings.db_path)
    learner = LearnerModel(
        mode.name,
        mode.item_ids(),
        store,
        fluency_threshold=settings.fluency_threshold,
    )
    scope = ScopeManager(mode.name, mode.item_ids(), mode.groups(), store)
    return QuizEngine(
        mode,
        learner,
        scope,
        round_duration_s=settings.round_duration_s,
        expansion_threshold=settings.expansion_threshold,
        calibration_trials=settings.calibration_trials,
        calibration_warmup_trials=settings.calibration_warmup_trials,
        min_calibration_trials=settings.min_calibration_trials,
        timer=timer,
    )


def create_sigint_handler(ui: TrainerUI, engine: QuizEngine):
    """Create a SIGINT handler that stops the session before exiting."""

    def sigint_handler(signum, frame):
        engine.stop()
        ui.show_quit_message()
        sys.exit(0)

    return sigint_handler


def run_session(
    engine: QuizEngine,
    timer: ManualTimer,
    ui: TrainerUI,
    settings: Settings,
    calibrate_only: bool,
) -> None:
    """Drive the engine from the terminal until the user stops.

    The terminal blocks on input, so the round timer fires once before
    every prompt and the round closes on the first prompt past the deadline.
    """
    if calibrate_only:
        engine.calibrate()
    else:
        engine.start()

    while True:
        timer.fire()
        state = engine.get_state()

        if state.phase == EnginePhase.CALIBRATING:
            answer = ui.show_calibration_target(state)
            if answer == "quit":
                engine.stop()
                ui.show_quit_message()
                return
            state = engine.submit_answer(answer)
            if state.phase != EnginePhase.CALIBRATING and state.condition is None:
                baseline = engine.learner.motor_baseline
                ui.show_speed_bands(baseline, calibration_thresholds(baseline))

        elif state.phase == EnginePhase.ACTIVE:
            answer = ui.show_question(engine.mode.title, state, settings.round_duration_s)
            if answer == "quit":
                engine.stop()
                ui.show_quit_message()
                return
            state = engine.submit_answer(answer)
            if state.last_feedback is not None:
                ui.show_feedback(state.last_feedback)

        elif state.phase == EnginePhase.ROUND_COMPLETE:
            keep_going = ui.show_round_summary(state.summary, state.mastery_message)
            recommendation = engine.compute_recommendation()
            if recommendation.enabled is not None:
                ui.show_recommendation(recommendation)
            if not keep_going:
                engine.stop()
                ui.show_quit_message()
                return
            engine.continue_quiz()

        else:
            if state.condition is not None:
                ui.show_error(state.condition_message)
            elif state.mastery_message:
                ui.show_success(state.mastery_message)
            return

        if state.condition is not None and state.phase != EnginePhase.IDLE:
            ui.show_error(state.condition_message)


def run_practice(args, settings: Settings, calibrate_only: bool = False) -> None:
    """Run the practice or calibrate subcommand."""
    console = Console()
    ui = TrainerUI(console)
    mode = get_mode(args.mode)
    timer = ManualTimer()
    engine = build_engine(mode, settings, timer)

    signal.signal(signal.SIGINT, create_sigint_handler(ui, engine))

    ui.clear_screen()
    if not calibrate_only:
        state = engine.get_state()
        ui.show_welcome(mode.title, state.mastered_count, state.total_enabled_count)
    run_session(engine, timer, ui, settings, calibrate_only)


def run_stats(args, settings: Settings) -> None:
    ui = TrainerUI()
    engine = build_engine(get_mode(args.mode), settings)
    stats = list(engine.learner.all_stats().values())
    ui.show_stats(stats, engine.learner.fluency_threshold)

    overall = engine.learner.aggregate(engine.mode.item_ids())
    ui.show_info(
        f"{overall.fluent_count} / {overall.total_count} fluent, "
        f"average automaticity {overall.average_automaticity:.0%}"
    )
    if engine.learner.motor_baseline is not None:
        ui.show_info(f"Motor baseline: {engine.learner.motor_baseline:.0f}ms")


def run_recommend(args, settings: Settings) -> None:
    ui = TrainerUI()
    engine = build_engine(get_mode(args.mode), settings)
    result = engine.compute_recommendation()
    ui.show_recommendation(result)

    if args.apply:
        if engine.apply_recommendation(result):
            ui.show_success("Scope updated.")
        else:
            ui.show_info("No change to apply.")
        state = engine.get_state()
        if state.condition is not None:
            ui.show_error(state.condition_message)


def run_scope(args, settings: Settings) -> None:
    ui = TrainerUI()
    engine = build_engine(get_mode(args.mode), settings)

    if args.groups:
        state = engine.set_enabled(args.groups)
        if state.condition is not None:
            ui.show_error(state.condition_message)
            return
    ui.show_scope(engine.mode.groups(), engine.scope.enabled_groups)


def run_reset(args, settings: Settings) -> None:
    ui = TrainerUI()
    engine = build_engine(get_mode(args.mode), settings)
    engine.learner.clear()
    if args.baseline:
        engine.learner.clear_motor_baseline()
    ui.show_success(f"Cleared statistics for {engine.mode.title}.")


def run_simulation(args) -> None:
    """Run the simulation subcommand."""
    from simulate import run_simulation_and_report
    from simulator_models import SimulatedLearnerConfig

    config = SimulatedLearnerConfig(
        base_latency_ms=args.base_latency,
        learning_rate=args.learning_rate,
        slip_rate=args.slip_rate,
    )
    settings = get_settings()

    console = Console()

    console.print("=" * 40, style="bold blue")
    console.print("    Learner Simulator", style="bold blue")
    console.print("=" * 40, style="bold blue")
    console.print()

    console.print(f"Simulating {args.rounds} rounds of {args.mode}...")
    if args.seed is not None:
        console.print(f"Random seed: {args.seed}")
    console.print()

    run_simulation_and_report(
        mode=get_mode(args.mode),
        config=config,
        rounds=args.rounds,
        round_duration_s=settings.round_duration_s,
        output_path=Path(args.output),
        verbose=args.verbose,
        seed=args.seed,
    )


def main():
    """Main entry point with CLI routing."""
    parser = create_parser()
    args = parser.parse_args()

    settings = get_settings()
    if args.db is not None:
        settings = settings.model_copy(update={"db_path": args.db})
    configure_logging(settings)
    logger.debug(f"using database {settings.db_path}")

    if args.command == "practice":
        run_practice(args, settings)
    elif args.command == "calibrate":
        run_practice(args, settings, calibrate_only=True)
    elif args.command == "stats":
        run_stats(args, settings)
    elif args.command == "recommend":
        run_recommend(args, settings)
    elif args.command == "scope":
        run_scope(args, settings)
    elif args.command == "reset":
        run_reset(args, settings)
    elif args.command == "simulate":
        run_simulation(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
