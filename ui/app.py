from rich.console import Console
from rich.text import Text
from rich.panel import Panel
from ui.components import (
    QuestionPanel,
    FeedbackPanel,
    RoundSummaryPanel,
    StatsTable,
    ScopePanel,
    RecommendationPanel,
    CalibrationPanel,
)
from ui.styles import (
    ACCENT_TEAL,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
)
from typing import Optional, List

from calibration import SpeedBand
from models import (
    EngineState,
    Feedback,
    ItemStat,
    PracticeGroup,
    RecommendationResult,
    RoundSummary,
)


class TrainerUI:
    """Main UI orchestrator for the fluency trainer."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show_welcome(self, title: str, fluent_count: int, total_count: int) -> None:
        """Display the mode banner and wait for the user to press Enter."""
        content = Text()
        content.append(f"{title}\n\n", style=f"bold {ACCENT_TEAL}")
        content.append(f"{fluent_count} / {total_count} fluent\n\n", style=MUTED_GRAY)
        content.append("Answer as fast as you can. Type 'q' at any time to stop.", style=MUTED_GRAY)
        self.console.print(Panel(content, border_style=ACCENT_TEAL))
        self.console.print()
        self.console.input(Text("Press Enter to start...", style=f"bold {MUTED_GRAY}"))

    def show_question(self, title: str, state: EngineState, round_duration_s: float) -> str:
        """Display the current question and read an answer.

        Returns:
            "quit" if the user quits, otherwise the raw answer.
        """
        self.console.print(QuestionPanel(title, state, round_duration_s))
        return self._get_answer()

    def show_calibration_target(self, state: EngineState) -> str:
        """Display a calibration target and read the tap."""
        self.console.print(
            CalibrationPanel(
                target=state.calibration_target,
                trial=state.calibration_trial,
                total=state.calibration_total,
            )
        )
        return self._get_answer()

    def _get_answer(self) -> str:
        user_input = self.console.input(
            Text("Your answer: ", style=f"bold {MUTED_GRAY}")
        ).strip()
        if user_input.lower() == "q":
            return "quit"
        return user_input

    def show_feedback(self, feedback: Feedback) -> None:
        """Display the verdict for the previous answer."""
        self.console.print(
            FeedbackPanel(
                is_correct=feedback.correct,
                correct_answer=feedback.expected,
                user_answer=feedback.given,
                latency_ms=feedback.latency_ms,
            )
        )
        self.console.print()

    def show_round_summary(self, summary: RoundSummary, mastery_message: str = "") -> bool:
        """Display the round summary. Returns True to play another round."""
        self.console.print(RoundSummaryPanel(summary, mastery_message))
        answer = self.console.input(
            Text("Enter to continue, 'q' to stop: ", style=f"bold {MUTED_GRAY}")
        ).strip()
        return answer.lower() != "q"

    def show_speed_bands(self, baseline_ms: float, bands: List[SpeedBand]) -> None:
        self.console.print(
            Text(f"Motor baseline: {baseline_ms:.0f}ms", style=f"bold {SUCCESS_GREEN}")
        )
        self.console.print(CalibrationPanel(bands=bands))

    def show_stats(self, stats: List[ItemStat], fluency_threshold: float) -> None:
        self.console.print(StatsTable(stats, fluency_threshold))

    def show_scope(self, groups: List[PracticeGroup], enabled: set[int]) -> None:
        self.console.print(ScopePanel(groups, enabled))

    def show_recommendation(self, result: RecommendationResult) -> None:
        self.console.print(RecommendationPanel(result))

    def show_error(self, message: str) -> None:
        """Display an error message."""
        self.console.print(
            Panel(
                Text(f"Error: {message}", style=ERROR_RED),
                title="Error",
                border_style=ERROR_RED,
            )
        )

    def show_info(self, message: str) -> None:
        """Display an informational message."""
        self.console.print(Text(message, style=INFO_BLUE))

    def show_success(self, message: str) -> None:
        """Display a success message."""
        self.console.print(Text(message, style=SUCCESS_GREEN))

    def show_quit_message(self) -> None:
        self.console.print()
        self.console.print(
            Text("👋 Goodbye! Your progress has been saved.", style=MUTED_GRAY)
        )

    def clear_screen(self) -> None:
        """Clear the terminal screen."""
        self.console.clear()
