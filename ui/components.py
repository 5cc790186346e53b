from rich.text import Text
from rich.panel import Panel
from rich.table import Table
from rich.style import Style
from rich.align import Align
from rich.columns import Columns
from rich import box
from typing import Optional, List

from calibration import SpeedBand
from models import (
    EngineState,
    ItemStat,
    PracticeGroup,
    RecommendationResult,
    RoundSummary,
)
from ui.styles import (
    ACCENT_TEAL,
    ACCENT_GOLD,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
    TEXT_WHITE,
    get_automaticity_style,
    get_classification_style,
    create_success_header,
    create_error_header,
)


class QuestionPanel:
    """A styled panel for the current question."""

    def __init__(self, title: str, state: EngineState, round_duration_s: float = 60.0):
        self.title = title
        self.state = state
        self.round_duration_s = round_duration_s

    def render(self) -> Panel:
        content = Text()
        content.append(self._create_time_bar(self.round_duration_s), Style(color=MUTED_GRAY))
        content.append("\n")
        content.append(
            f"Round {self.state.round_number} · "
            f"{self.state.round_correct}/{self.state.round_answered} correct · "
            f"{self.state.mastered_count}/{self.state.total_enabled_count} fluent\n\n",
            Style(color=MUTED_GRAY),
        )
        content.append(self.state.prompt or "", Style(color=ACCENT_TEAL, bold=True))

        return Panel(
            Align.left(content),
            title=self.title,
            subtitle="Type your answer ('q' to stop)",
            border_style=ACCENT_TEAL,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def _create_time_bar(self, total_s: float) -> str:
        width = 30
        remaining = max(0.0, self.state.time_remaining)
        filled = min(width, int(width * remaining / total_s)) if total_s else 0
        bar = "█" * filled + "░" * (width - filled)
        return f"[{bar}] {remaining:.0f}s"

    def __rich__(self) -> Panel:
        return self.render()


class FeedbackPanel:
    """A one-line styled verdict for the previous answer."""

    def __init__(
        self,
        is_correct: bool,
        correct_answer: str,
        user_answer: str = "",
        latency_ms: Optional[float] = None,
    ):
        self.is_correct = is_correct
        self.correct_answer = correct_answer
        self.user_answer = user_answer
        self.latency_ms = latency_ms

    def render(self) -> Text:
        content = create_success_header() if self.is_correct else create_error_header()
        if not self.is_correct:
            if self.user_answer:
                content.append(f"  You answered: {self.user_answer}", Style(color=MUTED_GRAY))
            content.append("  Correct answer: ", Style(color=MUTED_GRAY))
            content.append(self.correct_answer, Style(color=SUCCESS_GREEN, bold=True))
        if self.latency_ms is not None:
            content.append(f"  ({self.latency_ms / 1000:.1f}s)", Style(color=MUTED_GRAY))
        return content

    def __rich__(self) -> Text:
        return self.render()


class RoundSummaryPanel:
    """End-of-round summary."""

    def __init__(self, summary: RoundSummary, mastery_message: str = ""):
        self.summary = summary
        self.mastery_message = mastery_message

    def render(self) -> Panel:
        summary = self.summary

        stats = Table(show_header=False, border_style=MUTED_GRAY, box=box.SIMPLE)
        stats.add_column("Label", style=Style(color=MUTED_GRAY))
        stats.add_column("Value", justify="right")
        stats.add_row("Answered", str(summary.answered))
        stats.add_row("Correct", Text(str(summary.correct), style=Style(color=SUCCESS_GREEN)))
        stats.add_row(
            "Incorrect",
            Text(str(summary.answered - summary.correct), style=Style(color=ERROR_RED)),
        )
        stats.add_row(
            "Accuracy",
            Text(f"{summary.accuracy:.0%}", style=Style(color=ACCENT_GOLD, bold=True)),
        )
        median = summary.median_response_ms
        stats.add_row("Median time", f"{median / 1000:.1f}s" if median is not None else "-")

        content = Text()
        content.append(f"Round {summary.round_number} complete\n\n", Style(color=ACCENT_TEAL, bold=True))
        content.append(summary.context_line + "\n", Style(color=TEXT_WHITE))
        if summary.newly_fluent:
            content.append("\nNewly fluent: ", Style(color=MUTED_GRAY))
            content.append(", ".join(summary.newly_fluent), Style(color=SUCCESS_GREEN, bold=True))
            content.append("\n")
        if self.mastery_message:
            content.append(f"\n{self.mastery_message}\n", Style(color=ACCENT_GOLD, bold=True))

        return Panel(
            Columns([Align.center(content), Align.center(stats)], align="center", padding=(0, 1)),
            title="Round Summary",
            subtitle="Enter to keep going, 'q' to stop",
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class StatsTable:
    """Per-item statistics for a mode."""

    def __init__(self, stats: List[ItemStat], fluency_threshold: float = 0.8):
        self.stats = stats
        self.fluency_threshold = fluency_threshold

    def render(self) -> Panel:
        table = Table(
            show_header=True,
            header_style=Style(color=ACCENT_TEAL, bold=True),
            border_style=MUTED_GRAY,
            row_styles=[Style(), Style(dim=True)],
            box=box.HEAVY,
        )
        table.add_column("Item", style=Style(color=ACCENT_TEAL, bold=True))
        table.add_column("Trials", justify="right")
        table.add_column("Correct", justify="right")
        table.add_column("Automaticity", justify="center")
        table.add_column("Avg time", justify="right", style=Style(color=MUTED_GRAY))
        table.add_column("Status")

        for stat in self.stats:
            classification = stat.classify(self.fluency_threshold)
            avg = f"{stat.ewma_ms / 1000:.1f}s" if stat.ewma_ms is not None else "-"
            table.add_row(
                stat.item_id,
                str(stat.trial_count),
                str(stat.correct_count),
                Text(f"{stat.automaticity:.0%}", style=get_automaticity_style(stat.automaticity)),
                avg,
                Text(classification.value, style=get_classification_style(classification)),
            )

        return Panel(
            Align.center(table),
            title="Item Statistics",
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 1),
        )

    def __rich__(self) -> Panel:
        return self.render()


class ScopePanel:
    """Groups of a mode with their enabled state."""

    def __init__(self, groups: List[PracticeGroup], enabled: set[int]):
        self.groups = groups
        self.enabled = enabled

    def render(self) -> Panel:
        table = Table(show_header=True, header_style=Style(color=ACCENT_TEAL, bold=True), box=box.SIMPLE)
        table.add_column("#", justify="right")
        table.add_column("Group")
        table.add_column("Items", justify="right")
        table.add_column("Enabled", justify="center")
        for group in self.groups:
            on = group.index in self.enabled
            table.add_row(
                str(group.index),
                group.label,
                str(len(group.item_ids)),
                Text("✓" if on else "·", style=Style(color=SUCCESS_GREEN if on else MUTED_GRAY)),
            )
        return Panel(table, title="Scope", border_style=INFO_BLUE, box=box.HEAVY)

    def __rich__(self) -> Panel:
        return self.render()


class RecommendationPanel:
    """Suggested scope change with justification."""

    def __init__(self, result: RecommendationResult):
        self.result = result

    def render(self) -> Panel:
        result = self.result
        content = Text()
        content.append(result.justification or "No suggestion.", Style(color=TEXT_WHITE))
        if result.weak_items:
            content.append("\n\nWeakest: ", Style(color=MUTED_GRAY))
            content.append(", ".join(result.weak_items), Style(color=ERROR_RED))
        if result.enabled is not None:
            content.append("\n\nSuggested groups: ", Style(color=MUTED_GRAY))
            content.append(
                ", ".join(str(i) for i in sorted(result.enabled)),
                Style(color=SUCCESS_GREEN, bold=True),
            )
        return Panel(
            Align.left(content),
            title="Recommendation",
            border_style=SUCCESS_GREEN if result.enabled is not None else ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class CalibrationPanel:
    """Calibration target, or the speed bands once a baseline is known."""

    def __init__(
        self,
        target: Optional[str] = None,
        trial: int = 0,
        total: int = 0,
        bands: Optional[List[SpeedBand]] = None,
    ):
        self.target = target
        self.trial = trial
        self.total = total
        self.bands = bands or []

    def render(self) -> Panel:
        if self.bands:
            table = Table(show_header=True, header_style=Style(color=ACCENT_TEAL, bold=True), box=box.SIMPLE)
            table.add_column("Speed")
            table.add_column("Up to", justify="right")
            table.add_column("Meaning", style=Style(color=MUTED_GRAY))
            for band in self.bands:
                limit = f"{band.max_ms / 1000:.1f}s" if band.max_ms is not None else ""
                table.add_row(band.label, limit, band.meaning)
            return Panel(table, title="Speed Bands", border_style=INFO_BLUE, box=box.HEAVY)

        content = Text()
        content.append(f"Trial {self.trial + 1}/{self.total}\n\n", Style(color=MUTED_GRAY))
        content.append("Type: ", Style(color=MUTED_GRAY))
        content.append(self.target or "", Style(color=ACCENT_GOLD, bold=True))
        return Panel(
            Align.left(content),
            title="Calibration",
            subtitle="As fast as you can",
            border_style=INFO_BLUE,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()
