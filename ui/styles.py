from rich.console import Console
from rich.style import Style
from rich.text import Text
from rich.theme import Theme

from models import Classification

ACCENT_TEAL = "#1ABC9C"
ACCENT_GOLD = "#F1C40F"
SUCCESS_GREEN = "#27AE60"
ERROR_RED = "#C0392B"
INFO_BLUE = "#3498DB"
MUTED_GRAY = "#7F8C8D"
TEXT_WHITE = "#FFFFFF"

DEFAULT_THEME = Theme(
    {
        "primary": Style(color=ACCENT_TEAL, bold=True),
        "secondary": Style(color=ACCENT_GOLD, bold=True),
        "success": Style(color=SUCCESS_GREEN),
        "error": Style(color=ERROR_RED, bold=True),
        "info": Style(color=INFO_BLUE),
        "muted": Style(color=MUTED_GRAY),
        "prompt": Style(color=ACCENT_TEAL, bold=True),
        "fluent": Style(color=SUCCESS_GREEN, bold=True),
        "practicing": Style(color=ACCENT_GOLD),
        "new": Style(color=MUTED_GRAY),
        "title": Style(color=ACCENT_TEAL, bold=True),
        "subtitle": Style(color=MUTED_GRAY),
    }
)

CONSOLE = Console(theme=DEFAULT_THEME)


def get_automaticity_style(automaticity: float) -> Style:
    """Get color style based on automaticity."""
    if automaticity >= 0.8:
        return Style(color=SUCCESS_GREEN, bold=True)
    elif automaticity >= 0.5:
        return Style(color=ACCENT_GOLD)
    else:
        return Style(color=ERROR_RED)


def get_classification_style(classification: Classification) -> Style:
    """Get style for a fluency classification."""
    styles = {
        Classification.FLUENT: Style(color=SUCCESS_GREEN, bold=True),
        Classification.PRACTICING: Style(color=ACCENT_GOLD),
        Classification.NEW: Style(color=MUTED_GRAY),
    }
    return styles.get(classification, Style())


def create_success_header() -> Text:
    header = Text()
    header.append("✓ ", Style(color=SUCCESS_GREEN, bold=True))
    header.append("Correct!", Style(color=SUCCESS_GREEN, bold=True))
    return header


def create_error_header() -> Text:
    header = Text()
    header.append("✗ ", Style(color=ERROR_RED, bold=True))
    header.append("Not quite!", Style(color=ERROR_RED, bold=True))
    return header
