"""Practice modes.

Each mode supplies its item universe, difficulty-ordered groups and the
question/answer logic the quiz engine delegates to.
"""

from modes.base import PracticeMode
from modes.interval_semitones import IntervalSemitonesMode
from modes.note_semitones import NoteSemitonesMode

MODES: dict[str, type[PracticeMode]] = {
    NoteSemitonesMode.name: NoteSemitonesMode,
    IntervalSemitonesMode.name: IntervalSemitonesMode,
}


def get_mode(name: str) -> PracticeMode:
    """Instantiate a registered mode by name.

    Raises:
        ValueError: Unknown mode name.
    """
    try:
        return MODES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown mode {name!r}. Available: {', '.join(sorted(MODES))}"
        ) from None


__all__ = [
    "MODES",
    "PracticeMode",
    "NoteSemitonesMode",
    "IntervalSemitonesMode",
    "get_mode",
]
