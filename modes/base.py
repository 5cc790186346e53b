"""Abstract base class for practice modes."""

from abc import ABC, abstractmethod

from errors import InvalidItemError
from models import PracticeGroup


class PracticeMode(ABC):
    """Question/answer capability for one practice mode.

    The quiz engine only ever asks a mode for the item universe, its groups,
    the prompt for an item and whether an answer is right. Modes hold no
    per-question state, so any number of engines can share one instance.

    To create a new mode:
    1. Subclass PracticeMode and set `name` and `title`
    2. Implement the abstract methods
    3. Register it in MODES in modes/__init__.py
    """

    name: str = ""
    title: str = ""

    @abstractmethod
    def item_ids(self) -> list[str]:
        """Every item id in the mode's universe, in natural order."""
        ...

    @abstractmethod
    def groups(self) -> list[PracticeGroup]:
        """Disjoint groups ordered by difficulty (ascending index)."""
        ...

    @abstractmethod
    def get_question(self, item_id: str) -> str:
        """Return the prompt text for an item."""
        ...

    @abstractmethod
    def check_answer(self, item_id: str, user_input: str) -> tuple[bool, str]:
        """Check an answer.

        Args:
            item_id: The item being answered.
            user_input: Raw user input string.

        Returns:
            Tuple of (is_correct, correct_answer_display).
        """
        ...

    @abstractmethod
    def correct_answer(self, item_id: str) -> str:
        """A canonical input that check_answer accepts for this item."""
        ...

    @abstractmethod
    def answer_choices(self) -> list[str]:
        """Answer keys used as calibration targets."""
        ...

    def order_key(self, item_id: str) -> int:
        """Natural position of an item, for deterministic tie-breaking."""
        return self.item_ids().index(item_id)

    def _require_item(self, item_id: str) -> None:
        if item_id not in self.item_ids():
            raise InvalidItemError(f"Unknown item {item_id!r} for mode {self.name!r}")
