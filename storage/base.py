"""Abstract repository interface for the storage layer."""

from abc import ABC, abstractmethod
from typing import Any

from models import ItemStat


class ModeStore(ABC):
    """Abstract per-mode storage for item statistics and named values.

    Implementations must give read-your-writes consistency within a process
    and raise PersistenceUnavailableError when a write cannot be made durable.
    """

    @abstractmethod
    def load_stats(self, mode: str) -> dict[str, ItemStat]:
        """Load every stored item statistic for a mode.

        Args:
            mode: The practice mode name.

        Returns:
            Mapping of item id to ItemStat.
        """
        pass

    @abstractmethod
    def save_stat(self, mode: str, stat: ItemStat) -> None:
        """Insert or replace the statistic for one item.

        Args:
            mode: The practice mode name.
            stat: The statistic to save.
        """
        pass

    @abstractmethod
    def clear_stats(self, mode: str) -> None:
        """Delete all item statistics for a mode.

        Args:
            mode: The practice mode name.
        """
        pass

    @abstractmethod
    def get_value(self, mode: str, key: str) -> Any | None:
        """Read a named value.

        Args:
            mode: The practice mode name.
            key: The value name.

        Returns:
            The decoded value, or None if it was never set.
        """
        pass

    @abstractmethod
    def set_value(self, mode: str, key: str, value: Any) -> None:
        """Write a JSON-serializable named value.

        Args:
            mode: The practice mode name.
            key: The value name.
            value: The value to store.
        """
        pass

    @abstractmethod
    def delete_value(self, mode: str, key: str) -> None:
        """Remove a named value if present.

        Args:
            mode: The practice mode name.
            key: The value name.
        """
        pass
