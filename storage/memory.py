"""In-memory ModeStore, used by the simulator and tests."""

import copy
from typing import Any

from .base import ModeStore
from models import ItemStat


class MemoryModeStore(ModeStore):
    """Dict-backed ModeStore. Values are deep-copied in and out."""

    def __init__(self):
        self._stats: dict[str, dict[str, ItemStat]] = {}
        self._values: dict[tuple[str, str], Any] = {}

    def load_stats(self, mode: str) -> dict[str, ItemStat]:
        return {
            item_id: stat.model_copy(deep=True)
            for item_id, stat in self._stats.get(mode, {}).items()
        }

    def save_stat(self, mode: str, stat: ItemStat) -> None:
        self._stats.setdefault(mode, {})[stat.item_id] = stat.model_copy(deep=True)

    def clear_stats(self, mode: str) -> None:
        self._stats.pop(mode, None)

    def get_value(self, mode: str, key: str) -> Any | None:
        return copy.deepcopy(self._values.get((mode, key)))

    def set_value(self, mode: str, key: str, value: Any) -> None:
        self._values[(mode, key)] = copy.deepcopy(value)

    def delete_value(self, mode: str, key: str) -> None:
        self._values.pop((mode, key), None)
