"""
Scope state: which part of a mode's item universe is eligible for practice.

Scope is changed only by explicit user action or by applying a
recommendation. The quiz engine reads it but never changes it on its own.
"""

from typing import Iterable, Sequence

from loguru import logger

from errors import InvalidItemError
from models import PracticeGroup, RecommendationResult, ScopeState
from storage import ModeStore


SCOPE_KEY = "scope"


class ScopeManager:
    """Loads, validates, mutates and persists the ScopeState for one mode."""

    def __init__(
        self,
        mode: str,
        item_ids: Sequence[str],
        groups: Sequence[PracticeGroup],
        store: ModeStore,
        default_groups: Iterable[int] = (0,),
    ):
        self.mode = mode
        self.item_ids = list(item_ids)
        self.groups = {g.index: g for g in sorted(groups, key=lambda g: g.index)}
        self.store = store
        self._universe = set(self.item_ids)
        self.state = self._load(default_groups)

    def _load(self, default_groups: Iterable[int]) -> ScopeState:
        saved = self.store.get_value(self.mode, SCOPE_KEY)
        if saved is not None:
            try:
                state = ScopeState.model_validate(saved)
                return ScopeState(
                    enabled_groups=[i for i in state.enabled_groups if i in self.groups],
                    enabled_items=[i for i in state.enabled_items if i in self._universe],
                )
            except ValueError:
                logger.warning(f"{self.mode}: ignoring unreadable saved scope")

        if not self.groups:
            return ScopeState(enabled_items=list(self.item_ids))
        defaults = [i for i in default_groups if i in self.groups]
        return ScopeState(enabled_groups=defaults)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def enabled_groups(self) -> set[int]:
        return set(self.state.enabled_groups)

    def enabled_item_ids(self) -> list[str]:
        """Enabled item ids in universe order."""
        enabled: set[str] = set(self.state.enabled_items)
        for index in self.state.enabled_groups:
            enabled.update(self.groups[index].item_ids)
        return [item_id for item_id in self.item_ids if item_id in enabled]

    def describe(self) -> str:
        """Short label for what is being practiced."""
        labels = [self.groups[i].label for i in sorted(self.state.enabled_groups)]
        if self.state.enabled_items:
            labels.append(f"{len(self.state.enabled_items)} items")
        if not labels:
            return "nothing"
        if len(self.enabled_item_ids()) == len(self.item_ids):
            return "all items"
        return ", ".join(labels)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_enabled(self, values: Iterable[int] | Iterable[str]) -> ScopeState:
        """
        Replace the enabled set with group indices or item ids.

        An empty iterable disables everything.
        """
        values = list(values)
        if all(isinstance(v, int) for v in values):
            return self.set_enabled_groups(values)
        if all(isinstance(v, str) for v in values):
            return self.set_enabled_items(values)
        raise InvalidItemError("set_enabled takes either group indices or item ids, not both")

    def set_enabled_groups(self, indices: Iterable[int]) -> ScopeState:
        indices = sorted(set(indices))
        for index in indices:
            if index not in self.groups:
                raise InvalidItemError(f"Unknown group {index} for mode {self.mode!r}")
        return self._replace(ScopeState(enabled_groups=indices))

    def set_enabled_items(self, item_ids: Iterable[str]) -> ScopeState:
        item_ids = list(dict.fromkeys(item_ids))
        for item_id in item_ids:
            if item_id not in self._universe:
                raise InvalidItemError(f"Unknown item {item_id!r} for mode {self.mode!r}")
        return self._replace(ScopeState(enabled_items=item_ids))

    def toggle_group(self, index: int) -> ScopeState:
        enabled = self.enabled_groups
        enabled ^= {index}
        return self.set_enabled_groups(enabled)

    def apply_recommendation(self, result: RecommendationResult) -> bool:
        """Apply a suggested enabled set. Returns False if there was none."""
        if result.enabled is None:
            return False
        self.set_enabled_groups(result.enabled)
        logger.info(f"{self.mode}: applied recommendation -> groups {sorted(result.enabled)}")
        return True

    def _replace(self, state: ScopeState) -> ScopeState:
        self.state = state
        self.store.set_value(self.mode, SCOPE_KEY, state.model_dump())
        return state
