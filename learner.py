from datetime import datetime
from typing import Callable, Iterable

from loguru import logger

from automaticity import (
    MAX_STORED_TIMES,
    clamp,
    compute_ewma,
    max_response_ms,
    relative_speed,
    update_automaticity,
)
from errors import InvalidItemError
from models import (
    FLUENCY_THRESHOLD,
    AggregateStats,
    Classification,
    ItemStat,
)
from storage import ModeStore


MOTOR_BASELINE_KEY = "motor_baseline"


class LearnerModel:
    """
    Per-item statistics for one practice mode.

    Owns the ItemStat records for the mode's item universe and the mode's
    motor baseline. Every mutator updates memory first and then writes
    through to the store before returning; if the write fails the
    PersistenceUnavailableError propagates but memory keeps the new value.
    """

    def __init__(
        self,
        mode: str,
        item_ids: Iterable[str],
        store: ModeStore,
        fluency_threshold: float = FLUENCY_THRESHOLD,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.mode = mode
        self.item_ids = list(item_ids)
        self._universe = set(self.item_ids)
        self.store = store
        self.fluency_threshold = fluency_threshold
        self._now = now

        stored = store.load_stats(mode)
        self._stats: dict[str, ItemStat] = {
            item_id: stat for item_id, stat in stored.items() if item_id in self._universe
        }
        if len(stored) != len(self._stats):
            logger.debug(
                f"{mode}: ignoring {len(stored) - len(self._stats)} stats for unknown items"
            )

        baseline = store.get_value(mode, MOTOR_BASELINE_KEY)
        self._motor_baseline: float | None = float(baseline) if baseline else None

    # ------------------------------------------------------------------
    # Motor baseline
    # ------------------------------------------------------------------

    @property
    def motor_baseline(self) -> float | None:
        return self._motor_baseline

    def set_motor_baseline(self, baseline_ms: float) -> None:
        """Replace the motor baseline (no blending with the old value)."""
        if baseline_ms <= 0:
            raise ValueError(f"baseline must be positive, got {baseline_ms}")
        self._motor_baseline = float(baseline_ms)
        self.store.set_value(self.mode, MOTOR_BASELINE_KEY, self._motor_baseline)

    def clear_motor_baseline(self) -> None:
        self._motor_baseline = None
        self.store.delete_value(self.mode, MOTOR_BASELINE_KEY)

    # ------------------------------------------------------------------
    # Item statistics
    # ------------------------------------------------------------------

    def _require_item(self, item_id: str) -> None:
        if item_id not in self._universe:
            raise InvalidItemError(f"Unknown item {item_id!r} for mode {self.mode!r}")

    def record_trial(self, item_id: str, correct: bool, latency_ms: float) -> ItemStat:
        """
        Record one attempt at an item.

        Increments the trial count, blends correctness and relative speed
        into automaticity, updates the response-time history (correct
        answers only) and last_seen, then persists the record.

        Returns a snapshot of the updated statistic.
        """
        self._require_item(item_id)
        if latency_ms < 0:
            raise ValueError(f"latency_ms must be >= 0, got {latency_ms}")

        stat = self._stats.get(item_id) or ItemStat(item_id=item_id)
        baseline = self._motor_baseline
        clamped = min(latency_ms, max_response_ms(baseline))
        speed = relative_speed(clamped, baseline)

        stat.automaticity = update_automaticity(
            stat.automaticity, stat.trial_count, correct, speed
        )
        stat.trial_count += 1
        stat.last_seen = self._now()
        if correct:
            stat.correct_count += 1
            stat.ewma_ms = compute_ewma(stat.ewma_ms, clamped)
            stat.recent_times = (stat.recent_times + [clamped])[-MAX_STORED_TIMES:]

        self._stats[item_id] = stat
        logger.debug(
            f"{self.mode}: {item_id} {'correct' if correct else 'wrong'} "
            f"in {latency_ms:.0f}ms -> automaticity {stat.automaticity:.3f}"
        )

        self.store.save_stat(self.mode, stat)
        return stat.model_copy(deep=True)

    def get_stat(self, item_id: str) -> ItemStat:
        """Snapshot of an item's statistic (zero-trial default if never seen)."""
        self._require_item(item_id)
        stat = self._stats.get(item_id)
        if stat is None:
            return ItemStat(item_id=item_id)
        return stat.model_copy(deep=True)

    def classify(self, item_id: str) -> Classification:
        return self.get_stat(item_id).classify(self.fluency_threshold)

    def aggregate(self, item_ids: Iterable[str]) -> AggregateStats:
        """
        Summarize fluency over the given ids.

        total_count is the size of the given set, so the same call serves
        scope-level and universe-level summaries.
        """
        unique = list(dict.fromkeys(item_ids))
        if not unique:
            return AggregateStats()

        fluent = 0
        total_automaticity = 0.0
        for item_id in unique:
            stat = self.get_stat(item_id)
            total_automaticity += stat.automaticity
            if stat.classify(self.fluency_threshold) == Classification.FLUENT:
                fluent += 1

        return AggregateStats(
            fluent_count=fluent,
            total_count=len(unique),
            average_automaticity=clamp(total_automaticity / len(unique), 0.0, 1.0),
        )

    def all_stats(self) -> dict[str, ItemStat]:
        """Snapshots for every item in the universe, in universe order."""
        return {item_id: self.get_stat(item_id) for item_id in self.item_ids}

    def clear(self) -> None:
        """Explicit data-clear: forget every item statistic for this mode."""
        self._stats.clear()
        logger.info(f"{self.mode}: cleared item statistics")
        self.store.clear_stats(self.mode)
