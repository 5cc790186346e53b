import random
from datetime import datetime
from typing import Callable, Sequence

from loguru import logger

from automaticity import draw_weighted
from errors import EmptyScopeError
from models import ItemStat


# Constants
MIN_SELECTION_WEIGHT = 0.1   # fluent items are still reviewed occasionally


def selection_weight(stat: ItemStat) -> float:
    """
    Selection weight for an item.

    Lower automaticity = heavier. Never below MIN_SELECTION_WEIGHT.
    """
    return max(MIN_SELECTION_WEIGHT, 1.0 - stat.automaticity)


def select_next_item(
    enabled_ids: Sequence[str],
    get_stat: Callable[[str], ItemStat],
    previous: str | None,
    rng: random.Random,
) -> str:
    """
    Select the next item to present.

    Algorithm:
    1. Weight every enabled item by (1 - automaticity), floored
    2. Draw from the weighted table
    3. If the previous item was drawn, redraw once with it excluded

    With two or more enabled items the previous item is never returned.

    Raises:
        EmptyScopeError: No enabled items.
    """
    items = list(dict.fromkeys(enabled_ids))
    if not items:
        raise EmptyScopeError("No enabled items to practice")
    if len(items) == 1:
        return items[0]

    weights = [selection_weight(get_stat(item_id)) for item_id in items]
    selected = draw_weighted(items, weights, rng)

    if selected == previous:
        weights = [0.0 if item_id == previous else w for item_id, w in zip(items, weights)]
        selected = draw_weighted(items, weights, rng)

    logger.debug(f"selected {selected} (previous {previous})")
    return selected


def rank_weak_items(
    item_ids: Sequence[str],
    get_stat: Callable[[str], ItemStat],
    order_key: Callable[[str], object] | None = None,
    limit: int | None = None,
) -> list[str]:
    """
    Order items weakest first.

    Sort key: automaticity ascending, then least recently seen (never seen
    first), then `order_key` (defaults to position in `item_ids`) so the
    result is deterministic.
    """
    position = {item_id: i for i, item_id in enumerate(item_ids)}
    secondary = order_key or position.__getitem__

    def sort_key(item_id: str):
        stat = get_stat(item_id)
        last_seen = stat.last_seen or datetime.min
        return (stat.automaticity, last_seen, secondary(item_id))

    ranked = sorted(dict.fromkeys(item_ids), key=sort_key)
    return ranked if limit is None else ranked[:limit]
