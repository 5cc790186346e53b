"""
Scope recommendations: consolidate before expanding.

Looks at how much of the currently enabled material is fluent and, once the
fluent share reaches the expansion threshold, suggests enabling the next
group in difficulty order.
"""

from typing import Callable, Iterable, Mapping, Sequence

from models import (
    FLUENCY_THRESHOLD,
    ItemStat,
    PracticeGroup,
    RecommendationResult,
)
from scheduler import rank_weak_items


EXPANSION_THRESHOLD = 0.7    # fluent share of enabled items before expanding
WEAK_ITEM_LIMIT = 5


def compute_recommendation(
    stats: Mapping[str, ItemStat],
    groups: Sequence[PracticeGroup],
    enabled_groups: Iterable[int],
    enabled_items: Iterable[str] | None = None,
    expansion_threshold: float = EXPANSION_THRESHOLD,
    fluency_threshold: float = FLUENCY_THRESHOLD,
    order_key: Callable[[str], object] | None = None,
    weak_limit: int = WEAK_ITEM_LIMIT,
) -> RecommendationResult:
    """
    Propose which groups to enable.

    Algorithm:
    1. Fluent ratio = fluent items / total items over the enabled items
    2. ratio >= expansion_threshold and a disabled group remains:
       suggest the enabled set plus the lowest-index disabled group
    3. Otherwise suggest no change (enabled=None) but still report the ratio

    With nothing enabled yet, the lowest-index group is suggested. A group
    counts as enabled as soon as any of its items is, so applying a
    suggestion never drops an item that was already being practiced.

    Args:
        stats: Item statistics by id; missing ids count as never attempted.
        groups: The mode's groups (indices need not be contiguous).
        enabled_groups: Indices currently enabled. Unknown indices are ignored.
        enabled_items: Every enabled item id, including items enabled one by
            one. Defaults to the items of `enabled_groups`.
        order_key: Secondary ordering for ties when listing weak items.

    Returns:
        A RecommendationResult; pure function of the inputs.
    """
    ordered = sorted(groups, key=lambda g: g.index)
    known = {g.index for g in ordered}
    enabled = set(enabled_groups) & known
    if enabled_items is None:
        enabled_items = [
            item_id for g in ordered if g.index in enabled for item_id in g.item_ids
        ]
    else:
        enabled_items = list(dict.fromkeys(enabled_items))
        in_use = set(enabled_items)
        enabled |= {g.index for g in ordered if in_use.intersection(g.item_ids)}

    def get_stat(item_id: str) -> ItemStat:
        return stats.get(item_id) or ItemStat(item_id=item_id)

    if not ordered:
        return RecommendationResult(justification="Nothing to practice in this mode.")

    if not enabled_items:
        first = ordered[0]
        return RecommendationResult(
            enabled={first.index},
            expand_index=first.index,
            expand_label=first.label,
            justification=(
                f"Start with {first.label} ({len(first.item_ids)} new items)."
            ),
        )

    fluent_count = sum(
        1 for item_id in enabled_items
        if get_stat(item_id).automaticity >= fluency_threshold
    )
    total_count = len(enabled_items)
    ratio = fluent_count / total_count if total_count else 0.0

    not_fluent = [
        item_id for item_id in enabled_items
        if get_stat(item_id).automaticity < fluency_threshold
    ]
    weak_items = rank_weak_items(not_fluent, get_stat, order_key=order_key, limit=weak_limit)

    result = RecommendationResult(
        fluent_count=fluent_count,
        total_count=total_count,
        fluent_ratio=ratio,
        weak_items=weak_items,
    )

    disabled = [g for g in ordered if g.index not in enabled]
    if not disabled:
        if ratio >= expansion_threshold:
            result.justification = (
                f"Everything is enabled and {fluent_count} / {total_count} items "
                f"are fluent. Keep it sharp."
            )
        else:
            result.justification = (
                f"Everything is enabled. {fluent_count} / {total_count} items are "
                f"fluent; keep practicing."
            )
        return result

    if ratio >= expansion_threshold:
        candidate = disabled[0]
        result.enabled = enabled | {candidate.index}
        result.expand_index = candidate.index
        result.expand_label = candidate.label
        result.justification = (
            f"{fluent_count} / {total_count} enabled items are fluent "
            f"({ratio:.0%}). Add {candidate.label} "
            f"({len(candidate.item_ids)} new items)."
        )
        return result

    result.justification = (
        f"Consolidate first: {fluent_count} / {total_count} enabled items are "
        f"fluent ({ratio:.0%}), {expansion_threshold:.0%} needed before adding more."
    )
    return result
