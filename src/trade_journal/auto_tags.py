"""Execution tags derived from direction and price levels."""

from __future__ import annotations

from collections.abc import Iterable

from trade_journal.coerce import to_number
from trade_journal.models.trade import TradePartial, TradeType

TAG_PARTIAL = "#Partial"
TAG_TP = "#TP"
TAG_SL = "#SL"
TAG_BREAK_EVEN = "#Break-Even"
TAG_EARLY_EXIT = "#Early-Exit"
TAG_LATE_CHASED = "#Late-Chased"

AUTO_TAGS = frozenset(
    {TAG_PARTIAL, TAG_TP, TAG_SL, TAG_BREAK_EVEN, TAG_EARLY_EXIT, TAG_LATE_CHASED}
)

# Absolute, not scaled by instrument pip size.
BREAK_EVEN_TOLERANCE = 1e-5


def calculate_auto_tags(
    tags: Iterable[str],
    trade_type: TradeType,
    entry_price=None,
    exit_price=None,
    take_profit=None,
    stop_loss=None,
    partials: list[TradePartial] | None = None,
) -> list[str]:
    """
    Set or clear the auto-managed tags, leaving user tags untouched.

    | Tag          | LONG                 | SHORT                |
    |--------------|----------------------|----------------------|
    | #Partial     | partials non-empty   | partials non-empty   |
    | #TP          | exit >= tp           | exit <= tp           |
    | #SL          | exit <= sl           | exit >= sl           |
    | #Break-Even  | |exit - entry| < 1e-5 | |exit - entry| < 1e-5 |
    | #Early-Exit  | entry < exit < tp    | tp < exit < entry    |
    | #Late-Chased | exit > tp            | exit < tp            |

    Without an exit price only #Partial is touched; the rest are returned as given.
    Removed tags keep the original order, new tags are appended.
    """
    current = dict.fromkeys(tags)

    def set_tag(tag: str, present: bool) -> None:
        if present:
            current.setdefault(tag)
        else:
            current.pop(tag, None)

    set_tag(TAG_PARTIAL, bool(partials))

    exit_price = to_number(exit_price)
    if exit_price is None:
        return list(current)

    entry = to_number(entry_price)
    tp = to_number(take_profit)
    sl = to_number(stop_loss)
    is_long = trade_type == TradeType.LONG

    hit_tp = tp is not None and (exit_price >= tp if is_long else exit_price <= tp)
    set_tag(TAG_TP, hit_tp)

    hit_sl = sl is not None and (exit_price <= sl if is_long else exit_price >= sl)
    set_tag(TAG_SL, hit_sl)

    set_tag(TAG_BREAK_EVEN, entry is not None and abs(exit_price - entry) < BREAK_EVEN_TOLERANCE)

    early = False
    if tp is not None and entry is not None:
        early = entry < exit_price < tp if is_long else tp < exit_price < entry
    set_tag(TAG_EARLY_EXIT, early)

    late = tp is not None and (exit_price > tp if is_long else exit_price < tp)
    set_tag(TAG_LATE_CHASED, late)

    return list(current)
