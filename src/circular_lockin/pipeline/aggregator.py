"""
Unlock event aggregation.

Groups lock-in entries by unlock date into a schedule:
- lots not under lock-in collapse into one undated event, always first
- locked lots without a readable date are dropped (they cannot be scheduled)
- the rest are summed per calendar day, ascending
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..models.lockin import NOT_LOCKED_LABEL, LockInEntry, UnlockEvent


def unlock_percentage(shares: int, total_shares: int) -> float:
    """Share of the total to one decimal place, half rounded away from zero."""
    if total_shares <= 0:
        return 0.0
    per_mille = (Decimal(shares) * 1000 / Decimal(total_shares)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return float(per_mille / 10)


def aggregate_unlock_events(entries: list[LockInEntry], total_shares: int) -> list[UnlockEvent]:
    """Build the dated unlock schedule for ``entries``."""
    not_locked = 0
    by_date: dict[date, int] = defaultdict(int)

    for entry in entries:
        if not entry.locked:
            not_locked += entry.shares
        elif entry.unlock_date is not None:
            by_date[entry.unlock_date] += entry.shares

    events = [
        UnlockEvent(date=day, shares=shares, percentage=unlock_percentage(shares, total_shares))
        for day, shares in sorted(by_date.items())
    ]

    if not_locked > 0:
        events.insert(
            0,
            UnlockEvent(
                date=None,
                shares=not_locked,
                percentage=unlock_percentage(not_locked, total_shares),
                label=NOT_LOCKED_LABEL,
            ),
        )

    return events
