"""
Split glued digit strings back into distinctive-number triplets.

PDF extraction often glues adjacent table cells: the row
``500000 | 1 | 500000`` can come out as ``5000001500000``. The one relation
that survives is that a lot's share count equals ``to - from + 1``, so every
split point is tried until the parts satisfy it.
"""

from typing import Callable

MIN_RANGE_SHARES = 100

Triplet = tuple[int, int, int]
RangeCheck = Callable[[int, int, int], bool]


def is_distinctive_range(shares: int, start: int, end: int) -> bool:
    """``shares`` is the size of the inclusive range start..end, and not tiny."""
    return shares > MIN_RANGE_SHARES and shares == end - start + 1


def _clean(part: str) -> bool:
    # No leading zero: distinctive numbers and share counts never start with 0
    return part[0] != '0'


def find_arithmetic_split(digits: str, accept: RangeCheck = is_distinctive_range) -> Triplet | None:
    """
    Split ``digits`` into (A, B, C) so that ``accept(A, B, C)`` holds.

    Split points are tried left to right; the first valid split wins.
    """
    n = len(digits)
    for i in range(1, n - 1):
        a_part = digits[:i]
        if not _clean(a_part):
            return None
        for j in range(i + 1, n):
            b_part = digits[i:j]
            c_part = digits[j:]
            if not (_clean(b_part) and _clean(c_part)):
                continue
            a, b, c = int(a_part), int(b_part), int(c_part)
            if accept(a, b, c):
                return a, b, c
    return None


def find_range_split(digits: str, shares: int, accept: RangeCheck = is_distinctive_range) -> tuple[int, int] | None:
    """Split ``digits`` into (B, C) so that ``accept(shares, B, C)`` holds."""
    for i in range(1, len(digits)):
        b_part, c_part = digits[:i], digits[i:]
        if not (_clean(b_part) and _clean(c_part)):
            continue
        b, c = int(b_part), int(c_part)
        if accept(shares, b, c):
            return b, c
    return None
