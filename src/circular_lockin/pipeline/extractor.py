"""
Lock-in table extraction from circular text.

Two parsers, picked by a format marker:

- Structured: NSE circulars carry a "Lock in up to" column and a regular
  ``shares from to date|Free`` row layout that survives text extraction.
- Reconciliation: BSE annexures often come out of PDF extraction with
  columns interleaved and numbers glued together. The parser recovers share
  counts from the relation ``shares = to - from + 1`` between a lot's count
  and its distinctive-number range, then looks just past the range for the
  lock-in expiry date.
"""

import re
from dataclasses import dataclass, field
from datetime import date

from ..logging import get_logger
from ..models.lockin import LockInEntry
from .dates import collapse_wrapped_dates, find_dates, fix_ocr, mask_dates, parse_date_token
from .splitter import find_arithmetic_split, find_range_split, is_distinctive_range

logger = get_logger(__name__)

STRUCTURED_MARKER = re.compile(r'Lock in up\s?to', re.IGNORECASE)
SECTION_MARKERS = (
    re.compile(r'Annexure', re.IGNORECASE),
    re.compile(r'\bLock[\s-]*in\b', re.IGNORECASE),
)
STRUCTURED_ROW = re.compile(
    r'([\d,]+)\s+[\d,]+\s+[\d,]+\s+((?:\d{1,2}[-./][A-Za-z]{3,9}[-./]\d{4})|Free)\b',
    re.IGNORECASE,
)
FREE_WORD = re.compile(r'\bFree\b', re.IGNORECASE)
LINE_NUMBER = re.compile(r'\d[\d,]{2,}')
DIGIT_RUN = re.compile(r'\d{1,3}(?:,\d{2,3})+(?!\d)|\d+')
_HSPACE = re.compile(r'[^\S\n]+')
_BLANK_LINES = re.compile(r'\n\s*\n+')
_ANY_SPACE = re.compile(r'\s+')

MIN_GLUED_DIGITS = 8
MIN_SHARE_COUNT = 1000
B_LOOKAHEAD = 15
C_LOOKAHEAD = 10
MAX_PROXIMITY_DIGITS = 10


def parse_grouped_number(raw: str) -> int:
    """Parse '1,23,45,678' or '12345678' into an int; 0 when unreadable."""
    digits = raw.replace(',', '')
    return int(digits) if digits.isdigit() else 0


@dataclass(frozen=True)
class DigitRun:
    """One digit run found in masked text."""

    value: int
    digits: str
    start: int
    end: int


@dataclass
class ExtractionOutput:
    """Entries recovered from one document and which parser produced them."""

    entries: list[LockInEntry] = field(default_factory=list)
    parser: str = 'none'

    @property
    def total_shares(self) -> int:
        return sum(e.shares for e in self.entries)

    @property
    def count(self) -> int:
        return len(self.entries)


def prepare_text(text: str) -> str:
    """OCR fixes, wrapped dates joined, horizontal whitespace collapsed; newlines kept."""
    text = fix_ocr(text)
    text = collapse_wrapped_dates(text)
    text = _HSPACE.sub(' ', text)
    return _BLANK_LINES.sub('\n', text).strip()


def flatten(text: str) -> str:
    return _ANY_SPACE.sub(' ', text).strip()


def _entry_for(shares: int, lock_token: str) -> LockInEntry:
    if lock_token.lower() == 'free':
        return LockInEntry(shares=shares, locked=False)
    return LockInEntry(shares=shares, locked=True, unlock_date=parse_date_token(lock_token))


class LockInExtractor:
    """
    Converts extracted circular text into LockInEntry rows.

    Usage:
        output = LockInExtractor().extract(text)
        output.entries, output.total_shares
    """

    def __init__(self, window_chars: int = 120):
        """
        Args:
            window_chars: How far past a reconciled range to look for its date
        """
        self.window_chars = window_chars

    def extract(self, text: str) -> ExtractionOutput:
        prepared = prepare_text(text)
        if not prepared:
            return ExtractionOutput()

        if STRUCTURED_MARKER.search(flatten(prepared)):
            output = self.parse_structured(prepared)
        else:
            output = self.parse_reconciled(prepared)

        logger.info(
            'extractor.parsed',
            parser=output.parser,
            entries=output.count,
            total_shares=output.total_shares,
        )
        return output

    # ------------------------------------------------------------------
    # Structured format
    # ------------------------------------------------------------------

    def parse_structured(self, text: str) -> ExtractionOutput:
        starts = [m.start() for m in (p.search(text) for p in SECTION_MARKERS) if m]
        section = text[min(starts):] if starts else text

        entries = []
        for match in STRUCTURED_ROW.finditer(flatten(section)):
            shares = parse_grouped_number(match.group(1))
            if shares <= 0:
                continue
            entries.append(_entry_for(shares, match.group(2)))

        if len(entries) >= 2:
            return ExtractionOutput(entries=entries, parser='structured')

        logger.debug('extractor.structured_fallback', row_matches=len(entries))
        return ExtractionOutput(entries=self._parse_lines(section), parser='structured_lines')

    def _parse_lines(self, section: str) -> list[LockInEntry]:
        entries = []
        for line in section.split('\n'):
            dates = find_dates(line)
            is_free = bool(FREE_WORD.search(line))
            if not dates and not is_free:
                continue
            numbers = LINE_NUMBER.findall(mask_dates(line))
            if not numbers:
                continue
            shares = parse_grouped_number(numbers[0])
            if shares <= 0:
                continue
            if is_free:
                entries.append(LockInEntry(shares=shares, locked=False))
            else:
                entries.append(LockInEntry(shares=shares, locked=True, unlock_date=dates[0].value))
        return entries

    # ------------------------------------------------------------------
    # Reconciliation format
    # ------------------------------------------------------------------

    def parse_reconciled(self, text: str) -> ExtractionOutput:
        masked = mask_dates(text)
        runs = [
            DigitRun(value=parse_grouped_number(m.group(0)), digits=m.group(0).replace(',', ''), start=m.start(), end=m.end())
            for m in DIGIT_RUN.finditer(masked)
        ]

        entries = []
        for shares, range_end in self.reconcile_runs(runs):
            unlock = self._date_after(text, range_end)
            if unlock is None:
                entries.append(LockInEntry(shares=shares, locked=False))
            else:
                entries.append(LockInEntry(shares=shares, locked=True, unlock_date=unlock))

        if entries:
            return ExtractionOutput(entries=entries, parser='reconciliation')

        logger.debug('extractor.proximity_fallback', digit_runs=len(runs))
        return ExtractionOutput(entries=self._parse_proximity(text, runs), parser='proximity')

    def reconcile_runs(self, runs: list[DigitRun]) -> list[tuple[int, int]]:
        """
        Find (shares, range_end_offset) pairs among digit runs.

        Rules, tried in order for each unconsumed run A:
        1. A alone is long enough to hold A, B and C glued together
        2. the next run is B and C glued together
        3. B and C are separate later runs
        4. the next run equals A (or A + 1): the range started at 1 and the
           "1" was lost in extraction
        Runs used by a rule are consumed and never reused.
        """
        consumed: set[int] = set()
        found: list[tuple[int, int]] = []

        for i, run in enumerate(runs):
            if i in consumed:
                continue

            if len(run.digits) >= MIN_GLUED_DIGITS:
                triplet = find_arithmetic_split(run.digits)
                if triplet is not None:
                    consumed.add(i)
                    found.append((triplet[0], run.end))
                    continue

            if run.value < MIN_SHARE_COUNT:
                continue

            nxt = i + 1
            if nxt < len(runs) and nxt not in consumed:
                if find_range_split(runs[nxt].digits, run.value) is not None:
                    consumed.update((i, nxt))
                    found.append((run.value, runs[nxt].end))
                    continue

            match = self._separate_range(runs, i, consumed)
            if match is not None:
                j, k = match
                consumed.update((i, j, k))
                found.append((run.value, runs[k].end))
                continue

            if nxt < len(runs) and nxt not in consumed:
                b = runs[nxt].value
                if run.value == b or run.value == b - 1:
                    consumed.update((i, nxt))
                    found.append((run.value, runs[nxt].end))

        return found

    def _separate_range(self, runs: list[DigitRun], i: int, consumed: set[int]) -> tuple[int, int] | None:
        shares = runs[i].value
        for j in range(i + 1, min(i + 1 + B_LOOKAHEAD, len(runs))):
            if j in consumed:
                continue
            for k in range(j + 1, min(j + 1 + C_LOOKAHEAD, len(runs))):
                if k in consumed:
                    continue
                if is_distinctive_range(shares, runs[j].value, runs[k].value):
                    return j, k
        return None

    def _date_after(self, text: str, offset: int) -> date | None:
        dates = find_dates(self._row_window(text, offset))
        if not dates:
            return None
        return max(d.value for d in dates)

    def _row_window(self, text: str, offset: int) -> str:
        """
        Text after a reconciled range, up to the start of the next row.

        Cells often come out of PDF extraction one per line, so a newline
        only ends the window when the following line opens with a number
        rather than a date.
        """
        head, *lines = text[offset:offset + self.window_chars].split('\n')
        kept = [head]
        for line in lines:
            number = DIGIT_RUN.search(mask_dates(line))
            dates = find_dates(line)
            if number is not None and (not dates or number.start() < dates[0].start):
                break
            kept.append(line)
        return '\n'.join(kept)

    def _parse_proximity(self, text: str, runs: list[DigitRun]) -> list[LockInEntry]:
        """One locked entry per date, sized by the nearest digit run before it; last resort."""
        candidates = [r for r in runs if len(r.digits) < MAX_PROXIMITY_DIGITS and r.value >= MIN_SHARE_COUNT]

        entries = []
        for token in find_dates(text):
            preceding = [r for r in candidates if r.end <= token.start]
            if not preceding:
                continue
            entries.append(LockInEntry(shares=preceding[-1].value, locked=True, unlock_date=token.value))
        return entries
