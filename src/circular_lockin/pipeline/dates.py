"""
Date tokens as they appear in circular PDFs.

Accepted shapes: day-month-year with a 3+ letter month name or a numeric
month, separated by '-', '.' or '/'. Years must be after 2000; anything
else shaped like a date is treated as digit noise.
"""

import re
from dataclasses import dataclass
from datetime import date

MIN_YEAR = 2000

MONTHS = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12,
}

# Known OCR misreadings of month names
OCR_FIXES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r'Aul!\.?', re.IGNORECASE), 'Aug'),
    (re.compile(r'Mav', re.IGNORECASE), 'May'),
    (re.compile(r'Aoril', re.IGNORECASE), 'April'),
]

DATE_PATTERN = re.compile(
    r'(?<!\d)(\d{1,2})[ \t]?[-./][ \t]?([A-Za-z]{3,9}|\d{1,2})[ \t]?[-./][ \t]?(\d{4})(?!\d)'
)

# Day, newline, month, optional newline, year: a date wrapped across lines
_WRAPPED_DATE = re.compile(r'(\d{1,2})\s*([-./])\s*\n\s*([A-Za-z]{3,9})\s*([-./])\s*\n?\s*(\d{4})')


@dataclass(frozen=True)
class DateToken:
    """A parsed date and where it sat in the text."""

    value: date
    start: int
    end: int


def fix_ocr(text: str) -> str:
    for pattern, replacement in OCR_FIXES:
        text = pattern.sub(replacement, text)
    return text


def collapse_wrapped_dates(text: str) -> str:
    """Join dates that PDF extraction split across lines into one token."""
    return _WRAPPED_DATE.sub(r'\1\2\3\4\5', text)


def _month_number(token: str) -> int | None:
    if token.isdigit():
        month = int(token)
        return month if 1 <= month <= 12 else None
    return MONTHS.get(token[:3].lower())


def build_date(day: str, month: str, year: str) -> date | None:
    """Assemble a date from matched parts; None for impossible or pre-2001 dates."""
    month_num = _month_number(month)
    if month_num is None:
        return None
    year_num = int(year)
    if year_num <= MIN_YEAR:
        return None
    try:
        return date(year_num, month_num, int(day))
    except ValueError:
        return None


def parse_date_token(token: str) -> date | None:
    """Parse a single date token such as '20-Sep-2025' or '15/01/2026'."""
    match = DATE_PATTERN.search(fix_ocr(token))
    if not match:
        return None
    return build_date(*match.groups())


def find_dates(text: str) -> list[DateToken]:
    """All valid dates in ``text`` in order of appearance."""
    tokens = []
    for match in DATE_PATTERN.finditer(text):
        value = build_date(*match.groups())
        if value is not None:
            tokens.append(DateToken(value=value, start=match.start(), end=match.end()))
    return tokens


def mask_dates(text: str) -> str:
    """
    Blank out every date-shaped substring, keeping offsets and newlines intact.

    Invalid dates are masked too: their digits are never share counts.
    """
    def _blank(match: re.Match[str]) -> str:
        return ''.join('\n' if ch == '\n' else ' ' for ch in match.group(0))

    return DATE_PATTERN.sub(_blank, text)
