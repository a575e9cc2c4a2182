"""
Company-name normalization and the threshold name match.

Matching is deliberately simple: a candidate matches when it contains at
least min(len(words), 2) of the company's significant words. The first
candidate that clears the threshold wins; there is no scoring.
"""

import re

_LEGAL_SUFFIX = re.compile(r'\b(?:LTD|LIMITED|INDIA|PRIVATE|PVT)\b\.?')
_WHITESPACE = re.compile(r'\s+')
_NON_ALNUM = re.compile(r'[^A-Z0-9 ]')

MIN_WORD_LENGTH = 3
MAX_REQUIRED_WORDS = 2


def normalize_text(text: str) -> str:
    """Uppercase, whitespace to single spaces, drop everything not A-Z, 0-9 or space."""
    text = _WHITESPACE.sub(' ', text.upper())
    return _NON_ALNUM.sub('', text).strip()


def normalize_company_name(name: str) -> str:
    """Strip legal suffixes (Ltd, Limited, India, Private, Pvt) and punctuation."""
    upper = _WHITESPACE.sub(' ', name.upper())
    stripped = _LEGAL_SUFFIX.sub(' ', upper)
    return _WHITESPACE.sub(' ', normalize_text(stripped)).strip()


def significant_words(name: str) -> list[str]:
    """
    Words of the normalized name that are at least three characters long.

    A name with no such word (e.g. "AB Ltd") falls back to its whole
    normalized form so it never matches every candidate.
    """
    normalized = normalize_company_name(name)
    words = [w for w in normalized.split(' ') if len(w) >= MIN_WORD_LENGTH]
    if not words and normalized:
        return [normalized]
    return words


def required_matches(words: list[str]) -> int:
    return min(len(words), MAX_REQUIRED_WORDS)


def matches_company(candidate_text: str, words: list[str]) -> bool:
    """True if ``candidate_text`` contains enough of the significant ``words``."""
    if not words:
        return False
    haystack = normalize_text(candidate_text)
    found = sum(1 for w in words if w in haystack)
    return found >= required_matches(words)
