"""
BSE notice page parsing: listing markers, titles and the Annexure-I link.

Link rules, highest priority first; every rule rejects Annexure II:
1. text names "annexure-i" / "annexure i" / "annexurei"
2. text contains "annexure" and ends in ".pdf"
3. text names "annexure i" / "annexure 1" and the href points at a PDF
4. text mentions "annexure"/"annex" and the href is the attachment endpoint
"""

import re
from typing import Callable, Iterable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

LISTING_MARKERS = ('LISTING OF EQUITY SHARES', 'LISTING OF THE EQUITY SHARES')
ATTACHMENT_ENDPOINT = 'downloadattach'

_ANNEXURE_TWO = re.compile(r'annex(?:ure)?\s*[-_]?\s*(?:ii|2)\b')
_ANNEXURE_ONE = re.compile(r'annexure\s*-?\s*i\b')
_NOTICE_ID = re.compile(r'(\d{8}-\d{1,4})')
_TITLE = re.compile(r'LISTING OF (?:THE )?EQUITY SHARES OF ([A-Z0-9&.\s]+?(?:LIMITED|LTD))')

Link = tuple[str, str]


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, 'lxml')


def page_text(html: str) -> str:
    soup = _soup(html)
    root = soup.body or soup
    return root.get_text(' ')


def iter_links(html: str) -> list[Link]:
    """(lowercased stripped text, href) for every anchor with an href."""
    links = []
    for anchor in _soup(html).find_all('a'):
        href = anchor.get('href')
        if not href:
            continue
        links.append((anchor.get_text(' ').strip().lower(), href.strip()))
    return links


def is_annexure_two(text: str) -> bool:
    return bool(_ANNEXURE_TWO.search(text))


def _rule_named_annexure_one(text: str, href: str) -> bool:
    return bool(_ANNEXURE_ONE.search(text))


def _rule_annexure_pdf_text(text: str, href: str) -> bool:
    return 'annexure' in text and text.endswith('.pdf')


def _rule_annexure_one_pdf_href(text: str, href: str) -> bool:
    return ('annexure i' in text or 'annexure 1' in text) and '.pdf' in href.lower()


def _rule_attachment_endpoint(text: str, href: str) -> bool:
    return ('annexure' in text or 'annex' in text) and ATTACHMENT_ENDPOINT in href.lower()


ANNEXURE_RULES: tuple[Callable[[str, str], bool], ...] = (
    _rule_named_annexure_one,
    _rule_annexure_pdf_text,
    _rule_annexure_one_pdf_href,
    _rule_attachment_endpoint,
)


def select_annexure_href(links: Iterable[Link]) -> str | None:
    """Apply the rules in priority order; first link matching the best rule wins."""
    candidates = [(text, href) for text, href in links if not is_annexure_two(text)]
    for rule in ANNEXURE_RULES:
        for text, href in candidates:
            if rule(text, href):
                return href
    return None


def find_annexure_link(html: str, base_url: str) -> str | None:
    """Absolute URL of the Annexure-I attachment on a notice page, if any."""
    href = select_annexure_href(iter_links(html))
    if href is None:
        return None
    return urljoin(base_url, href)


def is_listing_notice(text: str) -> bool:
    upper = text.upper()
    return any(marker in upper for marker in LISTING_MARKERS)


def extract_notice_title(text: str) -> str:
    match = _TITLE.search(re.sub(r'\s+', ' ', text.upper()))
    return match.group(1).strip() if match else ''


def extract_notice_id(href: str) -> str | None:
    """Notice identifier (``YYYYMMDD-N``) embedded in a notice link."""
    match = _NOTICE_ID.search(href)
    return match.group(1) if match else None


def find_listing_links(html: str, base_url: str) -> list[Link]:
    """(original text, absolute href) of every link whose text mentions LISTING."""
    links = []
    for anchor in _soup(html).find_all('a'):
        href = anchor.get('href')
        text = anchor.get_text(' ').strip()
        if href and 'LISTING' in text.upper():
            links.append((text, urljoin(base_url, href.strip())))
    return links
