"""
Pytest configuration and shared fixtures.

Key fixtures:
- settings: Settings with small scan bounds so locator tests stay fast
- fake_fetcher: factory for scripted Fetcher doubles (no network, no curl)
- structured_text / reconciled_text: circular text samples

No test touches the network or spawns a process.
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from circular_lockin.clients.fetchers import Fetcher, FetchResponse
from circular_lockin.config import Settings


class FakeFetcher(Fetcher):
    """
    Fetcher double that answers from a URL -> response table.

    Values may be a FetchResponse, an exception instance (raised), or a
    callable taking the URL. Unknown URLs get ``default``.
    """

    def __init__(
        self,
        routes: dict[str, Any] | None = None,
        default: Any = None,
        name: str = 'fake',
    ):
        self.routes = routes or {}
        self.default = default if default is not None else FetchResponse(status_code=404, content=b'')
        self.name = name
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def fetch(self, url, headers, timeout, params=None):
        self.calls.append({'url': url, 'headers': headers, 'timeout': timeout, 'params': params})
        answer = self.routes.get(url, self.default)
        if callable(answer) and not isinstance(answer, FetchResponse):
            answer = answer(url)
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def aclose(self):
        self.closed = True

    @property
    def urls(self) -> list[str]:
        return [c['url'] for c in self.calls]


def html_response(body: str, status_code: int = 200) -> FetchResponse:
    """Pad HTML past the retriever's small-body floor."""
    padding = '<!--' + ' ' * 600 + '-->'
    return FetchResponse(status_code=status_code, content=(body + padding).encode())


@pytest.fixture
def settings() -> Settings:
    """Settings with a narrow BSE scan."""
    return Settings(
        BSE_SCAN_RADIUS_DAYS=1,
        BSE_MAX_NOTICE_ID=4,
        BSE_BATCH_SIZE=2,
        SESSION_TTL_SECONDS=600,
    )


@pytest.fixture
def fake_fetcher():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


@pytest.fixture
def structured_text() -> str:
    """NSE-style lock-in table with a 'Lock in up to' column."""
    return """
National Stock Exchange of India Limited
Circular Ref. No: 1234/2025
Sub: Listing of equity shares of Acme Widgets Limited

Annexure
No. of Equity Shares Distinctive No. From To Lock in up to
8723813 1 8723813 20-Sep-2025
3242 17447641 17450882 Free
"""


@pytest.fixture
def reconciled_text() -> str:
    """BSE-style annexure where extraction glued the range columns together."""
    return """
ANNEXURE I
Details of lock-in of equity shares of Acme Widgets Limited
No. of shares Distinctive From To Lock in date
500000 1500000 15-Jan-2026
250000 500001750000 15-Jan-2027
"""
