"""
Document retriever: browser-like HTTP fetch with a curl fallback.

Each logical fetch makes at most two attempts:
1. primary fetcher (httpx)
2. fallback fetcher (curl), only if the primary was blocked (HTTP 403),
   returned an anomalously small body, or raised

There is no further retry. Session cookies harvested from a host's homepage
are kept in an injected SessionCache and sent on both paths.
"""

import json
from typing import Any
from urllib.parse import urlparse

from ..config import Settings, get_settings
from ..errors import BlockedError, CircularLockinError, RetrievalError, RetrievalFailure
from ..logging import get_logger
from ..models.circular import RetrievedDocument
from .fetchers import CurlFetcher, Fetcher, FetchResponse, HttpxFetcher
from .session_cache import SessionCache

logger = get_logger(__name__)

HTML_ACCEPT = 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8'
JSON_ACCEPT = 'application/json, text/plain, */*'
BINARY_ACCEPT = 'application/pdf,application/zip,application/octet-stream,*/*;q=0.8'


def host_of(url: str) -> str:
    return (urlparse(url).hostname or '').lower()


class DocumentRetriever:
    """
    Fetches pages, JSON and binary documents from exchange sites.

    Usage:
        retriever = DocumentRetriever.from_settings()
        html = await retriever.fetch_html(url)        # None on any failure
        document = await retriever.fetch(pdf_url)     # raises RetrievalFailure
    """

    def __init__(
        self,
        primary: Fetcher,
        fallback: Fetcher | None = None,
        session_cache: SessionCache | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the retriever.

        Args:
            primary: Fetcher tried first on every request
            fallback: Fetcher tried once when the primary is blocked or fails
            session_cache: Cookie cache shared across requests
            settings: Timeouts, size floors and user agent
        """
        self.settings = settings or get_settings()
        self.primary = primary
        self.fallback = fallback
        self.session_cache = session_cache or SessionCache(ttl_seconds=self.settings.SESSION_TTL_SECONDS)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> 'DocumentRetriever':
        """Default wiring: httpx primary, curl fallback, fresh session cache."""
        settings = settings or get_settings()
        return cls(
            primary=HttpxFetcher(),
            fallback=CurlFetcher(binary=settings.CURL_BINARY),
            session_cache=SessionCache(ttl_seconds=settings.SESSION_TTL_SECONDS),
            settings=settings,
        )

    async def aclose(self) -> None:
        await self.primary.aclose()
        if self.fallback is not None:
            await self.fallback.aclose()

    # ------------------------------------------------------------------
    # Headers and sessions
    # ------------------------------------------------------------------

    def build_headers(
        self,
        accept: str,
        referer: str | None = None,
        cookies: dict[str, str] | None = None,
    ) -> dict[str, str]:
        headers = {
            'User-Agent': self.settings.USER_AGENT,
            'Accept': accept,
            'Accept-Language': 'en-US,en;q=0.9',
        }
        if referer:
            headers['Referer'] = referer
        if cookies:
            headers['Cookie'] = '; '.join(f'{k}={v}' for k, v in cookies.items())
        return headers

    async def warm_session(self, home_url: str) -> dict[str, str]:
        """
        Return session cookies for the host of ``home_url``.

        Visits the homepage only when the cached cookies are missing or stale.
        A failed visit yields no cookies; the caller carries on without them.
        """
        host = host_of(home_url)
        cached = self.session_cache.get(host)
        if cached is not None:
            return cached

        try:
            response = await self.primary.fetch(
                home_url,
                headers=self.build_headers(HTML_ACCEPT),
                timeout=self.settings.HTML_TIMEOUT_SECONDS,
            )
        except RetrievalError as e:
            logger.warning('retriever.warm_failed', host=host, error=str(e))
            return {}

        if not response.ok:
            logger.warning('retriever.warm_rejected', host=host, status_code=response.status_code)
            return {}

        self.session_cache.store(host, response.cookies)
        logger.debug('retriever.session_refreshed', host=host, cookie_count=len(response.cookies))
        return dict(response.cookies)

    # ------------------------------------------------------------------
    # Primary -> fallback chain
    # ------------------------------------------------------------------

    async def _fetch_with_fallback(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        min_size: int,
        params: dict[str, Any] | None = None,
    ) -> FetchResponse:
        """One primary attempt, then at most one fallback attempt."""
        reason: str
        try:
            response = await self.primary.fetch(url, headers=headers, timeout=timeout, params=params)
        except RetrievalError as e:
            reason = f'{self.primary.name} raised: {e.message}'
        else:
            if response.status_code == 403:
                reason = 'blocked (403)'
            elif len(response.content) < min_size:
                reason = f'body too small ({len(response.content)} bytes)'
            elif not response.ok:
                raise RetrievalFailure(
                    f'HTTP {response.status_code}',
                    context={'url': url, 'status_code': response.status_code},
                )
            else:
                return response

        if self.fallback is None:
            raise BlockedError(reason, context={'url': url})

        logger.info('retriever.fallback', url=url, reason=reason, fallback=self.fallback.name)
        try:
            response = await self.fallback.fetch(url, headers=headers, timeout=timeout, params=params)
        except RetrievalError as e:
            raise RetrievalFailure(
                'primary and fallback fetch both failed',
                context={'url': url, 'primary': reason, 'fallback': e.message},
            ) from e

        if not response.ok:
            raise RetrievalFailure(
                'fallback fetch returned an error status',
                context={'url': url, 'primary': reason, 'status_code': response.status_code},
            )
        if len(response.content) < min_size:
            raise RetrievalFailure(
                'fallback fetch returned an implausibly small body',
                context={'url': url, 'primary': reason, 'size': len(response.content)},
            )
        return response

    # ------------------------------------------------------------------
    # Public fetch operations
    # ------------------------------------------------------------------

    async def fetch(
        self,
        url: str,
        referer: str | None = None,
        warm_url: str | None = None,
    ) -> RetrievedDocument:
        """
        Download a binary document (PDF or zip), typed by its leading bytes.

        Raises:
            RetrievalFailure: both paths failed or the payload is under the size floor
        """
        cookies = await self.warm_session(warm_url) if warm_url else None
        headers = self.build_headers(BINARY_ACCEPT, referer=referer, cookies=cookies)
        try:
            response = await self._fetch_with_fallback(
                url,
                headers=headers,
                timeout=self.settings.BINARY_TIMEOUT_SECONDS,
                min_size=self.settings.MIN_BINARY_BYTES,
            )
        except RetrievalFailure:
            raise
        except RetrievalError as e:
            raise RetrievalFailure(e.message, context=e.context) from e

        document = RetrievedDocument.from_bytes(response.content)
        logger.info(
            'retriever.downloaded',
            url=url,
            size_bytes=document.size_bytes,
            content_type=document.content_type.value,
        )
        return document

    async def fetch_html(
        self,
        url: str,
        referer: str | None = None,
        warm_url: str | None = None,
    ) -> str | None:
        """Fetch a page as text. Returns None on any failure; failures are routine here."""
        try:
            cookies = await self.warm_session(warm_url) if warm_url else None
            headers = self.build_headers(HTML_ACCEPT, referer=referer, cookies=cookies)
            response = await self._fetch_with_fallback(
                url,
                headers=headers,
                timeout=self.settings.HTML_TIMEOUT_SECONDS,
                min_size=self.settings.MIN_HTML_BYTES,
            )
        except CircularLockinError as e:
            logger.debug('retriever.html_failed', url=url, error=str(e))
            return None
        return response.text()

    async def fetch_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        referer: str | None = None,
        warm_url: str | None = None,
    ) -> Any | None:
        """Fetch and decode a JSON API response. Returns None on any failure."""
        try:
            cookies = await self.warm_session(warm_url) if warm_url else None
            headers = self.build_headers(JSON_ACCEPT, referer=referer, cookies=cookies)
            response = await self._fetch_with_fallback(
                url,
                headers=headers,
                timeout=self.settings.API_TIMEOUT_SECONDS,
                min_size=2,
                params=params,
            )
            return json.loads(response.content)
        except CircularLockinError as e:
            logger.warning('retriever.json_failed', url=url, error=str(e))
        except ValueError as e:
            logger.warning('retriever.json_invalid', url=url, error=str(e))
        return None
