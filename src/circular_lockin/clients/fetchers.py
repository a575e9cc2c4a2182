"""
Fetcher capability and its two implementations.

- HttpxFetcher: native async HTTP client (primary path)
- CurlFetcher: external curl process (fallback path)

The curl path exists because some exchange WAFs fingerprint the primary
client's TLS/HTTP signature and block it while letting curl through with
identical headers. Neither fetcher raises on HTTP status codes; the retriever
decides what a status means.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import RetrievalFailure, wrap_http_error
from ..logging import get_logger

logger = get_logger(__name__)

_STATUS_MARKER = b'\n__CURL_STATUS__:'


@dataclass
class FetchResponse:
    """What came back from one fetch attempt."""

    status_code: int
    content: bytes
    cookies: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def text(self) -> str:
        return self.content.decode('utf-8', errors='replace')


class Fetcher(ABC):
    """Port for performing a single HTTP GET."""

    name: str = 'fetcher'

    @abstractmethod
    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        params: dict[str, Any] | None = None,
    ) -> FetchResponse:
        """GET ``url`` once. Raises RetrievalError on transport failure."""
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
        return None


class HttpxFetcher(Fetcher):
    """Primary fetcher backed by a shared httpx.AsyncClient."""

    name = 'httpx'

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        return self._client

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        params: dict[str, Any] | None = None,
    ) -> FetchResponse:
        try:
            response = await self._get_client().get(
                url, headers=headers, params=params, timeout=timeout
            )
        except httpx.HTTPError as e:
            raise wrap_http_error(e, context={'url': url, 'fetcher': self.name}) from e

        return FetchResponse(
            status_code=response.status_code,
            content=response.content,
            cookies={name: value for name, value in response.cookies.items()},
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class CurlFetcher(Fetcher):
    """Fallback fetcher that shells out to the curl binary."""

    name = 'curl'

    def __init__(self, binary: str = 'curl'):
        self.binary = binary

    def build_command(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        params: dict[str, Any] | None = None,
    ) -> list[str]:
        """Build the argv for one request (exposed for tests)."""
        if params:
            url = str(httpx.URL(url, params=params))

        cmd = [
            self.binary,
            '--silent',
            '--show-error',
            '--location',
            '--compressed',
            '--max-time', str(int(timeout)),
            '--write-out', _STATUS_MARKER.decode() + '%{http_code}',
        ]
        for key, value in headers.items():
            cmd.extend(['--header', f'{key}: {value}'])
        cmd.append(url)
        return cmd

    @staticmethod
    def parse_output(stdout: bytes) -> FetchResponse:
        """Split curl stdout into body and the trailing status code."""
        body, marker, status = stdout.rpartition(_STATUS_MARKER)
        if not marker:
            raise RetrievalFailure('curl output carried no status marker')
        try:
            status_code = int(status.strip() or b'0')
        except ValueError as e:
            raise RetrievalFailure('curl returned an unreadable status', context={'status': status[:20]}) from e
        return FetchResponse(status_code=status_code, content=body)

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
        params: dict[str, Any] | None = None,
    ) -> FetchResponse:
        cmd = self.build_command(url, headers, timeout, params)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise wrap_http_error(e, context={'url': url, 'fetcher': self.name}) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout + 5)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise wrap_http_error(e, context={'url': url, 'fetcher': self.name}) from e

        if proc.returncode != 0:
            raise RetrievalFailure(
                'curl exited with an error',
                context={
                    'url': url,
                    'returncode': proc.returncode,
                    'stderr': stderr.decode('utf-8', errors='replace')[:200],
                },
            )

        return self.parse_output(stdout)
