"""
Tests for the document retriever's primary -> fallback chain.
"""

import pytest

from circular_lockin.clients.fetchers import FetchResponse
from circular_lockin.clients.retriever import DocumentRetriever, host_of
from circular_lockin.clients.session_cache import SessionCache
from circular_lockin.errors import BlockedError, RetrievalFailure
from circular_lockin.models.circular import ContentType

PDF_URL = "https://www.bseindia.com/xml-data/corpfiling/AttachLive/annexure.pdf"
HOME = "https://www.bseindia.com/"
PDF_BODY = b"%PDF-1.4 " + b"x" * 500


def _ok(content: bytes = PDF_BODY, cookies: dict | None = None) -> FetchResponse:
    return FetchResponse(status_code=200, content=content, cookies=cookies or {})


def _blocked() -> FetchResponse:
    return FetchResponse(status_code=403, content=b"Access Denied" * 100)


@pytest.fixture
def make_retriever(settings):
    def _make(primary, fallback=None, cache=None):
        return DocumentRetriever(primary=primary, fallback=fallback, session_cache=cache, settings=settings)

    return _make


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_primary_success_skips_fallback(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _ok()})
        fallback = fake_fetcher(default=_ok())

        document = await make_retriever(primary, fallback).fetch(PDF_URL)

        assert document.content == PDF_BODY
        assert document.content_type is ContentType.PDF
        assert document.size_bytes == len(PDF_BODY)
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_zip_payload_is_typed_zip(self, fake_fetcher, make_retriever):
        zip_body = b"PK\x03\x04" + b"z" * 600
        primary = fake_fetcher({PDF_URL: _ok(zip_body)})

        document = await make_retriever(primary).fetch(PDF_URL)

        assert document.content_type is ContentType.ZIP

    @pytest.mark.asyncio
    async def test_403_triggers_exactly_one_fallback(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _blocked()})
        fallback = fake_fetcher({PDF_URL: _ok()})

        document = await make_retriever(primary, fallback).fetch(PDF_URL)

        assert document.content == PDF_BODY
        assert primary.urls == [PDF_URL]
        assert fallback.urls == [PDF_URL]

    @pytest.mark.asyncio
    async def test_403_then_fallback_failure_stops(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _blocked()})
        fallback = fake_fetcher({PDF_URL: _blocked()})

        with pytest.raises(RetrievalFailure):
            await make_retriever(primary, fallback).fetch(PDF_URL)

        assert len(primary.calls) == 1
        assert len(fallback.calls) == 1

    @pytest.mark.asyncio
    async def test_primary_exception_falls_back(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: RetrievalFailure("reset by peer")})
        fallback = fake_fetcher({PDF_URL: _ok()})

        assert (await make_retriever(primary, fallback).fetch(PDF_URL)).content == PDF_BODY

    @pytest.mark.asyncio
    async def test_small_body_falls_back(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _ok(b"tiny")})
        fallback = fake_fetcher({PDF_URL: _ok()})

        assert (await make_retriever(primary, fallback).fetch(PDF_URL)).content == PDF_BODY
        assert len(fallback.calls) == 1

    @pytest.mark.asyncio
    async def test_small_fallback_body_is_failure(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _blocked()})
        fallback = fake_fetcher({PDF_URL: _ok(b"tiny")})

        with pytest.raises(RetrievalFailure):
            await make_retriever(primary, fallback).fetch(PDF_URL)

    @pytest.mark.asyncio
    async def test_other_http_errors_do_not_fall_back(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: FetchResponse(status_code=500, content=b"e" * 1000)})
        fallback = fake_fetcher(default=_ok())

        with pytest.raises(RetrievalFailure) as exc_info:
            await make_retriever(primary, fallback).fetch(PDF_URL)

        assert exc_info.value.context["status_code"] == 500
        assert fallback.calls == []

    @pytest.mark.asyncio
    async def test_without_fallback_block_is_failure(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _blocked()})

        with pytest.raises(RetrievalFailure) as exc_info:
            await make_retriever(primary).fetch(PDF_URL)

        assert isinstance(exc_info.value.__cause__, BlockedError)


class TestSessions:
    @pytest.mark.asyncio
    async def test_warm_session_caches_cookies(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({HOME: _ok(b"<html>", cookies={"bse": "1"}), PDF_URL: _ok()})
        fallback = fake_fetcher({PDF_URL: _ok()})
        retriever = make_retriever(primary, fallback)

        await retriever.fetch(PDF_URL, referer=HOME, warm_url=HOME)
        await retriever.fetch(PDF_URL, referer=HOME, warm_url=HOME)

        assert primary.urls.count(HOME) == 1
        pdf_call = [c for c in primary.calls if c["url"] == PDF_URL][-1]
        assert pdf_call["headers"]["Cookie"] == "bse=1"
        assert pdf_call["headers"]["Referer"] == HOME

    @pytest.mark.asyncio
    async def test_cookies_sent_on_fallback_path(self, fake_fetcher, make_retriever):
        cache = SessionCache()
        cache.store("www.bseindia.com", {"bse": "1"})
        primary = fake_fetcher({PDF_URL: _blocked()})
        fallback = fake_fetcher({PDF_URL: _ok()})

        await make_retriever(primary, fallback, cache).fetch(PDF_URL, warm_url=HOME)

        assert fallback.calls[0]["headers"]["Cookie"] == "bse=1"
        assert HOME not in primary.urls

    @pytest.mark.asyncio
    async def test_failed_warmup_continues_without_cookies(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({HOME: RetrievalFailure("down"), PDF_URL: _ok()})

        document = await make_retriever(primary).fetch(PDF_URL, warm_url=HOME)

        assert document.content == PDF_BODY
        assert "Cookie" not in primary.calls[-1]["headers"]

    @pytest.mark.asyncio
    async def test_rejected_warmup_is_not_cached(self, fake_fetcher, make_retriever):
        cache = SessionCache()
        primary = fake_fetcher({HOME: _blocked(), PDF_URL: _ok()})
        retriever = make_retriever(primary, cache=cache)

        await retriever.fetch(PDF_URL, warm_url=HOME)
        await retriever.fetch(PDF_URL, warm_url=HOME)

        assert cache.get("www.bseindia.com") is None
        assert primary.urls.count(HOME) == 2
        assert "Cookie" not in primary.calls[-1]["headers"]

    def test_host_of(self):
        assert host_of("https://WWW.NSEINDIA.com/api/x?y=1") == "www.nseindia.com"


class TestTextAndJson:
    @pytest.mark.asyncio
    async def test_fetch_html_returns_none_on_failure(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _blocked()})
        fallback = fake_fetcher({PDF_URL: RetrievalFailure("curl exited")})

        assert await make_retriever(primary, fallback).fetch_html(PDF_URL) is None

    @pytest.mark.asyncio
    async def test_fetch_html(self, fake_fetcher, make_retriever):
        body = "<html>" + " " * 600 + "</html>"
        primary = fake_fetcher({PDF_URL: _ok(body.encode())})

        assert await make_retriever(primary).fetch_html(PDF_URL) == body

    @pytest.mark.asyncio
    async def test_fetch_json(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _ok(b'{"data": []}')})

        payload = await make_retriever(primary).fetch_json(PDF_URL, params={"a": "b"})

        assert payload == {"data": []}
        assert primary.calls[0]["params"] == {"a": "b"}
        assert primary.calls[0]["headers"]["Accept"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_fetch_json_invalid(self, fake_fetcher, make_retriever):
        primary = fake_fetcher({PDF_URL: _ok(b"<html>not json</html>")})

        assert await make_retriever(primary).fetch_json(PDF_URL) is None
