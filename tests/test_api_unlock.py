"""Tests for GET /unlock-details."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from circular_lockin.api.routes.unlock import router
from circular_lockin.models.circular import Exchange
from circular_lockin.models.lockin import UnlockEvent
from circular_lockin.models.resolution import BSESearchSignal, ClientFetchSignal, NotFound, ResolutionResult


def _make_app(outcome=None, error=None) -> tuple[FastAPI, MagicMock]:
    app = FastAPI()
    app.include_router(router)
    pipeline = MagicMock()
    pipeline.resolve_circular = AsyncMock(return_value=outcome, side_effect=error)
    app.state.pipeline = pipeline
    return app, pipeline


class TestUnlockDetails:
    def test_result(self):
        outcome = ResolutionResult(
            total_shares=1000,
            unlock_events=[UnlockEvent(date=date(2026, 3, 18), shares=1000, percentage=100.0)],
            source=Exchange.NSE,
            notice_id="NSE/CML/67001",
        )
        app, pipeline = _make_app(outcome)

        resp = TestClient(app).get(
            "/unlock-details",
            params={"company": "Acme Ltd", "exchange": "NSE", "listing_date": "2025-03-18"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["found"] is True
        assert body["totalShares"] == 1000
        assert body["unlockEvents"][0]["date"] == "2026-03-18"
        pipeline.resolve_circular.assert_awaited_once_with("Acme Ltd", "NSE", "2025-03-18")

    def test_client_fetch_signal(self):
        app, _ = _make_app(ClientFetchSignal(notice_id="20250318-12"))

        resp = TestClient(app).get("/unlock-details", params={"company": "Acme", "exchange": "BSE", "listing_date": "2025-03-18"})

        assert resp.json() == {"needsClientFetch": True, "noticeId": "20250318-12"}

    def test_bse_search_signal(self):
        app, _ = _make_app(BSESearchSignal(listing_date=date(2025, 3, 18), company_name="Acme"))

        resp = TestClient(app).get("/unlock-details", params={"company": "Acme", "exchange": "BSE", "listing_date": "2025-03-18"})

        assert resp.json() == {"needsBSESearch": True, "listingDate": "2025-03-18", "companyName": "Acme"}

    def test_missing_params_are_not_found(self):
        app, pipeline = _make_app(NotFound(reason="invalid request"))

        resp = TestClient(app).get("/unlock-details")

        assert resp.status_code == 200
        assert resp.json()["found"] is False
        pipeline.resolve_circular.assert_awaited_once_with("", "", "")

    def test_unexpected_failure(self):
        app, _ = _make_app(error=RuntimeError("boom"))

        resp = TestClient(app).get("/unlock-details", params={"company": "Acme"})

        assert resp.status_code == 500
        assert resp.json()["found"] is False
