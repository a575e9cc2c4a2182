"""
Tests for domain models.
"""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from circular_lockin.errors import ValidationError
from circular_lockin.models import (
    NOT_LOCKED_LABEL,
    Exchange,
    LockInEntry,
    LockInSchedule,
    NotFound,
    ResolutionRequest,
    ResolutionResult,
    UnlockEvent,
    parse_listing_date,
)


class TestResolutionRequest:
    def test_from_raw_accepts_iso_strings(self):
        request = ResolutionRequest.from_raw("  Acme Ltd ", "BSE SME", "2025-03-18T00:00:00Z")

        assert request.company_name == "Acme Ltd"
        assert request.listing_date == date(2025, 3, 18)
        assert request.names_bse

    def test_from_raw_accepts_datetime(self):
        request = ResolutionRequest.from_raw("Acme", None, datetime(2025, 3, 18, 10, 0))
        assert request.listing_date == date(2025, 3, 18)
        assert request.exchange_hint == ""

    @pytest.mark.parametrize(
        "name,listing_date",
        [("", "2025-03-18"), ("   ", "2025-03-18"), (None, "2025-03-18"), ("Acme", "18/03/2025"), ("Acme", None)],
    )
    def test_from_raw_rejects_malformed(self, name, listing_date):
        with pytest.raises(ValidationError):
            ResolutionRequest.from_raw(name, "BSE", listing_date)

    def test_parse_listing_date(self):
        assert parse_listing_date("2025-03-18") == date(2025, 3, 18)
        with pytest.raises(ValueError):
            parse_listing_date("2025")


class TestLockInEntry:
    def test_shares_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            LockInEntry(shares=0, locked=True)

    def test_free_lot_cannot_carry_date(self):
        with pytest.raises(PydanticValidationError):
            LockInEntry(shares=10, locked=False, unlock_date=date(2026, 1, 1))

    def test_locked_without_date_allowed(self):
        assert LockInEntry(shares=10, locked=True).unlock_date is None


class TestApiShapes:
    def test_schedule(self):
        schedule = LockInSchedule(
            total_shares=8727055,
            unlock_events=[
                UnlockEvent(date=None, shares=3242, percentage=0.0, label=NOT_LOCKED_LABEL),
                UnlockEvent(date=date(2025, 9, 20), shares=8723813, percentage=100.0),
            ],
        )

        assert schedule.to_api_dict() == {
            "totalShares": 8727055,
            "unlockEvents": [
                {"date": None, "shares": 3242, "percentage": 0.0, "label": "Not under lock-in"},
                {"date": "2025-09-20", "shares": 8723813, "percentage": 100.0, "label": None},
            ],
        }
        assert not schedule.is_empty
        assert LockInSchedule().is_empty

    def test_result(self):
        fetched_at = datetime(2025, 3, 18, 9, 30, tzinfo=timezone.utc)
        result = ResolutionResult(
            total_shares=10,
            unlock_events=[],
            source=Exchange.BSE,
            notice_id="20250318-12",
            fetched_at=fetched_at,
        )

        body = result.to_api_dict()

        assert body["found"] is True
        assert body["source"] == "BSE"
        assert body["noticeId"] == "20250318-12"
        assert body["fetchedAt"] == "2025-03-18T09:30:00+00:00"

    def test_not_found(self):
        assert NotFound().to_api_dict()["found"] is False
