"""
Terminal outcomes of a resolution attempt.

resolve_circular() returns exactly one of:
- ResolutionResult: the schedule was parsed server-side
- ClientFetchSignal: notice id known, caller must fetch the notice page itself
- BSESearchSignal: caller must run the whole BSE notice scan itself
- NotFound: nothing located and no reason to delegate
"""

from datetime import date, datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .circular import Exchange
from .lockin import UnlockEvent


class ResolutionResult(BaseModel):
    """Parsed unlock schedule with its provenance."""

    model_config = ConfigDict(frozen=True)

    total_shares: int
    unlock_events: list[UnlockEvent]
    source: Exchange
    notice_id: str
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_api_dict(self) -> dict:
        return {
            'found': True,
            'totalShares': self.total_shares,
            'unlockEvents': [e.to_api_dict() for e in self.unlock_events],
            'source': self.source.value,
            'noticeId': self.notice_id,
            'fetchedAt': self.fetched_at.isoformat(),
        }


class ClientFetchSignal(BaseModel):
    """The notice page is known but blocked for us; the client must fetch it."""

    model_config = ConfigDict(frozen=True)

    needs_client_fetch: Literal[True] = True
    notice_id: str

    def to_api_dict(self) -> dict:
        return {'needsClientFetch': True, 'noticeId': self.notice_id}


class BSESearchSignal(BaseModel):
    """Every server-side strategy failed; the client must scan BSE notices itself."""

    model_config = ConfigDict(frozen=True)

    needs_bse_search: Literal[True] = True
    listing_date: date
    company_name: str

    def to_api_dict(self) -> dict:
        return {
            'needsBSESearch': True,
            'listingDate': self.listing_date.isoformat(),
            'companyName': self.company_name,
        }


class NotFound(BaseModel):
    """No circular located. An expected outcome, not an error."""

    model_config = ConfigDict(frozen=True)

    reason: str = 'no circular located'

    def to_api_dict(self) -> dict:
        return {'found': False, 'reason': self.reason}


DelegationSignal = Union[ClientFetchSignal, BSESearchSignal]
Resolution = Union[ResolutionResult, DelegationSignal, NotFound]
