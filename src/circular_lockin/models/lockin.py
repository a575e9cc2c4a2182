"""
Lock-in entries and the unlock schedule derived from them.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, model_validator


NOT_LOCKED_LABEL = 'Not under lock-in'


class LockInEntry(BaseModel):
    """One parsed row of an Annexure-I lock-in table."""

    model_config = ConfigDict(frozen=True)

    shares: int = Field(..., gt=0, description='Number of equity shares in the lot')
    locked: bool = Field(..., description='Whether the lot is under lock-in')
    unlock_date: dt.date | None = Field(default=None, description='Date the lock-in expires')

    @model_validator(mode='after')
    def _free_lots_have_no_date(self) -> 'LockInEntry':
        if not self.locked and self.unlock_date is not None:
            raise ValueError('a lot not under lock-in cannot carry an unlock date')
        return self


class UnlockEvent(BaseModel):
    """Shares becoming free on one date. ``date`` None is the not-locked bucket."""

    model_config = ConfigDict(frozen=True)

    date: dt.date | None = None
    shares: int
    percentage: float = 0.0
    label: str | None = None

    def to_api_dict(self) -> dict:
        return {
            'date': self.date.isoformat() if self.date else None,
            'shares': self.shares,
            'percentage': self.percentage,
            'label': self.label,
        }


class LockInSchedule(BaseModel):
    """Parsed schedule of one circular."""

    model_config = ConfigDict(frozen=True)

    total_shares: int = 0
    unlock_events: list[UnlockEvent] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.unlock_events

    def to_api_dict(self) -> dict:
        return {
            'totalShares': self.total_shares,
            'unlockEvents': [e.to_api_dict() for e in self.unlock_events],
        }
