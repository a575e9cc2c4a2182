"""
Data models for the circular lock-in resolver.
"""

from .circular import (
    ContentType,
    CircularReference,
    Exchange,
    ExtractedText,
    ResolutionRequest,
    RetrievedDocument,
    parse_listing_date,
)
from .lockin import NOT_LOCKED_LABEL, LockInEntry, LockInSchedule, UnlockEvent
from .resolution import (
    BSESearchSignal,
    ClientFetchSignal,
    DelegationSignal,
    NotFound,
    Resolution,
    ResolutionResult,
)

__all__ = [
    'ContentType',
    'CircularReference',
    'Exchange',
    'ExtractedText',
    'ResolutionRequest',
    'RetrievedDocument',
    'parse_listing_date',
    'NOT_LOCKED_LABEL',
    'LockInEntry',
    'LockInSchedule',
    'UnlockEvent',
    'BSESearchSignal',
    'ClientFetchSignal',
    'DelegationSignal',
    'NotFound',
    'Resolution',
    'ResolutionResult',
]
