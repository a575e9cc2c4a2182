"""
Circular Lock-In Resolver

Locates stock-exchange listing circulars for newly listed companies,
downloads the lock-in annexure and turns it into a dated share-unlock
timeline.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import (
    LockInPipeline,
    CircularLocator,
    LockInExtractor,
    aggregate_unlock_events,
    extract_lockin_schedule,
    resolve_circular,
)
from .clients import DocumentRetriever, SessionCache
from .models import (
    BSESearchSignal,
    ClientFetchSignal,
    LockInEntry,
    LockInSchedule,
    NotFound,
    ResolutionResult,
    UnlockEvent,
)
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    ResolutionTimer,
)
from .errors import (
    CircularLockinError,
    RetrievalError,
    RetrievalFailure,
    BlockedError,
    PipelineError,
    ValidationError,
    ExtractionFailure,
    ArchiveError,
)

__all__ = [
    # Version
    '__version__',
    # Main Pipeline
    'LockInPipeline',
    'resolve_circular',
    'extract_lockin_schedule',
    'aggregate_unlock_events',
    # Components
    'CircularLocator',
    'LockInExtractor',
    'DocumentRetriever',
    'SessionCache',
    # Models
    'BSESearchSignal',
    'ClientFetchSignal',
    'LockInEntry',
    'LockInSchedule',
    'NotFound',
    'ResolutionResult',
    'UnlockEvent',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'ResolutionTimer',
    # Errors
    'CircularLockinError',
    'RetrievalError',
    'RetrievalFailure',
    'BlockedError',
    'PipelineError',
    'ValidationError',
    'ExtractionFailure',
    'ArchiveError',
]
