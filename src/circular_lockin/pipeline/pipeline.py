"""
Main entry points for circular lock-in resolution.

Provides end-to-end processing:
1. Validate the caller's company / exchange hint / listing date
2. Locate the listing circular (NSE API, BSE SME list, BSE notice scan)
3. Download the circular attachment (PDF, or zip holding the PDF)
4. Extract lock-in rows from the PDF text
5. Aggregate rows into a dated unlock timeline

Delegation signals and NotFound are ordinary return values; nothing here
raises on "not found".
"""

from __future__ import annotations

import uuid
from datetime import date

from ..clients.retriever import DocumentRetriever
from ..config import Settings, get_settings
from ..errors import ExtractionFailure, ValidationError
from ..logging import ResolutionTimer, get_logger, logging_context
from ..models.circular import Exchange, ResolutionRequest, RetrievedDocument
from ..models.lockin import LockInSchedule
from ..models.resolution import NotFound, Resolution, ResolutionResult
from .aggregator import aggregate_unlock_events
from .documents import document_text
from .extractor import LockInExtractor
from .locator import CircularLocator, ExchangeEndpoints

logger = get_logger(__name__)


def extract_lockin_schedule(
    document: bytes | RetrievedDocument,
    extractor: LockInExtractor | None = None,
) -> LockInSchedule:
    """
    Parse a circular attachment into an unlock schedule.

    Pure function of the document bytes: accepts a PDF or a zip holding the
    PDF. A document with no usable text yields an empty schedule.
    """
    extractor = extractor or LockInExtractor(window_chars=get_settings().RECONCILE_WINDOW_CHARS)
    if isinstance(document, bytes):
        document = RetrievedDocument.from_bytes(document)

    try:
        extracted = document_text(document)
    except ExtractionFailure as e:
        logger.warning('pipeline.no_text', error=str(e), size_bytes=document.size_bytes)
        return LockInSchedule(total_shares=0, unlock_events=[])

    output = extractor.extract(extracted.text)
    total = output.total_shares
    return LockInSchedule(
        total_shares=total,
        unlock_events=aggregate_unlock_events(output.entries, total),
    )


class LockInPipeline:
    """
    Orchestrates locating, downloading and parsing listing circulars.

    Usage:
        pipeline = LockInPipeline.from_settings()
        outcome = await pipeline.resolve_circular('Acme Ltd', 'BSE SME', '2025-03-18')
        outcome.to_api_dict()
        await pipeline.aclose()
    """

    def __init__(
        self,
        retriever: DocumentRetriever,
        settings: Settings | None = None,
        endpoints: ExchangeEndpoints | None = None,
        extractor: LockInExtractor | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            retriever: Document retriever (primary + fallback fetchers)
            settings: Tunables; defaults to get_settings()
            endpoints: Exchange URLs; override in tests
            extractor: Lock-in row extractor
        """
        self.settings = settings or get_settings()
        self.retriever = retriever
        self.extractor = extractor or LockInExtractor(window_chars=self.settings.RECONCILE_WINDOW_CHARS)
        self.locator = CircularLocator(
            retriever=retriever,
            parse_schedule=self.extract_lockin_schedule,
            settings=self.settings,
            endpoints=endpoints,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LockInPipeline:
        settings = settings or get_settings()
        return cls(retriever=DocumentRetriever.from_settings(settings), settings=settings)

    async def aclose(self) -> None:
        await self.retriever.aclose()

    def extract_lockin_schedule(self, document: bytes | RetrievedDocument) -> LockInSchedule:
        return extract_lockin_schedule(document, extractor=self.extractor)

    async def resolve_circular(
        self,
        company_name: str | None,
        exchange_hint: str | None,
        listing_date: date | str | None,
        request_id: str | None = None,
    ) -> Resolution:
        """
        Resolve a company's listing circular into an unlock schedule.

        Args:
            company_name: Company name as free text
            exchange_hint: Free text naming BSE and/or NSE, optionally SME
            listing_date: date, datetime or ISO string
            request_id: Correlation id for logs; generated when omitted

        Returns:
            ResolutionResult, ClientFetchSignal, BSESearchSignal or NotFound
        """
        request_id = request_id or uuid.uuid4().hex[:12]

        with logging_context(request_id=request_id, company=company_name or None):
            try:
                request = ResolutionRequest.from_raw(company_name, exchange_hint, listing_date)
            except ValidationError as e:
                logger.info('pipeline.invalid_request', error=str(e))
                return NotFound(reason='invalid request')

            timer = ResolutionTimer()
            outcome = await self.locator.resolve(request, timer=timer)

            logger.info(
                'pipeline.resolved',
                outcome=type(outcome).__name__,
                **timer.summary(),
            )
            return outcome


async def resolve_circular(
    company_name: str | None,
    exchange_hint: str | None,
    listing_date: date | str | None,
    pipeline: LockInPipeline | None = None,
) -> Resolution:
    """One-shot resolution; builds and closes a default pipeline when none is given."""
    if pipeline is not None:
        return await pipeline.resolve_circular(company_name, exchange_hint, listing_date)

    owned = LockInPipeline.from_settings()
    try:
        return await owned.resolve_circular(company_name, exchange_hint, listing_date)
    finally:
        await owned.aclose()


def result_from_schedule(
    schedule: LockInSchedule,
    source: Exchange,
    notice_id: str,
) -> ResolutionResult | NotFound:
    """Wrap a client-submitted parse as a ResolutionResult; empty schedules are NotFound."""
    if schedule.is_empty:
        return NotFound(reason='no lock-in rows parsed')
    return ResolutionResult(
        total_shares=schedule.total_shares,
        unlock_events=schedule.unlock_events,
        source=source,
        notice_id=notice_id,
    )
