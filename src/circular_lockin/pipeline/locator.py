"""
Circular locator: turns a company + listing date into a parsed circular.

Strategies, in order:
1. NSE circulars API (CML department, listing date +/- window), zip download
2. BSE SME notice list, then the matched notice page
3. BSE notice id scan: ids ``YYYYMMDD-N`` probed in concurrent batches on
   dates fanning out from the listing date
4. delegation to the client

The BSE strategies (2-4) run only when the exchange hint names BSE.

Each strategy swallows its own failures and reports "no match"; only the
end of the chain decides between a result, a delegation signal and NotFound.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable

from ..config import Settings, get_settings
from ..clients.retriever import DocumentRetriever
from ..errors import CircularLockinError, RetrievalFailure
from ..logging import ResolutionTimer, get_logger
from ..models.circular import CircularReference, Exchange, ResolutionRequest, RetrievedDocument
from ..models.lockin import LockInSchedule
from ..models.resolution import BSESearchSignal, ClientFetchSignal, NotFound, Resolution, ResolutionResult
from .annexure import (
    extract_notice_id,
    extract_notice_title,
    find_annexure_link,
    find_listing_links,
    is_listing_notice,
    page_text,
)
from .names import matches_company, significant_words

logger = get_logger(__name__)

NSE_LISTING_SUBJECT = 'LISTING OF EQUITY SHARES'
NSE_DEPARTMENT = 'CML'


@dataclass(frozen=True)
class ExchangeEndpoints:
    """URLs the locator talks to."""

    nse_home: str = 'https://www.nseindia.com/'
    nse_circulars_api: str = 'https://www.nseindia.com/api/circulars'
    bse_home: str = 'https://www.bseindia.com/'
    bse_notice_page: str = 'https://www.bseindia.com/markets/MarketInfo/DispNewNoticesCirculars.aspx?page={notice_id}'
    bse_sme_notice_list: str = 'https://www.bsesme.com/markets/MarketInfo/NoticesCirculars.aspx?id=0&txtscripcd=&pagecont=&subject=LISTING'

    def notice_url(self, notice_id: str) -> str:
        return self.bse_notice_page.format(notice_id=notice_id)


def nse_date(day: date) -> str:
    return day.strftime('%d-%m-%Y')


def notice_date(day: date) -> str:
    return day.strftime('%Y%m%d')


def scan_dates(listing_date: date, radius: int) -> list[date]:
    """Listing date, then alternately one day later and one day earlier: 0, +1, -1, +2, -2 ..."""
    days = [listing_date]
    for offset in range(1, radius + 1):
        days.append(listing_date + timedelta(days=offset))
        days.append(listing_date - timedelta(days=offset))
    return days


def notice_batches(day: date, max_id: int, batch_size: int) -> list[list[str]]:
    ids = [f'{notice_date(day)}-{n}' for n in range(1, max_id + 1)]
    return [ids[i:i + batch_size] for i in range(0, len(ids), batch_size)]


class CircularLocator:
    """
    Resolves a ResolutionRequest through the strategy chain.

    Usage:
        locator = CircularLocator(retriever, parse_schedule)
        outcome = await locator.resolve(request)
    """

    def __init__(
        self,
        retriever: DocumentRetriever,
        parse_schedule: Callable[[RetrievedDocument], LockInSchedule],
        settings: Settings | None = None,
        endpoints: ExchangeEndpoints | None = None,
    ):
        """
        Initialize the locator.

        Args:
            retriever: Fetches pages and documents
            parse_schedule: Turns a downloaded document into a schedule
            settings: Window sizes, id bound and batch width
            endpoints: Override exchange URLs (tests)
        """
        self.retriever = retriever
        self.parse_schedule = parse_schedule
        self.settings = settings or get_settings()
        self.endpoints = endpoints or ExchangeEndpoints()

    async def resolve(self, request: ResolutionRequest, timer: ResolutionTimer | None = None) -> Resolution:
        timer = timer or ResolutionTimer()
        words = significant_words(request.company_name)
        log = logger.bind(listing_date=request.listing_date.isoformat(), words=words)
        log.info('locator.start', exchange_hint=request.exchange_hint)

        with timer.stage('nse'):
            reference = await self.find_nse_circular(request, words)
            if reference is not None:
                result = await self._download_and_parse(
                    reference,
                    referer=self.endpoints.nse_home,
                    warm_url=self.endpoints.nse_home,
                )
                if result is not None:
                    return result

        if not request.names_bse:
            log.info('locator.not_found', reason='no BSE listing in hint')
            return NotFound(reason='no NSE listing circular found')

        with timer.stage('bse_sme'):
            reference = await self.find_bse_sme_notice(words)
            if reference is not None:
                outcome = await self._resolve_bse_reference(reference)
                if outcome is not None:
                    return outcome

        with timer.stage('bse_scan'):
            reference = await self.scan_bse_notices(request.listing_date, words)
            if reference is not None:
                outcome = await self._resolve_bse_reference(reference)
                if outcome is not None:
                    return outcome

        log.info('locator.delegate', signal='bse_search')
        return BSESearchSignal(listing_date=request.listing_date, company_name=request.company_name)

    # ------------------------------------------------------------------
    # Shared download step
    # ------------------------------------------------------------------

    async def _download_and_parse(
        self,
        reference: CircularReference,
        referer: str,
        warm_url: str,
    ) -> ResolutionResult | None:
        """Download and parse; None when the download fails or nothing parses."""
        try:
            document = await self.retriever.fetch(reference.document_url, referer=referer, warm_url=warm_url)
        except RetrievalFailure as e:
            logger.warning('locator.download_failed', notice_id=reference.id, error=str(e))
            return None

        schedule = self.parse_schedule(document)
        if schedule.is_empty:
            logger.info('locator.empty_schedule', notice_id=reference.id, exchange=reference.exchange.value)
            return None

        return ResolutionResult(
            total_shares=schedule.total_shares,
            unlock_events=schedule.unlock_events,
            source=reference.exchange,
            notice_id=reference.id,
        )

    async def _resolve_bse_reference(self, reference: CircularReference) -> Resolution | None:
        """A BSE notice we cannot download ourselves becomes a client-fetch signal."""
        if reference.document_url is None:
            logger.info('locator.delegate', signal='client_fetch', notice_id=reference.id)
            return ClientFetchSignal(notice_id=reference.id)

        try:
            document = await self.retriever.fetch(
                reference.document_url,
                referer=self.endpoints.bse_home,
                warm_url=self.endpoints.bse_home,
            )
        except RetrievalFailure as e:
            logger.info('locator.delegate', signal='client_fetch', notice_id=reference.id, error=e.message)
            return ClientFetchSignal(notice_id=reference.id)

        schedule = self.parse_schedule(document)
        if schedule.is_empty:
            logger.info('locator.empty_schedule', notice_id=reference.id, exchange=reference.exchange.value)
            return None

        return ResolutionResult(
            total_shares=schedule.total_shares,
            unlock_events=schedule.unlock_events,
            source=Exchange.BSE,
            notice_id=reference.id,
        )

    # ------------------------------------------------------------------
    # Strategy 1: NSE circulars API
    # ------------------------------------------------------------------

    async def find_nse_circular(self, request: ResolutionRequest, words: list[str]) -> CircularReference | None:
        window = timedelta(days=self.settings.NSE_WINDOW_DAYS)
        params = {
            'keyword': '',
            'department': NSE_DEPARTMENT,
            'fromDate': nse_date(request.listing_date - window),
            'toDate': nse_date(request.listing_date + window),
        }
        payload = await self.retriever.fetch_json(
            self.endpoints.nse_circulars_api,
            params=params,
            referer=self.endpoints.nse_home,
            warm_url=self.endpoints.nse_home,
        )
        if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
            logger.info('locator.nse.no_data')
            return None

        for circular in payload['data']:
            if self._is_nse_listing_match(circular, words):
                reference = CircularReference(
                    exchange=Exchange.NSE,
                    id=str(circular.get('circDisplayNo') or circular.get('circNumber') or ''),
                    document_url=circular.get('circFilelink'),
                    title=circular.get('sub') or '',
                )
                logger.info('locator.nse.match', notice_id=reference.id, title=reference.title)
                return reference

        logger.info('locator.nse.no_match', candidates=len(payload['data']))
        return None

    @staticmethod
    def _is_nse_listing_match(circular: Any, words: list[str]) -> bool:
        if not isinstance(circular, dict):
            return False
        dept = circular.get('fileDept')
        if dept and dept != NSE_DEPARTMENT:
            return False
        if (circular.get('fileExt') or '').lower() != 'zip' or not circular.get('circFilelink'):
            return False
        subject = (circular.get('sub') or '').upper()
        if NSE_LISTING_SUBJECT not in subject:
            return False
        return matches_company(subject, words)

    # ------------------------------------------------------------------
    # Strategy 2: BSE SME notice list
    # ------------------------------------------------------------------

    async def find_bse_sme_notice(self, words: list[str]) -> CircularReference | None:
        list_url = self.endpoints.bse_sme_notice_list
        html = await self.retriever.fetch_html(list_url)
        if html is None:
            logger.info('locator.bse_sme.list_unavailable')
            return None

        for text, href in find_listing_links(html, list_url):
            if not matches_company(text, words):
                continue
            notice_id = extract_notice_id(href)
            if notice_id is None:
                continue
            logger.info('locator.bse_sme.match', notice_id=notice_id, title=text)
            return await self._open_notice(notice_id, title=text)

        logger.info('locator.bse_sme.no_match')
        return None

    async def _open_notice(self, notice_id: str, title: str) -> CircularReference | None:
        notice_url = self.endpoints.notice_url(notice_id)
        html = await self.retriever.fetch_html(
            notice_url,
            referer=self.endpoints.bse_home,
            warm_url=self.endpoints.bse_home,
        )
        if html is None:
            # Blocked for us; the notice id alone lets the client finish the job
            return CircularReference(exchange=Exchange.BSE, id=notice_id, title=title)

        annexure_url = find_annexure_link(html, notice_url)
        if annexure_url is None:
            logger.info('locator.bse.no_annexure', notice_id=notice_id)
            return None
        return CircularReference(
            exchange=Exchange.BSE,
            id=notice_id,
            document_url=annexure_url,
            title=extract_notice_title(page_text(html)) or title,
        )

    # ------------------------------------------------------------------
    # Strategy 3: BSE notice id scan
    # ------------------------------------------------------------------

    async def scan_bse_notices(self, listing_date: date, words: list[str] | None = None) -> CircularReference | None:
        """Probe notice ids around ``listing_date``; first match wins."""
        for day in scan_dates(listing_date, self.settings.BSE_SCAN_RADIUS_DAYS):
            try:
                reference = await self._scan_day(day, words)
            except CircularLockinError as e:
                logger.debug('locator.bse_scan.day_failed', day=day.isoformat(), error=str(e))
                continue
            if reference is not None:
                logger.info('locator.bse_scan.match', notice_id=reference.id, title=reference.title)
                return reference

        logger.info('locator.bse_scan.no_match')
        return None

    async def _scan_day(self, day: date, words: list[str] | None) -> CircularReference | None:
        for batch in notice_batches(day, self.settings.BSE_MAX_NOTICE_ID, self.settings.BSE_BATCH_SIZE):
            results = await asyncio.gather(
                *(self.probe_notice(notice_id, words) for notice_id in batch),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, CircularReference):
                    return result
        return None

    async def probe_notice(self, notice_id: str, words: list[str] | None) -> CircularReference | None:
        notice_url = self.endpoints.notice_url(notice_id)
        html = await self.retriever.fetch_html(
            notice_url,
            referer=self.endpoints.bse_home,
            warm_url=self.endpoints.bse_home,
        )
        if html is None:
            return None

        text = page_text(html)
        if not is_listing_notice(text):
            return None
        if words and not matches_company(text, words):
            return None

        annexure_url = find_annexure_link(html, notice_url)
        if annexure_url is None:
            return None
        return CircularReference(
            exchange=Exchange.BSE,
            id=notice_id,
            document_url=annexure_url,
            title=extract_notice_title(text),
        )
