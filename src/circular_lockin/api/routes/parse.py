"""POST /parse-pdf: parse a circular attachment fetched by the client."""

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool

from circular_lockin.models.circular import Exchange
from circular_lockin.pipeline.pipeline import result_from_schedule

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/parse-pdf")
async def parse_pdf(
    request: Request,
    company: str = Query(default=""),
    notice_id: str = Query(default=""),
    source: str = Query(default="BSE"),
):
    """
    Parse raw PDF (or zip) bytes posted by the client after a delegation signal.

    The body is the document itself, not JSON.
    """
    try:
        exchange = Exchange(source.upper())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"unknown source exchange: {source}")

    body = await request.body()
    log = logger.bind(company=company, notice_id=notice_id, size_bytes=len(body))
    if not body:
        log.info("parse_pdf.empty_body")
        return {"found": False, "reason": "empty document"}

    # pdfplumber is synchronous
    schedule = await run_in_threadpool(request.app.state.pipeline.extract_lockin_schedule, body)
    outcome = result_from_schedule(schedule, source=exchange, notice_id=notice_id)

    log.info("parse_pdf.complete", outcome=type(outcome).__name__, total_shares=schedule.total_shares)
    return outcome.to_api_dict()
