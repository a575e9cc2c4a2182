"""GET /unlock-details: resolve a company's listing circular."""

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/unlock-details")
async def unlock_details(
    request: Request,
    company: str = Query(default=""),
    exchange: str = Query(default=""),
    listing_date: str = Query(default=""),
):
    """
    Return the unlock schedule, a delegation signal, or ``{"found": false}``.

    Missing or malformed parameters are a not-found outcome, not a 4xx.
    """
    log = logger.bind(company=company, exchange=exchange, listing_date=listing_date)
    log.info("unlock_details.received")

    try:
        outcome = await request.app.state.pipeline.resolve_circular(company, exchange, listing_date)
    except Exception as e:
        log.error("unlock_details.failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=500, content={"found": False, "error": str(e)})

    log.info("unlock_details.complete", outcome=type(outcome).__name__)
    return outcome.to_api_dict()
