"""Health check endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Report whether the pipeline was built at startup."""
    if getattr(request.app.state, "pipeline", None) is None:
        return JSONResponse(status_code=503, content={"status": "unhealthy"})
    return {"status": "ok"}
