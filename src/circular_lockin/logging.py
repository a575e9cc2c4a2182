"""
Structured logging configuration for the circular lock-in resolver.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Request ID and company bound once per resolution via structlog contextvars
- Per-strategy timing
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import get_settings


def configure_logging(
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: JSON lines when True, coloured console output when False.
                    Defaults to the LOG_JSON setting.
        log_level: Override log level (defaults to the LOG_LEVEL setting)
    """
    settings = get_settings()
    level_num = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    if json_output is None:
        json_output = settings.LOG_JSON

    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level_num)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
    ]
    renderer: list[Processor] = (
        [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        if json_output
        else [structlog.dev.ConsoleRenderer(colors=True)]
    )

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    request_id: str | None = None,
    company: str | None = None,
) -> Generator[None, None, None]:
    """
    Bind request-scoped fields to every log line emitted inside the block.

    None values are not bound; whatever was bound before is restored on exit.

    Usage:
        with logging_context(request_id="abc123", company="Acme Ltd"):
            logger.info("locator.start")  # carries request_id and company
    """
    fields = {k: v for k, v in (('request_id', request_id), ('company', company)) if v is not None}
    with structlog.contextvars.bound_contextvars(**fields):
        yield


class ResolutionTimer:
    """
    Wall-clock time spent in each resolution strategy.

    Usage:
        timer = ResolutionTimer()
        with timer.stage("nse"):
            ...
        logger.info("pipeline.resolved", **timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a stage; the duration is kept even when the stage raises."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.stages[name] = (time.perf_counter() - started) * 1000

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Development mode by default; deployments set CIRCULAR_LOG_JSON=true
configure_logging()
