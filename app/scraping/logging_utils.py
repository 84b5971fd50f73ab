"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


@asynccontextmanager
async def timed_event(
    logger: logging.Logger,
    event: str,
    **fields: Any,
) -> AsyncIterator[dict[str, Any]]:
    """
    Log ``event`` with ``duration_ms`` once the wrapped block finishes.

    The yielded dict can be filled with extra fields while the block runs.
    A failing block is logged at ERROR level and the exception re-raised.
    """

    extra: dict[str, Any] = {}
    started = time.monotonic()
    try:
        yield extra
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            f"{event}_failed",
            duration_ms=round((time.monotonic() - started) * 1000),
            error=str(exc),
            **fields,
            **extra,
        )
        raise
    log_event(
        logger,
        logging.INFO,
        event,
        duration_ms=round((time.monotonic() - started) * 1000),
        **fields,
        **extra,
    )


def error_summary(exc: BaseException) -> str:
    """
    First line of an exception message; Playwright appends call logs below it.
    """

    message = str(exc).strip()
    if not message:
        return type(exc).__name__
    return message.splitlines()[0]
