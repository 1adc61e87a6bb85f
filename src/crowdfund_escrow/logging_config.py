"""Structured logging configuration using structlog.

Provides JSON-structured logging in production and human-readable colored
output in development. Entries emitted while serving a request carry the
request_id, and entries emitted inside a contract call also carry the
campaign_id and caller bound by ``bind_call_context``.

Usage:
    from crowdfund_escrow.logging_config import setup_logging, get_logger
    setup_logging(log_level="DEBUG", json_logs=False)
    logger = get_logger()
    logger.info("campaign.funded", campaign_id="abc-123", amount="400")
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from crowdfund_escrow.domain.types import Address


def _render_ledger_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render addresses as hex and raw bytes as hex so every renderer copes."""
    for key, value in event_dict.items():
        if isinstance(value, Address):
            event_dict[key] = value.hex()
        elif isinstance(value, bytes | bytearray):
            event_dict[key] = "0x" + bytes(value).hex()
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Configure structlog with shared processors.

    Args:
        log_level: Standard Python log level string (DEBUG, INFO, WARNING, etc.)
        json_logs: If True, output JSON (for production). If False, colored console.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _render_ledger_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for noisy_logger in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def bind_call_context(campaign_id: str, caller: Address | str | None = None) -> None:
    """Attach campaign and caller to every log entry for the current call."""
    structlog.contextvars.bind_contextvars(
        campaign_id=campaign_id,
        caller=str(caller) if caller is not None else None,
    )


def clear_call_context() -> None:
    structlog.contextvars.unbind_contextvars("campaign_id", "caller")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If None, uses the calling module's name.
    """
    return structlog.get_logger(name)
