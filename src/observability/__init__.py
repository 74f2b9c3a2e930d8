"""Observability module for structured logging."""

from src.observability.logging import (
    bind_submission_context,
    clear_submission_context,
    configure_logging,
    get_logger,
)


__all__ = [
    "bind_submission_context",
    "clear_submission_context",
    "configure_logging",
    "get_logger",
]
