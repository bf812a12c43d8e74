"""Utilities for the bayesnlme package."""

from bayesnlme.utils.logging import (
    configure_logging,
    get_logger,
    log_operation,
)

__all__ = [
    "get_logger",
    "configure_logging",
    "log_operation",
]
