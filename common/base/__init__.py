"""Low-level shared utilities for Housekeep Tools."""

from .logging import HousekeepLogger, get_logger, log_session, setup_logging, shutdown_logging

__all__ = [
    "get_logger",
    "log_session",
    "setup_logging",
    "shutdown_logging",
    "HousekeepLogger",
]
