"""Logging setup."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

# Chatty SDK loggers capped regardless of the requested level
NOISY_LOGGERS = ["azure", "azure.core.pipeline.policies.http_logging_policy", "urllib3", "msal"]


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging with a Rich handler.

    Args:
        level: Log level name
        verbose: Include timestamps and source paths in output
    """
    handler = RichHandler(show_time=verbose, show_path=verbose, rich_tracebacks=True, markup=False)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
