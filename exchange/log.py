"""structlog setup for the exchange service."""

import logging

import structlog


def configure_logging(debug: bool = False) -> None:
    """Configure structlog with level filtering and console rendering.

    Library code only calls ``structlog.get_logger()``; entry points call
    this once at startup.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )


def short(address: str) -> str:
    """Last 8 characters of an address, for log context."""
    return address[-8:]
