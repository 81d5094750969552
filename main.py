"""
Scheduling service entry point.

Serves the HTTP API, or runs the offline console demo for development.

Usage:
    API server:   python main.py serve
    Console mode: python main.py console [--scenario booking|race|cancel]
"""

import logging
import sys

from tradetrack.config import settings

logger = logging.getLogger(__name__)


def _run_server() -> None:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    logger.info(
        "Starting %s on %s:%d (store: %s)",
        settings.app_name, settings.api.host, settings.api.port, settings.storage.backend,
    )
    uvicorn.run(
        "tradetrack.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )


def _run_console_mode() -> None:
    """Start the offline console demo (no database or listings service required)."""
    from console_demo import main as console_main

    sys.argv = [sys.argv[0], *sys.argv[2:]]
    console_main()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        _run_server()
