"""Logging configuration for the application."""

import logging
import sys

# Engine loggers that get their own level, independent of the app level
URL_ENGINE_LOGGERS = (
    "services.url_sync_service",
    "services.url_lifecycle_service",
    "services.url_rebuild_service",
    "services.url_resolver",
)


def setup_logging(level: str = "INFO", engine_level: str | None = None) -> None:
    """
    Configure application logging.

    Args:
        level: Root logging level (default: INFO)
        engine_level: Optional level for the url engine loggers only
            (e.g. DEBUG to trace slug/url syncs without debugging everything)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    if engine_level:
        for name in URL_ENGINE_LOGGERS:
            logging.getLogger(name).setLevel(getattr(logging, engine_level.upper()))
