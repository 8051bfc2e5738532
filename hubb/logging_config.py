from __future__ import annotations

import logging

from .config import DEFAULT_APP_CONFIG, AppConfig

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(config: AppConfig = DEFAULT_APP_CONFIG) -> None:
    """Install a single stream handler on the ``hubb`` logger tree."""
    logger = logging.getLogger("hubb")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(config.log_level.upper())
