from __future__ import annotations

import logging
import sys

from config import get_settings


_INITIALIZED: bool = False


def init_logging(level: str | None = None) -> None:
    """Configure the root logger once for both apps (stdout, LOG_LEVEL)."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level = getattr(logging, (level or get_settings().log_level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root_logger.addHandler(handler)

    _INITIALIZED = True
