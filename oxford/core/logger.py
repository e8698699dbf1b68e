import logging
from typing import Optional

from oxford.core.config import get_settings

_configured = False


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return
    level = getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs every request line at INFO, query strings included
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module logger with consistent formatting.

    If not yet configured, configures the root logger once, at the level
    named by ``LOG_LEVEL``.
    """
    _configure_root_logger()
    return logging.getLogger(name or "oxford")
