"""
Logging setup for the research assistant.

setup_logging() runs once, from the API lifespan handler. Modules log
through `logging.getLogger(__name__)`, so records carry the dotted
module name (`research_assistant.settings.store`, ...).

What goes where:
  DEBUG   – coerced setting values, callbacks that are not attached
  INFO    – settings saved, API key saved or removed, chat service reset
  WARNING – secure storage off, settings file unreadable at startup
  ERROR   – settings save failures, stored key that cannot be read back

Never hand the API key itself to a logger. Log its state instead.
"""

import logging
import sys

# Loggers of libraries we call that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "openai")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for the plugin process."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    # Level names only add noise unless we are debugging
    fmt = "%(levelname)s [%(name)s] %(message)s" if resolved <= logging.DEBUG else "[%(name)s] %(message)s"
    logging.basicConfig(level=resolved, format=fmt, stream=sys.stdout, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
