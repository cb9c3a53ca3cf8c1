"""Default logger setup.

The environment variable ``EVNET_LOGGING_MODE`` chooses the default logger:
``prod`` (case-insensitive) gives a production logger that writes INFO and
above to standard error as JSON; any other value gives a development logger
that writes DEBUG and above in a human-friendly format.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Optional

LOGGING_MODE_ENV = "EVNET_LOGGING_MODE"

_DEV_FORMAT = "%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "level": record.levelname.lower(),
            "ts": record.created,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def create_default_logger(mode: str) -> logging.Logger:
    """Return the production logger for ``"prod"``, else the development one."""
    production = (mode or "").lower() == "prod"
    name = "evnet.prod" if production else "evnet.dev"
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if production:
            handler.setFormatter(_JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter(_DEV_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.INFO if production else logging.DEBUG)
    return logger


_default: Optional[logging.Logger] = None
_default_lock = threading.Lock()


def default_logger() -> logging.Logger:
    """Return the shared default logger, created on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = create_default_logger(os.environ.get(LOGGING_MODE_ENV, ""))
        return _default


def cleanup() -> None:
    """Flush every handler of the default logger."""
    for handler in default_logger().handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            pass