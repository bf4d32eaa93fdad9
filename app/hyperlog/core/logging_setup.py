from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
# Server loggers that otherwise install their own handlers.
ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _handlers(logfile: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        Path(logfile).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logfile, encoding="utf-8"))
    return handlers


def setup_logging(level: str, logfile: str | None = None) -> logging.Logger:
    """Send every logger, uvicorn's included, to stderr and optionally ``logfile``.

    Safe to call again on reload: previous root handlers are replaced.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(LOG_FORMAT)
    for handler in _handlers(logfile):
        handler.setLevel(log_level)
        handler.setFormatter(fmt)
        root.addHandler(handler)
    root.setLevel(log_level)

    for name in ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers.clear()
        routed.setLevel(log_level)
        routed.propagate = True

    root.info("logging initialized level=%s file=%s", logging.getLevelName(log_level), logfile or "-")
    return root
