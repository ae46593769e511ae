"""Logging helpers for the omnilink logger hierarchy."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "omnilink"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger, e.g. ``omnilink.grapher.type_flow``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Attach console (and optional file) handlers for host programs.

    Library code never calls this; the graph core only emits debug records.
    Calling it again replaces (and closes) previously installed handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    _attach(root, logging.StreamHandler(), "[omnilink] %(levelname)s %(message)s", level)
    if log_file is not None:
        _attach(
            root,
            logging.FileHandler(log_file, encoding="utf-8"),
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            level,
        )
    return root


def _attach(logger: logging.Logger, handler: logging.Handler, fmt: str, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


__all__ = ["configure_logging", "get_logger"]
