"""Logging setup shared by every workflow module."""

from __future__ import annotations

import logging

from sequential_workflows.config import WorkflowSettings

_ROOT_NAME = "sequential_workflows"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(_ROOT_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    level_name = WorkflowSettings.from_env().log_level
    root.setLevel(getattr(logging, level_name, logging.INFO))
    _configured = True


def set_level(level: int | str) -> None:
    """Override the package log level (debug runs raise it to DEBUG)."""
    _configure_root()
    logging.getLogger(_ROOT_NAME).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a named child logger, e.g. get_logger("langgraph.builder")."""
    _configure_root()
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
