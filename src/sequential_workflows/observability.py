"""Langfuse tracing for workflow nodes.

Tracing is only switched on when Langfuse credentials are present in the
environment; otherwise `observe` leaves the wrapped function untouched.
"""

from __future__ import annotations

import contextlib
import os
from collections.abc import Callable
from typing import Any, TypeVar

from langfuse import Langfuse
from langfuse import observe as _langfuse_observe

F = TypeVar("F", bound=Callable[..., Any])

_langfuse_client: Langfuse | None = None


def is_configured() -> bool:
    """Check if Langfuse env vars are present."""
    return bool(os.getenv("LANGFUSE_SECRET_KEY") and os.getenv("LANGFUSE_PUBLIC_KEY"))


def get_langfuse_client() -> Langfuse | None:
    """Return a Langfuse client if configured, else None."""
    global _langfuse_client
    if _langfuse_client is not None:
        return _langfuse_client
    if not is_configured():
        return None
    _langfuse_client = Langfuse()
    return _langfuse_client


def observe(name: str | None = None) -> Callable[[F], F]:
    """Decorator that records a Langfuse span per call when configured.

    Usage:
        @observe("greet")
        def greet(state):
            ...
    """
    if is_configured():
        return _langfuse_observe(name=name)

    def passthrough(fn: F) -> F:
        return fn

    return passthrough


def flush() -> None:
    """Flush any pending Langfuse events. No-op if not configured."""
    client = get_langfuse_client()
    if client is not None:
        with contextlib.suppress(Exception):
            client.flush()
