from __future__ import annotations

"""Runtime settings for workflow runs.

All settings come from the process environment, optionally seeded from a
repo-level `.env` file.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT_DIR / ".env")

DEFAULT_MAX_STEPS = 25
_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class WorkflowSettings:
    provider: str | None = None
    max_steps: int = DEFAULT_MAX_STEPS
    debug: bool = False
    trace: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> WorkflowSettings:
        provider = (os.getenv("WORKFLOW_PROVIDER") or "").strip().lower() or None
        return cls(
            provider=provider,
            max_steps=_env_int("WORKFLOW_MAX_STEPS", DEFAULT_MAX_STEPS),
            debug=_env_bool("WORKFLOW_DEBUG", False),
            trace=_env_bool("WORKFLOW_TRACE", True),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper().strip(),
        )
