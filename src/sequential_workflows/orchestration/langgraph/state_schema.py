from __future__ import annotations

"""State contract threaded through a sequential workflow.

Every node receives the full state and returns only the fields it adds or
modifies. `trace` is the one accumulating field: LangGraph concatenates the
records each node appends instead of overwriting the list.
"""

import json
import operator
from datetime import UTC, datetime
from hashlib import sha256
from typing import Annotated, Any, TypedDict, cast
from uuid import uuid4


class NodeTrace(TypedDict):
    step: int
    node: str
    updated_fields: list[str]
    duration_ms: float
    started_at: str


class WorkflowState(TypedDict):
    # Run identity and position in the chain.
    run_id: str
    step: int
    # Illustrative fields filled in by the tutorial steps.
    message: str
    question: str
    answer: str
    summary: str
    # One record per executed node, in execution order.
    trace: Annotated[list[NodeTrace], operator.add]


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


def hash_json(value: Any) -> str:
    normalized = json.dumps(value, sort_keys=True, default=str)
    return sha256(normalized.encode("utf-8")).hexdigest()


def new_workflow_state(
    message: str = "",
    question: str = "",
    run_id: str | None = None,
) -> WorkflowState:
    """Build the initial state for a new run, optionally pre-seeded."""
    return {
        "run_id": run_id or str(uuid4()),
        "step": 0,
        "message": message,
        "question": question,
        "answer": "",
        "summary": "",
        "trace": [],
    }


def ensure_state_defaults(state: WorkflowState | dict[str, Any] | None) -> WorkflowState:
    """Fill missing keys so node handlers never see a partial mapping.

    Unknown keys are kept as-is; LangGraph drops them at the graph boundary.
    """
    state_dict = cast(dict[str, Any], dict(state or {}))
    for key, value in new_workflow_state().items():
        state_dict.setdefault(key, value)
    return cast(WorkflowState, state_dict)
