from __future__ import annotations

"""Debugging and progress-monitoring wrappers for workflow nodes."""

import time
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field
from typing import Any

from sequential_workflows.errors import InvalidNodeOutputError, NodeExecutionError
from sequential_workflows.logger import get_logger
from sequential_workflows.observability import observe
from sequential_workflows.orchestration.langgraph.state_schema import NodeTrace, utc_now_iso

NodeFn = Callable[[Any], Mapping[str, Any] | None]

logger = get_logger("langgraph.monitoring")


def traced_node(
    name: str,
    fn: NodeFn,
    *,
    record_trace: bool = True,
    debug: bool = False,
    allowed_fields: Collection[str] | None = None,
) -> Callable[[Any], dict[str, Any]]:
    """Wrap a step function with logging, error context and a trace record.

    With `record_trace` the wrapper bumps `step` and appends one NodeTrace to
    the update; the state schema must then declare both fields. With
    `allowed_fields`, returning a key outside that set raises
    InvalidNodeOutputError, since LangGraph would silently drop it.
    """
    observed = observe(name)(fn)

    def wrapper(state: Any) -> dict[str, Any]:
        step = int(state.get("step", 0)) + 1 if record_trace else 0
        started_at = utc_now_iso()
        started = time.perf_counter()
        logger.info("NODE START step=%s node=%s", step, name)
        if debug:
            logger.debug("NODE INPUT node=%s state=%s", name, dict(state))

        try:
            result = observed(state)
        except NodeExecutionError:
            raise
        except Exception as exc:
            logger.exception("NODE FAILED step=%s node=%s", step, name)
            raise NodeExecutionError(name, str(exc)) from exc

        if result is None:
            update: dict[str, Any] = {}
        elif isinstance(result, Mapping):
            update = dict(result)
        else:
            raise InvalidNodeOutputError(
                name, f"expected a mapping of updated fields, got {type(result).__name__}"
            )
        if allowed_fields is not None:
            undeclared = sorted(key for key in update if key not in allowed_fields)
            if undeclared:
                raise InvalidNodeOutputError(
                    name,
                    "returned fields not declared by the state schema: " + ", ".join(undeclared),
                )

        duration_ms = round((time.perf_counter() - started) * 1000, 3)
        if record_trace:
            # The wrapper owns the bookkeeping fields.
            update.pop("trace", None)
            update.pop("step", None)
            record: NodeTrace = {
                "step": step,
                "node": name,
                "updated_fields": sorted(update),
                "duration_ms": duration_ms,
                "started_at": started_at,
            }
            update["step"] = step
            update["trace"] = [record]

        logger.info(
            "NODE DONE step=%s node=%s fields=%s duration_ms=%s",
            step,
            name,
            sorted(key for key in update if key not in {"step", "trace"}),
            duration_ms,
        )
        if debug:
            logger.debug("NODE OUTPUT node=%s update=%s", name, update)
        return update

    # LangGraph must see wrapper's own one-argument signature; no functools.wraps.
    wrapper.__name__ = getattr(fn, "__name__", name)
    wrapper.__doc__ = getattr(fn, "__doc__", None)
    return wrapper


@dataclass
class ProgressMonitor:
    """Counts completed nodes of a run and reports each one."""

    total_steps: int
    callback: Callable[[int, int, str], None] | None = None
    completed_nodes: list[str] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return len(self.completed_nodes)

    @property
    def fraction(self) -> float:
        if self.total_steps <= 0:
            return 1.0
        return min(1.0, self.completed / self.total_steps)

    @property
    def is_complete(self) -> bool:
        return self.completed >= self.total_steps

    def node_completed(self, node: str) -> None:
        self.completed_nodes.append(node)
        logger.info("STEP %s/%s node=%s", self.completed, self.total_steps, node)
        if self.callback is not None:
            self.callback(self.completed, self.total_steps, node)
