from __future__ import annotations

"""Sequential workflow construction on top of LangGraph's StateGraph.

The builder records the declared topology, validates that it forms a single
linear chain ending at END, and only then builds and compiles the LangGraph
graph. Execution itself is LangGraph's.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from sequential_workflows.config import WorkflowSettings
from sequential_workflows.errors import (
    GraphValidationError,
    UnknownNodeError,
    WorkflowFrozenError,
)
from sequential_workflows.logger import get_logger, set_level
from sequential_workflows.observability import flush
from sequential_workflows.orchestration.langgraph.monitoring import (
    NodeFn,
    ProgressMonitor,
    traced_node,
)
from sequential_workflows.orchestration.langgraph.state_schema import (
    WorkflowState,
    ensure_state_defaults,
)
from sequential_workflows.orchestration.langgraph.validation import ensure_valid, execution_order
from sequential_workflows.schemas import EdgeSpec, WorkflowSpec

logger = get_logger("langgraph.builder")

_TRACE_FIELDS = frozenset({"step", "trace"})


def _schema_fields(state_schema: type) -> set[str]:
    return set(getattr(state_schema, "__annotations__", {}))


class SequentialWorkflowBuilder:
    """Collects nodes and edges, then compiles them into a runnable workflow."""

    def __init__(
        self,
        state_schema: type = WorkflowState,
        *,
        name: str = "workflow",
        settings: WorkflowSettings | None = None,
    ) -> None:
        self.state_schema = state_schema
        self.name = name
        self.settings = settings or WorkflowSettings.from_env()
        self._node_names: list[str] = []
        self._node_fns: dict[str, NodeFn] = {}
        self._entry_point: str | None = None
        self._edges: list[EdgeSpec] = []
        self._frozen = False

    @classmethod
    def from_steps(
        cls,
        steps: Iterable[tuple[str, NodeFn]],
        *,
        state_schema: type = WorkflowState,
        name: str = "workflow",
        settings: WorkflowSettings | None = None,
    ) -> SequentialWorkflowBuilder:
        builder = cls(state_schema, name=name, settings=settings)
        builder.add_sequence(steps)
        return builder

    @classmethod
    def from_spec(
        cls,
        spec: WorkflowSpec,
        registry: Mapping[str, NodeFn],
        *,
        state_schema: type = WorkflowState,
        settings: WorkflowSettings | None = None,
    ) -> SequentialWorkflowBuilder:
        """Build from a declarative spec, resolving node names in `registry`."""
        missing = [name for name in spec.nodes if name not in registry]
        if missing:
            raise UnknownNodeError(
                f"Unknown step(s) {', '.join(missing)}. Available: {', '.join(sorted(registry))}"
            )
        builder = cls(state_schema, name=spec.name, settings=settings)
        for node_name in spec.nodes:
            builder.add_node(node_name, registry[node_name])
        if spec.entry_point is not None:
            builder.set_entry_point(spec.entry_point)
        for edge in spec.edges:
            builder.add_edge(edge.source, edge.target)
        return builder

    def _check_mutable(self) -> None:
        if self._frozen:
            raise WorkflowFrozenError(f"Workflow '{self.name}' is already compiled.")

    def add_node(self, name: str, fn: NodeFn) -> SequentialWorkflowBuilder:
        """Register `fn` under `name`. Duplicates are reported by compile()."""
        self._check_mutable()
        if not callable(fn):
            raise TypeError(f"Node '{name}' must be callable, got {type(fn).__name__}")
        self._node_names.append(name)
        self._node_fns.setdefault(name, fn)
        return self

    def set_entry_point(self, name: str) -> SequentialWorkflowBuilder:
        self._check_mutable()
        if self._entry_point is not None and self._entry_point != name:
            raise GraphValidationError(
                [f"entry point already set to '{self._entry_point}'; cannot also use '{name}'"]
            )
        self._entry_point = name
        return self

    def add_edge(self, source: str, destination: str) -> SequentialWorkflowBuilder:
        """Record that `destination` (a node name or END) runs after `source`."""
        self._check_mutable()
        self._edges.append(EdgeSpec(source=source, target=destination))
        return self

    def add_sequence(self, steps: Iterable[tuple[str, NodeFn]]) -> SequentialWorkflowBuilder:
        """Register steps in order and chain them, the last one into END."""
        ordered = list(steps)
        if not ordered:
            return self
        for step_name, fn in ordered:
            self.add_node(step_name, fn)
        if self._entry_point is None:
            self.set_entry_point(ordered[0][0])
        names = [step_name for step_name, _ in ordered]
        for source, destination in zip(names, names[1:] + [END]):
            self.add_edge(source, destination)
        return self

    def to_spec(self) -> WorkflowSpec:
        return WorkflowSpec(
            name=self.name,
            nodes=list(self._node_names),
            entry_point=self._entry_point,
            edges=list(self._edges),
        )

    def compile(self, *, debug: bool | None = None) -> CompiledWorkflow:
        """Validate the recorded topology and compile it with LangGraph."""
        spec = self.to_spec()
        ensure_valid(spec)
        order = execution_order(spec)
        debug = self.settings.debug if debug is None else debug
        if debug:
            set_level(logging.DEBUG)
        schema_fields = _schema_fields(self.state_schema)
        record_trace = self.settings.trace and _TRACE_FIELDS <= schema_fields

        graph = StateGraph(self.state_schema)
        for node_name in order:
            graph.add_node(
                node_name,
                traced_node(
                    node_name,
                    self._node_fns[node_name],
                    record_trace=record_trace,
                    debug=debug,
                    allowed_fields=schema_fields or None,
                ),
            )
        graph.set_entry_point(order[0])
        for edge in spec.edges:
            graph.add_edge(edge.source, edge.target)

        compiled = graph.compile(name=self.name)
        self._frozen = True
        logger.info("WORKFLOW COMPILED name=%s nodes=%s", self.name, " -> ".join(order))
        return CompiledWorkflow(
            compiled,
            spec=spec,
            node_order=order,
            state_schema=self.state_schema,
            settings=self.settings,
        )


class CompiledWorkflow:
    """A validated, compiled sequential workflow ready to invoke."""

    def __init__(
        self,
        graph: CompiledStateGraph,
        *,
        spec: WorkflowSpec,
        node_order: list[str],
        state_schema: type,
        settings: WorkflowSettings,
    ) -> None:
        self.graph = graph
        self.spec = spec
        self.state_schema = state_schema
        self.settings = settings
        self._node_order = list(node_order)

    @property
    def node_order(self) -> list[str]:
        return list(self._node_order)

    @property
    def recursion_limit(self) -> int:
        return max(self.settings.max_steps, len(self._node_order) + 1)

    def _prepare(self, initial_state: Mapping[str, Any] | None) -> dict[str, Any]:
        if self.state_schema is WorkflowState:
            return dict(ensure_state_defaults(initial_state))
        return dict(initial_state or {})

    def _config(self) -> dict[str, Any]:
        return {"recursion_limit": self.recursion_limit, "run_name": self.spec.name}

    def invoke(self, initial_state: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run from the entry point until END and return the final state."""
        state = self._prepare(initial_state)
        run_id = state.get("run_id", "-")
        logger.info(
            "RUN START run_id=%s workflow=%s nodes=%s",
            run_id,
            self.spec.name,
            len(self._node_order),
        )
        try:
            final_state = self.graph.invoke(state, config=self._config())
        finally:
            flush()
        logger.info("RUN DONE run_id=%s steps=%s", run_id, final_state.get("step", "-"))
        return final_state

    def stream(
        self, initial_state: Mapping[str, Any] | None = None
    ) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield `(node_name, update)` for each executed node, in order."""
        state = self._prepare(initial_state)
        try:
            for chunk in self.graph.stream(state, config=self._config(), stream_mode="updates"):
                for node_name, update in chunk.items():
                    yield node_name, dict(update or {})
        finally:
            flush()

    def run(
        self,
        initial_state: Mapping[str, Any] | None = None,
        monitor: ProgressMonitor | None = None,
    ) -> dict[str, Any]:
        """Invoke while reporting every completed node to `monitor`."""
        monitor = monitor or ProgressMonitor(total_steps=len(self._node_order))
        state = self._prepare(initial_state)
        run_id = state.get("run_id", "-")
        logger.info(
            "RUN START run_id=%s workflow=%s nodes=%s",
            run_id,
            self.spec.name,
            len(self._node_order),
        )
        final_state: dict[str, Any] = state
        try:
            for mode, chunk in self.graph.stream(
                state, config=self._config(), stream_mode=["updates", "values"]
            ):
                if mode == "updates":
                    for node_name in chunk:
                        monitor.node_completed(node_name)
                else:
                    final_state = chunk
        finally:
            flush()
        logger.info(
            "RUN DONE run_id=%s completed=%s/%s", run_id, monitor.completed, monitor.total_steps
        )
        return final_state
