from __future__ import annotations

"""Topology checks run before a workflow is handed to LangGraph.

LangGraph itself accepts branching and cyclic graphs; a sequential workflow is
stricter. These checks turn a malformed declaration into one error listing
every problem instead of a failure halfway through a run.
"""

from collections import Counter

from langgraph.graph import END, START

from sequential_workflows.errors import GraphValidationError
from sequential_workflows.schemas import WorkflowSpec

RESERVED_NAMES = frozenset({START, END})


def _check_names(spec: WorkflowSpec) -> list[str]:
    issues: list[str] = []
    for name in spec.nodes:
        if not name.strip():
            issues.append("node names must be non-empty")
        elif name in RESERVED_NAMES:
            issues.append(f"node name '{name}' is reserved")
    for name, count in Counter(spec.nodes).items():
        if count > 1:
            issues.append(f"node '{name}' is registered {count} times")
    return issues


def _check_edges(spec: WorkflowSpec, registered: set[str]) -> list[str]:
    issues: list[str] = []
    for edge in spec.edges:
        if edge.source not in registered:
            issues.append(f"edge source '{edge.source}' is not a registered node")
        if edge.target != END and edge.target not in registered:
            issues.append(f"edge destination '{edge.target}' is not a registered node")

    outgoing = Counter(edge.source for edge in spec.edges)
    incoming = Counter(edge.target for edge in spec.edges if edge.target != END)
    for name, count in outgoing.items():
        if count > 1:
            issues.append(f"node '{name}' has {count} outgoing edges; expected one")
    for name, count in incoming.items():
        if count > 1:
            issues.append(f"node '{name}' has {count} incoming edges; expected one")
    if spec.entry_point is not None and incoming.get(spec.entry_point):
        issues.append(f"entry point '{spec.entry_point}' must not have incoming edges")
    return issues


def _walk_from_entry(spec: WorkflowSpec) -> tuple[list[str], str | None]:
    """Follow edges from the entry point; return (visited order, problem)."""
    successors = {edge.source: edge.target for edge in spec.edges}
    order: list[str] = []
    seen: set[str] = set()
    current = spec.entry_point
    while current is not None and current != END:
        if current in seen:
            return order, f"cycle detected at node '{current}'; the path never reaches END"
        seen.add(current)
        order.append(current)
        if current not in successors:
            return order, f"node '{current}' has no outgoing edge; the path never reaches END"
        current = successors[current]
    return order, None


def validate_workflow_spec(spec: WorkflowSpec) -> list[str]:
    """Return every problem that keeps `spec` from being a linear pipeline."""
    issues: list[str] = []
    registered = set(spec.nodes)

    if not spec.nodes:
        issues.append("workflow has no nodes")
    issues.extend(_check_names(spec))

    if spec.entry_point is None:
        issues.append("no entry point designated")
    elif spec.entry_point not in registered:
        issues.append(f"entry point '{spec.entry_point}' is not a registered node")

    issues.extend(_check_edges(spec, registered))
    if issues:
        return issues

    order, problem = _walk_from_entry(spec)
    if problem:
        issues.append(problem)
    unreachable = [name for name in spec.nodes if name not in set(order)]
    if unreachable:
        issues.append("unreachable from entry point: " + ", ".join(unreachable))
    return issues


def execution_order(spec: WorkflowSpec) -> list[str]:
    """Node names in the order a valid sequential workflow runs them."""
    ensure_valid(spec)
    order, _ = _walk_from_entry(spec)
    return order


def ensure_valid(spec: WorkflowSpec) -> None:
    issues = validate_workflow_spec(spec)
    if issues:
        raise GraphValidationError(issues)
