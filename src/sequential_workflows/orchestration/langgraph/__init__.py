"""LangGraph-backed sequential workflow surface.

Exposes the builder, the compiled workflow, the state contract and the
monitoring helpers needed by callers, tests, and notebooks.
"""

from langgraph.graph import END

from sequential_workflows.orchestration.langgraph.builder import (
    CompiledWorkflow,
    SequentialWorkflowBuilder,
)
from sequential_workflows.orchestration.langgraph.monitoring import ProgressMonitor, traced_node
from sequential_workflows.orchestration.langgraph.state_schema import (
    NodeTrace,
    WorkflowState,
    ensure_state_defaults,
    new_workflow_state,
)
from sequential_workflows.orchestration.langgraph.tutorial import build_tutorial_workflow
from sequential_workflows.orchestration.langgraph.validation import (
    ensure_valid,
    validate_workflow_spec,
)

__all__ = [
    "END",
    "CompiledWorkflow",
    "NodeTrace",
    "ProgressMonitor",
    "SequentialWorkflowBuilder",
    "WorkflowState",
    "build_tutorial_workflow",
    "ensure_state_defaults",
    "ensure_valid",
    "new_workflow_state",
    "traced_node",
    "validate_workflow_spec",
]
