from __future__ import annotations

"""The greeting/question/answer pipeline, wired step by step.

    greet -> ask_question -> answer_question -> summarize -> END
"""

from langgraph.graph import END

from sequential_workflows.config import WorkflowSettings
from sequential_workflows.core.provider import ChatProvider
from sequential_workflows.orchestration.langgraph.builder import (
    CompiledWorkflow,
    SequentialWorkflowBuilder,
)
from sequential_workflows.orchestration.langgraph.nodes import build_node_registry
from sequential_workflows.orchestration.langgraph.state_schema import WorkflowState
from sequential_workflows.schemas import WorkflowSpec


def build_tutorial_workflow(
    provider: ChatProvider | None = None,
    *,
    settings: WorkflowSettings | None = None,
    debug: bool | None = None,
) -> CompiledWorkflow:
    nodes = build_node_registry(provider)

    builder = SequentialWorkflowBuilder(WorkflowState, name="tutorial", settings=settings)
    builder.add_node("greet", nodes["greet"])
    builder.add_node("ask_question", nodes["ask_question"])
    builder.add_node("answer_question", nodes["answer_question"])
    builder.add_node("summarize", nodes["summarize"])

    builder.set_entry_point("greet")
    builder.add_edge("greet", "ask_question")
    builder.add_edge("ask_question", "answer_question")
    builder.add_edge("answer_question", "summarize")
    builder.add_edge("summarize", END)

    return builder.compile(debug=debug)


def build_workflow_from_spec(
    spec: WorkflowSpec,
    provider: ChatProvider | None = None,
    *,
    settings: WorkflowSettings | None = None,
    debug: bool | None = None,
) -> CompiledWorkflow:
    """Compile a declarative pipeline over the tutorial's step registry."""
    builder = SequentialWorkflowBuilder.from_spec(
        spec, build_node_registry(provider), settings=settings
    )
    return builder.compile(debug=debug)
