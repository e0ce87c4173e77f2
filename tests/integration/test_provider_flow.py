"""Provider-backed and file-defined runs using the shared fixtures."""

from __future__ import annotations

from sequential_workflows.orchestration.langgraph.state_schema import new_workflow_state
from sequential_workflows.orchestration.langgraph.tutorial import (
    build_tutorial_workflow,
    build_workflow_from_spec,
)
from sequential_workflows.schemas import WorkflowSpec


def test_scripted_provider_answers_the_question(settings, scripted_provider) -> None:
    workflow = build_tutorial_workflow(scripted_provider, settings=settings)
    final_state = workflow.invoke(new_workflow_state(question="How do steps run?"))

    assert final_state["answer"] == "Steps run one after another."
    assert final_state["summary"].endswith("A: Steps run one after another.")
    assert len(scripted_provider.calls) == 1
    assert scripted_provider.calls[0][-1] == {"role": "user", "content": "How do steps run?"}


def test_default_question_reaches_provider(settings, scripted_provider) -> None:
    build_tutorial_workflow(scripted_provider, settings=settings).invoke()
    assert scripted_provider.calls[0][-1]["content"] == "What does a sequential workflow do?"


def test_spec_file_pipeline(settings, spec_file) -> None:
    spec = WorkflowSpec.from_json_file(spec_file)
    workflow = build_workflow_from_spec(spec, settings=settings)

    final_state = workflow.invoke(new_workflow_state("Hello"))

    assert spec.name == "pipeline"
    assert workflow.node_order == ["greet", "summarize"]
    assert [item["node"] for item in final_state["trace"]] == ["greet", "summarize"]
    assert final_state["summary"] == "Hello"
