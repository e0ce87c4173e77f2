import importlib.util
import logging
import os
import unittest
from typing import TypedDict
from unittest.mock import patch

from sequential_workflows.config import WorkflowSettings
from sequential_workflows.errors import (
    GraphValidationError,
    InvalidNodeOutputError,
    NodeExecutionError,
    UnknownNodeError,
    WorkflowFrozenError,
)
from sequential_workflows.orchestration.langgraph.nodes import CANNED_ANSWER, DEFAULT_MESSAGE
from sequential_workflows.orchestration.langgraph.state_schema import new_workflow_state
from sequential_workflows.schemas import WorkflowSpec

if importlib.util.find_spec("langgraph") is None:  # pragma: no cover
    LANGGRAPH_AVAILABLE = False
else:
    LANGGRAPH_AVAILABLE = True
    from langgraph.graph import END

    from sequential_workflows.orchestration.langgraph.builder import SequentialWorkflowBuilder
    from sequential_workflows.orchestration.langgraph.monitoring import ProgressMonitor
    from sequential_workflows.orchestration.langgraph.tutorial import (
        build_tutorial_workflow,
        build_workflow_from_spec,
    )

TUTORIAL_ORDER = ["greet", "ask_question", "answer_question", "summarize"]


class CounterState(TypedDict):
    count: int


def increment(state: CounterState) -> dict:
    return {"count": state["count"] + 1}


class EchoProvider:
    def __init__(self) -> None:
        self.questions: list[str] = []

    def generate(self, messages):  # noqa: ANN001
        question = messages[-1]["content"]
        self.questions.append(question)
        return f"echo: {question}"


def offline_settings(**overrides) -> WorkflowSettings:
    values = {"provider": None, "max_steps": 25, "debug": False, "trace": True}
    values.update(overrides)
    return WorkflowSettings(**values)


@unittest.skipUnless(LANGGRAPH_AVAILABLE, "langgraph not installed")
class TutorialWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.workflow = build_tutorial_workflow(settings=offline_settings())

    def test_invoke_from_empty_state(self) -> None:
        for initial in (None, {}):
            final_state = self.workflow.invoke(initial)
            self.assertEqual(final_state["message"], DEFAULT_MESSAGE)
            self.assertEqual(final_state["answer"], CANNED_ANSWER)
            self.assertIn("Q: ", final_state["summary"])
            self.assertEqual(final_state["step"], 4)

    def test_trace_records_every_node_in_order(self) -> None:
        final_state = self.workflow.invoke()
        trace = final_state["trace"]
        self.assertEqual([item["node"] for item in trace], TUTORIAL_ORDER)
        self.assertEqual([item["step"] for item in trace], [1, 2, 3, 4])
        self.assertEqual(trace[0]["updated_fields"], ["message"])

    def test_pre_seeded_state_is_kept(self) -> None:
        initial = new_workflow_state("Hi there", "Is this linear?", run_id="run-seeded")
        final_state = self.workflow.invoke(initial)
        self.assertEqual(final_state["run_id"], "run-seeded")
        self.assertEqual(final_state["message"], "Hi there")
        self.assertEqual(final_state["question"], "Is this linear?")
        self.assertTrue(final_state["summary"].startswith("Hi there | Q: Is this linear?"))

    def test_node_order_and_spec(self) -> None:
        self.assertEqual(self.workflow.node_order, TUTORIAL_ORDER)
        self.assertEqual(self.workflow.spec.entry_point, "greet")
        self.assertEqual(self.workflow.spec.edges[-1].target, END)

    def test_stream_yields_updates_in_order(self) -> None:
        events = list(self.workflow.stream())
        self.assertEqual([name for name, _ in events], TUTORIAL_ORDER)
        self.assertEqual(events[1][1]["question"], "What does a sequential workflow do?")

    def test_run_reports_progress(self) -> None:
        seen = []
        monitor = ProgressMonitor(
            len(self.workflow.node_order),
            callback=lambda done, total, node: seen.append(f"{done}/{total}:{node}"),
        )
        final_state = self.workflow.run(new_workflow_state(run_id="run-progress"), monitor=monitor)
        self.assertTrue(monitor.is_complete)
        self.assertEqual(seen[0], "1/4:greet")
        self.assertEqual(seen[-1], "4/4:summarize")
        self.assertEqual(final_state["run_id"], "run-progress")
        self.assertEqual(final_state["answer"], CANNED_ANSWER)

    def test_provider_backed_answer(self) -> None:
        provider = EchoProvider()
        workflow = build_tutorial_workflow(provider, settings=offline_settings())
        final_state = workflow.invoke(new_workflow_state(question="Ping?"))
        self.assertEqual(provider.questions, ["Ping?"])
        self.assertEqual(final_state["answer"], "echo: Ping?")

    def test_trace_can_be_disabled(self) -> None:
        workflow = build_tutorial_workflow(settings=offline_settings(trace=False))
        final_state = workflow.invoke()
        self.assertEqual(final_state["trace"], [])
        self.assertEqual(final_state["step"], 0)
        self.assertEqual(final_state["answer"], CANNED_ANSWER)

    def test_workflow_from_spec(self) -> None:
        spec = WorkflowSpec.linear("short", ["greet", "summarize"])
        workflow = build_workflow_from_spec(spec, settings=offline_settings())
        final_state = workflow.invoke(new_workflow_state("Hey"))
        self.assertEqual(final_state["summary"], "Hey")
        self.assertEqual(final_state["answer"], "")

    def test_unknown_step_in_spec(self) -> None:
        spec = WorkflowSpec.linear("broken", ["greet", "translate"])
        with self.assertRaises(UnknownNodeError):
            build_workflow_from_spec(spec, settings=offline_settings())


@unittest.skipUnless(LANGGRAPH_AVAILABLE, "langgraph not installed")
class BuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_custom_state_schema_without_trace(self) -> None:
        builder = SequentialWorkflowBuilder.from_steps(
            [("one", increment), ("two", increment), ("three", increment)],
            state_schema=CounterState,
            settings=offline_settings(),
        )
        workflow = builder.compile()
        self.assertEqual(workflow.invoke({"count": 0}), {"count": 3})

    def test_long_pipeline_exceeds_configured_max_steps(self) -> None:
        steps = [(f"n{index}", increment) for index in range(30)]
        workflow = SequentialWorkflowBuilder.from_steps(
            steps, state_schema=CounterState, settings=offline_settings(max_steps=5)
        ).compile()
        self.assertEqual(workflow.recursion_limit, 31)
        self.assertEqual(workflow.invoke({"count": 0})["count"], 30)

    def test_missing_end_edge_fails_compile(self) -> None:
        builder = SequentialWorkflowBuilder(CounterState, settings=offline_settings())
        builder.add_node("one", increment).add_node("two", increment)
        builder.set_entry_point("one")
        builder.add_edge("one", "two")
        with self.assertRaises(GraphValidationError) as ctx:
            builder.compile()
        self.assertIn("node 'two' has no outgoing edge", ctx.exception.issues[0])

    def test_edge_to_unregistered_node_fails_compile(self) -> None:
        builder = SequentialWorkflowBuilder(CounterState, settings=offline_settings())
        builder.add_node("one", increment)
        builder.set_entry_point("one")
        builder.add_edge("one", "missing")
        with self.assertRaises(GraphValidationError):
            builder.compile()

    def test_second_entry_point_is_rejected(self) -> None:
        builder = SequentialWorkflowBuilder(CounterState, settings=offline_settings())
        builder.set_entry_point("one")
        builder.set_entry_point("one")
        with self.assertRaises(GraphValidationError):
            builder.set_entry_point("two")

    def test_builder_is_frozen_after_compile(self) -> None:
        builder = SequentialWorkflowBuilder.from_steps(
            [("one", increment)], state_schema=CounterState, settings=offline_settings()
        )
        builder.compile()
        with self.assertRaises(WorkflowFrozenError):
            builder.add_node("two", increment)
        with self.assertRaises(WorkflowFrozenError):
            builder.add_edge("one", END)

    def test_non_callable_node_is_rejected(self) -> None:
        builder = SequentialWorkflowBuilder(CounterState, settings=offline_settings())
        with self.assertRaises(TypeError):
            builder.add_node("one", "not a function")

    def test_node_failure_surfaces_with_node_name(self) -> None:
        def explode(state: CounterState) -> dict:
            raise ZeroDivisionError("division by zero")

        workflow = SequentialWorkflowBuilder.from_steps(
            [("one", increment), ("explode", explode)],
            state_schema=CounterState,
            settings=offline_settings(),
        ).compile()
        with self.assertRaises(NodeExecutionError) as ctx:
            workflow.invoke({"count": 0})
        self.assertEqual(ctx.exception.node, "explode")


    def test_undeclared_field_is_rejected(self) -> None:
        def leaky(state: CounterState) -> dict:
            return {"count": 1, "extra": "x"}

        workflow = SequentialWorkflowBuilder.from_steps(
            [("leaky", leaky)], state_schema=CounterState, settings=offline_settings()
        ).compile()
        with self.assertRaises(InvalidNodeOutputError) as ctx:
            workflow.invoke({"count": 0})
        self.assertEqual(ctx.exception.node, "leaky")
        self.assertIn("extra", str(ctx.exception))

    def test_undeclared_field_on_tutorial_state(self) -> None:
        def leaky(state) -> dict:  # noqa: ANN001
            return {"message": "m", "extra": "x"}

        workflow = SequentialWorkflowBuilder.from_steps(
            [("leaky", leaky)], settings=offline_settings()
        ).compile()
        with self.assertRaises(InvalidNodeOutputError):
            workflow.invoke()

    def test_flush_runs_when_a_node_fails(self) -> None:
        def explode(state: CounterState) -> dict:
            raise RuntimeError("boom")

        workflow = SequentialWorkflowBuilder.from_steps(
            [("explode", explode)], state_schema=CounterState, settings=offline_settings()
        ).compile()
        with patch("sequential_workflows.orchestration.langgraph.builder.flush") as flush:
            with self.assertRaises(NodeExecutionError):
                workflow.invoke({"count": 0})
            with self.assertRaises(NodeExecutionError):
                workflow.run({"count": 0})
            with self.assertRaises(NodeExecutionError):
                list(workflow.stream({"count": 0}))
        self.assertEqual(flush.call_count, 3)

    def test_debug_setting_enables_node_io_logging(self) -> None:
        package_logger = logging.getLogger("sequential_workflows")
        self.addCleanup(package_logger.setLevel, package_logger.level)
        package_logger.setLevel(logging.INFO)
        monitoring_logger = logging.getLogger("sequential_workflows.langgraph.monitoring")
        self.assertFalse(monitoring_logger.isEnabledFor(logging.DEBUG))

        with patch.dict(os.environ, {"WORKFLOW_DEBUG": "1"}, clear=True):
            settings = WorkflowSettings.from_env()
        build_tutorial_workflow(settings=settings)

        self.assertTrue(monitoring_logger.isEnabledFor(logging.DEBUG))


if __name__ == "__main__":
    unittest.main()
