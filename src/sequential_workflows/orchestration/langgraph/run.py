from __future__ import annotations

"""CLI entrypoint for running a sequential workflow.

    python -m sequential_workflows.orchestration.langgraph.run --question "..."
"""

import argparse
import json
import logging
import sys
from typing import Any

from sequential_workflows.config import WorkflowSettings
from sequential_workflows.core.provider import ChatProvider, build_provider
from sequential_workflows.errors import WorkflowError
from sequential_workflows.logger import set_level
from sequential_workflows.orchestration.langgraph.builder import CompiledWorkflow
from sequential_workflows.orchestration.langgraph.monitoring import ProgressMonitor
from sequential_workflows.orchestration.langgraph.state_schema import new_workflow_state
from sequential_workflows.orchestration.langgraph.tutorial import (
    build_tutorial_workflow,
    build_workflow_from_spec,
)
from sequential_workflows.schemas import WorkflowSpec

STATE_FIELDS = ("message", "question", "answer", "summary")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a sequential LangGraph workflow.")
    parser.add_argument("--message", default="", help="Seed value for the message field")
    parser.add_argument("--question", default="", help="Seed value for the question field")
    parser.add_argument("--run-id", default=None, help="Optional run id (default: random uuid)")
    parser.add_argument(
        "--spec", default="", help="JSON workflow definition (object or list of step names)"
    )
    parser.add_argument(
        "--provider",
        default=None,
        help="Chat provider for the answer step: ollama, groq or openai (default: offline)",
    )
    parser.add_argument("--progress", action="store_true", help="Print STEP i/N as nodes finish")
    parser.add_argument("--debug", action="store_true", help="Log node inputs and outputs")
    parser.add_argument("--json", action="store_true", help="Print the final state as JSON")
    return parser


def _print_trace(state: dict[str, Any]) -> None:
    trace = state.get("trace", [])
    if not trace:
        print("No trace recorded for this run.")
        return
    headers = ["step", "node", "updated_fields", "duration_ms"]
    rows = [
        [
            str(item.get("step", "")),
            str(item.get("node", "")),
            ",".join(item.get("updated_fields", [])),
            f"{float(item.get('duration_ms', 0.0)):.3f}",
        ]
        for item in trace
    ]
    widths = [len(header) for header in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def render_line(parts: list[str]) -> str:
        return " | ".join(part.ljust(widths[idx]) for idx, part in enumerate(parts))

    print(render_line(headers))
    print("-+-".join("-" * width for width in widths))
    for row in rows:
        print(render_line(row))


def _print_progress(completed: int, total: int, node: str) -> None:
    print(f"[{completed}/{total}] {node}")


def _build_workflow(
    args: argparse.Namespace, settings: WorkflowSettings, debug: bool
) -> CompiledWorkflow:
    provider: ChatProvider | None = None
    if args.provider:
        provider = build_provider(args.provider)
    if args.spec:
        spec = WorkflowSpec.from_json_file(args.spec)
        return build_workflow_from_spec(spec, provider, settings=settings, debug=debug)
    return build_tutorial_workflow(provider, settings=settings, debug=debug)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = WorkflowSettings.from_env()
    debug = args.debug or settings.debug
    if debug:
        set_level(logging.DEBUG)

    try:
        workflow = _build_workflow(args, settings, debug)
        initial = new_workflow_state(args.message, args.question, run_id=args.run_id)
        if args.progress:
            monitor = ProgressMonitor(len(workflow.node_order), callback=_print_progress)
            final_state = workflow.run(initial, monitor=monitor)
        else:
            final_state = workflow.invoke(initial)
    except (WorkflowError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(final_state, indent=2, sort_keys=True, default=str))
        return 0

    print("RUN ID:", final_state.get("run_id"))
    print("NODES:", " -> ".join(workflow.node_order))
    print("TRACE:")
    _print_trace(final_state)
    print("FINAL STATE:")
    for key in STATE_FIELDS:
        print(f"  {key}: {final_state.get(key, '')}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
