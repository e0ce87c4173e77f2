from __future__ import annotations

"""Step functions for the greeting/question/answer tutorial pipeline.

Each function reads the shared state and returns only the fields it adds or
modifies.
"""

from collections.abc import Callable, Mapping
from typing import Any

from sequential_workflows.core.provider import ChatMessage, ChatProvider
from sequential_workflows.errors import ProviderError
from sequential_workflows.orchestration.langgraph.state_schema import WorkflowState

DEFAULT_MESSAGE = "Hello from the sequential workflow!"
DEFAULT_QUESTION = "What does a sequential workflow do?"
CANNED_ANSWER = (
    "It runs each step one after another, passing the shared state from "
    "one step to the next until the end marker is reached."
)
ANSWER_SYSTEM_PROMPT = (
    "You are the answer step of a small sequential workflow. "
    "Reply to the user's question in two sentences or fewer."
)

NodeFn = Callable[[WorkflowState], Mapping[str, Any] | None]


def greet(state: WorkflowState) -> dict[str, Any]:
    message = state.get("message", "").strip()
    return {"message": message or DEFAULT_MESSAGE}


def ask_question(state: WorkflowState) -> dict[str, Any]:
    question = state.get("question", "").strip()
    return {"question": question or DEFAULT_QUESTION}


def answer_question(state: WorkflowState) -> dict[str, Any]:
    """Offline answer used when no chat provider is configured."""
    if state.get("answer"):
        return {}
    return {"answer": CANNED_ANSWER}


def make_answer_node(provider: ChatProvider | None) -> NodeFn:
    """Return an answer step that asks `provider`, or the offline one."""
    if provider is None:
        return answer_question

    def answer_with_provider(state: WorkflowState) -> dict[str, Any]:
        question = state.get("question", "").strip()
        if not question:
            raise ProviderError("answer step needs a question in state")
        messages: list[ChatMessage] = [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            {"role": "user", "content": question},
        ]
        return {"answer": provider.generate(messages).strip()}

    return answer_with_provider


def summarize(state: WorkflowState) -> dict[str, Any]:
    parts = [state.get("message", "")]
    if state.get("question"):
        parts.append(f"Q: {state['question']}")
    if state.get("answer"):
        parts.append(f"A: {state['answer']}")
    return {"summary": " | ".join(part for part in parts if part)}


TUTORIAL_STEPS = ("greet", "ask_question", "answer_question", "summarize")


def build_node_registry(provider: ChatProvider | None = None) -> dict[str, NodeFn]:
    """Name -> step function lookup for declarative workflow definitions."""
    return {
        "greet": greet,
        "ask_question": ask_question,
        "answer_question": make_answer_node(provider),
        "summarize": summarize,
    }
