"""Shared test fixtures for the sequential-workflows test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from sequential_workflows.config import WorkflowSettings


class ScriptedProvider:
    """Test provider that returns pre-scripted answers and records prompts."""

    def __init__(self, responses: list[str]) -> None:
        self._responses = list(responses)
        self._index = 0
        self.calls: list[list[dict]] = []

    def generate(self, messages):  # noqa: ANN001
        self.calls.append(list(messages))
        if self._index < len(self._responses):
            value = self._responses[self._index]
            self._index += 1
            return value
        return self._responses[-1]


@pytest.fixture
def settings() -> WorkflowSettings:
    """Settings independent of the developer's environment."""
    return WorkflowSettings(provider=None, max_steps=25, debug=False, trace=True)


@pytest.fixture
def scripted_provider() -> ScriptedProvider:
    return ScriptedProvider(["Steps run one after another."])


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps(["greet", "summarize"]), encoding="utf-8")
    return path
