from __future__ import annotations

"""Chat-model providers for the workflow's answer step.

Provider selection comes from `.env` / the environment, and every provider
exposes the same `generate(messages)` contract regardless of vendor.
"""

import os
from collections.abc import Sequence
from typing import Literal, Protocol, TypedDict

from groq import Groq
from openai import OpenAI

# Importing config loads the repo-level .env before any env lookups below.
from sequential_workflows.config import WorkflowSettings
from sequential_workflows.errors import ProviderError


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


def _resolve_ollama_base_url(base_url: str | None = None) -> str:
    """Resolve Ollama OpenAI-compatible endpoint from explicit args/env."""
    if base_url:
        return base_url
    explicit = os.getenv("OLLAMA_BASE_URL")
    if explicit:
        return explicit

    # Users of the Ollama CLI usually only have OLLAMA_HOST set.
    host = (os.getenv("OLLAMA_HOST") or "").strip().rstrip("/")
    if host:
        return host if host.endswith("/v1") else f"{host}/v1"
    return "http://localhost:11434/v1"


def _first_choice(response) -> str:  # noqa: ANN001
    content = response.choices[0].message.content
    if content is None:
        raise ProviderError("Model returned empty content.")
    return content


class ChatProvider(Protocol):
    """Provider contract used by the answer node."""

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        ...


class OpenAIChatProvider:
    """OpenAI chat-completions provider."""

    def __init__(self, model: str | None = None) -> None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not found in environment.")
        self.client = OpenAI(api_key=api_key)
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4.1-mini")

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
            )
        except Exception as e:
            raise ProviderError(str(e)) from e
        return _first_choice(response)


class GroqChatProvider:
    """Groq provider path for users who prefer or already use Groq."""

    def __init__(self, model: str | None = None) -> None:
        api_key = os.getenv("GROQ_API_KEY")
        if not api_key:
            raise ValueError("GROQ_API_KEY not found in environment.")
        self.client = Groq(api_key=api_key)
        self.model = model or os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
            )
        except Exception as e:
            raise ProviderError(str(e)) from e
        return _first_choice(response)


class OllamaChatProvider:
    """Local Ollama provider through its OpenAI-compatible endpoint."""

    def __init__(self, model: str | None = None, base_url: str | None = None) -> None:
        self.client = OpenAI(api_key="ollama", base_url=_resolve_ollama_base_url(base_url))
        self.model = model or os.getenv("OLLAMA_MODEL", "llama3.1:8b")

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
            )
        except Exception as e:
            raise ProviderError(str(e)) from e
        return _first_choice(response)


_PROVIDERS = {
    "openai": OpenAIChatProvider,
    "groq": GroqChatProvider,
    "ollama": OllamaChatProvider,
}


def build_provider(preferred: str | None = None) -> ChatProvider:
    """Build provider from explicit argument or `WORKFLOW_PROVIDER` env setting."""
    name = preferred or WorkflowSettings.from_env().provider
    if not name:
        raise ValueError(
            "No provider is configured. Set WORKFLOW_PROVIDER to one of: ollama, groq, openai."
        )
    provider_cls = _PROVIDERS.get(name.lower().strip())
    if provider_cls is None:
        raise ValueError(
            f"Unsupported provider '{name}'. "
            "Set WORKFLOW_PROVIDER to one of: ollama, groq, openai."
        )
    return provider_cls()
