"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- A scripted LLM backend for testing without API keys
- Workspace, extractor and fetch fixtures shared across modules
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from typing import Any

import pytest
from dotenv import load_dotenv

from workbench.llm.backend.base import (
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    json_config_from,
    parse_json_object,
)

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Scripted LLM Backend
# =============================================================================


class ScriptedLLMBackend(LLMBackend):
    """Deterministic LLM backend for tests.

    Replies are consumed in order; an exception in the queue is raised
    instead of returned. When the queue is empty ``default_reply`` is used.
    Every call is recorded in ``calls`` as (prompt, system_prompt, config).
    """

    DEFAULT_REPLY = (
        '{"summary": "Vercel is hosting Next.js Conf on October 24.", '
        '"actionItems": [{"task": "Register for Next.js Conf", "assignee": "Vercel"}]}'
    )

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        *,
        model: str = "mock-model-v1",
        default_reply: str = DEFAULT_REPLY,
        usage: dict[str, int] | None = None,
    ):
        self.replies = list(replies or [])
        self.default_reply = default_reply
        self.usage = usage or {
            "prompt_tokens": 120,
            "completion_tokens": 40,
            "total_tokens": 160,
        }
        self.calls: list[tuple[str, str | None, GenerationConfig | None]] = []
        self._model = model
        self._lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def provider(self) -> str:
        return "mock"

    @property
    def supports_json_mode(self) -> bool:
        return True

    @property
    def context_window(self) -> int:
        return 128000

    def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        with self._lock:
            self.calls.append((prompt, system_prompt, config))
            reply = self.replies.pop(0) if self.replies else self.default_reply
        if isinstance(reply, Exception):
            raise reply
        return GenerationResult(
            content=reply,
            finish_reason="stop",
            usage=dict(self.usage),
            model=self._model,
        )

    def generate_json_with_result(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> tuple[dict[str, Any], GenerationResult]:
        result = self.generate(
            prompt, system_prompt=system_prompt, config=json_config_from(config)
        )
        return parse_json_object(result.content), result


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Skip integration tests when no OpenAI API key is configured."""
    from workbench.config import get_available_llm_providers

    if "openai" in get_available_llm_providers():
        return

    skip_integration = pytest.mark.skip(reason="OPENAI_API_KEY not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_llm_backend() -> ScriptedLLMBackend:
    """Scripted backend with no queued replies."""
    return ScriptedLLMBackend()


@pytest.fixture
def backend_factory(mock_llm_backend: ScriptedLLMBackend):
    """Backend factory that always returns ``mock_llm_backend``."""
    return lambda model_id: mock_llm_backend


@pytest.fixture
def extractor(backend_factory):
    """StructuredExtractor wired to the scripted backend."""
    from workbench.llm.extractor import StructuredExtractor

    return StructuredExtractor(backend_factory)


@pytest.fixture
def workspace():
    """Fresh workspace seeded with the sample input and default generator."""
    from workbench.workspace import Workspace

    return Workspace()


@pytest.fixture
def fake_fetch_client():
    """Fetch client stand-in returning a canned body and recording configs."""
    from unittest.mock import MagicMock

    client = MagicMock()
    client.request.return_value = '{"name": "pikachu", "id": 25}'
    return client


@pytest.fixture
def orchestrator(workspace, extractor, fake_fetch_client) -> Generator[Any, None, None]:
    """GenerationOrchestrator over the fixture workspace, shut down afterwards."""
    from workbench.generation import GenerationOrchestrator

    orchestrator = GenerationOrchestrator(
        workspace, extractor, fake_fetch_client, max_workers=2
    )
    yield orchestrator
    orchestrator.shutdown()


@pytest.fixture
def clean_llm_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider API keys and model overrides from the environment."""
    for key in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "WORKBENCH_DEFAULT_MODEL",
        "WORKBENCH_ASSIST_MODEL",
    ):
        monkeypatch.delenv(key, raising=False)
