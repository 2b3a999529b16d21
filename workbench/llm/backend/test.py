"""Tests for LLM backend implementations."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMError,
    RateLimitError,
    extract_json_text,
    json_instructions,
    parse_json_object,
)
from .factory import create_llm_backend
from .model_spec import (
    DEFAULT_MODEL,
    LLMCapability,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    find_llm_spec,
    get_llm_spec,
)


def _openai_response(content: str, prompt_tokens: int = 12, completion_tokens: int = 8):
    return SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(content=content), finish_reason="stop"
            )
        ],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
        model="gpt-4.1-nano",
    )


def _anthropic_response(text: str):
    return SimpleNamespace(
        content=[SimpleNamespace(text=text)],
        stop_reason="end_turn",
        usage=SimpleNamespace(input_tokens=20, output_tokens=5),
        model="claude-haiku-4-5",
    )


class TestLLMSpec:
    """Tests for LLMSpec dataclass."""

    @pytest.mark.unit
    def test_spec_capabilities(self):
        spec = LLMSpec(
            name="test",
            provider=LLMProviderType.OPENAI,
            context_window=1000,
            max_output_tokens=100,
            capabilities=frozenset({LLMCapability.JSON_MODE}),
        )
        assert spec.supports(LLMCapability.JSON_MODE)
        assert not spec.supports(LLMCapability.STRUCTURED_OUTPUT)
        assert not spec.is_priced


class TestLLMModel:
    """Tests for LLMModel enum registry."""

    @pytest.mark.unit
    def test_pricing_table(self):
        spec = LLMModel.GPT_4_1_NANO.spec
        assert spec.cost_per_1m_input == 0.1
        assert spec.cost_per_1m_output == 0.4
        assert spec.context_window == 1047576
        assert spec.max_output_tokens == 32768

    @pytest.mark.unit
    def test_every_model_is_priced(self):
        for model in LLMModel:
            assert model.spec.is_priced, model

    @pytest.mark.unit
    def test_names_are_unique(self):
        names = [m.spec.name for m in LLMModel]
        assert len(names) == len(set(names))

    @pytest.mark.unit
    def test_reasoning_models_skip_sampling(self):
        spec = LLMModel.O3_MINI.spec
        assert spec.supports(LLMCapability.REASONING)
        assert not spec.supports(LLMCapability.SAMPLING)

    @pytest.mark.unit
    def test_by_name_lookup(self):
        assert LLMModel.by_name("o4-mini") == LLMModel.O4_MINI
        assert LLMModel.by_name("nonexistent") is None

    @pytest.mark.unit
    def test_list_by_provider(self):
        anthropic = LLMModel.list_by_provider(LLMProviderType.ANTHROPIC)
        assert LLMModel.CLAUDE_SONNET_4_5 in anthropic
        assert LLMModel.GPT_4O not in anthropic

    @pytest.mark.unit
    def test_default_model(self):
        assert DEFAULT_MODEL.spec.name == "gpt-4.1-nano"


class TestGetLLMSpec:
    """Tests for get_llm_spec function."""

    @pytest.mark.unit
    def test_resolves_all_forms(self):
        spec = get_llm_spec("gpt-4o")
        assert get_llm_spec(LLMModel.GPT_4O) is spec
        assert get_llm_spec(spec) is spec

    @pytest.mark.unit
    def test_unknown_model_raises(self):
        with pytest.raises(ValueError, match="Unknown model"):
            get_llm_spec("unknown-model-xyz")

    @pytest.mark.unit
    def test_find_returns_none(self):
        assert find_llm_spec("unknown-model-xyz") is None
        assert find_llm_spec("o1").context_window == 200000


class TestJsonHelpers:
    """Tests for shared JSON helpers."""

    @pytest.mark.unit
    def test_extract_from_fence(self):
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert extract_json_text('Sure:\n```\n{"a": 1}\n```\nDone') == '{"a": 1}'

    @pytest.mark.unit
    def test_parse_object(self):
        assert parse_json_object('{"a": [1, 2]}') == {"a": [1, 2]}

    @pytest.mark.unit
    def test_parse_rejects_non_object(self):
        with pytest.raises(InvalidResponseError):
            parse_json_object("[1, 2]")
        with pytest.raises(InvalidResponseError):
            parse_json_object("not json")

    @pytest.mark.unit
    def test_instructions_embed_schema(self):
        text = json_instructions({"type": "object"})
        assert "valid JSON only" in text
        assert '"type": "object"' in text


class TestOpenAIBackend:
    """Tests for OpenAI backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        from .openai import OpenAIBackend

        with pytest.raises(AuthenticationError, match="API key required"):
            OpenAIBackend()

    @pytest.mark.unit
    def test_creates_with_api_key(self):
        from .openai import OpenAIBackend

        backend = OpenAIBackend(api_key="test-key-12345")
        assert backend.provider == "openai"
        assert backend.model_name == "gpt-4.1-nano"
        assert backend.supports_json_mode is True
        assert backend.supports_json_schema is True
        assert backend.name == "openai:gpt-4.1-nano"

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _openai_response('{"a": "x"}')
        return client

    def _backend(self, client, model="gpt-4.1-nano"):
        from .openai import OpenAIBackend

        backend = OpenAIBackend(api_key="test-key", model=model)
        backend._client = client
        return backend

    @pytest.mark.unit
    def test_json_schema_response_format(self, client):
        backend = self._backend(client)
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        data, result = backend.generate_json_with_result(
            "text", system_prompt="sys", config=GenerationConfig(json_schema=schema)
        )
        assert data == {"a": "x"}
        assert result.usage["total_tokens"] == 20

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"]["type"] == "json_schema"
        assert kwargs["response_format"]["json_schema"]["schema"] == schema
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["messages"][1]["content"] == "text"

    @pytest.mark.unit
    def test_legacy_model_uses_json_object_and_prompt_schema(self, client):
        backend = self._backend(client, model="chatgpt-4o-latest")
        backend.generate_json("text", config=GenerationConfig(json_schema={"type": "object"}))
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "JSON schema" in kwargs["messages"][-1]["content"]

    @pytest.mark.unit
    def test_reasoning_model_omits_sampling(self, client):
        backend = self._backend(client, model="o3-mini")
        backend.generate("text", config=GenerationConfig(json_mode=False))
        kwargs = client.chat.completions.create.call_args.kwargs
        assert "temperature" not in kwargs
        assert "top_p" not in kwargs
        assert "response_format" not in kwargs

    @pytest.mark.unit
    def test_max_tokens_capped_by_model(self, client):
        backend = self._backend(client, model="gpt-4o-2024-05-13")
        backend.generate("text", config=GenerationConfig(max_tokens=10000))
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 4096

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "message,error_type",
        [
            ("Rate limit reached for requests", RateLimitError),
            ("This model's maximum context length is 128000", ContextLengthError),
            ("Incorrect API key provided: invalid api key", AuthenticationError),
            ("Connection reset", LLMError),
        ],
    )
    def test_error_mapping(self, client, message, error_type):
        client.chat.completions.create.side_effect = RuntimeError(message)
        backend = self._backend(client)
        with pytest.raises(error_type):
            backend.generate("text")


class TestAnthropicBackend:
    """Tests for Anthropic backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        from .anthropic import AnthropicBackend

        with pytest.raises(AuthenticationError, match="API key required"):
            AnthropicBackend()

    @pytest.mark.unit
    def test_creates_with_api_key(self):
        from .anthropic import AnthropicBackend

        backend = AnthropicBackend(api_key="test-key-12345")
        assert backend.provider == "anthropic"
        assert backend.model_name == "claude-sonnet-4-5"
        assert backend.supports_json_mode is False
        assert backend.supports_json_schema is False

    @pytest.mark.unit
    def test_json_from_fenced_reply(self):
        from .anthropic import AnthropicBackend

        client = MagicMock()
        client.messages.create.return_value = _anthropic_response(
            'Here you go:\n```json\n{"a": 1}\n```'
        )
        backend = AnthropicBackend(api_key="test-key", model="claude-haiku-4-5")
        backend._client = client

        data, result = backend.generate_json_with_result(
            "text", system_prompt="sys", config=GenerationConfig(json_schema={"type": "object"})
        )
        assert data == {"a": 1}
        assert result.usage == {"prompt_tokens": 20, "completion_tokens": 5, "total_tokens": 25}
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert "JSON schema" in kwargs["messages"][0]["content"]


class TestGenerationResult:
    """Tests for GenerationResult dataclass."""

    @pytest.mark.unit
    def test_result_creation(self):
        result = GenerationResult(
            content='{"a": 1}',
            finish_reason="stop",
            usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
            model="gpt-4.1-mini",
        )
        assert result.usage["total_tokens"] == 30
        assert result.raw_response is None


class TestCreateLLMBackend:
    """Tests for create_llm_backend factory."""

    @pytest.mark.unit
    def test_creates_openai_backend(self):
        backend = create_llm_backend(LLMModel.GPT_4_1_MINI, api_key="test-key")
        assert backend.provider == "openai"

    @pytest.mark.unit
    def test_creates_anthropic_backend(self):
        backend = create_llm_backend(LLMModel.CLAUDE_SONNET_4_5, api_key="test-key")
        assert backend.provider == "anthropic"

    @pytest.mark.unit
    def test_creates_from_string_name(self):
        backend = create_llm_backend("o3", api_key="test-key")
        assert backend.model_name == "o3"

    @pytest.mark.unit
    def test_unknown_model(self):
        with pytest.raises(ValueError):
            create_llm_backend("made-up", api_key="test-key")

    @pytest.mark.unit
    def test_base_url_only_for_openai(self):
        backend = create_llm_backend(
            "gpt-4.1-nano", api_key="test-key", base_url="http://localhost:9000/v1"
        )
        assert backend.provider == "openai"
        with pytest.raises(ValueError, match="base_url"):
            create_llm_backend(
                "claude-haiku-4-5", api_key="test-key", base_url="http://localhost:9000"
            )

    @pytest.mark.unit
    def test_missing_key(self, clean_llm_env):
        with pytest.raises(AuthenticationError):
            create_llm_backend("claude-haiku-4-5")
