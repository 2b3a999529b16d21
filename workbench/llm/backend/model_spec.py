"""Model specification registry for LLM backends.

Each entry records the provider, context window, output limit, capabilities
and per-million-token pricing of a supported model. The registry doubles as
the pricing oracle used for cost estimates.
"""

from dataclasses import dataclass, field
from enum import Enum


class LLMCapability(Enum):
    """Capabilities that an LLM model may support."""

    JSON_MODE = "json_mode"  # Native JSON object output
    STRUCTURED_OUTPUT = "structured_output"  # Native JSON schema enforcement
    SYSTEM_PROMPT = "system_prompt"  # Dedicated system role
    SAMPLING = "sampling"  # Accepts temperature/top_p
    SEED = "seed"  # Reproducible generation with seed
    REASONING = "reasoning"  # Spends hidden reasoning tokens


class LLMProviderType(Enum):
    """Available LLM backend providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class LLMSpec:
    """Specification for an LLM model.

    Attributes:
        name: Model identifier (e.g., 'gpt-4.1-nano', 'o3-mini').
        provider: Backend provider type.
        context_window: Maximum context size in tokens.
        max_output_tokens: Maximum generation tokens.
        capabilities: Set of supported capabilities.
        description: Human-readable description.
        api_key_env_var: Environment variable name for API key.
        cost_per_1m_input: Cost per 1M input tokens (USD).
        cost_per_1m_output: Cost per 1M output tokens (USD).
        knowledge_cutoff: Training data cutoff (ISO date).
    """

    name: str
    provider: LLMProviderType
    context_window: int
    max_output_tokens: int
    capabilities: frozenset[LLMCapability] = field(default_factory=frozenset)
    description: str = ""
    api_key_env_var: str = ""
    cost_per_1m_input: float | None = None
    cost_per_1m_output: float | None = None
    knowledge_cutoff: str | None = None

    def supports(self, capability: LLMCapability) -> bool:
        """Check if model supports a capability."""
        return capability in self.capabilities

    @property
    def is_priced(self) -> bool:
        return self.cost_per_1m_input is not None and self.cost_per_1m_output is not None


# Common capability sets
_GPT = frozenset(
    {
        LLMCapability.JSON_MODE,
        LLMCapability.STRUCTURED_OUTPUT,
        LLMCapability.SYSTEM_PROMPT,
        LLMCapability.SAMPLING,
        LLMCapability.SEED,
    }
)

_GPT_LEGACY = frozenset(
    {
        LLMCapability.JSON_MODE,
        LLMCapability.SYSTEM_PROMPT,
        LLMCapability.SAMPLING,
        LLMCapability.SEED,
    }
)

_O_SERIES = frozenset(
    {
        LLMCapability.JSON_MODE,
        LLMCapability.STRUCTURED_OUTPUT,
        LLMCapability.SYSTEM_PROMPT,
        LLMCapability.REASONING,
    }
)

_CLAUDE = frozenset(
    {
        LLMCapability.SYSTEM_PROMPT,
        LLMCapability.SAMPLING,
    }
)


def _openai(
    name: str,
    cost_in: float,
    cost_out: float,
    context_window: int,
    max_output_tokens: int,
    capabilities: frozenset[LLMCapability] = _GPT,
    description: str = "",
    knowledge_cutoff: str | None = None,
) -> LLMSpec:
    return LLMSpec(
        name=name,
        provider=LLMProviderType.OPENAI,
        context_window=context_window,
        max_output_tokens=max_output_tokens,
        capabilities=capabilities,
        description=description,
        api_key_env_var="OPENAI_API_KEY",
        cost_per_1m_input=cost_in,
        cost_per_1m_output=cost_out,
        knowledge_cutoff=knowledge_cutoff,
    )


class LLMModel(Enum):
    """Registry of available LLM models."""

    # === OpenAI GPT-4.1 ===
    GPT_4_1 = _openai(
        "gpt-4.1", 2.0, 8.0, 1047576, 32768,
        description="OpenAI flagship for complex extraction",
        knowledge_cutoff="2024-06-01",
    )
    GPT_4_1_MINI = _openai(
        "gpt-4.1-mini", 0.4, 1.6, 1047576, 32768,
        description="OpenAI balanced speed and quality",
        knowledge_cutoff="2024-06-01",
    )
    GPT_4_1_NANO = _openai(
        "gpt-4.1-nano", 0.1, 0.4, 1047576, 32768,
        description="OpenAI fastest and cheapest",
        knowledge_cutoff="2024-06-01",
    )

    # === OpenAI GPT-4.5 ===
    GPT_4_5_PREVIEW = _openai(
        "gpt-4.5-preview", 75.0, 150.0, 128000, 16384,
        description="OpenAI research preview",
        knowledge_cutoff="2023-10-01",
    )

    # === OpenAI reasoning ===
    O3 = _openai(
        "o3", 2.0, 8.0, 200000, 100000, _O_SERIES,
        description="OpenAI reasoning model",
        knowledge_cutoff="2024-06-01",
    )
    O3_PRO = _openai(
        "o3-pro", 20.0, 80.0, 200000, 100000, _O_SERIES,
        description="OpenAI reasoning with more compute",
        knowledge_cutoff="2024-06-01",
    )
    O3_MINI = _openai(
        "o3-mini", 1.1, 4.4, 200000, 100000, _O_SERIES,
        description="OpenAI small reasoning model",
        knowledge_cutoff="2023-10-01",
    )
    O4_MINI = _openai(
        "o4-mini", 0.6, 2.4, 200000, 100000, _O_SERIES,
        description="OpenAI fast reasoning model",
        knowledge_cutoff="2024-06-01",
    )
    O1 = _openai(
        "o1", 15.0, 60.0, 200000, 100000, _O_SERIES,
        description="OpenAI previous reasoning model",
        knowledge_cutoff="2023-10-01",
    )
    O1_MINI = _openai(
        "o1-mini", 1.1, 4.4, 128000, 65536, _O_SERIES,
        description="OpenAI previous small reasoning model",
        knowledge_cutoff="2023-10-01",
    )

    # === OpenAI GPT-4o ===
    GPT_4O = _openai(
        "gpt-4o", 2.5, 10.0, 128000, 16384,
        description="OpenAI omni model",
        knowledge_cutoff="2023-10-01",
    )
    GPT_4O_2024_11_20 = _openai(
        "gpt-4o-2024-11-20", 2.5, 10.0, 128000, 16384,
        description="OpenAI omni snapshot (November 2024)",
        knowledge_cutoff="2023-10-01",
    )
    GPT_4O_2024_08_06 = _openai(
        "gpt-4o-2024-08-06", 2.5, 10.0, 128000, 16384,
        description="OpenAI omni snapshot (August 2024)",
        knowledge_cutoff="2023-10-01",
    )
    GPT_4O_2024_05_13 = _openai(
        "gpt-4o-2024-05-13", 5.0, 15.0, 128000, 4096, _GPT_LEGACY,
        description="OpenAI omni snapshot (May 2024)",
        knowledge_cutoff="2023-10-01",
    )
    O4_MINI_2025_04_16 = _openai(
        "o4-mini-2025-04-16", 0.15, 0.6, 128000, 16384, _O_SERIES,
        description="OpenAI fast reasoning snapshot (April 2025)",
        knowledge_cutoff="2024-06-01",
    )
    CHATGPT_4O_LATEST = _openai(
        "chatgpt-4o-latest", 5.0, 15.0, 128000, 16384, _GPT_LEGACY,
        description="Model currently used in ChatGPT",
        knowledge_cutoff="2023-10-01",
    )

    # === Anthropic Claude ===
    CLAUDE_SONNET_4_5 = LLMSpec(
        name="claude-sonnet-4-5",
        provider=LLMProviderType.ANTHROPIC,
        context_window=200000,
        max_output_tokens=64000,
        capabilities=_CLAUDE,
        description="Anthropic balanced model",
        api_key_env_var="ANTHROPIC_API_KEY",
        cost_per_1m_input=3.0,
        cost_per_1m_output=15.0,
    )
    CLAUDE_HAIKU_4_5 = LLMSpec(
        name="claude-haiku-4-5",
        provider=LLMProviderType.ANTHROPIC,
        context_window=200000,
        max_output_tokens=64000,
        capabilities=_CLAUDE,
        description="Anthropic fastest model",
        api_key_env_var="ANTHROPIC_API_KEY",
        cost_per_1m_input=1.0,
        cost_per_1m_output=5.0,
    )
    CLAUDE_OPUS_4_5 = LLMSpec(
        name="claude-opus-4-5",
        provider=LLMProviderType.ANTHROPIC,
        context_window=200000,
        max_output_tokens=64000,
        capabilities=_CLAUDE,
        description="Anthropic most intelligent model",
        api_key_env_var="ANTHROPIC_API_KEY",
        cost_per_1m_input=5.0,
        cost_per_1m_output=25.0,
    )

    @property
    def spec(self) -> LLMSpec:
        """Get the LLMSpec for this model."""
        return self.value

    @classmethod
    def by_name(cls, name: str) -> "LLMModel | None":
        """Look up model by name string."""
        for model in cls:
            if model.spec.name == name:
                return model
        return None

    @classmethod
    def list_by_provider(cls, provider: LLMProviderType) -> list["LLMModel"]:
        """Get all models for a specific provider."""
        return [m for m in cls if m.spec.provider == provider]


# Default models for each provider
DEFAULT_OPENAI_MODEL = LLMModel.GPT_4_1_NANO
DEFAULT_ANTHROPIC_MODEL = LLMModel.CLAUDE_SONNET_4_5

# Overall default
DEFAULT_MODEL = DEFAULT_OPENAI_MODEL


def get_llm_spec(model: str | LLMModel | LLMSpec) -> LLMSpec:
    """Resolve a model reference to its LLMSpec.

    Args:
        model: Can be a model name string, LLMModel enum, or LLMSpec.

    Raises:
        ValueError: If model name is not found.
    """
    if isinstance(model, LLMSpec):
        return model
    if isinstance(model, LLMModel):
        return model.spec
    found = LLMModel.by_name(model)
    if found:
        return found.spec
    raise ValueError(f"Unknown model: {model}")


def find_llm_spec(name: str) -> LLMSpec | None:
    """Like :func:`get_llm_spec` for names, but None when unknown."""
    found = LLMModel.by_name(name)
    return found.spec if found else None


__all__ = [
    "LLMCapability",
    "LLMProviderType",
    "LLMSpec",
    "LLMModel",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    "DEFAULT_MODEL",
    "get_llm_spec",
    "find_llm_spec",
]
