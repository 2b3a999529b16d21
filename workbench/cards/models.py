"""Draft models for input and generator cards.

Drafts are frozen pydantic models; a :class:`~workbench.versioning.VersionedEntity`
snapshots them on commit.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from workbench.schema import SchemaField, schema_text

DEFAULT_FETCH_URL = "https://pokeapi.co/api/v2/pokemon/pikachu"
DEFAULT_FETCH_TIMEOUT_MS = 10000


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class InputKind(str, Enum):
    """Input card variants. Fixed when a card is created."""

    STRING = "string"
    FETCH = "fetch"


class FetchRequestConfig(BaseModel):
    """HTTP request that resolves a fetch card into text.

    Attributes:
        method: HTTP method.
        url: Target URL.
        headers: Request headers; blank keys or values are not sent.
        body: Request body, sent only for non-GET methods.
        timeout_ms: Abort the request after this many milliseconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: HttpMethod = HttpMethod.GET
    url: str = DEFAULT_FETCH_URL
    headers: dict[str, str] = Field(
        default_factory=lambda: {"Accept": "application/json"}
    )
    body: str | None = None
    timeout_ms: int | None = Field(default=DEFAULT_FETCH_TIMEOUT_MS, gt=0)


class StringInput(BaseModel):
    """Raw text input."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["string"] = "string"
    label: str
    data: str = ""


class FetchInput(BaseModel):
    """Input resolved from an HTTP response at generation time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["fetch"] = "fetch"
    label: str
    fetch_config: FetchRequestConfig = Field(default_factory=FetchRequestConfig)


InputDraft = Annotated[Union[StringInput, FetchInput], Field(discriminator="kind")]


class GeneratorConfig(BaseModel):
    """Extraction configuration: model, system message and output schema.

    The schema comes either from ``schema_fields`` (builder-edited) or from
    ``raw_schema`` (generated, imported or hand-written text), never both.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    model: str
    system_message: str = ""
    schema_fields: list[SchemaField] = Field(default_factory=list)
    raw_schema: str | None = None

    @model_validator(mode="after")
    def _single_schema_source(self) -> "GeneratorConfig":
        if self.raw_schema and self.schema_fields:
            raise ValueError("schema_fields and raw_schema are mutually exclusive")
        return self

    @property
    def uses_raw_schema(self) -> bool:
        return bool(self.raw_schema)

    @property
    def has_schema(self) -> bool:
        return self.uses_raw_schema or any(f.name.strip() for f in self.schema_fields)

    def schema_text(self) -> str:
        """Wire schema text: raw text verbatim, else the rendered fields."""
        return schema_text(self.schema_fields, self.raw_schema)

    def with_fields(self, fields: list[SchemaField]) -> "GeneratorConfig":
        """Builder edit. A non-empty field list replaces any raw schema."""
        update: dict = {"schema_fields": list(fields)}
        if fields:
            update["raw_schema"] = None
        return self.model_copy(update=update)

    def with_raw_schema(self, text: str) -> "GeneratorConfig":
        """Raw text becomes the schema source and the field list is cleared."""
        return self.model_copy(update={"raw_schema": text, "schema_fields": []})

    def cleared_schema(self) -> "GeneratorConfig":
        return self.model_copy(update={"raw_schema": None, "schema_fields": []})


__all__ = [
    "DEFAULT_FETCH_URL",
    "DEFAULT_FETCH_TIMEOUT_MS",
    "HttpMethod",
    "InputKind",
    "FetchRequestConfig",
    "StringInput",
    "FetchInput",
    "InputDraft",
    "GeneratorConfig",
]
