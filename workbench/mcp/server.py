"""FastMCP server instance for the extraction workbench.

Exposes the workbench to MCP clients: author generator cards, feed them
input, run structured extractions and inspect the resulting records. All
tools share one process-level workspace.

Usage:
    # STDIO mode (for desktop clients)
    python -m workbench.mcp.server

    # HTTP mode
    python -m workbench.mcp.server --transport http --port 18080

    # Via CLI
    python . mcp run
    python . mcp serve --port 18080
"""

import argparse
import logging
import sys
from typing import Any

from fastmcp import FastMCP

from workbench.config import get_available_llm_providers
from workbench.core.log import setup_logging
from workbench.schema import EMPTY_SCHEMA, default_schema_fields, render_schema

from . import tools
from .lib import (
    HTTP_PATH,
    SERVER_NAME,
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .session import get_session

logger = logging.getLogger(__name__)


# =============================================================================
# Server Instructions (LLM Guidance)
# =============================================================================

SERVER_INSTRUCTIONS = """\
## Extraction Workbench

Turns unstructured text into JSON objects that follow a schema you design.

### Quick Start
1. `list_cards()` → see the active input and the generator cards
2. `add_input_card(data)` → paste the text to extract from
3. `set_generator_schema(generator_id, schema=...)` → define the output
4. `generate(generator_id)` → run the model and get a record

### Concepts
- **Input card**: text, or an HTTP request resolved when a generation runs
- **Generator card**: model, system message and output schema
- **Versions**: cards are versioned; generations commit unsaved edits and
  record the exact versions they used
- **Record**: one generation attempt with its result or error, token usage
  and cost

### Schema text
`z.object({ name: z.string().describe("..."), tags: z.array(z.string()) })`
Supported: string, number, boolean, enum, array, object and `.describe()`.
`.max()` constraints are rejected. Use `validate_schema` before generating.

### Cost
`estimate(generator_id)` shows tokens and cost before you run. Inputs larger
than the model context are refused with cheaper alternatives suggested.
"""

# =============================================================================
# Server Instance
# =============================================================================

mcp = FastMCP(
    name=SERVER_NAME,
    instructions=SERVER_INSTRUCTIONS,
)


# =============================================================================
# Schema Tools
# =============================================================================


@mcp.tool
def render_schema_text(fields: list[dict[str, Any]]) -> dict[str, Any]:
    """Render schema fields to schema text.

    Args:
        fields: Field dicts such as {"name": "summary", "type": "string",
            "description": "..."}. Types: string, number, boolean, enum
            (with "values"), array (with "element_type" and, for objects,
            "element_fields"), object (with "fields").

    Returns:
        Dictionary with the schema text and its JSON schema.
    """
    return tools.render_schema_text(fields)


@mcp.tool
def parse_schema_text(schema: str) -> dict[str, Any]:
    """Parse schema text back into field dicts. Never fails."""
    return tools.parse_schema_text(schema)


@mcp.tool
def validate_schema(schema: str) -> dict[str, Any]:
    """Check schema text before using it in a generator.

    Returns:
        Dictionary with valid, error and error_type.
    """
    return tools.validate_schema(schema)


# =============================================================================
# Card Tools
# =============================================================================


@mcp.tool
def list_cards() -> dict[str, Any]:
    """List input and generator cards, newest first, with the active input."""
    return tools.list_cards()


@mcp.tool
def add_input_card(data: str, label: str | None = None) -> dict[str, Any]:
    """Add a text input card and make it the active input."""
    return tools.add_input_card(data, label)


@mcp.tool
def add_fetch_card(
    url: str,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout_ms: int | None = None,
    label: str | None = None,
) -> dict[str, Any]:
    """Add an HTTP request input card and make it active.

    The request runs when a generation is launched; its response body
    becomes a new text card.
    """
    return tools.add_fetch_card(url, method, headers, body, timeout_ms, label)


@mcp.tool
def update_input_card(
    card_id: str,
    data: str | None = None,
    label: str | None = None,
    url: str | None = None,
    method: str | None = None,
    headers: dict[str, str] | None = None,
    body: str | None = None,
    timeout_ms: int | None = None,
) -> dict[str, Any]:
    """Edit an input card. Use data for text cards and url/method/... for fetch cards."""
    return tools.update_input_card(
        card_id, data, label, url, method, headers, body, timeout_ms
    )


@mcp.tool
def delete_input_card(card_id: str) -> dict[str, Any]:
    """Delete an input card. The last input card cannot be deleted."""
    return tools.delete_input_card(card_id)


@mcp.tool
def set_active_input(card_id: str) -> dict[str, Any]:
    """Choose the input card the next generation reads."""
    return tools.set_active_input(card_id)


@mcp.tool
def add_generator(label: str | None = None, model: str | None = None) -> dict[str, Any]:
    """Add a generator card with the default summary schema."""
    return tools.add_generator(label, model)


@mcp.tool
def update_generator(
    card_id: str,
    label: str | None = None,
    model: str | None = None,
    system_message: str | None = None,
) -> dict[str, Any]:
    """Edit a generator's label, model or system message."""
    return tools.update_generator(card_id, label, model, system_message)


@mcp.tool
def set_generator_schema(
    card_id: str,
    schema: str | None = None,
    fields: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Set a generator's output schema from text or field dicts; neither clears it."""
    return tools.set_generator_schema(card_id, schema, fields)


@mcp.tool
def delete_generator(card_id: str) -> dict[str, Any]:
    """Delete a generator card and its records."""
    return tools.delete_generator(card_id)


# =============================================================================
# Version Tools
# =============================================================================


@mcp.tool
def commit_card(card_id: str) -> dict[str, Any]:
    """Save a card's current draft as a new version."""
    return tools.commit_card(card_id)


@mcp.tool
def switch_version(card_id: str, version: int | None = None) -> dict[str, Any]:
    """Load a saved version into a card, or return to the working draft with None."""
    return tools.switch_version(card_id, version)


@mcp.tool
def revert_card(card_id: str) -> dict[str, Any]:
    """Discard unsaved edits by loading the latest version."""
    return tools.revert_card(card_id)


@mcp.tool
def get_version(card_id: str, version: int) -> dict[str, Any]:
    """Show the content of one saved version."""
    return tools.get_version(card_id, version)


# =============================================================================
# Generation Tools
# =============================================================================


@mcp.tool
def generate(
    generator_id: str,
    wait: bool = True,
    timeout: float = 120.0,
) -> dict[str, Any]:
    """Run a generator against the active input.

    Args:
        generator_id: Generator card to run.
        wait: Wait for the model. If False, poll the record with get_record.
        timeout: Seconds to wait. Default: 120

    Returns:
        The generation record. Check "error" for failures such as
        schema_semantic_rejection (with per-field violations) or
        context_limit_exceeded (with suggested models).
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    return tools.generate_output(generator_id, wait=wait, timeout=timeout)


@mcp.tool
def get_record(record_id: str) -> dict[str, Any]:
    """Fetch a generation record by id."""
    return tools.get_record(record_id)


@mcp.tool
def list_records(generator_id: str | None = None, limit: int = 20) -> dict[str, Any]:
    """List generation records, newest first."""
    return tools.list_records(generator_id, limit)


@mcp.tool
def estimate(generator_id: str) -> dict[str, Any]:
    """Estimate tokens and cost of running a generator on the active input."""
    return tools.estimate_generation(generator_id)


@mcp.tool
def list_models() -> dict[str, Any]:
    """List priced models with costs per million tokens and context sizes."""
    return tools.list_models()


@mcp.tool
def assist(
    prompt: str,
    generator_id: str | None = None,
    target: str = "config",
) -> dict[str, Any]:
    """Draft generator configuration from a task description.

    Args:
        prompt: What the generator should extract.
        generator_id: Apply the draft to this generator (optional).
        target: "system_message", "schema" or "config" (both). Default: config
    """
    if target == "system_message":
        return tools.assist_system_message(prompt, generator_id)
    if target == "schema":
        return tools.assist_schema(prompt, generator_id)
    if target == "config":
        return tools.assist_config(prompt, generator_id)
    raise ValueError(f"Invalid target '{target}'. Valid: config, schema, system_message")


@mcp.tool
def status() -> dict[str, Any]:
    """Server version, configured providers and workspace counts."""
    workspace = get_session().workspace
    providers = get_available_llm_providers()
    return {
        "status": "healthy" if providers else "degraded",
        "version": get_server_version(),
        "capabilities": get_server_capabilities(),
        "llm_providers": providers,
        "workspace": {
            "input_cards": len(workspace.input_cards),
            "generator_cards": len(workspace.generator_cards),
            "records": len(workspace.records),
        },
    }


# =============================================================================
# Resources
# =============================================================================


@mcp.resource("schema://default")
def get_default_schema() -> str:
    """Schema text new generator cards start with."""
    return render_schema(default_schema_fields())


@mcp.resource("schema://empty")
def get_empty_schema() -> str:
    """Schema text of a generator without fields."""
    return EMPTY_SCHEMA


# =============================================================================
# Server Factory & Runner
# =============================================================================


def create_server() -> FastMCP:
    return mcp


def run_server(
    transport: TransportType = TransportType.STDIO,
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Run the MCP server with the given transport.

    Args:
        transport: Transport type (stdio, http, sse).
        host: Bind address for HTTP/SSE. Defaults to MCP_HOST.
        port: Port for HTTP/SSE. Defaults to MCP_PORT.
    """
    config = ServerConfig.from_env(transport)
    if host is not None:
        config.host = host
    if port is not None:
        config.port = port

    logger.info(f"Starting {SERVER_NAME} server v{get_server_version()}")
    logger.info(f"Transport: {config.transport.value}")

    providers = get_available_llm_providers()
    if providers:
        logger.info(f"LLM providers: {', '.join(providers)}")
    else:
        logger.warning("No LLM provider API key set; generations will fail")

    if config.transport == TransportType.STDIO:
        mcp.run()
        return

    logger.info(f"Listening at {config.url}")
    if config.transport == TransportType.HTTP:
        mcp.run(transport="http", host=config.host, port=config.port, path=HTTP_PATH)
    else:
        mcp.run(transport="sse", host=config.host, port=config.port)


# =============================================================================
# CLI Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the MCP server.

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP server for schema-driven text extraction",
    )
    parser.add_argument(
        "--transport",
        "-t",
        choices=[t.value for t in TransportType],
        default="stdio",
        help="Transport type (default: stdio)",
    )
    parser.add_argument("--host", default=None, help="Bind address (default: MCP_HOST)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: MCP_PORT)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        run_server(TransportType(args.transport), host=args.host, port=args.port)
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
