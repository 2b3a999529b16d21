"""CLI entry point for the extraction workbench.

This module acts as the central entry point for the project's CLI tools.
It delegates commands to the appropriate submodules or runs specific tasks.
"""

import argparse
import json
import subprocess
import sys
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path

from dotenv import load_dotenv

from workbench.config import get_available_llm_providers
from workbench.core.log import get_logger, setup_logging

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")


def _read_text(source: str | None) -> str:
    """Text of a file path, or stdin for ``-`` or None."""
    if source is None or source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


# =============================================================================
# Schema Command
# =============================================================================


def cmd_schema_render(args: argparse.Namespace) -> int:
    """Render a JSON field list to schema text."""
    from workbench.mcp.tools import render_schema_text

    try:
        fields = json.loads(_read_text(args.source))
        result = render_schema_text(fields)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Cannot render schema: {e}")
        return 1

    if args.json_schema:
        _print_json(result["json_schema"])
    else:
        print(result["schema"])
    return 0


def cmd_schema_parse(args: argparse.Namespace) -> int:
    """Parse schema text to a JSON field list."""
    from workbench.mcp.tools import parse_schema_text

    result = parse_schema_text(_read_text(args.source))
    _print_json(result["fields"])
    if not result["parseable"]:
        logger.warning("No fields could be read from the schema text")
    return 0


def cmd_schema_validate(args: argparse.Namespace) -> int:
    """Validate schema text; exit 1 when invalid."""
    from workbench.validation import validate_schema_text

    check = validate_schema_text(_read_text(args.source))
    if check.valid:
        logger.info("Schema is valid")
        return 0
    logger.error(f"Schema is invalid ({check.error_type}): {check.error}")
    return 1


def handle_schema_command(argv: list[str]) -> int:
    """Handle schema text commands."""
    parser = argparse.ArgumentParser(
        prog="python . schema",
        description="Render, parse and validate schema text",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    render_parser = subparsers.add_parser("render", help="Field list JSON to schema text")
    render_parser.add_argument("source", nargs="?", help="JSON file (stdin if omitted)")
    render_parser.add_argument(
        "--json-schema",
        action="store_true",
        help="Print the compiled JSON schema instead",
    )
    render_parser.set_defaults(func=cmd_schema_render)

    parse_parser = subparsers.add_parser("parse", help="Schema text to field list JSON")
    parse_parser.add_argument("source", nargs="?", help="Schema file (stdin if omitted)")
    parse_parser.set_defaults(func=cmd_schema_parse)

    validate_parser = subparsers.add_parser("validate", help="Check schema text")
    validate_parser.add_argument("source", nargs="?", help="Schema file (stdin if omitted)")
    validate_parser.set_defaults(func=cmd_schema_validate)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


# =============================================================================
# Generate Command
# =============================================================================


def cmd_generate(args: argparse.Namespace) -> int:
    """Run one extraction and print the record."""
    from workbench.cards import FetchRequestConfig
    from workbench.generation import GenerationOrchestrator
    from workbench.workspace import Workspace, WorkspaceError

    workspace = Workspace(seed=False)
    generator = workspace.add_generator_card("cli", model=args.model)

    try:
        if args.url:
            fetch_config = FetchRequestConfig(url=args.url)
            if args.timeout_ms:
                fetch_config = fetch_config.model_copy(update={"timeout_ms": args.timeout_ms})
            workspace.add_fetch_input_card(fetch_config)
        else:
            workspace.add_string_input_card(_read_text(args.input), label="cli")
        if args.system:
            workspace.update_generator_card(generator.id, system_message=args.system)
        if args.schema:
            workspace.import_schema(generator.id, _read_text(args.schema))
    except (OSError, WorkspaceError) as e:
        logger.error(f"Cannot prepare generation: {e}")
        return 1

    orchestrator = GenerationOrchestrator(workspace, max_workers=1)
    try:
        record = orchestrator.generate(generator.id)
        record = orchestrator.wait(record.id, timeout=args.wait)
    except FutureTimeoutError:
        logger.error(f"No reply from {generator.draft.model} within {args.wait}s")
        return 1
    finally:
        orchestrator.shutdown(wait=False)

    if args.full:
        _print_json(record.to_dict())
    elif record.result is not None:
        _print_json(record.result)

    if record.error:
        logger.error(f"Generation failed ({record.error.kind.value}): {record.error.message}")
        for violation in record.error.violations:
            logger.error(f"  {violation.path}: {violation.message}")
        return 1

    usage = record.token_usage
    logger.info(
        f"Stats: {record.generation_time_ms} ms, {usage.total_tokens or 0} tokens, "
        f"model={generator.draft.model}"
    )
    return 0


def handle_generate_command(argv: list[str]) -> int:
    """Handle the generate command."""
    parser = argparse.ArgumentParser(
        prog="python . generate",
        description="Extract a structured object from text",
    )
    parser.add_argument("input", nargs="?", help="Input text file (stdin if omitted)")
    parser.add_argument("--url", help="Fetch the input from this URL instead")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Fetch timeout in milliseconds",
    )
    parser.add_argument(
        "--schema",
        "-s",
        help="Schema text file (default: summary and action items)",
    )
    parser.add_argument("--system", help="System message")
    parser.add_argument(
        "--model",
        "-m",
        default=None,
        help="LLM model name (e.g. gpt-4.1-nano, claude-haiku-4-5)",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=300.0,
        help="Seconds to wait for the model (default: 300)",
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Print the whole record, not just the result",
    )
    return cmd_generate(parser.parse_args(argv))


# =============================================================================
# Models and Cost Commands
# =============================================================================


def cmd_list_models(_argv: list[str]) -> int:
    """List priced models, cheapest input first."""
    from workbench.pricing import default_pricing_table

    providers = get_available_llm_providers()
    logger.info(f"Configured providers: {', '.join(providers) or 'none'}")
    print(f"{'model':<28}{'input $/M':>12}{'output $/M':>12}{'context':>12}")
    for model in sorted(default_pricing_table().models, key=lambda m: m.input_cost):
        print(
            f"{model.id:<28}{model.input_cost:>12.2f}"
            f"{model.output_cost:>12.2f}{model.max_tokens:>12,}"
        )
    return 0


def cmd_cost(argv: list[str]) -> int:
    """Estimate the cost of an extraction without running it."""
    from workbench.config import get_default_model
    from workbench.pricing import (
        TokenBreakdown,
        estimate_cost,
        estimate_output_tokens,
        format_cost,
        should_warn_about_cost,
    )

    parser = argparse.ArgumentParser(
        prog="python . cost",
        description="Estimate tokens and cost of an extraction",
    )
    parser.add_argument("input", nargs="?", help="Input text file (stdin if omitted)")
    parser.add_argument("--schema", "-s", help="Schema text file")
    parser.add_argument("--system", default="", help="System message")
    parser.add_argument("--model", "-m", default=None, help="LLM model name")
    args = parser.parse_args(argv)

    model = get_default_model(args.model)
    schema = _read_text(args.schema) if args.schema else ""
    breakdown = TokenBreakdown.from_texts(_read_text(args.input), args.system, schema)
    output_tokens = estimate_output_tokens(breakdown.total, bool(schema.strip()))
    estimate = estimate_cost(breakdown.total, output_tokens, model)

    print(f"Model:          {model}")
    print(f"Input tokens:   {breakdown.total:,} "
          f"(input {breakdown.input:,}, system {breakdown.system_message:,}, "
          f"schema {breakdown.schema:,})")
    print(f"Output tokens:  ~{output_tokens:,}")
    print(f"Estimated cost: {format_cost(estimate.total_estimated_cost)}")

    if should_warn_about_cost(estimate.total_estimated_cost):
        logger.warning("This extraction is above the cost warning threshold")
    if estimate.exceeds_max_tokens:
        alternatives = ", ".join(m.id for m in estimate.suggested_alternatives) or "none"
        logger.error(f"Input exceeds the context window of {model}. Try: {alternatives}")
        return 1
    return 0


# =============================================================================
# Assist Command
# =============================================================================


def cmd_assist(argv: list[str]) -> int:
    """Draft a system message and/or schema from a task description."""
    from workbench.assist import AssistError, ConfigAssistant

    parser = argparse.ArgumentParser(
        prog="python . assist",
        description="Draft generator configuration with an LLM",
    )
    parser.add_argument(
        "target",
        choices=["system", "schema", "config"],
        help="What to draft",
    )
    parser.add_argument("prompt", help="Description of the extraction task")
    parser.add_argument("--model", "-m", default=None, help="LLM model name")
    args = parser.parse_args(argv)

    assistant = ConfigAssistant(model=args.model)
    try:
        if args.target == "system":
            print(assistant.generate_system_message(args.prompt))
        elif args.target == "schema":
            print(assistant.generate_schema(args.prompt))
        else:
            config = assistant.generate_full_config(args.prompt)
            _print_json({"systemMessage": config.system_message, "schema": config.schema})
    except AssistError as e:
        logger.error(str(e))
        return 1
    return 0


# =============================================================================
# Dev Command
# =============================================================================


def cmd_test(extra_args: list[str]) -> int:
    """Run pytest with provided arguments and test tier options.

    Usage:
        python . dev test                # Run all tests
        python . dev test --unit         # Run only unit tests (no network)
        python . dev test --integration  # Run tests that call real providers
        python . dev test -k "schema"    # Run tests matching pattern
    """
    tier_markers = {
        "--unit": ["-m", "unit"],
        "--integration": ["-m", "integration"],
        "--all": [],
    }

    pytest_args: list[str] = []
    remaining_args: list[str] = []

    for arg in extra_args:
        if arg in tier_markers:
            pytest_args.extend(tier_markers[arg])
        else:
            remaining_args.append(arg)

    cmd = [sys.executable, "-m", "pytest", *pytest_args, *remaining_args]
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        return 130


def cmd_env(extra_args: list[str]) -> int:
    """Show workbench environment variables and their current values.

    Usage:
        python . dev env              # All variables
        python . dev env llm          # One category
    """
    from workbench.config import (
        describe_environment,
        get_environment_info,
        list_environment_variables,
    )

    category = extra_args[0] if extra_args else None
    variables = list_environment_variables(category)
    if not variables:
        logger.error(f"Unknown category: {category}")
        return 1

    current = None
    for var in variables:
        info = get_environment_info(var)
        if info.category != current:
            current = info.category
            print(f"\n[{current}]")
        print(f"  {info.name:<32}{describe_environment(var)}")
        print(f"  {'':<32}{info.description}")
    return 0


def handle_dev_command(argv: list[str]) -> int:
    """Handle development workflow commands.

    Usage:
        python . dev test [args]       # Run pytest
        python . dev env [category]    # Show configuration
    """
    if not argv:
        print("Development workflow commands")
        print("\nUsage: python . dev {command} [args]")
        print("\nCommands:")
        print("  test       Run pytest with tier options")
        print("  env        Show environment configuration")
        print("\nExamples:")
        print("  python . dev test --unit           # Fast unit tests")
        print("  python . dev test -k schema -v     # Filtered, verbose")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    if subcommand == "test":
        return cmd_test(subargs)

    if subcommand == "env":
        return cmd_env(subargs)

    logger.error(f"Unknown dev command: {subcommand}")
    return handle_dev_command([])


# =============================================================================
# MCP Server Command
# =============================================================================


def handle_mcp_command(argv: list[str]) -> int:
    """Handle MCP server commands.

    Usage:
        python . mcp run              # Start in STDIO mode
        python . mcp serve            # Start in HTTP mode
        python . mcp serve --port 8080
        python . mcp info             # Show server info
    """
    if not argv:
        print("MCP Server Commands")
        print("\nUsage: python . mcp {command} [options]")
        print("\nCommands:")
        print("  run                 Start server in STDIO mode")
        print("  serve               Start server in HTTP mode")
        print("  info                Show server information")
        print("\nOptions for 'serve':")
        print("  --host HOST         Bind address (default: MCP_HOST)")
        print("  --port PORT         Port number (default: MCP_PORT)")
        print("  --transport TYPE    Transport: http or sse (default: http)")
        return 1

    subcommand = argv[0]
    subargs = argv[1:]

    if subcommand == "run":
        from workbench.mcp import TransportType, run_server

        run_server(transport=TransportType.STDIO)
        return 0

    if subcommand == "serve":
        from workbench.mcp import ServerConfig, TransportType, run_server

        config = ServerConfig.from_env(TransportType.HTTP)
        parser = argparse.ArgumentParser(prog="python . mcp serve")
        parser.add_argument("--host", default=config.host)
        parser.add_argument("--port", type=int, default=config.port)
        parser.add_argument("--transport", choices=["http", "sse"], default="http")
        args = parser.parse_args(subargs)

        run_server(transport=TransportType(args.transport), host=args.host, port=args.port)
        return 0

    if subcommand == "info":
        from workbench.mcp import (
            SERVER_NAME,
            get_server_capabilities,
            get_server_version,
        )
        from workbench.mcp.server import SERVER_INSTRUCTIONS

        print(SERVER_NAME)
        print("=" * 40)
        print(f"Version: {get_server_version()}")
        print(f"Providers: {', '.join(get_available_llm_providers()) or 'none'}")
        print("\nCapabilities:")
        for cap, enabled in get_server_capabilities().items():
            print(f"  {cap}: {'enabled' if enabled else 'disabled'}")
        print(f"\nInstructions:\n{SERVER_INSTRUCTIONS}")
        return 0

    logger.error(f"Unknown mcp command: {subcommand}")
    return handle_mcp_command([])


# =============================================================================
# Main
# =============================================================================


def show_help() -> None:
    """Display CLI help message."""
    print("Usage: python . {command} [args]")
    print("\n=== Extraction ===")
    print("  generate   Extract a structured object from text or a URL")
    print("  cost       Estimate tokens and cost without calling a model")
    print("  models     List priced models")
    print("  assist     Draft a system message or schema with an LLM")
    print("\n=== Schema ===")
    print("  schema     Render, parse and validate schema text")
    print("\n=== MCP Server ===")
    print("  mcp        Run MCP server (STDIO or HTTP mode)")
    print("\n=== Development ===")
    print("  dev        Development workflows (test, env)")
    print("\nExamples:")
    print("  python . generate notes.txt --schema schema.txt")
    print("  python . generate --url https://pokeapi.co/api/v2/pokemon/ditto")
    print("  python . cost notes.txt -m gpt-4.1-mini")
    print("  python . schema validate schema.txt")
    print("  python . assist schema 'invoice number, date and line items'")
    print("  python . mcp serve --port 18080")
    print("  python . dev test --unit")


def main() -> int:
    """Main entry point for the CLI."""
    if len(sys.argv) < 2:
        show_help()
        return 1

    command = sys.argv[1]
    rest_args = sys.argv[2:]

    if command in ("-h", "--help"):
        show_help()
        return 0

    if command == "dev":
        return handle_dev_command(rest_args)

    commands = {
        "schema": lambda: handle_schema_command(rest_args),
        "generate": lambda: handle_generate_command(rest_args),
        "models": lambda: cmd_list_models(rest_args),
        "cost": lambda: cmd_cost(rest_args),
        "assist": lambda: cmd_assist(rest_args),
        "mcp": lambda: handle_mcp_command(rest_args),
    }

    if command in commands:
        setup_logging()
        return commands[command]()

    logger.error(f"Unknown command: {command}")
    show_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
