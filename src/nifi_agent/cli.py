# src/nifi_agent/cli.py
"""nifi-agent Command Line Interface.

Entry point for the nifi-agent CLI tool.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from nifi_agent import __version__
from nifi_agent.catalog import PROCESSOR_CATALOG, SERVICE_CATALOG
from nifi_agent.contracts.errors import NiFiClientError, SettingsError
from nifi_agent.contracts.flow import FlowDefinition
from nifi_agent.core.config import (
    AgentSettings,
    load_settings,
    require_chat_credentials,
    require_nifi_credentials,
)

if TYPE_CHECKING:
    from nifi_agent.clients.nifi import NiFiClient

__all__ = ["app"]

app = typer.Typer(
    name="nifi-agent",
    help="nifi-agent: build Apache NiFi flows from natural-language ETL descriptions.",
    no_args_is_help=True,
)

SETTINGS_OPTION_HELP = "Path to settings YAML file (optional; environment variables are always read)."


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nifi-agent version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # Existence checked in _load_dotenv for a better message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """nifi-agent: build Apache NiFi flows from natural-language ETL descriptions."""
    from nifi_agent.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _load_settings_or_exit(settings_path: str | None) -> AgentSettings:
    path = Path(settings_path).expanduser() if settings_path else None
    try:
        return load_settings(path)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings_path}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _require(check: Callable[[AgentSettings], None], settings: AgentSettings) -> None:
    try:
        check(settings)
    except SettingsError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None


def _connect(settings: AgentSettings) -> NiFiClient:
    """Create and authenticate a NiFi client, exiting on failure."""
    from nifi_agent.clients.nifi import NiFiClient

    client = NiFiClient(
        settings.nifi.base_url,
        timeout=settings.nifi.timeout,
        verify=settings.nifi.verify_tls,
    )
    try:
        client.authenticate(settings.nifi.username, settings.nifi.password)
    except NiFiClientError as e:
        client.close()
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    return client


def load_definition(path: Path) -> FlowDefinition:
    """Read a flow definition from a JSON or YAML file.

    Raises:
        ValueError: The file is not valid JSON/YAML
        ValidationError: The content does not describe a flow definition
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    return FlowDefinition.model_validate(data)


@app.command()
def chat(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=SETTINGS_OPTION_HELP,
    ),
    start: bool = typer.Option(
        False,
        "--start",
        help="Start processors after each flow is built.",
    ),
) -> None:
    """Describe an ETL in plain language and build it in NiFi."""
    import openai

    from nifi_agent.cli_formatters import create_console_event_formatter
    from nifi_agent.clients.llm import LLMClient
    from nifi_agent.clients.nifi import NiFiClient
    from nifi_agent.conversation import ConversationManager
    from nifi_agent.engine.builder import FlowBuilder
    from nifi_agent.planner.service import FlowPlanner

    config = _load_settings_or_exit(settings)
    _require(require_chat_credentials, config)

    typer.secho("\n🔧 NiFi Agent starting...\n", fg=typer.colors.BRIGHT_BLACK)
    llm = LLMClient(
        openai.OpenAI(api_key=config.openai.api_key, base_url=config.openai.base_url),
        model=config.openai.model,
        temperature=config.openai.temperature,
    )
    with NiFiClient(config.nifi.base_url, timeout=config.nifi.timeout, verify=config.nifi.verify_tls) as client:
        manager = ConversationManager(
            FlowPlanner(llm),
            client,
            FlowBuilder(client, start_processors=start, on_event=create_console_event_formatter()),
            username=config.nifi.username,
            password=config.nifi.password,
            ui_url=config.nifi.ui_url,
        )
        try:
            manager.initialize()
            manager.run()
        except NiFiClientError as e:
            typer.secho(f"\n❌ Fatal error: {e}\n", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None
        except typer.Abort:
            # Ctrl-C / Ctrl-D at a prompt
            typer.secho("\nGoodbye!", fg=typer.colors.BRIGHT_BLACK)


@app.command()
def build(
    definition: Path = typer.Argument(
        ...,
        help="Flow definition file (JSON or YAML).",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=SETTINGS_OPTION_HELP,
    ),
    start: bool = typer.Option(
        False,
        "--start",
        help="Start processors after the flow is built.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Build without asking for confirmation.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured).",
    ),
) -> None:
    """Build a flow from a definition file, without the LLM planner."""
    from nifi_agent.cli_formatters import (
        create_console_event_formatter,
        render_result_console,
        render_result_json,
    )
    from nifi_agent.engine.builder import FlowBuilder

    definition_path = definition.expanduser()
    if not definition_path.exists():
        typer.echo(f"Error: Definition file not found: {definition}", err=True)
        raise typer.Exit(1)
    try:
        flow = load_definition(definition_path)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Flow definition errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    config = _load_settings_or_exit(settings)
    _require(require_nifi_credentials, config)

    if not yes and not typer.confirm(
        f"Create '{flow.flow_name}' ({len(flow.processors)} processors, "
        f"{len(flow.connections)} connections) in NiFi?",
        default=False,
    ):
        typer.echo("Flow creation cancelled.")
        raise typer.Exit(1)

    client = _connect(config)
    try:
        if output_format == "json":
            result = FlowBuilder(client, start_processors=start).build_flow(flow)
            render_result_json(result)
        else:
            builder = FlowBuilder(client, start_processors=start, on_event=create_console_event_formatter())
            result = builder.build_flow(flow)
            render_result_console(result, config.nifi.ui_url)
    finally:
        client.close()

    if not result.success:
        raise typer.Exit(1)


@app.command()
def catalog(
    kind: Literal["all", "processors", "services"] = typer.Option(
        "all",
        "--kind",
        "-k",
        help="Which catalog to list.",
    ),
) -> None:
    """List the processor and controller service types the planner may use."""
    if kind in ("all", "processors"):
        typer.echo("\nPROCESSORS:")
        for name, processor in PROCESSOR_CATALOG.items():
            typer.echo(f"  {name:20} - {processor.description}")
    if kind in ("all", "services"):
        typer.echo("\nCONTROLLER SERVICES:")
        for name, service in SERVICE_CATALOG.items():
            typer.echo(f"  {name:20} - {service.description}")
    typer.echo()


@app.command()
def check(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help=SETTINGS_OPTION_HELP,
    ),
) -> None:
    """Verify NiFi credentials and report the instance version."""
    config = _load_settings_or_exit(settings)
    _require(require_nifi_credentials, config)

    client = _connect(config)
    try:
        about = client.get_about()
        group_id = client.get_root_process_group_id()
    except NiFiClientError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    finally:
        client.close()

    typer.secho(f"✓ Connected to {about.get('title', 'NiFi')} v{about.get('version', '?')}", fg=typer.colors.GREEN)
    typer.echo(f"  Root process group: {group_id}")


if __name__ == "__main__":
    app()
