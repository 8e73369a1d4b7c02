# src/nifi_agent/cli_formatters.py
"""Console and JSON rendering for builds and planner responses.

Formatters only render; nothing here feeds back into a build.
"""

from __future__ import annotations

import json

import typer

from nifi_agent.contracts.events import BuildEvent, BuildEventCallback, BuildOutcome, BuildPhase
from nifi_agent.contracts.results import FlowBuildResult
from nifi_agent.planner.models import ClarificationRequest, ETLAnalysis

RULE_WIDTH = 50

_OUTCOME_STYLE: dict[BuildOutcome, tuple[str, str]] = {
    BuildOutcome.STARTED: ("…", typer.colors.YELLOW),
    BuildOutcome.SUCCEEDED: ("✓", typer.colors.GREEN),
    BuildOutcome.WARNING: ("⚠", typer.colors.YELLOW),
    BuildOutcome.FAILED: ("✗", typer.colors.RED),
}

_STARTED_VERB: dict[BuildPhase, str] = {
    BuildPhase.SERVICES: "Creating controller service",
    BuildPhase.PROCESSORS: "Creating processor",
    BuildPhase.CONNECTIONS: "Connecting",
}


def _rule(title: str, color: str = typer.colors.CYAN) -> None:
    typer.secho("═" * RULE_WIDTH, fg=color)
    typer.secho(f"  {title}", fg=color, bold=True)
    typer.secho("═" * RULE_WIDTH, fg=color)


def create_console_event_formatter() -> BuildEventCallback:
    """Progress callback printing one line per build event."""

    def _format(event: BuildEvent) -> None:
        symbol, color = _OUTCOME_STYLE[event.outcome]
        if event.outcome is BuildOutcome.STARTED:
            verb = _STARTED_VERB.get(event.phase, event.phase.value.capitalize())
            typer.secho(f"{verb}: {event.subject}...", fg=color)
            return
        if event.phase is BuildPhase.TARGET and event.outcome is BuildOutcome.SUCCEEDED:
            typer.secho(f"Using process group: {event.subject}", fg=typer.colors.BLUE)
            return
        if event.phase is BuildPhase.LAYOUT:
            typer.secho(f"  Positioning new flow at {event.detail}", fg=typer.colors.BRIGHT_BLACK)
            return
        detail = event.detail or event.subject
        typer.secho(f"  {symbol} {detail}", fg=color, err=event.outcome is BuildOutcome.FAILED)

    return _format


def render_result_console(result: FlowBuildResult, ui_url: str | None = None) -> None:
    typer.echo()
    if result.success:
        _rule("✅ Flow created successfully!", typer.colors.GREEN)
        typer.echo(f"\n  Processors: {len(result.processor_ids)}")
        typer.echo(f"  Connections: {len(result.connection_ids)}")
        typer.echo(f"  Controller Services: {len(result.controller_service_ids)}")
        if ui_url:
            typer.secho(f"\n  View in NiFi UI: {ui_url}\n", fg=typer.colors.BLUE)
        return
    _rule("⚠️ Flow created with errors", typer.colors.RED)
    typer.echo(
        f"\n  Created {len(result.processor_ids)} processors, "
        f"{len(result.connection_ids)} connections, "
        f"{len(result.controller_service_ids)} controller services"
    )
    for error in result.errors:
        typer.secho(f"  • {error}", fg=typer.colors.RED)
    typer.echo()


def render_result_json(result: FlowBuildResult) -> None:
    typer.echo(json.dumps(result.to_dict(), indent=2))


def render_analysis(analysis: ETLAnalysis) -> None:
    _rule(f"Flow: {analysis.flow_name}")
    if analysis.flow_description:
        typer.secho(f"\n{analysis.flow_description}\n", fg=typer.colors.BRIGHT_BLACK)
    typer.echo("\nProcessors needed:")
    for need in analysis.processors_needed:
        typer.secho(f"  • {need.name}: {need.purpose}", fg=typer.colors.BRIGHT_BLACK)


def render_clarification(request: ClarificationRequest) -> None:
    typer.echo(f"\nAgent: {request.question}")
    if request.options:
        typer.secho("\nOptions:", fg=typer.colors.BRIGHT_BLACK)
        for number, option in enumerate(request.options, start=1):
            typer.secho(f"  {number}. {option}", fg=typer.colors.BRIGHT_BLACK)
    typer.echo()
