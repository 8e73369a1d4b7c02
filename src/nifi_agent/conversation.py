# src/nifi_agent/conversation.py
"""Interactive conversation loop: planner in, flow builder out.

The loop owns the user-facing side of a session. It asks the planner for
the next step, collects missing parameters, asks for confirmation before
anything is created in NiFi and renders the build result.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
import typer

from nifi_agent.cli_formatters import render_analysis, render_clarification, render_result_console
from nifi_agent.clients.nifi import NiFiClient
from nifi_agent.contracts.errors import NiFiClientError, PlannerError
from nifi_agent.contracts.flow import FlowDefinition
from nifi_agent.engine.builder import FlowBuilder
from nifi_agent.planner.models import (
    AgentResponse,
    AnalysisResponse,
    ClarificationResponse,
    ETLAnalysis,
    FlowResponse,
    MessageResponse,
)
from nifi_agent.planner.service import FlowPlanner

logger = structlog.get_logger(__name__)

PromptFn = Callable[[str], str]
ConfirmFn = Callable[[str], bool]

EXIT_COMMAND = "exit"
RESET_COMMAND = "reset"


def _ask(text: str) -> str:
    value: str = typer.prompt(text, default="", show_default=False)
    return value


def _confirm(text: str) -> bool:
    return typer.confirm(text, default=False)


class ConversationManager:
    """One interactive session against one NiFi instance."""

    def __init__(
        self,
        planner: FlowPlanner,
        client: NiFiClient,
        builder: FlowBuilder,
        *,
        username: str,
        password: str,
        ui_url: str | None = None,
        prompt: PromptFn = _ask,
        confirm: ConfirmFn = _confirm,
    ) -> None:
        self._planner = planner
        self._client = client
        self._builder = builder
        self._username = username
        self._password = password
        self._ui_url = ui_url
        self._prompt = prompt
        self._confirm = confirm
        self.collected_params: dict[str, str] = {}

    def initialize(self) -> None:
        """Authenticate and report which NiFi we are talking to.

        Raises:
            NiFiClientError: NiFi is unreachable or rejected the credentials
        """
        typer.secho("\n🔌 Connecting to NiFi...", fg=typer.colors.BLUE)
        self._client.authenticate(self._username, self._password)
        about = self._client.get_about()
        typer.secho(f"✓ Connected to {about.get('title', 'NiFi')} v{about.get('version', '?')}\n", fg=typer.colors.GREEN)

    def run(self) -> None:
        """Read user turns until ``exit``."""
        typer.secho("═" * 60, fg=typer.colors.CYAN)
        typer.secho("  NiFi Agent - Natural Language Flow Builder", fg=typer.colors.CYAN, bold=True)
        typer.secho("═" * 60, fg=typer.colors.CYAN)
        typer.secho("\nDescribe the data flow you want to create.", fg=typer.colors.BRIGHT_BLACK)
        typer.secho(f'Type "{EXIT_COMMAND}" to quit, "{RESET_COMMAND}" to start over.\n', fg=typer.colors.BRIGHT_BLACK)

        while self.handle_input(self._prompt("You")):
            pass
        typer.secho("\nGoodbye!", fg=typer.colors.BRIGHT_BLACK)

    def handle_input(self, user_input: str) -> bool:
        """Handle one line of input. Returns False when the session should end."""
        command = user_input.strip().lower()
        if command == EXIT_COMMAND:
            return False
        if command == RESET_COMMAND:
            self.reset()
            typer.secho("\nConversation reset. Describe your new flow.\n", fg=typer.colors.BRIGHT_BLACK)
            return True
        if not command:
            return True

        try:
            typer.secho("\nThinking...\n", fg=typer.colors.BRIGHT_BLACK)
            self.handle_response(self._planner.process_message(user_input, self.collected_params))
        except PlannerError as e:
            hint = " (temporary, try again)" if e.retryable else ""
            typer.secho(f"\nError: {e}{hint}\n", fg=typer.colors.RED, err=True)
            logger.warning("conversation_turn_failed", error=str(e), retryable=e.retryable)
        except NiFiClientError as e:
            typer.secho(f"\nError: {e}\n", fg=typer.colors.RED, err=True)
            logger.warning("conversation_turn_failed", error=str(e))
        return True

    def reset(self) -> None:
        self._planner.reset()
        self.collected_params = {}

    def handle_response(self, response: AgentResponse, *, refine: bool = True) -> None:
        """Act on one planner response.

        ``refine`` is cleared for the reply to a refinement, so a single
        user turn asks the planner to refine at most once.
        """
        if isinstance(response, AnalysisResponse):
            self._handle_analysis(response.data, refine=refine)
        elif isinstance(response, FlowResponse):
            self._handle_flow(response.data)
        elif isinstance(response, ClarificationResponse):
            render_clarification(response.data)
        elif isinstance(response, MessageResponse):
            typer.echo(f"Agent: {response.data}\n")

    def _handle_analysis(self, analysis: ETLAnalysis, *, refine: bool) -> None:
        render_analysis(analysis)
        if not refine:
            logger.info("refinement_returned_analysis", flow_name=analysis.flow_name)
            typer.secho("\nAdd any missing details and send another message.\n", fg=typer.colors.BRIGHT_BLACK)
            return
        if analysis.missing_parameters:
            typer.secho("\n📝 I need some information to configure the flow:\n", fg=typer.colors.YELLOW)
            self._collect_parameters(analysis)
            typer.secho("\n✓ Parameters collected. Generating flow configuration...\n", fg=typer.colors.BRIGHT_BLACK)
        self.handle_response(self._planner.refine_with_parameters(analysis, self.collected_params), refine=False)

    def _collect_parameters(self, analysis: ETLAnalysis) -> None:
        for parameter in analysis.missing_parameters:
            text = parameter.prompt
            if parameter.example:
                text += f" (e.g., {parameter.example})"
            if parameter.required:
                text += " *"

            value = self._prompt(f"  {text}").strip()
            if not value and parameter.required:
                typer.secho("  This field is required. Please provide a value.", fg=typer.colors.RED)
                value = self._prompt(f"  {text}").strip()
            if value:
                self.collected_params[parameter.param_name] = value

    def _handle_flow(self, definition: FlowDefinition) -> None:
        typer.echo()
        typer.secho("═" * 50, fg=typer.colors.CYAN)
        typer.secho("  Creating NiFi Flow", fg=typer.colors.CYAN, bold=True)
        typer.secho("═" * 50, fg=typer.colors.CYAN)
        typer.secho(f"\nFlow: {definition.flow_name}\n", fg=typer.colors.BRIGHT_BLACK)

        if not self._confirm("Create this flow in NiFi?"):
            typer.secho("\nFlow creation cancelled.\n", fg=typer.colors.BRIGHT_BLACK)
            return

        typer.secho("\n🚀 Building flow...\n", fg=typer.colors.BLUE)
        result = self._builder.build_flow(definition)
        render_result_console(result, self._ui_url)
        # Parameters belong to the flow just built
        self.collected_params = {}
