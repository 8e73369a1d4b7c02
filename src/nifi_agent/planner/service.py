# src/nifi_agent/planner/service.py
"""FlowPlanner: conversational LLM planner that produces flow definitions.

The planner keeps the whole conversation (system prompt first) and offers
the model three tools. Only the first tool call of a turn is acted on;
every tool call gets a synthetic acknowledgement in history so the next
request is a valid continuation for the provider.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from nifi_agent.clients.llm import LLMClient, ToolCall
from nifi_agent.contracts.errors import MalformedToolCallError
from nifi_agent.contracts.flow import FlowDefinition
from nifi_agent.planner.models import (
    AgentResponse,
    AnalysisResponse,
    ClarificationRequest,
    ClarificationResponse,
    ETLAnalysis,
    FlowResponse,
    MessageResponse,
)
from nifi_agent.planner.tools import (
    ANALYZE_ETL_REQUEST,
    CREATE_NIFI_FLOW,
    REQUEST_CLARIFICATION,
    SYSTEM_PROMPT,
    TOOLS,
    build_refinement_prompt,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_NO_RESPONSE = "No response generated"


class FlowPlanner:
    """Turns natural-language ETL requests into AgentResponses.

    Example:
        planner = FlowPlanner(LLMClient(openai.OpenAI(), model="gpt-4"))
        response = planner.process_message("Send test JSON to MQTT topic sensors/demo")
        if isinstance(response, AnalysisResponse):
            ...
    """

    def __init__(self, llm: LLMClient, *, system_prompt: str = SYSTEM_PROMPT) -> None:
        self._llm = llm
        self._system_prompt = system_prompt
        self._history: list[dict[str, Any]] = []
        self.reset()

    @property
    def history(self) -> list[dict[str, Any]]:
        """Copy of the conversation so far."""
        return list(self._history)

    def reset(self) -> None:
        """Forget the conversation, keeping only the system prompt."""
        self._history = [{"role": "system", "content": self._system_prompt}]

    def process_message(self, user_message: str, collected_params: dict[str, str] | None = None) -> AgentResponse:
        """Send one user turn and interpret the model's reply.

        Raises:
            PlannerError: The LLM call failed, or the model called a tool with
                arguments that do not fit the tool's schema
        """
        content = user_message
        if collected_params:
            content += f"\n\nAlready collected parameters:\n{json.dumps(collected_params, indent=2)}"
        self._history.append({"role": "user", "content": content})

        response = self._llm.chat_completion(self._history, tools=TOOLS, tool_choice="auto")
        self._history.append(response.message)

        if not response.tool_calls:
            return MessageResponse(data=response.content or _NO_RESPONSE)

        for call in response.tool_calls:
            self._history.append(
                {
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps({"status": "acknowledged", "function": call.name}),
                }
            )
        return self._interpret(response.tool_calls[0])

    def refine_with_parameters(self, analysis: ETLAnalysis, collected_params: dict[str, str]) -> AgentResponse:
        """Ask for the final flow once every missing parameter has a value."""
        prompt = build_refinement_prompt(analysis.model_dump(mode="json"), collected_params)
        return self.process_message(prompt, collected_params)

    def _interpret(self, call: ToolCall) -> AgentResponse:
        logger.debug("planner_tool_call", function=call.name)
        if call.name == ANALYZE_ETL_REQUEST:
            return AnalysisResponse(data=_parse_arguments(call, ETLAnalysis))
        if call.name == CREATE_NIFI_FLOW:
            return FlowResponse(data=_parse_arguments(call, FlowDefinition))
        if call.name == REQUEST_CLARIFICATION:
            return ClarificationResponse(data=_parse_arguments(call, ClarificationRequest))
        return MessageResponse(data=f"Unknown function: {call.name}")


def _parse_arguments(call: ToolCall, model: type[ModelT]) -> ModelT:
    try:
        arguments = json.loads(call.arguments)
    except json.JSONDecodeError as e:
        raise MalformedToolCallError(f"{call.name} arguments are not valid JSON: {e}") from e
    if not isinstance(arguments, dict):
        raise MalformedToolCallError(f"{call.name} arguments must be a JSON object")
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise MalformedToolCallError(f"{call.name} arguments do not match the schema: {e}") from e
