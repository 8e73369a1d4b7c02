# src/nifi_agent/clients/llm.py
"""LLM client with error classification and tool-call extraction."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Any

import structlog

from nifi_agent.contracts.errors import (
    ContentPolicyError,
    ContextLengthError,
    NetworkError,
    PlannerError,
    RateLimitError,
    ServerError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ToolCall:
    """One function call requested by the model.

    Attributes:
        id: Provider call id, echoed back in the tool result message
        name: Function name
        arguments: Raw JSON argument string, exactly as the model produced it
    """

    id: str
    name: str
    arguments: str


@dataclass
class LLMResponse:
    """Response from a chat completion.

    Attributes:
        content: Assistant text (empty when the model only called tools)
        model: The model that actually served the request
        tool_calls: Function calls, in the order the model produced them
        message: Assistant message as a dict, ready to append to history
        usage: Token counts (prompt_tokens, completion_tokens)
        latency_ms: Round-trip time in milliseconds
    """

    content: str
    model: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    message: dict[str, Any] = field(default_factory=dict)
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0) + self.usage.get("completion_tokens", 0)


_RATE_LIMIT_PATTERNS = (
    re.compile(r"\brate[\s_-]*limit(?:ed|ing)?\b"),
    re.compile(r"\brate(?:\s+has\s+been)?\s+exceeded\b"),
    re.compile(r"\btoo many requests\b"),
    re.compile(r"\bthrottl(?:e|ed|ing)\b"),
)
_SERVER_ERROR_CODE_PATTERN = re.compile(r"\b(?:500|502|503|504|529)\b")
_CLIENT_ERROR_CODE_PATTERN = re.compile(r"\b(?:400|401|403|404|422)\b")
_NETWORK_ERROR_PATTERNS = (
    "timeout",
    "timed out",
    "connection refused",
    "connection reset",
    "connection aborted",
    "connection error",
    "network unreachable",
    "host unreachable",
    "dns",
    "getaddrinfo failed",
)
_CONTENT_POLICY_PATTERNS = (
    "content_policy_violation",
    "content policy",
    "safety system",
)
_CONTEXT_LENGTH_PATTERNS = (
    "context_length_exceeded",
    "context length",
    "maximum context",
)


def classify_llm_error(exception: Exception) -> str:
    """Classify an LLM error into a canonical category."""
    error_str = str(exception).lower()

    if any(pattern in error_str for pattern in _CONTENT_POLICY_PATTERNS):
        return "content_policy"
    if any(pattern in error_str for pattern in _CONTEXT_LENGTH_PATTERNS):
        return "context_length"

    # Explicit rate-limit indicators only; "rate" alone is too common
    if re.search(r"\b429\b", error_str) or any(pattern.search(error_str) for pattern in _RATE_LIMIT_PATTERNS):
        return "rate_limit"

    if _SERVER_ERROR_CODE_PATTERN.search(error_str):
        return "server"
    if any(pattern in error_str for pattern in _NETWORK_ERROR_PATTERNS):
        return "network"
    if _CLIENT_ERROR_CODE_PATTERN.search(error_str):
        return "client"
    return "unknown"


def to_planner_error(exception: Exception) -> PlannerError:
    """Map a provider exception to the matching PlannerError subclass."""
    error_class = classify_llm_error(exception)
    message = str(exception)
    if error_class == "rate_limit":
        return RateLimitError(message)
    elif error_class == "content_policy":
        return ContentPolicyError(message)
    elif error_class == "context_length":
        return ContextLengthError(message)
    elif error_class == "server":
        return ServerError(message)
    elif error_class == "network":
        return NetworkError(message)
    else:
        # Client error or unknown - not retryable
        return PlannerError(message, retryable=False)


class LLMClient:
    """Chat-completion client over an OpenAI-compatible SDK client.

    Example:
        client = LLMClient(openai.OpenAI(api_key="..."), model="gpt-4")
        response = client.chat_completion(
            messages=[{"role": "user", "content": "Hello"}],
            tools=TOOLS,
        )
        for call in response.tool_calls:
            print(call.name, call.arguments)
    """

    def __init__(
        self,
        underlying_client: Any,  # openai.OpenAI
        *,
        model: str,
        temperature: float = 0.0,
    ) -> None:
        self._client = underlying_client
        self._model = model
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    def chat_completion(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str = "auto",
    ) -> LLMResponse:
        """Make one chat completion call.

        Raises:
            RateLimitError, NetworkError, ServerError: transient (retryable)
            ContentPolicyError, ContextLengthError, PlannerError: permanent
        """
        sdk_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
        }
        if tools:
            sdk_kwargs["tools"] = tools
            sdk_kwargs["tool_choice"] = tool_choice

        start = time.perf_counter()
        try:
            response = self._client.chat.completions.create(**sdk_kwargs)
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            error = to_planner_error(e)
            logger.warning(
                "llm_call_failed",
                model=self._model,
                error=str(e),
                error_type=type(e).__name__,
                retryable=error.retryable,
                latency_ms=round(latency_ms, 1),
            )
            raise error from e
        latency_ms = (time.perf_counter() - start) * 1000

        message = response.choices[0].message
        tool_calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=call.function.arguments)
            for call in (message.tool_calls or [])
        ]
        # Guard against providers that omit usage data
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            }
        else:
            usage = {}

        logger.debug(
            "llm_call_completed",
            model=response.model,
            tool_calls=[call.name for call in tool_calls],
            latency_ms=round(latency_ms, 1),
            **usage,
        )
        return LLMResponse(
            content=message.content or "",
            model=response.model,
            tool_calls=tool_calls,
            message=_assistant_message(message.content, tool_calls),
            usage=usage,
            latency_ms=latency_ms,
        )


def _assistant_message(content: str | None, tool_calls: list[ToolCall]) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {"id": call.id, "type": "function", "function": {"name": call.name, "arguments": call.arguments}}
            for call in tool_calls
        ]
    return message
