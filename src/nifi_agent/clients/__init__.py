"""Clients for external services: the NiFi REST API and the LLM behind the planner."""

from nifi_agent.clients.llm import LLMClient, LLMResponse, ToolCall
from nifi_agent.clients.nifi import NiFiClient

__all__ = ["LLMClient", "LLMResponse", "NiFiClient", "ToolCall"]
