"""LLM planner: natural-language ETL requests in, flow definitions out."""

from nifi_agent.planner.models import (
    AgentResponse,
    AnalysisResponse,
    ClarificationRequest,
    ClarificationResponse,
    ETLAnalysis,
    FlowResponse,
    MessageResponse,
    MissingParameter,
    ProcessorNeed,
)
from nifi_agent.planner.service import FlowPlanner

__all__ = [
    "AgentResponse",
    "AnalysisResponse",
    "ClarificationRequest",
    "ClarificationResponse",
    "ETLAnalysis",
    "FlowPlanner",
    "FlowResponse",
    "MessageResponse",
    "MissingParameter",
    "ProcessorNeed",
]
