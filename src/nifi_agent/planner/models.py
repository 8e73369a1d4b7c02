"""Planner response models.

Each tool the model can call has an argument model here; AgentResponse is
the tagged union the conversation loop dispatches on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

from nifi_agent.contracts.flow import FlowDefinition


class ProcessorNeed(BaseModel):
    model_config = {"frozen": True}

    name: str = Field(description="Processor name from catalog")
    purpose: str = Field(description="What this processor does in the flow")


class MissingParameter(BaseModel):
    model_config = {"frozen": True}

    param_name: str
    prompt: str
    example: str | None = None
    required: bool = True


class ETLAnalysis(BaseModel):
    """Arguments of ``analyze_etl_request``."""

    model_config = {"frozen": True}

    source_type: str
    destination_type: str
    transformations: tuple[str, ...] = ()
    processors_needed: tuple[ProcessorNeed, ...] = ()
    missing_parameters: tuple[MissingParameter, ...] = ()
    flow_name: str
    flow_description: str | None = None


class ClarificationRequest(BaseModel):
    """Arguments of ``request_clarification``."""

    model_config = {"frozen": True}

    question: str
    options: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AnalysisResponse:
    data: ETLAnalysis
    type: Literal["analysis"] = "analysis"


@dataclass(frozen=True, slots=True)
class FlowResponse:
    data: FlowDefinition
    type: Literal["flow"] = "flow"


@dataclass(frozen=True, slots=True)
class ClarificationResponse:
    data: ClarificationRequest
    type: Literal["clarification"] = "clarification"


@dataclass(frozen=True, slots=True)
class MessageResponse:
    data: str
    type: Literal["message"] = "message"


AgentResponse = AnalysisResponse | FlowResponse | ClarificationResponse | MessageResponse
