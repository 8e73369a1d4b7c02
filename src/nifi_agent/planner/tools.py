"""OpenAI tool schemas and prompts for the flow planner.

The processor/service lists in the system prompt are rendered from the
catalog so the model is only ever offered types the builder knows about.
"""

from __future__ import annotations

import json
from typing import Any

from nifi_agent.catalog import PROCESSOR_CATALOG, SERVICE_CATALOG

ANALYZE_ETL_REQUEST = "analyze_etl_request"
CREATE_NIFI_FLOW = "create_nifi_flow"
REQUEST_CLARIFICATION = "request_clarification"

_STRING_MAP: dict[str, Any] = {"type": "object", "additionalProperties": {"type": "string"}}

TOOLS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": ANALYZE_ETL_REQUEST,
            "description": (
                "Analyze the user ETL request and identify source/destination types, required processors, "
                "and any missing configuration parameters that need to be collected from the user."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "source_type": {
                        "type": "string",
                        "enum": ["opcua", "mqtt", "database", "file", "http", "generate"],
                        "description": "The type of data source",
                    },
                    "destination_type": {
                        "type": "string",
                        "enum": ["mqtt", "database", "file", "http", "log"],
                        "description": "The type of data destination",
                    },
                    "transformations": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": 'Transformation operations needed (e.g. "convert to json", "filter")',
                    },
                    "processors_needed": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string", "description": "Processor name from catalog"},
                                "purpose": {"type": "string", "description": "What this processor does in the flow"},
                            },
                            "required": ["name", "purpose"],
                        },
                        "description": "Ordered list of processors needed for this ETL",
                    },
                    "missing_parameters": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "param_name": {"type": "string", "description": "e.g. mqtt_broker_uri"},
                                "prompt": {"type": "string", "description": "Human-friendly question for the user"},
                                "example": {"type": "string", "description": "Example value to show the user"},
                                "required": {"type": "boolean"},
                            },
                            "required": ["param_name", "prompt", "required"],
                        },
                        "description": "Parameters that need to be collected from the user",
                    },
                    "flow_name": {"type": "string", "description": "Suggested name for this flow"},
                    "flow_description": {"type": "string", "description": "Brief description of the flow"},
                },
                "required": ["source_type", "destination_type", "processors_needed", "missing_parameters", "flow_name"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": CREATE_NIFI_FLOW,
            "description": (
                "Create the NiFi flow with all collected parameters. "
                "Call this after all required parameters have been gathered."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "flow_name": {"type": "string", "description": "Name for the flow"},
                    "processors": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string", "description": "Display name for the processor"},
                                "type": {"type": "string", "description": "Processor type from catalog"},
                                "properties": {**_STRING_MAP, "description": "Processor configuration properties"},
                                "auto_terminate": {
                                    "type": "array",
                                    "items": {"type": "string"},
                                    "description": "Relationships to auto-terminate",
                                },
                            },
                            "required": ["name", "type", "properties"],
                        },
                        "description": "Ordered list of processors with their configurations",
                    },
                    "connections": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "from_index": {"type": "number", "description": "Index of source processor"},
                                "to_index": {"type": "number", "description": "Index of destination processor"},
                                "relationships": {
                                    "type": "array",
                                    "items": {"type": "string"},
                                    "description": 'Relationships to connect (e.g. ["success"])',
                                },
                            },
                            "required": ["from_index", "to_index", "relationships"],
                        },
                        "description": "Connections between processors",
                    },
                    "controller_services": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "type": {"type": "string", "description": "Controller service type from catalog"},
                                "properties": _STRING_MAP,
                                "referenced_by": {
                                    "type": "array",
                                    "items": {
                                        "type": "object",
                                        "properties": {
                                            "processor_index": {"type": "number"},
                                            "property_name": {"type": "string"},
                                        },
                                    },
                                    "description": "Which processors reference this service and via which property",
                                },
                            },
                            "required": ["name", "type", "properties"],
                        },
                        "description": "Controller services needed by the processors",
                    },
                },
                "required": ["flow_name", "processors", "connections"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": REQUEST_CLARIFICATION,
            "description": (
                "Ask the user for clarification when the request is ambiguous "
                "or more information is needed to design the flow."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "question": {"type": "string", "description": "The clarifying question to ask the user"},
                    "options": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional list of choices to present to the user",
                    },
                },
                "required": ["question"],
            },
        },
    },
]


def _catalog_lines() -> tuple[str, str]:
    processors = []
    for name, info in PROCESSOR_CATALOG.items():
        line = f"- {name}: {info.description}"
        if info.required_properties:
            line += f" (requires: {', '.join(info.required_properties)})"
        processors.append(line)
    services = [f"- {name}: {info.description}" for name, info in SERVICE_CATALOG.items()]
    return "\n".join(processors), "\n".join(services)


def build_system_prompt() -> str:
    processors, services = _catalog_lines()
    return f"""You are a NiFi flow design expert. Your role is to help users create Apache NiFi data flows from natural language descriptions.

AVAILABLE PROCESSORS:
{processors}

AVAILABLE CONTROLLER SERVICES:
{services}

WORKFLOW:
1. When user describes an ETL, call {ANALYZE_ETL_REQUEST} to identify components and missing parameters
2. The system will collect missing parameters from the user
3. Once all parameters are collected, call {CREATE_NIFI_FLOW} with the complete configuration

IMPORTANT:
- Always identify ALL required parameters for processors
- Use clear, friendly prompts for parameter collection
- Include helpful examples in parameter prompts
- For MQTT: need Broker URI (e.g., tcp://localhost:1883) and Topic
- For databases: need Connection URL, Driver, Username, Password, and SQL query
- Design efficient flows with minimal processors
- Connect processors in logical order

When the user provides a vague request, use {REQUEST_CLARIFICATION} to ask for more details."""


SYSTEM_PROMPT = build_system_prompt()


def build_refinement_prompt(analysis: dict[str, Any], collected_params: dict[str, str]) -> str:
    """Prompt sent once every missing parameter has a value."""
    return f"""All required parameters have been collected. Create the NiFi flow now.

Original analysis:
{json.dumps(analysis, indent=2)}

User-provided parameter values:
{json.dumps(collected_params, indent=2)}

CRITICAL: When calling {CREATE_NIFI_FLOW}, you MUST:
1. Map parameter values to EXACT NiFi property names in each processor's "properties" object
2. For PublishMQTT, use these exact property names:
   - "Broker URI" (not "broker_uri" or "mqtt_broker")
   - "Topic" (not "topic" or "mqtt_topic")
   - "Quality of Service" (optional, default is "1")
3. For ConsumeMQTT, use:
   - "Broker URI"
   - "Topic Filter"
4. For GenerateFlowFile, use:
   - "Custom Text" for the message content
   - "Data Format" set to "Text"
5. For ExecuteSQL, use:
   - "Database Connection Pooling Service"
   - "SQL select query"

Example of correct processor config:
{{
  "name": "Publish to MQTT",
  "type": "PublishMQTT",
  "properties": {{
    "Broker URI": "tcp://localhost:1883",
    "Topic": "my/topic",
    "Quality of Service": "1"
  }}
}}

Now call {CREATE_NIFI_FLOW} with the full configuration, ensuring ALL collected parameter values are properly mapped to processor properties."""
