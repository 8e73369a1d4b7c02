"""Flow realization engine.

FlowBuilder turns an index-based FlowDefinition into NiFi processors,
controller services and connections.
"""

from nifi_agent.engine.builder import FlowBuilder, FlowClient
from nifi_agent.engine.layout import ColumnLayout, compute_start_x, layout_for

__all__ = [
    "ColumnLayout",
    "FlowBuilder",
    "FlowClient",
    "compute_start_x",
    "layout_for",
]
