"""
nifi-agent: natural-language ETL flows realized in Apache NiFi.

An LLM planner turns a described ETL into an index-based flow definition,
and the flow builder materializes it as processors, controller services
and connections through the NiFi REST API.
"""

__version__ = "0.1.0"
