# src/nifi_agent/catalog.py
"""Processor and controller service catalog.

Maps the short logical names the planner uses (``PublishMQTT``,
``DBCPConnectionPool``) to NiFi type identifiers, bundle coordinates and
default property values.

Each entry also carries its completion policy:

- ``ensure_defaults``: properties that must end up non-empty before the
  property update is pushed. Applied after the default/explicit merge and
  only when the key is absent or empty.
- ``sink_auto_terminate``: relationships to auto-terminate when the
  processor has no outgoing connection in the definition.

Keeping these rules on the entries (instead of matching on type strings at
build time) means the whole rule set is visible here and testable without
a NiFi instance.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class Bundle:
    """NAR bundle coordinates."""

    group: str
    artifact: str
    version: str

    def to_dict(self) -> dict[str, str]:
        return {"group": self.group, "artifact": self.artifact, "version": self.version}


@dataclass(frozen=True)
class EnsureDefault:
    """Fill ``property_name`` with ``value`` when the merged map leaves it empty."""

    property_name: str
    value: str

    def apply(self, properties: dict[str, str]) -> bool:
        """Apply in place. Returns True if the property was filled."""
        if properties.get(self.property_name):
            return False
        properties[self.property_name] = self.value
        return True


@dataclass(frozen=True)
class ProcessorTypeInfo:
    type: str
    bundle: Bundle
    relationships: tuple[str, ...]
    description: str
    required_properties: tuple[str, ...] = ()
    optional_properties: tuple[str, ...] = ()
    default_properties: Mapping[str, str] = field(default_factory=dict)
    ensure_defaults: tuple[EnsureDefault, ...] = ()
    sink_auto_terminate: tuple[str, ...] = ()

    @property
    def simple_name(self) -> str:
        return self.type.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class ControllerServiceTypeInfo:
    type: str
    bundle: Bundle
    description: str
    required_properties: tuple[str, ...] = ()
    optional_properties: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedProcessor:
    """Outcome of a processor catalog lookup.

    ``entry`` is None when the type key was unknown; ``type`` then holds the
    key verbatim so callers can still hand it to NiFi.
    """

    type: str
    entry: ProcessorTypeInfo | None
    bundle: Bundle | None = None


@dataclass(frozen=True)
class ResolvedService:
    """Outcome of a controller service catalog lookup (same pass-through rule)."""

    type: str
    entry: ControllerServiceTypeInfo | None
    bundle: Bundle | None = None


STANDARD_BUNDLE = Bundle(group="org.apache.nifi", artifact="nifi-standard-nar", version="2.0.0")
MQTT_BUNDLE = Bundle(group="org.apache.nifi", artifact="nifi-mqtt-nar", version="2.0.0")

# Sample payload for GenerateFlowFile. The ${...} parts are NiFi Expression Language.
SAMPLE_CUSTOM_TEXT = """{
  "timestamp": "${now():format('yyyy-MM-dd HH:mm:ss')}",
  "message": "Test data from NiFi Agent",
  "uuid": "${UUID()}"
}"""


PROCESSOR_CATALOG: Mapping[str, ProcessorTypeInfo] = MappingProxyType(
    {
        # MQTT
        "PublishMQTT": ProcessorTypeInfo(
            type="org.apache.nifi.processors.mqtt.PublishMQTT",
            bundle=MQTT_BUNDLE,
            required_properties=("Broker URI", "Topic"),
            optional_properties=("Client ID", "Quality of Service", "Retain Message", "Username", "Password"),
            default_properties={"Quality of Service": "1", "Retain Message": "false"},
            relationships=("success", "failure"),
            description="Publishes FlowFile content as an MQTT message to a broker",
            ensure_defaults=(
                EnsureDefault("Retain Message", "false"),
                EnsureDefault("Quality of Service", "1"),
            ),
            sink_auto_terminate=("success", "failure"),
        ),
        "ConsumeMQTT": ProcessorTypeInfo(
            type="org.apache.nifi.processors.mqtt.ConsumeMQTT",
            bundle=MQTT_BUNDLE,
            required_properties=("Broker URI", "Topic Filter"),
            optional_properties=("Client ID", "Quality of Service", "Max Queue Size", "Username", "Password"),
            default_properties={"Quality of Service": "1", "Max Queue Size": "1000"},
            relationships=("Message",),
            description="Subscribes to MQTT topics and receives messages",
            ensure_defaults=(EnsureDefault("Quality of Service", "1"),),
        ),
        # Database
        "ExecuteSQL": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.ExecuteSQL",
            bundle=STANDARD_BUNDLE,
            required_properties=("Database Connection Pooling Service", "SQL select query"),
            optional_properties=("Max Rows Per Flow File", "Output Format"),
            relationships=("success", "failure"),
            description="Executes SQL SELECT queries against a database",
        ),
        "ExecuteSQLRecord": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.ExecuteSQLRecord",
            bundle=STANDARD_BUNDLE,
            required_properties=("Database Connection Pooling Service", "SQL select query", "Record Writer"),
            optional_properties=("Max Rows Per Flow File", "Normalize Table/Column Names"),
            relationships=("success", "failure", "original"),
            description="Executes SQL SELECT and writes results using a Record Writer",
        ),
        # Transformation
        "ConvertRecord": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.ConvertRecord",
            bundle=STANDARD_BUNDLE,
            required_properties=("Record Reader", "Record Writer"),
            optional_properties=("Include Zero Record FlowFiles",),
            relationships=("success", "failure"),
            description="Converts between record formats (Avro, JSON, CSV, etc.)",
        ),
        "UpdateAttribute": ProcessorTypeInfo(
            type="org.apache.nifi.processors.attributes.UpdateAttribute",
            bundle=STANDARD_BUNDLE,
            relationships=("success", "failure"),
            description="Adds or modifies FlowFile attributes",
        ),
        "JoltTransformJSON": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.JoltTransformJSON",
            bundle=STANDARD_BUNDLE,
            required_properties=("Jolt Specification",),
            optional_properties=("Jolt Transform", "Pretty Print"),
            default_properties={"Jolt Transform": "Chain"},
            relationships=("success", "failure"),
            description="Transforms JSON using JOLT specifications",
        ),
        # File / HTTP
        "GetFile": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.GetFile",
            bundle=STANDARD_BUNDLE,
            required_properties=("Input Directory",),
            optional_properties=("File Filter", "Recurse Subdirectories", "Keep Source File"),
            default_properties={"Keep Source File": "false"},
            relationships=("success",),
            description="Reads files from a directory",
        ),
        "PutFile": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.PutFile",
            bundle=STANDARD_BUNDLE,
            required_properties=("Directory",),
            optional_properties=("Conflict Resolution Strategy", "Create Missing Directories"),
            default_properties={"Create Missing Directories": "true", "Conflict Resolution Strategy": "fail"},
            relationships=("success", "failure"),
            description="Writes FlowFile content to a file",
        ),
        "InvokeHTTP": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.InvokeHTTP",
            bundle=STANDARD_BUNDLE,
            required_properties=("HTTP URL", "HTTP Method"),
            optional_properties=("Content-Type", "Request Username", "Request Password"),
            default_properties={"HTTP Method": "GET"},
            relationships=("Response", "Retry", "No Retry", "Failure", "Original"),
            description="Sends HTTP requests",
        ),
        # Utility
        "GenerateFlowFile": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.GenerateFlowFile",
            bundle=STANDARD_BUNDLE,
            optional_properties=("File Size", "Batch Size", "Data Format", "Custom Text"),
            default_properties={"Batch Size": "1"},
            relationships=("success",),
            description="Generates FlowFiles for testing",
            ensure_defaults=(
                EnsureDefault("Custom Text", SAMPLE_CUSTOM_TEXT),
                EnsureDefault("Data Format", "Text"),
            ),
        ),
        "LogAttribute": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.LogAttribute",
            bundle=STANDARD_BUNDLE,
            optional_properties=("Log Level", "Log Payload"),
            default_properties={"Log Level": "info", "Log Payload": "false"},
            relationships=("success",),
            description="Logs FlowFile attributes for debugging",
        ),
        "LogMessage": ProcessorTypeInfo(
            type="org.apache.nifi.processors.standard.LogMessage",
            bundle=STANDARD_BUNDLE,
            optional_properties=("Log Level", "Log Message"),
            default_properties={"Log Level": "info"},
            relationships=("success",),
            description="Logs a custom message",
        ),
    }
)


SERVICE_CATALOG: Mapping[str, ControllerServiceTypeInfo] = MappingProxyType(
    {
        "DBCPConnectionPool": ControllerServiceTypeInfo(
            type="org.apache.nifi.dbcp.DBCPConnectionPool",
            bundle=STANDARD_BUNDLE,
            required_properties=("Database Connection URL", "Database Driver Class Name", "Database User", "Password"),
            optional_properties=("Max Wait Time", "Max Total Connections"),
            description="JDBC Connection Pool for database access",
        ),
        "JsonTreeReader": ControllerServiceTypeInfo(
            type="org.apache.nifi.json.JsonTreeReader",
            bundle=STANDARD_BUNDLE,
            optional_properties=("Schema Access Strategy",),
            description="Reads JSON records",
        ),
        "JsonRecordSetWriter": ControllerServiceTypeInfo(
            type="org.apache.nifi.json.JsonRecordSetWriter",
            bundle=STANDARD_BUNDLE,
            optional_properties=("Schema Access Strategy", "Pretty Print JSON"),
            description="Writes records as JSON",
        ),
        "AvroReader": ControllerServiceTypeInfo(
            type="org.apache.nifi.avro.AvroReader",
            bundle=STANDARD_BUNDLE,
            description="Reads Avro records",
        ),
        "AvroRecordSetWriter": ControllerServiceTypeInfo(
            type="org.apache.nifi.avro.AvroRecordSetWriter",
            bundle=STANDARD_BUNDLE,
            optional_properties=("Schema Access Strategy",),
            description="Writes records as Avro",
        ),
    }
)


def _find_by_type(type_name: str, catalog: Iterable[ProcessorTypeInfo]) -> ProcessorTypeInfo | None:
    # Planners sometimes send the fully-qualified class or just its simple name
    for info in catalog:
        if type_name in (info.type, info.simple_name):
            return info
    return None


def resolve_processor(type_key: str) -> ResolvedProcessor:
    """Resolve a processor type key.

    Lookup order: catalog key, fully-qualified NiFi type, simple class name.
    Unknown keys pass through verbatim so NiFi resolves them.
    No bundle is returned for processors: NiFi picks the installed bundle
    for a processor type, and the catalog's pinned version only matches
    one NiFi release.
    """
    info = PROCESSOR_CATALOG.get(type_key) or _find_by_type(type_key, PROCESSOR_CATALOG.values())
    if info is None:
        return ResolvedProcessor(type=type_key, entry=None)
    return ResolvedProcessor(type=info.type, entry=info)


def resolve_service(type_key: str) -> ResolvedService:
    """Resolve a controller service type key; unknown keys pass through verbatim."""
    info = SERVICE_CATALOG.get(type_key)
    if info is None:
        return ResolvedService(type=type_key, entry=None)
    return ResolvedService(type=info.type, entry=info, bundle=info.bundle)


def get_processor_info(name: str) -> ProcessorTypeInfo | None:
    return PROCESSOR_CATALOG.get(name)


def find_processors_by_keywords(keywords: Iterable[str]) -> list[ProcessorTypeInfo]:
    """Catalog entries whose key, type or description mentions any keyword (case-insensitive)."""
    lowered = [keyword.lower() for keyword in keywords]
    results: list[ProcessorTypeInfo] = []
    for name, info in PROCESSOR_CATALOG.items():
        haystack = f"{name} {info.type} {info.description}".lower()
        if any(keyword in haystack for keyword in lowered):
            results.append(info)
    return results
