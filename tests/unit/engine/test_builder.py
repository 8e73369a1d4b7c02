# tests/unit/engine/test_builder.py
"""Tests for FlowBuilder against an in-memory NiFi."""

from __future__ import annotations

import pytest

from nifi_agent.catalog import SAMPLE_CUSTOM_TEXT, STANDARD_BUNDLE
from nifi_agent.contracts.errors import BuildEventCallbackError
from nifi_agent.contracts.events import BuildEvent, BuildOutcome, BuildPhase
from nifi_agent.contracts.flow import (
    ConnectionSpec,
    FlowDefinition,
    ProcessorSpec,
    ServiceReference,
    ServiceSpec,
)
from nifi_agent.contracts.results import Position
from nifi_agent.engine.builder import FlowBuilder


def _sql_definition() -> FlowDefinition:
    """ExecuteSQL reading through a DBCP pool, logged by LogAttribute."""
    return FlowDefinition(
        flow_name="Orders to log",
        processors=(
            ProcessorSpec(
                name="Query Orders",
                type="ExecuteSQL",
                properties={"SQL select query": "SELECT * FROM orders", "Database Connection Pooling Service": "TBD"},
            ),
            ProcessorSpec(name="Log Orders", type="LogAttribute"),
        ),
        connections=(ConnectionSpec(from_index=0, to_index=1, relationships=("success",)),),
        controller_services=(
            ServiceSpec(
                name="Orders DB",
                type="DBCPConnectionPool",
                properties={"Database Connection URL": "jdbc:postgresql://db:5432/orders"},
                referenced_by=(ServiceReference(processor_index=0, property_name="Database Connection Pooling Service"),),
            ),
        ),
    )


class TestSuccessfulBuild:
    def test_creates_every_processor_and_connection(self, fake_client, mqtt_definition) -> None:
        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert result.success is True
        assert result.errors == []
        assert result.process_group_id == "root-pg"
        assert len(result.processor_ids) == 2
        assert len(result.connection_ids) == 1
        assert result.controller_service_ids == []

    def test_connection_wires_realized_ids(self, fake_client, mqtt_definition) -> None:
        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        connection = fake_client.connections[result.connection_ids[0]]
        assert connection["source"] == result.processor_ids[0]
        assert connection["destination"] == result.processor_ids[1]
        assert connection["relationships"] == ["success"]

    def test_connections_created_from_id_only_responses(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(name="Generate", type="GenerateFlowFile"),
                ProcessorSpec(name="Update", type="UpdateAttribute"),
                ProcessorSpec(name="Log", type="LogAttribute"),
            ),
            connections=(
                ConnectionSpec(from_index=0, to_index=1, relationships=("success",)),
                ConnectionSpec(from_index=1, to_index=2, relationships=("success",)),
            ),
        )

        result = FlowBuilder(fake_client, start_processors=True).build_flow(definition)

        assert result.success is True, result.errors
        assert result.connection_ids == list(fake_client.connections)
        assert fake_client.calls_to("start_processor") == ["Generate", "Update", "Log"]

    def test_processor_types_resolved_from_catalog_without_bundle(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        publisher = fake_client.processor_named("Publish to MQTT")
        assert publisher["type"] == "org.apache.nifi.processors.mqtt.PublishMQTT"
        assert publisher["bundle"] is None

    def test_phases_run_in_order(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        methods = [method for method, _ in fake_client.calls]
        assert methods[0] == "get_root_process_group_id"
        assert methods[1] == "get_processor_positions"
        last_processor_call = max(i for i, m in enumerate(methods) if m.startswith(("create_processor", "update_")))
        assert methods.index("create_connection") > last_processor_call

    def test_definition_is_not_mutated(self, fake_client, mqtt_definition) -> None:
        before = mqtt_definition.model_dump()

        FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert mqtt_definition.model_dump() == before
        assert mqtt_definition.processors[1].auto_terminate is None


class TestLayout:
    def test_empty_canvas_starts_at_default_column(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert fake_client.processor_named("Generate Test Data")["position"] == Position(100.0, 100.0)
        assert fake_client.processor_named("Publish to MQTT")["position"] == Position(100.0, 300.0)

    def test_new_column_right_of_existing_processors(self, fake_client, mqtt_definition) -> None:
        fake_client.positions = [Position(200.0, 100.0), Position(500.0, 900.0)]

        FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert fake_client.processor_named("Generate Test Data")["position"] == Position(950.0, 100.0)
        assert fake_client.processor_named("Publish to MQTT")["position"] == Position(950.0, 300.0)


class TestPropertyResolution:
    def test_defaults_and_completion_rules_applied(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        generator = fake_client.processor_named("Generate Test Data")["properties"]
        assert generator == {"Batch Size": "1", "Custom Text": SAMPLE_CUSTOM_TEXT, "Data Format": "Text"}

        publisher = fake_client.processor_named("Publish to MQTT")["properties"]
        assert publisher["Broker URI"] == "tcp://localhost:1883"
        assert publisher["Topic"] == "sensors/demo"
        assert publisher["Quality of Service"] == "1"
        assert publisher["Retain Message"] == "false"

    def test_empty_explicit_value_is_completed(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(
                    name="Publish",
                    type="PublishMQTT",
                    properties={"Broker URI": "tcp://b:1883", "Topic": "t", "Retain Message": ""},
                ),
            ),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Publish")["properties"]["Retain Message"] == "false"

    def test_explicit_value_wins_over_default(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(
                    name="Publish",
                    type="PublishMQTT",
                    properties={"Broker URI": "tcp://b:1883", "Topic": "t", "Quality of Service": "2"},
                ),
            ),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Publish")["properties"]["Quality of Service"] == "2"

    def test_unknown_type_without_properties_skips_update(self, fake_client, events) -> None:
        definition = FlowDefinition(processors=(ProcessorSpec(name="Custom", type="com.example.CustomProcessor"),))

        result = FlowBuilder(fake_client, on_event=events.append).build_flow(definition)

        assert result.success is True
        assert fake_client.processor_named("Custom")["type"] == "com.example.CustomProcessor"
        assert fake_client.calls_to("update_processor_properties") == []
        assert BuildEvent(BuildPhase.PROCESSORS, BuildOutcome.WARNING, "Custom", "no properties to set") in events

    def test_fully_qualified_type_gets_catalog_defaults(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(ProcessorSpec(name="Log", type="org.apache.nifi.processors.standard.LogAttribute"),),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Log")["properties"] == {"Log Level": "info", "Log Payload": "false"}


class TestAutoTerminate:
    def test_mqtt_sink_auto_terminates_success_and_failure(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert fake_client.processor_named("Publish to MQTT")["auto_terminate"] == ["success", "failure"]
        assert fake_client.calls_to("update_processor_auto_terminate") == ["Publish to MQTT"]

    def test_explicit_relationships_kept_and_sink_ones_appended(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(
                    name="Publish",
                    type="PublishMQTT",
                    properties={"Broker URI": "tcp://b:1883", "Topic": "t"},
                    auto_terminate=("failure",),
                ),
            ),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Publish")["auto_terminate"] == ["failure", "success"]
        assert definition.processors[0].auto_terminate == ("failure",)

    def test_mqtt_publisher_with_outgoing_connection_is_not_a_sink(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(name="Publish", type="PublishMQTT", properties={"Broker URI": "tcp://b:1883", "Topic": "t"}),
                ProcessorSpec(name="Log", type="LogAttribute"),
            ),
            connections=(ConnectionSpec(from_index=0, to_index=1, relationships=("failure",)),),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Publish")["auto_terminate"] == []

    def test_explicit_relationships_on_non_catalog_processor(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(ProcessorSpec(name="Log", type="LogAttribute", auto_terminate=("success",)),),
        )

        FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.processor_named("Log")["auto_terminate"] == ["success"]


class TestRevisionThreading:
    def test_each_mutation_carries_latest_revision(self, fake_client, mqtt_definition) -> None:
        result = FlowBuilder(fake_client, start_processors=True).build_flow(mqtt_definition)

        assert result.success is True, result.errors
        publisher_id = fake_client.processor_id_named("Publish to MQTT")
        # create -> properties -> auto-terminate -> start
        assert fake_client.versions[publisher_id] == 4
        assert fake_client.processor_named("Publish to MQTT")["state"] == "RUNNING"

    def test_failed_configure_keeps_previous_revision(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["update_processor_properties"].add("Publish to MQTT")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        # Auto-terminate still succeeds with the creation revision, so no 409
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to configure Publish to MQTT: ")
        assert fake_client.processor_named("Publish to MQTT")["auto_terminate"] == ["success", "failure"]


class TestControllerServices:
    def test_service_created_enabled_and_referenced(self, fake_client) -> None:
        result = FlowBuilder(fake_client).build_flow(_sql_definition())

        assert result.success is True, result.errors
        [service_id] = result.controller_service_ids
        service = fake_client.services[service_id]
        assert service["type"] == "org.apache.nifi.dbcp.DBCPConnectionPool"
        assert service["bundle"] == STANDARD_BUNDLE
        assert service["state"] == "ENABLED"
        assert service["properties"] == {"Database Connection URL": "jdbc:postgresql://db:5432/orders"}

        query = fake_client.processor_named("Query Orders")["properties"]
        assert query["Database Connection Pooling Service"] == service_id

    def test_services_created_before_processors(self, fake_client) -> None:
        FlowBuilder(fake_client).build_flow(_sql_definition())

        methods = [method for method, _ in fake_client.calls]
        assert methods.index("enable_controller_service") < methods.index("create_processor")

    def test_failed_service_leaves_reference_unsubstituted(self, fake_client) -> None:
        fake_client.fail_on["create_controller_service"].add("Orders DB")

        result = FlowBuilder(fake_client).build_flow(_sql_definition())

        assert result.success is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to create controller service Orders DB: ")
        assert result.controller_service_ids == []
        assert len(result.processor_ids) == 2
        query = fake_client.processor_named("Query Orders")["properties"]
        assert query["Database Connection Pooling Service"] == "TBD"

    def test_enable_failure_still_records_and_substitutes(self, fake_client) -> None:
        fake_client.fail_on["enable_controller_service"].add("Orders DB")

        result = FlowBuilder(fake_client).build_flow(_sql_definition())

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to enable controller service Orders DB: ")
        [service_id] = result.controller_service_ids
        query = fake_client.processor_named("Query Orders")["properties"]
        assert query["Database Connection Pooling Service"] == service_id

    def test_service_id_wins_over_default_and_completion_value(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(
                    name="Publish",
                    type="PublishMQTT",
                    properties={"Broker URI": "tcp://b:1883", "Topic": "t"},
                ),
                ProcessorSpec(name="Log", type="LogAttribute"),
            ),
            controller_services=(
                ServiceSpec(
                    name="Writer",
                    type="JsonRecordSetWriter",
                    referenced_by=(ServiceReference(processor_index=0, property_name="Quality of Service"),),
                ),
                ServiceSpec(
                    name="Reader",
                    type="JsonTreeReader",
                    referenced_by=(ServiceReference(processor_index=1, property_name="Log Level"),),
                ),
            ),
        )

        result = FlowBuilder(fake_client).build_flow(definition)

        assert result.success is True, result.errors
        writer_id, reader_id = result.controller_service_ids
        publisher = fake_client.processor_named("Publish")["properties"]
        # "Quality of Service" has both a catalog default and a completion rule
        assert publisher["Quality of Service"] == writer_id
        assert publisher["Retain Message"] == "false"
        log_properties = fake_client.processor_named("Log")["properties"]
        assert log_properties["Log Level"] == reader_id
        assert log_properties["Log Payload"] == "false"

    def test_null_controller_services_is_accepted(self, fake_client) -> None:
        definition = FlowDefinition.model_validate(
            {
                "flow_name": "no services",
                "processors": [{"name": "Log", "type": "LogAttribute", "properties": {}}],
                "connections": [],
                "controller_services": None,
            }
        )

        result = FlowBuilder(fake_client).build_flow(definition)

        assert result.success is True
        assert fake_client.calls_to("create_controller_service") == []


class TestPerObjectFailures:
    def test_dangling_connection_records_one_error_and_makes_no_call(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(name="Generate", type="GenerateFlowFile"),
                ProcessorSpec(name="Log", type="LogAttribute"),
            ),
            connections=(
                ConnectionSpec(from_index=0, to_index=1, relationships=("success",)),
                ConnectionSpec(from_index=0, to_index=5, relationships=("success",)),
            ),
        )

        result = FlowBuilder(fake_client).build_flow(definition)

        assert result.success is False
        assert result.errors == [
            "Cannot create connection Generate → #5: source or destination processor not found"
        ]
        assert len(result.processor_ids) == 2
        assert len(result.connection_ids) == 1
        assert fake_client.calls_to("create_connection") == ["Generate"]

    def test_failed_processor_breaks_only_its_connections(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["create_processor"].add("Publish to MQTT")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert result.success is False
        assert len(result.errors) == 2
        assert result.errors[0].startswith("Failed to create processor Publish to MQTT: ")
        assert result.errors[1] == (
            "Cannot create connection Generate Test Data → Publish to MQTT: "
            "source or destination processor not found"
        )
        assert len(result.processor_ids) == 1
        assert result.connection_ids == []

    def test_processor_failure_does_not_stop_later_processors(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(name="A", type="LogAttribute"),
                ProcessorSpec(name="B", type="LogAttribute"),
                ProcessorSpec(name="C", type="LogAttribute"),
            ),
        )
        fake_client.fail_on["create_processor"].add("B")

        result = FlowBuilder(fake_client).build_flow(definition)

        assert fake_client.calls_to("create_processor") == ["A", "B", "C"]
        assert len(result.processor_ids) == 2
        # C keeps its own slot in the column
        assert fake_client.processor_named("C")["position"] == Position(100.0, 500.0)

    def test_failed_configure_keeps_processor_id(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["update_processor_properties"].add("Generate Test Data")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert len(result.processor_ids) == 2
        assert len(result.connection_ids) == 1
        assert result.errors[0].startswith("Failed to configure Generate Test Data: ")

    def test_failed_auto_terminate_is_recorded(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["update_processor_auto_terminate"].add("Publish to MQTT")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to auto-terminate relationships on Publish to MQTT: ")

    def test_failed_connection_is_recorded(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["create_connection"].add("Generate Test Data")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to connect Generate Test Data → Publish to MQTT: ")
        assert result.connection_ids == []

    def test_non_nifi_exception_is_folded_too(self, fake_client, mqtt_definition) -> None:
        def explode(*args: object, **kwargs: object) -> dict[str, object]:
            raise RuntimeError("boom")

        fake_client.create_connection = explode

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert result.errors == ["Failed to connect Generate Test Data → Publish to MQTT: boom"]

    def test_processor_response_without_revision_fails_only_that_processor(self, fake_client) -> None:
        definition = FlowDefinition(
            processors=(
                ProcessorSpec(name="A", type="LogAttribute"),
                ProcessorSpec(name="B", type="LogAttribute"),
            ),
            connections=(ConnectionSpec(from_index=0, to_index=1, relationships=("success",)),),
        )
        create = fake_client.create_processor

        def create_without_revision(group_id, name, type, position, bundle=None):
            entity = create(group_id, name, type, position, bundle)
            if name == "A":
                del entity["revision"]
            return entity

        fake_client.create_processor = create_without_revision

        result = FlowBuilder(fake_client).build_flow(definition)

        assert result.errors[0] == "Failed to create processor A: 'revision'"
        assert not any(error.startswith("Flow build failed") for error in result.errors)
        assert fake_client.calls_to("update_processor_properties") == ["B"]
        assert len(result.processor_ids) == 1

    def test_invalid_processor_is_a_warning_not_an_error(self, fake_client, mqtt_definition, events) -> None:
        fake_client.validation_status = "INVALID"

        result = FlowBuilder(fake_client, on_event=events.append).build_flow(mqtt_definition)

        assert result.success is True
        warnings = [e for e in events if e.outcome is BuildOutcome.WARNING and e.phase is BuildPhase.PROCESSORS]
        assert len(warnings) == 2
        assert "(INVALID)" in (warnings[0].detail or "")
        assert "Topic is required" in (warnings[0].detail or "")


class TestRunLevelFailures:
    def test_unreachable_root_group_aborts_build(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["get_root_process_group_id"].add("root")

        result = FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert result.success is False
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Flow build failed: ")
        assert "connection refused" in result.errors[0]
        assert result.process_group_id == ""
        assert fake_client.processors == {}

    def test_layout_failure_aborts_before_processors(self, fake_client) -> None:
        fake_client.fail_on["get_processor_positions"].add("root-pg")

        result = FlowBuilder(fake_client).build_flow(_sql_definition())

        assert result.success is False
        assert [e.split(":")[0] for e in result.errors] == ["Flow build failed"]
        # Services were already realized and stay reported
        assert len(result.controller_service_ids) == 1
        assert result.processor_ids == []

    def test_abort_event_names_the_failing_phase(self, fake_client, mqtt_definition, events) -> None:
        fake_client.fail_on["get_processor_positions"].add("root-pg")

        FlowBuilder(fake_client, on_event=events.append).build_flow(mqtt_definition)

        assert events[-1].phase is BuildPhase.LAYOUT
        assert events[-1].outcome is BuildOutcome.FAILED

    def test_unreachable_root_is_a_target_failure(self, fake_client, mqtt_definition, events) -> None:
        fake_client.fail_on["get_root_process_group_id"].add("root")

        FlowBuilder(fake_client, on_event=events.append).build_flow(mqtt_definition)

        [event] = events
        assert (event.phase, event.outcome, event.subject) == (BuildPhase.TARGET, BuildOutcome.FAILED, "root")


class TestStartPhase:
    def test_processors_not_started_by_default(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client).build_flow(mqtt_definition)

        assert fake_client.calls_to("start_processor") == []

    def test_start_runs_after_connections(self, fake_client, mqtt_definition) -> None:
        FlowBuilder(fake_client, start_processors=True).build_flow(mqtt_definition)

        methods = [method for method, _ in fake_client.calls]
        assert fake_client.calls_to("start_processor") == ["Generate Test Data", "Publish to MQTT"]
        assert methods.index("start_processor") > methods.index("create_connection")

    def test_start_failure_is_recorded(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["start_processor"].add("Publish to MQTT")

        result = FlowBuilder(fake_client, start_processors=True).build_flow(mqtt_definition)

        assert len(result.errors) == 1
        assert result.errors[0].startswith("Failed to start Publish to MQTT: ")
        assert fake_client.processor_named("Generate Test Data")["state"] == "RUNNING"


class TestEvents:
    def test_events_follow_phase_order(self, fake_client, events) -> None:
        FlowBuilder(fake_client, start_processors=True, on_event=events.append).build_flow(_sql_definition())

        phases: list[BuildPhase] = []
        for event in events:
            if not phases or phases[-1] is not event.phase:
                phases.append(event.phase)
        assert phases == [
            BuildPhase.TARGET,
            BuildPhase.SERVICES,
            BuildPhase.LAYOUT,
            BuildPhase.PROCESSORS,
            BuildPhase.CONNECTIONS,
            BuildPhase.START,
        ]

    def test_first_event_names_target_group(self, fake_client, mqtt_definition, events) -> None:
        FlowBuilder(fake_client, on_event=events.append).build_flow(mqtt_definition)

        assert events[0] == BuildEvent(BuildPhase.TARGET, BuildOutcome.SUCCEEDED, "root-pg")

    def test_every_error_has_a_failed_event(self, fake_client, mqtt_definition, events) -> None:
        fake_client.fail_on["create_processor"].add("Publish to MQTT")

        result = FlowBuilder(fake_client, on_event=events.append).build_flow(mqtt_definition)

        failed = [e.detail for e in events if e.outcome is BuildOutcome.FAILED]
        assert failed == result.errors

    def test_callback_error_propagates_instead_of_being_recorded(self, fake_client, mqtt_definition) -> None:
        original = ValueError("formatter bug")

        def on_event(event: BuildEvent) -> None:
            if event.phase is BuildPhase.PROCESSORS:
                raise original

        with pytest.raises(BuildEventCallbackError) as exc_info:
            FlowBuilder(fake_client, on_event=on_event).build_flow(mqtt_definition)

        assert exc_info.value.__cause__ is original
        assert fake_client.calls_to("create_processor") == []

    def test_callback_error_on_failure_event_propagates(self, fake_client, mqtt_definition) -> None:
        fake_client.fail_on["create_processor"].add("Generate Test Data")

        def on_event(event: BuildEvent) -> None:
            if event.outcome is BuildOutcome.FAILED:
                raise RuntimeError("formatter bug")

        with pytest.raises(BuildEventCallbackError, match="formatter bug"):
            FlowBuilder(fake_client, on_event=on_event).build_flow(mqtt_definition)

        assert fake_client.calls_to("create_processor") == ["Generate Test Data"]


@pytest.mark.parametrize("processor_count", [1, 3, 8])
def test_linear_chain_of_any_length(fake_client, processor_count: int) -> None:
    definition = FlowDefinition(
        processors=tuple(ProcessorSpec(name=f"Step {i}", type="UpdateAttribute") for i in range(processor_count)),
        connections=tuple(
            ConnectionSpec(from_index=i, to_index=i + 1, relationships=("success",))
            for i in range(processor_count - 1)
        ),
    )

    result = FlowBuilder(fake_client).build_flow(definition)

    assert result.success is True
    assert len(result.processor_ids) == processor_count
    assert len(result.connection_ids) == processor_count - 1
