# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from nifi_agent.contracts.flow import ConnectionSpec, FlowDefinition, ProcessorSpec

# Every variable load_settings reads outside the NIFI_AGENT_ prefix
PLAIN_SETTINGS_ENV = ("NIFI_BASE_URL", "NIFI_USERNAME", "NIFI_PASSWORD", "OPENAI_API_KEY", "OPENAI_MODEL")


@pytest.fixture
def clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove settings variables inherited from the developer's shell."""
    for name in list(os.environ):
        if name.startswith("NIFI_AGENT_"):
            monkeypatch.delenv(name)
    for name in PLAIN_SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch


@pytest.fixture
def mqtt_definition() -> FlowDefinition:
    """Generate test data and publish it to an MQTT topic."""
    return FlowDefinition(
        flow_name="Test data to MQTT",
        processors=(
            ProcessorSpec(name="Generate Test Data", type="GenerateFlowFile"),
            ProcessorSpec(
                name="Publish to MQTT",
                type="PublishMQTT",
                properties={"Broker URI": "tcp://localhost:1883", "Topic": "sensors/demo"},
            ),
        ),
        connections=(ConnectionSpec(from_index=0, to_index=1, relationships=("success",)),),
    )


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
