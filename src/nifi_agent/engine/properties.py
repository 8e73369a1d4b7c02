"""Property and relationship resolution for one processor.

Pure functions: no client calls, no logging. The builder applies them in
this order, which matters:

1. ``merge_properties`` - catalog defaults, then explicit properties
2. ``apply_completion_rules`` - fill still-empty keys from the entry's policy
3. ``substitute_service_references`` - overwrite with realized service ids

Step 3 runs last so a property that has both a default and a service
reference always ends up holding the service identifier.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from nifi_agent.catalog import ProcessorTypeInfo


def merge_properties(defaults: Mapping[str, str], explicit: Mapping[str, str]) -> dict[str, str]:
    """Explicit values win over defaults on key collision."""
    return {**defaults, **explicit}


def apply_completion_rules(entry: ProcessorTypeInfo | None, properties: dict[str, str]) -> list[str]:
    """Apply the entry's ensure-default rules in place.

    Returns:
        Names of the properties that were filled
    """
    if entry is None:
        return []
    return [rule.property_name for rule in entry.ensure_defaults if rule.apply(properties)]


def is_source(index: int, outgoing: Iterable[int]) -> bool:
    """A processor is a source iff some connection leaves it."""
    return index in outgoing


def resolve_auto_terminate(
    index: int,
    explicit: Sequence[str] | None,
    entry: ProcessorTypeInfo | None,
    outgoing: frozenset[int],
) -> list[str]:
    """Relationships to auto-terminate for the processor at ``index``.

    Starts from the explicit list (order kept) and, for sinks whose catalog
    entry declares sink relationships, appends each one not already present.
    Never mutates ``explicit``.
    """
    relationships = list(explicit or ())
    if entry is None or is_source(index, outgoing):
        return relationships
    for relationship in entry.sink_auto_terminate:
        if relationship not in relationships:
            relationships.append(relationship)
    return relationships


@dataclass(frozen=True)
class UnresolvedReference:
    """A service reference whose service was never realized."""

    service_index: int
    property_name: str


def substitute_service_references(
    properties: dict[str, str],
    references: Iterable[tuple[int, str]],
    service_ids: Mapping[int, str],
) -> list[UnresolvedReference]:
    """Overwrite referenced properties with realized service identifiers, in place.

    Args:
        properties: Merged property map for one processor
        references: (service_index, property_name) pairs naming this processor
        service_ids: service_index -> realized identifier, from the services phase

    Returns:
        References that could not be resolved (their service failed to create);
        those properties are left untouched
    """
    unresolved: list[UnresolvedReference] = []
    for service_index, property_name in references:
        service_id = service_ids.get(service_index)
        if service_id is None:
            unresolved.append(UnresolvedReference(service_index, property_name))
            continue
        properties[property_name] = service_id
    return unresolved
