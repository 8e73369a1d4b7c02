"""Canvas placement for new processors.

A new flow is laid out as a single column. The column starts to the right
of everything already in the group, so a build never stacks processors on
top of existing ones (NiFi renders overlapping components as one).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from nifi_agent.contracts.results import Position

DEFAULT_START_X = 100.0
START_Y = 100.0
SPACING_X = 450.0
SPACING_Y = 200.0


@dataclass(frozen=True)
class ColumnLayout:
    start_x: float
    start_y: float = START_Y
    spacing_y: float = SPACING_Y

    def position(self, index: int) -> Position:
        """Position of the processor at ``index`` in the definition."""
        return Position(x=self.start_x, y=self.start_y + index * self.spacing_y)


def compute_start_x(existing: Iterable[Position]) -> float:
    """Column x for a new flow: right of the rightmost existing processor, or the default."""
    xs = [position.x for position in existing]
    if not xs:
        return DEFAULT_START_X
    return max(xs) + SPACING_X


def layout_for(existing: Iterable[Position]) -> ColumnLayout:
    return ColumnLayout(start_x=compute_start_x(existing))
