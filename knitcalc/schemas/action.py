"""
Declarative shaping actions.

A ShapingAction names where a technique is worked (a set of markers, the
edges of a flat piece, or the BOR boundary of a round piece), on which side,
how many plain stitches away, and which technique. Several actions worked in
the same row form one simultaneous action set.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .construction import BEGINNING, BOR, END


class TargetType(str, Enum):
    MARKERS = "markers"
    EDGES = "edges"
    BOR = "bor"
    CONTINUE = "continue"


class ActionType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    BIND_OFF = "bind_off"
    CONTINUE = "continue"


class Position(str, Enum):
    """Side of a marker, or edge(s) of a flat piece, where the technique is worked."""

    BEFORE = "before"
    AFTER = "after"
    BEFORE_AND_AFTER = "before_and_after"
    AT_BEGINNING = "at_beginning"
    AT_END = "at_end"
    BOTH_ENDS = "both_ends"

    @property
    def is_edge(self) -> bool:
        return self in _EDGE_POSITIONS


_EDGE_POSITIONS = frozenset({Position.AT_BEGINNING, Position.AT_END, Position.BOTH_ENDS})

# Sides of a marker (or edges of the piece) claimed by each position.
POSITION_SIDES: dict[Position, frozenset[str]] = {
    Position.BEFORE: frozenset({"before"}),
    Position.AFTER: frozenset({"after"}),
    Position.BEFORE_AND_AFTER: frozenset({"before", "after"}),
    Position.AT_BEGINNING: frozenset({BEGINNING}),
    Position.AT_END: frozenset({END}),
    Position.BOTH_ENDS: frozenset({BEGINNING, END}),
}


@dataclass(frozen=True)
class ShapingAction:
    """
    One declarative shaping operation.

    Attributes:
        target_type: What the action is anchored to.
        targets: Marker names, BOR, or edge names. For edge actions the
            edges are implied by ``position`` and ``targets`` may be empty.
        position: Side of the marker or edge(s) of the piece.
        action_type: Increase, decrease, bind off, or continue (no shaping).
        technique: Technique table key, or compound ``"A_B"`` (A on the
            before/beginning side, B on the after/end side).
        distance: Plain stitches worked between the marker/edge and the technique.
        stitch_count: Explicit stitch count for bind-off style actions.
    """

    target_type: TargetType
    targets: tuple[str, ...]
    position: Position
    action_type: ActionType
    technique: str = ""
    distance: int = 0
    stitch_count: int | None = None

    def __post_init__(self) -> None:
        # Accept lists at construction sites and promote to a tuple.
        if not isinstance(self.targets, tuple):
            object.__setattr__(self, "targets", tuple(self.targets))
        if self.distance < 0:
            raise ValueError(f"distance must be >= 0, got {self.distance}")
        if self.stitch_count is not None and self.stitch_count < 0:
            raise ValueError(f"stitch_count must be >= 0, got {self.stitch_count}")
        if self.target_type == TargetType.CONTINUE:
            return
        if self.target_type == TargetType.EDGES:
            if not self.position.is_edge:
                raise ValueError(
                    f"edge actions need an edge position, got {self.position.value!r}"
                )
            unknown = [t for t in self.targets if t not in (BEGINNING, END)]
            if unknown:
                raise ValueError(f"edge targets must be 'beginning' or 'end', got {unknown}")
            return
        if self.position.is_edge:
            raise ValueError(
                f"{self.target_type.value} actions need a marker position, "
                f"got {self.position.value!r}"
            )
        if not self.targets:
            raise ValueError(f"{self.target_type.value} actions need at least one target")
        if self.target_type == TargetType.BOR and self.targets != (BOR,):
            raise ValueError(f"bor actions must target only {BOR!r}, got {list(self.targets)}")

    @property
    def is_shaping(self) -> bool:
        """False for continue actions, which change nothing."""
        return self.action_type != ActionType.CONTINUE and self.target_type != TargetType.CONTINUE

    @property
    def effective_targets(self) -> tuple[str, ...]:
        """Targets the action is worked at; edge actions derive them from ``position``."""
        if self.target_type != TargetType.EDGES:
            return self.targets
        if self.position == Position.AT_BEGINNING:
            return (BEGINNING,)
        if self.position == Position.AT_END:
            return (END,)
        return (BEGINNING, END)
