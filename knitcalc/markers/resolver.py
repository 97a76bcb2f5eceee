"""
Action resolver: turn declarative ShapingActions into marker-array deltas and
net stitch changes.

Technique sides: a compound technique "A_B" works A on the before (or
beginning) side and B on the after (or end) side. A plain technique on a
two-sided position (before_and_after, both_ends) is worked on both sides.

Bind-off actions remove ``stitch_count`` stitches at each target; continue
actions change nothing.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from knitcalc.markers.array import MarkerArray, MarkerDelta, segment_index
from knitcalc.schemas.action import POSITION_SIDES, ActionType, Position, ShapingAction
from knitcalc.schemas.construction import BEGINNING, END
from knitcalc.techniques.registry import split_technique, technique_delta


def side_techniques(action: ShapingAction) -> tuple[str, str]:
    """
    Technique worked on the (before/beginning, after/end) side of each target.

    Only meaningful for two-sided positions; single-sided positions use the
    whole technique key.
    """
    parts = split_technique(action.technique)
    if len(parts) == 1:
        return parts[0], parts[0]
    return parts[0], parts[1]


def _bind_off_change(action: ShapingAction) -> int:
    return -(action.stitch_count or 0)


def action_net_change(action: ShapingAction) -> int:
    """Net stitch change of one action for one iteration."""
    if not action.is_shaping:
        return 0
    if action.action_type == ActionType.BIND_OFF:
        return _bind_off_change(action) * len(action.effective_targets)

    if action.position == Position.BOTH_ENDS:
        first, second = side_techniques(action)
        return technique_delta(first) + technique_delta(second)
    if action.position == Position.BEFORE_AND_AFTER:
        before, after = side_techniques(action)
        return (technique_delta(before) + technique_delta(after)) * len(action.targets)
    return technique_delta(action.technique) * len(action.effective_targets)


def resolve_net_change(actions: Iterable[ShapingAction]) -> int:
    """
    Net stitch change of one iteration of a simultaneous action set.

    Continue actions are skipped. A two-sided position counts both sides;
    otherwise the technique's delta is multiplied by the number of targets.
    """
    return sum(action_net_change(action) for action in actions)


def to_deltas(actions: Iterable[ShapingAction], array: MarkerArray) -> list[MarkerDelta]:
    """
    Map actions to the marker array's low-level delta form.

    Every target is checked against *array* so an unknown marker fails here
    rather than half-way through a simulation. The signed technique delta
    (not consumption) is used as the count, so
    ``sum(d.total for d in to_deltas(actions, a)) == resolve_net_change(actions)``.

    Raises:
        MarkerArrayError: If a target does not exist in *array*.
    """
    deltas: list[MarkerDelta] = []
    for action in actions:
        if not action.is_shaping:
            continue

        if action.action_type == ActionType.BIND_OFF:
            count = _bind_off_change(action)
            for target in action.effective_targets:
                side = "after" if action.position in (Position.AFTER, Position.AT_END) else "before"
                segment_index(array, target, side)
                deltas.append(_single_side(target, side, count))
            continue

        if action.position.is_edge:
            first, second = side_techniques(action)
            for target in action.effective_targets:
                if action.position == Position.BOTH_ENDS:
                    technique = first if target == BEGINNING else second
                else:
                    technique = action.technique
                segment_index(array, target, "before")
                if target == END:
                    deltas.append(MarkerDelta((END,), after=technique_delta(technique)))
                else:
                    deltas.append(MarkerDelta((BEGINNING,), before=technique_delta(technique)))
            continue

        for target in action.targets:
            for side in sorted(POSITION_SIDES[action.position]):
                segment_index(array, target, side)
            if action.position == Position.BEFORE_AND_AFTER:
                before, after = side_techniques(action)
                deltas.append(
                    MarkerDelta(
                        (target,), before=technique_delta(before), after=technique_delta(after)
                    )
                )
            elif action.position == Position.BEFORE:
                deltas.append(MarkerDelta((target,), before=technique_delta(action.technique)))
            else:
                deltas.append(MarkerDelta((target,), after=technique_delta(action.technique)))
    return deltas


def _single_side(target: str, side: str, count: int) -> MarkerDelta:
    if side == "after":
        return MarkerDelta((target,), after=count)
    return MarkerDelta((target,), before=count)


def _claims(position: Position, targets: Iterable[str]) -> set[tuple[str, str]]:
    """(target, side) pairs claimed by a position; edge positions claim the edges themselves."""
    if position.is_edge:
        return {(edge, edge) for edge in POSITION_SIDES[position]}
    return {(target, side) for target in targets for side in POSITION_SIDES[position]}


def position_conflict(
    new_position: Position | str,
    targets: Sequence[str],
    existing_actions: Iterable[ShapingAction],
) -> bool:
    """
    True if *new_position* overlaps a position already claimed on a shared target.

    ``before_and_after`` overlaps both ``before`` and ``after`` (and vice
    versa); ``both_ends`` overlaps ``at_beginning`` and ``at_end``.
    Continue actions claim nothing.
    """
    new_claims = _claims(Position(new_position), targets)
    for action in existing_actions:
        if not action.is_shaping:
            continue
        if new_claims & _claims(action.position, action.targets):
            return True
    return False
