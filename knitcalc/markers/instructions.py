"""
Instruction text for marker-based shaping rows.

describe_marker_row() walks a marker array from the start of the row (or
BOR) to its end and says what to do at each marker:

    flat:   "work in stockinette until 2 stitches before marker, K2tog,
             slip marker, SSK, work to marker, slip marker, work to end"
    round:  "k1, M1L, work in stockinette to marker, slip marker, work until
             1 stitch before end of round, M1R, k1"

Techniques worked before a marker (or before the end) are reached by
working until ``consumption + distance`` stitches remain; techniques worked
after a marker follow ``k{distance}``.

marker_instruction_preview() adds the timing suffix ("every other row
8 times", "every 4 rounds until 96 stitches remain") and the per-iteration
stitch change.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from knitcalc.markers.array import MarkerArray, list_markers
from knitcalc.markers.resolver import resolve_net_change, side_techniques, to_deltas
from knitcalc.markers.timing import TimingMode, TimingParams
from knitcalc.schemas.action import ActionType, Position, ShapingAction
from knitcalc.schemas.construction import BEGINNING, BOR, END, Construction
from knitcalc.techniques.registry import technique_consumption
from knitcalc.utilities.terminology import get_terms

NO_ACTIONS_INSTRUCTION = "No actions defined yet"


@dataclass(frozen=True)
class MarkerRowInstruction:
    instruction: str
    stitch_change: int


@dataclass(frozen=True)
class _Work:
    """One technique worked on one side of a target."""

    label: str
    needed: int
    distance: int


def _stitches(count: int) -> str:
    return "1 stitch" if count == 1 else f"{count} stitches"


def _work_for(action: ShapingAction, technique: str) -> _Work:
    if action.action_type == ActionType.BIND_OFF:
        count = action.stitch_count or 0
        return _Work(f"bind off {count} sts", count + action.distance, action.distance)
    return _Work(technique, technique_consumption(technique) + action.distance, action.distance)


def _group_by_side(actions: Sequence[ShapingAction]) -> dict[tuple[str, str], list[_Work]]:
    """Map (target, side) to the techniques worked there, in action order."""
    grouped: dict[tuple[str, str], list[_Work]] = {}

    def add(target: str, side: str, work: _Work) -> None:
        grouped.setdefault((target, side), []).append(work)

    for action in actions:
        if not action.is_shaping:
            continue
        first, second = side_techniques(action)
        match action.position:
            case Position.BOTH_ENDS:
                add(BEGINNING, "after", _work_for(action, first))
                add(END, "before", _work_for(action, second))
            case Position.AT_BEGINNING:
                add(BEGINNING, "after", _work_for(action, action.technique))
            case Position.AT_END:
                add(END, "before", _work_for(action, action.technique))
            case Position.BEFORE_AND_AFTER:
                for target in action.targets:
                    add(target, "before", _work_for(action, first))
                    add(target, "after", _work_for(action, second))
            case Position.BEFORE:
                for target in action.targets:
                    add(target, "before", _work_for(action, action.technique))
            case Position.AFTER:
                for target in action.targets:
                    add(target, "after", _work_for(action, action.technique))
    return grouped


class _RowWriter:
    """Accumulates instruction parts; the first plain stretch names the pattern."""

    def __init__(self, base_pattern: str) -> None:
        self.parts: list[str] = []
        self._base_pattern = base_pattern
        self._pattern_named = False

    def _work(self) -> str:
        if self._pattern_named:
            return "work"
        self._pattern_named = True
        return f"work in {self._base_pattern}"

    def work_to(self, landmark: str) -> None:
        self.parts.append(f"{self._work()} to {landmark}")

    def work_before(self, works: list[_Work], landmark: str) -> None:
        needed = sum(w.needed for w in works)
        if needed > 0:
            self.parts.append(f"{self._work()} until {_stitches(needed)} before {landmark}")
        else:
            self.work_to(landmark)
        for work in works:
            self.parts.append(work.label)
            if work.distance > 0:
                self.parts.append(f"k{work.distance}")

    def work_after(self, works: list[_Work]) -> None:
        for work in works:
            if work.distance > 0:
                self.parts.append(f"k{work.distance}")
            self.parts.append(work.label)


def describe_marker_row(
    actions: Sequence[ShapingAction],
    array: MarkerArray,
    base_pattern: str = "pattern",
) -> MarkerRowInstruction:
    """
    Instruction text for one shaping row/round of *actions* on *array*.

    Raises:
        MarkerArrayError: If an action targets a marker missing from *array*,
            or an edge of a round array.
    """
    to_deltas(actions, array)
    grouped = _group_by_side(actions)
    is_round = array.construction == Construction.ROUND
    start, finish = (BOR, BOR) if is_round else (BEGINNING, END)
    end_landmark = "end of round" if is_round else "end"

    writer = _RowWriter(base_pattern)
    writer.work_after(grouped.get((start, "after"), []))
    for marker in list_markers(array):
        before = grouped.get((marker, "before"))
        if before:
            writer.work_before(before, "marker")
        else:
            writer.work_to("marker")
        writer.parts.append("slip marker")
        writer.work_after(grouped.get((marker, "after"), []))

    closing = grouped.get((finish, "before"))
    if closing:
        writer.work_before(closing, end_landmark)
    else:
        writer.work_to(end_landmark)

    return MarkerRowInstruction(
        instruction=", ".join(writer.parts),
        stitch_change=resolve_net_change(actions),
    )


def describe_timing(
    mode: TimingMode | str,
    params: TimingParams,
    construction: Construction | str,
) -> str:
    """Repeat suffix: "every other row 8 times", "every round until 96 stitches remain"."""
    terms = get_terms(Construction(construction))
    every = terms.every(params.frequency)
    if TimingMode(mode) == TimingMode.TARGET and params.target_stitches is not None:
        return f"{every} until {params.target_stitches} stitches remain"
    times = "1 time" if params.times == 1 else f"{params.times} times"
    return f"{every} {times}"


def marker_instruction_preview(
    actions: Sequence[ShapingAction],
    array: MarkerArray,
    mode: TimingMode | str,
    params: TimingParams,
    base_pattern: str = "pattern",
) -> str:
    """
    Full one-line preview of a marker shaping step.

    Raises:
        MarkerArrayError: If an action targets a marker missing from *array*.
    """
    if not actions:
        return NO_ACTIONS_INSTRUCTION
    row = describe_marker_row(actions, array, base_pattern)
    text = row.instruction[:1].upper() + row.instruction[1:]
    timing = describe_timing(mode, params, array.construction)
    if row.stitch_change == 0:
        return f"{text} {timing}"
    return f"{text} {timing} ({row.stitch_change:+d} sts)"
