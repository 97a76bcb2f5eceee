"""
Iteration / timing calculator for marker action sets.

compute_timing() answers "how many iterations, and where do the stitches
end up" for a simultaneous action set worked either a fixed number of times
or until a target stitch count is reached.

max_safe_iterations() answers "how many times can this action set be worked
before some segment runs out of stitches". It replays any completed phases
first, then simulates iterations against the evolved array. Each iteration
must find, in every segment it touches, at least the stitches its techniques
read (consumption) plus the plain stitches worked before them (distance).
A decrease removes every stitch it reads from its segment for the next
iteration; an increase adds its delta. The count is capped at
MAX_SIMULATED_ITERATIONS and never reported below 1.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from knitcalc.markers.array import MarkerArray, MarkerArrayError, segment_index
from knitcalc.markers.evolution import CompletedPhase, calculate_array_evolution
from knitcalc.markers.resolver import resolve_net_change, side_techniques, to_deltas
from knitcalc.schemas.action import POSITION_SIDES, ActionType, Position, ShapingAction
from knitcalc.schemas.construction import BEGINNING
from knitcalc.schemas.result import TimingResult
from knitcalc.techniques.registry import technique_consumption, technique_delta

logger = logging.getLogger(__name__)

MAX_SIMULATED_ITERATIONS = 100


class TimingMode(str, Enum):
    FIXED = "fixed"
    TARGET = "target"


@dataclass(frozen=True)
class TimingParams:
    """
    Attributes:
        frequency: Rows (or rounds) per iteration; the action set is worked
            on one of them.
        times: Iterations worked in fixed mode.
        target_stitches: Stitch count to reach in target mode.
    """

    frequency: int = 1
    times: int = 1
    target_stitches: int | None = None

    def __post_init__(self) -> None:
        if self.frequency < 1:
            raise ValueError(f"frequency must be >= 1, got {self.frequency}")
        if self.times < 0:
            raise ValueError(f"times must be >= 0, got {self.times}")
        if self.target_stitches is not None and self.target_stitches < 0:
            raise ValueError(f"target_stitches must be >= 0, got {self.target_stitches}")


def compute_timing(
    actions: Sequence[ShapingAction],
    array: MarkerArray,
    mode: TimingMode | str,
    params: TimingParams,
) -> TimingResult:
    """
    Compute iterations, rows and the ending stitch count for *actions*.

    Never raises for expected failures; every problem found is collected
    in ``TimingResult.errors``.
    """
    mode = TimingMode(mode)
    start = array.total_stitches
    change = resolve_net_change(actions)
    errors: list[str] = []

    try:
        to_deltas(actions, array)
    except MarkerArrayError as exc:
        errors.append(str(exc))

    match mode:
        case TimingMode.FIXED:
            iterations = params.times
        case TimingMode.TARGET:
            iterations = _iterations_to_target(start, change, params.target_stitches, errors)

    ending = start + change * iterations
    if ending < 0:
        errors.append(
            f"Calculation results in {ending} stitches - cannot remove more stitches than available"
        )

    logger.debug(
        "Timing (%s): %+d sts x %d iterations, %d -> %d",
        mode.value,
        change,
        iterations,
        start,
        ending,
    )
    return TimingResult(
        starting_stitches=start,
        ending_stitches=ending,
        stitch_change_per_iteration=change,
        total_iterations=iterations,
        total_rows=params.frequency * iterations,
        errors=tuple(errors),
    )


def _iterations_to_target(
    start: int, change: int, target: int | None, errors: list[str]
) -> int:
    if target is None:
        errors.append("target mode requires target_stitches")
        return 0
    difference = target - start
    if difference == 0:
        return 0
    if change == 0:
        errors.append("cannot reach target with zero net change per iteration")
        return 0
    if (difference > 0) != (change > 0):
        errors.append(
            f"cannot reach target {target} from {start}: the actions change the "
            f"count by {change:+d} per iteration"
        )
        return 0
    # Rounded up; the ending count may overshoot the target by the remainder.
    return math.ceil(abs(difference) / abs(change))


# ── Safety bound ───────────────────────────────────────────────────────────────


def _segment_demand(
    actions: Sequence[ShapingAction], array: MarkerArray
) -> dict[int, tuple[int, int]]:
    """
    Per touched segment: (stitches needed, simulated change) for one iteration.

    Raises:
        MarkerArrayError: If an action names a target missing from *array*.
    """
    demand: dict[int, list[int]] = {}

    def claim(target: str, side: str, technique: str, distance: int) -> None:
        index = segment_index(array, target, side)
        needed = technique_consumption(technique) + distance
        delta = technique_delta(technique)
        simulated = delta if delta >= 0 else -technique_consumption(technique)
        entry = demand.setdefault(index, [0, 0])
        entry[0] += needed
        entry[1] += simulated

    for action in actions:
        if not action.is_shaping:
            continue
        if action.action_type == ActionType.BIND_OFF:
            count = action.stitch_count or 0
            for target in action.effective_targets:
                side = "after" if action.position in (Position.AFTER, Position.AT_END) else "before"
                index = segment_index(array, target, side)
                entry = demand.setdefault(index, [0, 0])
                entry[0] += count + action.distance
                entry[1] -= count
            continue

        first, second = side_techniques(action)
        if action.position.is_edge:
            for target in action.effective_targets:
                if action.position == Position.BOTH_ENDS:
                    technique = first if target == BEGINNING else second
                else:
                    technique = action.technique
                claim(target, "before", technique, action.distance)
            continue

        for target in action.targets:
            if action.position == Position.BEFORE_AND_AFTER:
                claim(target, "before", first, action.distance)
                claim(target, "after", second, action.distance)
            else:
                (side,) = POSITION_SIDES[action.position]
                claim(target, side, action.technique, action.distance)

    return {index: (needed, change) for index, (needed, change) in demand.items()}


def max_safe_iterations(
    actions: Sequence[ShapingAction],
    array: MarkerArray,
    completed_phases: Sequence[CompletedPhase] = (),
) -> int:
    """
    Largest number of iterations that never leaves a segment short of stitches.

    Returns at least 1 so callers always have a usable upper bound; returns 1
    when the completed phases cannot be replayed or a target is missing.
    """
    evolution = calculate_array_evolution(actions, array, completed_phases)
    if evolution.error is not None:
        logger.warning("Safety bound falls back to 1: %s", evolution.error)
        return 1

    working = evolution.current
    try:
        demand = _segment_demand(actions, working)
    except MarkerArrayError as exc:
        logger.warning("Safety bound falls back to 1: %s", exc)
        return 1

    segments = list(working.items)
    count = 0
    while count < MAX_SIMULATED_ITERATIONS:
        if any(segments[index] < needed for index, (needed, _) in demand.items()):
            break
        for index, (_, change) in demand.items():
            segments[index] += change
        count += 1

    logger.debug("Safety bound: %d iterations from %s", count, list(working.items))
    return max(1, count)
