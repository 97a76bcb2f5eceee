"""
Simultaneous marker sequences.

A marker sequence is a named action set with its own schedule: it starts
immediately, after a number of plain rows, or on the row after an earlier
sequence ends, and then works its actions on the shaping rows its phases
describe:

- ``initial``: one shaping row.
- ``repeat``: ``times`` intervals of ``rows`` rows, shaping on the last row
  of each interval ("every 4th row 3 times").
- ``finish``: ``rows`` plain rows.

calculate_marker_sequences() lays every sequence onto one row timeline and
walks it row by row. On a row where several sequences shape, their action
sets are applied one after another in sequence order, each against the array
the previous one left. The array after every row is kept so callers can
show the segments changing, e.g. raglan increases worked at the same time as
neckline decreases.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from knitcalc.markers.array import MarkerArray, MarkerArrayError, apply_deltas
from knitcalc.markers.resolver import to_deltas
from knitcalc.schemas.action import ShapingAction

logger = logging.getLogger(__name__)

EMPTY_SEQUENCES_ERROR = "At least one sequence is required"


class SequencePhaseType(str, Enum):
    INITIAL = "initial"
    REPEAT = "repeat"
    FINISH = "finish"


class StartCondition(str, Enum):
    IMMEDIATE = "immediate"
    AFTER_ROWS = "after_rows"
    AFTER_SEQUENCE = "after_sequence"


@dataclass(frozen=True)
class SequencePhase:
    """
    One block of a sequence's schedule.

    Attributes:
        phase_type: initial, repeat or finish.
        times: Repeats of the interval (``repeat`` only).
        rows: Interval length for ``repeat``, plain rows for ``finish``.
    """

    phase_type: SequencePhaseType
    times: int = 1
    rows: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "phase_type", SequencePhaseType(self.phase_type))
        if self.times < 1:
            raise ValueError(f"times must be >= 1, got {self.times}")
        if self.rows < 1:
            raise ValueError(f"rows must be >= 1, got {self.rows}")


@dataclass(frozen=True)
class MarkerSequence:
    """
    A named action set worked on its own schedule.

    ``start_value`` is the number of plain rows to wait for ``after_rows`` and
    the name of an earlier sequence for ``after_sequence``.
    """

    name: str
    actions: tuple[ShapingAction, ...]
    phases: tuple[SequencePhase, ...]
    start: StartCondition = StartCondition.IMMEDIATE
    start_value: Union[int, str, None] = None

    def __post_init__(self) -> None:
        if not isinstance(self.actions, tuple):
            object.__setattr__(self, "actions", tuple(self.actions))
        if not isinstance(self.phases, tuple):
            object.__setattr__(self, "phases", tuple(self.phases))
        object.__setattr__(self, "start", StartCondition(self.start))
        if not self.name:
            raise ValueError("sequence name must be non-empty")
        match self.start:
            case StartCondition.AFTER_ROWS:
                if not isinstance(self.start_value, int) or self.start_value < 0:
                    raise ValueError(
                        f"after_rows needs a row count >= 0, got {self.start_value!r}"
                    )
            case StartCondition.AFTER_SEQUENCE:
                if not isinstance(self.start_value, str) or not self.start_value:
                    raise ValueError(
                        f"after_sequence needs a sequence name, got {self.start_value!r}"
                    )


@dataclass(frozen=True)
class SequenceTimeline:
    """Where one sequence sits on the shared timeline. Rows are 1-based and inclusive."""

    name: str
    start_row: int
    end_row: int
    active_rows: tuple[int, ...]

    @property
    def total_rows(self) -> int:
        return self.end_row - self.start_row + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "start_row": self.start_row,
            "end_row": self.end_row,
            "active_rows": list(self.active_rows),
        }


@dataclass(frozen=True)
class RowState:
    """The array after one row, and which sequences shaped on it."""

    row: int
    array: MarkerArray
    active_sequences: tuple[str, ...]

    @property
    def total_stitches(self) -> int:
        return self.array.total_stitches


@dataclass(frozen=True)
class SequencesResult:
    instruction: str
    starting_stitches: int
    ending_stitches: int
    total_rows: int
    final_array: MarkerArray
    evolution: tuple[RowState, ...] = ()
    timelines: tuple[SequenceTimeline, ...] = ()
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    @property
    def net_stitch_change(self) -> int:
        return self.ending_stitches - self.starting_stitches

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "instruction": self.instruction,
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
            "net_stitch_change": self.net_stitch_change,
            "total_rows": self.total_rows,
            "final_array": list(self.final_array.items),
            "array_evolution": [
                {
                    "row": state.row,
                    "array": list(state.array.items),
                    "active_sequences": list(state.active_sequences),
                    "total_stitches": state.total_stitches,
                }
                for state in self.evolution
            ],
            "sequences": [timeline.to_dict() for timeline in self.timelines],
        }
        if self.error is not None:
            data["error"] = self.error
        return data


# ── Scheduling ─────────────────────────────────────────────────────────────────


def shaping_rows(start_row: int, phases: Sequence[SequencePhase]) -> tuple[tuple[int, ...], int]:
    """
    Rows on which a schedule starting at *start_row* shapes.

    Returns the shaping rows and the first row after the schedule.
    """
    rows: list[int] = []
    row = start_row
    for phase in phases:
        match phase.phase_type:
            case SequencePhaseType.INITIAL:
                rows.append(row)
                row += 1
            case SequencePhaseType.REPEAT:
                for _ in range(phase.times):
                    row += phase.rows - 1
                    rows.append(row)
                    row += 1
            case SequencePhaseType.FINISH:
                row += phase.rows
    return tuple(rows), row


def _start_row(sequence: MarkerSequence, placed: dict[str, SequenceTimeline]) -> int:
    match sequence.start:
        case StartCondition.IMMEDIATE:
            return 1
        case StartCondition.AFTER_ROWS:
            return sequence.start_value + 1
        case StartCondition.AFTER_SEQUENCE:
            return placed[sequence.start_value].end_row + 1


def sequence_timelines(sequences: Sequence[MarkerSequence]) -> tuple[SequenceTimeline, ...]:
    """
    Place every sequence on the shared timeline, in order.

    Raises:
        KeyError: If a sequence starts after one not placed before it; run
            validate_sequences() first to get a readable message instead.
    """
    placed: dict[str, SequenceTimeline] = {}
    for sequence in sequences:
        start = _start_row(sequence, placed)
        active, next_row = shaping_rows(start, sequence.phases)
        placed[sequence.name] = SequenceTimeline(
            name=sequence.name,
            start_row=start,
            end_row=next_row - 1,
            active_rows=active,
        )
    return tuple(placed.values())


def validate_sequences(
    sequences: Sequence[MarkerSequence], initial_array: MarkerArray
) -> list[str]:
    """Every problem that keeps *sequences* from being laid out on *initial_array*."""
    if not sequences:
        return [EMPTY_SEQUENCES_ERROR]

    errors: list[str] = []
    seen: set[str] = set()
    for sequence in sequences:
        label = f'Sequence "{sequence.name}"'
        if sequence.name in seen:
            errors.append(f"{label} is defined more than once")
        if not sequence.phases:
            errors.append(f"{label} has no phases")
        if not any(action.is_shaping for action in sequence.actions):
            errors.append(f"{label} has no shaping actions")
        if sequence.start == StartCondition.AFTER_SEQUENCE and sequence.start_value not in seen:
            errors.append(
                f"{label} starts after {sequence.start_value!r}, "
                "which is not defined before it"
            )
        try:
            to_deltas(sequence.actions, initial_array)
        except MarkerArrayError as exc:
            errors.append(f"{label}: {exc}")
        seen.add(sequence.name)
    return errors


# ── Calculation ────────────────────────────────────────────────────────────────


def _instruction(sequences: Sequence[MarkerSequence]) -> str:
    names = [sequence.name for sequence in sequences]
    if len(names) > 1:
        return f"{', '.join(names)} at the same time"
    return names[0]


def calculate_marker_sequences(
    sequences: Sequence[MarkerSequence], initial_array: MarkerArray
) -> SequencesResult:
    """
    Work several marker sequences at the same time on *initial_array*.

    Never raises for expected failures: invalid sequences and a row that
    would push a segment below zero are reported in ``error``, with the
    evolution up to the last row that could be worked.
    """
    start = initial_array.total_stitches
    errors = validate_sequences(sequences, initial_array)
    if errors:
        return SequencesResult(
            instruction="",
            starting_stitches=start,
            ending_stitches=start,
            total_rows=0,
            final_array=initial_array,
            error="; ".join(errors),
        )

    timelines = sequence_timelines(sequences)
    total_rows = max(timeline.end_row for timeline in timelines)
    current = initial_array
    evolution: list[RowState] = []
    for row in range(1, total_rows + 1):
        active = [
            (sequence, timeline)
            for sequence, timeline in zip(sequences, timelines)
            if row in timeline.active_rows
        ]
        worked = current
        try:
            for sequence, _ in active:
                worked = apply_deltas(worked, to_deltas(sequence.actions, worked))
        except MarkerArrayError as exc:
            logger.warning("Marker sequences stopped at row %d: %s", row, exc)
            return SequencesResult(
                instruction="",
                starting_stitches=start,
                ending_stitches=current.total_stitches,
                total_rows=row - 1,
                final_array=current,
                evolution=tuple(evolution),
                timelines=timelines,
                error=f"Row {row}: {exc}",
            )
        current = worked
        evolution.append(
            RowState(
                row=row,
                array=current,
                active_sequences=tuple(timeline.name for _, timeline in active),
            )
        )

    logger.debug(
        "Marker sequences: %d sequences over %d rows, %d -> %d",
        len(sequences),
        total_rows,
        start,
        current.total_stitches,
    )
    return SequencesResult(
        instruction=_instruction(sequences),
        starting_stitches=start,
        ending_stitches=current.total_stitches,
        total_rows=total_rows,
        final_array=current,
        evolution=tuple(evolution),
        timelines=timelines,
    )
