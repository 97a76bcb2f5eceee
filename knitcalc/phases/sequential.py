"""
Sequential phase calculator.

Phases are processed strictly left to right, carrying a running stitch count
and row counter. Each phase contributes one instruction fragment and one
PhaseDetail; fragments are joined with ", then ". A sequence whose running
total drops below zero at any phase boundary fails as a whole: the result
carries the error and no partial breakdown.

PhaseSequence is the editing surface: only the last phase can be replaced or
removed, so the running totals of earlier phases never change under the
caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from knitcalc.schemas.construction import Construction
from knitcalc.schemas.phase import (
    BindOffPhase,
    DecreasePhase,
    IncreasePhase,
    Phase,
    PhasePosition,
    PhaseType,
    SetupPhase,
)
from knitcalc.schemas.result import CalculationResult, PhaseDetail
from knitcalc.utilities.terminology import ConstructionTerms, get_terms

logger = logging.getLogger(__name__)

MIN_REMAINING_STITCHES = 2
EMPTY_SEQUENCE_ERROR = "Please add at least one phase"


# ── Per-phase arithmetic and wording ───────────────────────────────────────────


def phase_stitch_change(phase: Phase) -> int:
    """Net stitch change of one phase (negative for decreases and bind-offs)."""
    match phase:
        case DecreasePhase():
            return -phase.per_row * phase.times
        case IncreasePhase():
            return phase.per_row * phase.times
        case BindOffPhase():
            return -phase.amount * phase.frequency
        case SetupPhase():
            return 0
    raise TypeError(f"unknown phase type: {type(phase).__name__}")


def _position_text(position: PhasePosition, terms: ConstructionTerms) -> str:
    if position == PhasePosition.BOTH_ENDS:
        return terms.at_both_ends
    return f"at {position.value}"


def _fragment(phase: Phase, terms: ConstructionTerms) -> str:
    """Lower-case instruction fragment used in the joined sequence instruction."""
    match phase:
        case SetupPhase():
            return f"work {phase.rows} plain {terms.rows_word(phase.rows)}"
        case BindOffPhase():
            return (
                f"bind off {phase.amount} sts at {phase.position.value} of next "
                f"{phase.frequency} {terms.rows_word(phase.frequency)}"
            )
        case DecreasePhase() | IncreasePhase():
            return (
                f"{phase.phase_type.value} {phase.amount} st "
                f"{_position_text(phase.position, terms)} {terms.every(phase.frequency)} "
                f"{phase.times} times"
            )
    raise TypeError(f"unknown phase type: {type(phase).__name__}")


def describe_phase(phase: Phase, construction: Construction | str = Construction.FLAT) -> str:
    """Human-readable description of one phase, e.g. for a phase list."""
    terms = get_terms(Construction(construction))
    match phase:
        case SetupPhase():
            return terms.plain_rows(phase.rows)
        case BindOffPhase():
            return (
                f"Bind off {phase.amount} stitches at {phase.position.value} of "
                f"{terms.next_rows(phase.frequency)} "
                f"({phase.amount * phase.frequency} stitches total)"
            )
        case DecreasePhase() | IncreasePhase():
            verb = "Decrease" if isinstance(phase, DecreasePhase) else "Increase"
            stitch_word = "stitch" if phase.amount == 1 else "stitches"
            return (
                f"{verb} {phase.amount} {stitch_word} {_position_text(phase.position, terms)} "
                f"{terms.every(phase.frequency)} {phase.times} times "
                f"({phase.rows} {terms.rows_word(phase.rows)})"
            )
    raise TypeError(f"unknown phase type: {type(phase).__name__}")


def default_phase(phase_type: PhaseType | str) -> Phase:
    """A new phase of *phase_type* with the usual starting values."""
    match PhaseType(phase_type):
        case PhaseType.DECREASE:
            return DecreasePhase(amount=1, position=PhasePosition.BOTH_ENDS, frequency=2, times=1)
        case PhaseType.INCREASE:
            return IncreasePhase(amount=1, position=PhasePosition.BOTH_ENDS, frequency=2, times=1)
        case PhaseType.SETUP:
            return SetupPhase(rows=1)
        case PhaseType.BIND_OFF:
            return BindOffPhase(amount=1, frequency=1, position=PhasePosition.BEGINNING)


# ── Sequence calculation ───────────────────────────────────────────────────────


def calculate_sequence(
    phases: Sequence[Phase],
    current_stitches: int,
    construction: Construction | str = Construction.FLAT,
) -> CalculationResult:
    """
    Chain *phases* starting from *current_stitches*.

    Returns a CalculationResult; ``error`` is set when the sequence is empty
    or the running total goes negative after any phase.
    """
    construction = Construction(construction)
    if not phases:
        return CalculationResult.failure(EMPTY_SEQUENCE_ERROR, current_stitches, construction)

    terms = get_terms(construction)
    stitches = current_stitches
    row = 1
    fragments: list[str] = []
    details: list[PhaseDetail] = []

    for index, phase in enumerate(phases):
        change = phase_stitch_change(phase)
        starting = stitches
        stitches += change
        if stitches < 0:
            logger.debug("Phase %d drives the count to %d", index + 1, stitches)
            return CalculationResult.failure(
                f"Calculation results in {stitches} stitches - "
                "cannot bind off more stitches than available",
                current_stitches,
                construction,
            )

        fragments.append(_fragment(phase, terms))
        details.append(
            PhaseDetail(
                phase_type=phase.phase_type.value,
                description=describe_phase(phase, construction),
                row_start=row,
                row_end=row + phase.rows - 1,
                stitch_change=change,
                starting_stitches=starting,
                ending_stitches=stitches,
            )
        )
        row += phase.rows

    total_rows = row - 1
    logger.debug(
        "Sequential phases: %d phases, %d -> %d stitches over %d rows",
        len(phases),
        current_stitches,
        stitches,
        total_rows,
    )
    return CalculationResult(
        instruction=", then ".join(fragments),
        starting_stitches=current_stitches,
        ending_stitches=stitches,
        total_rows=total_rows,
        net_stitch_change=stitches - current_stitches,
        phases=tuple(details),
        construction=construction,
    )


def stitch_context_at(
    phases: Sequence[Phase],
    editing_index: int | None,
    current_stitches: int,
) -> int:
    """
    Stitches available at the start of the phase being added or edited.

    Only phases strictly before *editing_index* are counted; ``None`` means a
    new phase appended after all of them. Once a running total goes negative
    the sequence cannot be worked, so every later context is 0.
    """
    preceding = phases if editing_index is None else phases[:editing_index]
    running = current_stitches
    for phase in preceding:
        running += phase_stitch_change(phase)
        if running < 0:
            return 0
    return running


def clamp_decrease_phase(phase: Phase, available_stitches: int) -> Phase:
    """
    Limit a decrease phase's ``times`` so at least MIN_REMAINING_STITCHES stay.

    Other phase types are returned unchanged. ``times`` never drops below 1,
    so with very few stitches available the floor may still be crossed.
    """
    if not isinstance(phase, DecreasePhase):
        return phase
    max_times = max(1, (available_stitches - MIN_REMAINING_STITCHES) // phase.per_row)
    if phase.times <= max_times:
        return phase
    logger.warning(
        "Clamping decrease phase from %d to %d times (%d stitches available)",
        phase.times,
        max_times,
        available_stitches,
    )
    return replace(phase, times=max_times)


# ── Editing surface ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PhaseSequence:
    """
    Ordered phases plus the stitch count and construction they start from.

    Every edit returns a new sequence. Decrease phases are clamped against
    the stitches available where they are inserted.
    """

    current_stitches: int
    construction: Construction = Construction.FLAT
    phases: tuple[Phase, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.phases, tuple):
            object.__setattr__(self, "phases", tuple(self.phases))
        if self.current_stitches < 0:
            raise ValueError(f"current_stitches must be >= 0, got {self.current_stitches}")

    def __len__(self) -> int:
        return len(self.phases)

    @property
    def available_stitches(self) -> int:
        """Stitches available to a phase appended now."""
        return stitch_context_at(self.phases, None, self.current_stitches)

    def append(self, phase: Phase) -> PhaseSequence:
        clamped = clamp_decrease_phase(phase, self.available_stitches)
        return replace(self, phases=self.phases + (clamped,))

    def replace_last(self, phase: Phase) -> PhaseSequence:
        if not self.phases:
            raise ValueError("cannot replace the last phase of an empty sequence")
        available = stitch_context_at(self.phases, len(self.phases) - 1, self.current_stitches)
        clamped = clamp_decrease_phase(phase, available)
        return replace(self, phases=self.phases[:-1] + (clamped,))

    def remove_last(self) -> PhaseSequence:
        if not self.phases:
            raise ValueError("cannot remove the last phase of an empty sequence")
        return replace(self, phases=self.phases[:-1])

    def calculate(self) -> CalculationResult:
        return calculate_sequence(self.phases, self.current_stitches, self.construction)
