"""
Graduated bind-off calculator (armhole, shoulder, neck steps).

Each GraduatedBindOffPhase binds off ``amount`` stitches ``times`` times at
the chosen position. Binding off at both edges takes two rows per time (one
from each side) and removes twice the stitches.

The calculator reports the resulting stitch count even when more stitches
are bound off than exist; callers reject such results via
``CalculationResult.overdrawn``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from knitcalc.schemas.construction import Construction
from knitcalc.schemas.phase import BindOffPosition, GraduatedBindOffPhase
from knitcalc.schemas.result import CalculationResult, PhaseDetail
from knitcalc.utilities.terminology import get_terms

logger = logging.getLogger(__name__)

STANDARD_METHOD = "standard"
EMPTY_BIND_OFF_ERROR = "Please add at least one bind-off phase"

_WHERE = {
    BindOffPosition.BOTH_EDGES: "at beginning of",
    BindOffPosition.BEGINNING: "at beginning of",
    BindOffPosition.END: "at end of",
    BindOffPosition.ALL_STITCHES: "across",
}


def calculate_bind_off(
    phases: Sequence[GraduatedBindOffPhase],
    position: BindOffPosition | str,
    current_stitches: int,
    construction: Construction | str = Construction.FLAT,
) -> CalculationResult:
    """
    Step through a graduated bind-off.

    Example: 40 stitches, both edges, one phase of 4 stitches 3 times
    binds off 24 stitches over 6 rows and leaves 16.
    """
    position = BindOffPosition(position)
    construction = Construction(construction)
    if not phases:
        return CalculationResult.failure(EMPTY_BIND_OFF_ERROR, current_stitches, construction)

    terms = get_terms(construction)
    both_edges = position == BindOffPosition.BOTH_EDGES
    position_multiplier = 2 if both_edges else 1
    rows_per_time = 2 if both_edges else 1

    stitches = current_stitches
    row = 1
    fragments: list[str] = []
    details: list[PhaseDetail] = []
    for phase in phases:
        consumed = phase.amount * position_multiplier * phase.times
        rows = rows_per_time * phase.times
        fragment = f"bind off {phase.amount} sts {_WHERE[position]} {terms.next_rows(rows)}"
        if phase.method != STANDARD_METHOD:
            fragment += f" using {phase.method}"
        fragments.append(fragment)

        details.append(
            PhaseDetail(
                phase_type="bind_off",
                description=fragment[:1].upper() + fragment[1:],
                row_start=row,
                row_end=row + rows - 1,
                stitch_change=-consumed,
                starting_stitches=stitches,
                ending_stitches=stitches - consumed,
            )
        )
        stitches -= consumed
        row += rows

    if stitches < 0:
        logger.warning(
            "Bind-off consumes %d stitches but only %d are available",
            current_stitches - stitches,
            current_stitches,
        )
    return CalculationResult(
        instruction=", then ".join(fragments),
        starting_stitches=current_stitches,
        ending_stitches=stitches,
        total_rows=row - 1,
        net_stitch_change=stitches - current_stitches,
        phases=tuple(details),
        construction=construction,
    )
