"""
Phase calculators: ordered heterogeneous shaping phases and graduated
bind-offs, both producing a CalculationResult.
"""

from .bind_off import EMPTY_BIND_OFF_ERROR, STANDARD_METHOD, calculate_bind_off
from .sequential import (
    EMPTY_SEQUENCE_ERROR,
    MIN_REMAINING_STITCHES,
    PhaseSequence,
    calculate_sequence,
    clamp_decrease_phase,
    default_phase,
    describe_phase,
    phase_stitch_change,
    stitch_context_at,
)

__all__ = [
    # sequential
    "EMPTY_SEQUENCE_ERROR",
    "MIN_REMAINING_STITCHES",
    "PhaseSequence",
    "calculate_sequence",
    "clamp_decrease_phase",
    "default_phase",
    "describe_phase",
    "phase_stitch_change",
    "stitch_context_at",
    # bind-off
    "EMPTY_BIND_OFF_ERROR",
    "STANDARD_METHOD",
    "calculate_bind_off",
]
