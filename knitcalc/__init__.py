"""
knitcalc: deterministic shaping calculations for knitting instructions.

Even distribution, sequential phase chaining, marker-array shaping with
timing and safety bounds, and graduated bind-offs. Every calculator is pure
and returns a result record; expected failures are carried in the result.
"""

from knitcalc.api import StepResult, calculate_step, load_config
from knitcalc.markers import (
    MarkerArray,
    calculate_marker_sequences,
    compute_timing,
    max_safe_iterations,
    resolve_net_change,
)
from knitcalc.phases import PhaseSequence, calculate_bind_off, calculate_sequence
from knitcalc.schemas import CalculationResult, Construction, ShapingAction
from knitcalc.utilities import distribute

__all__ = [
    "calculate_step",
    "load_config",
    "StepResult",
    "distribute",
    "calculate_sequence",
    "calculate_bind_off",
    "PhaseSequence",
    "MarkerArray",
    "resolve_net_change",
    "compute_timing",
    "calculate_marker_sequences",
    "max_safe_iterations",
    "CalculationResult",
    "Construction",
    "ShapingAction",
]
