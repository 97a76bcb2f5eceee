"""
Marker-based shaping: the segment/marker array, the action resolver, the
timing calculator with its safety bound, marker row instruction text, and
several marker sequences worked at the same time.
"""

from .array import (
    Item,
    MarkerArray,
    MarkerArrayError,
    MarkerDelta,
    MarkerPlacement,
    apply_deltas,
    create_initial_array,
    format_array,
    list_markers,
    marker_context,
    marker_position,
    place_markers,
    segment_index,
    sum_stitches,
)
from .evolution import ArrayEvolution, CompletedPhase, EvolutionStep, calculate_array_evolution
from .instructions import (
    NO_ACTIONS_INSTRUCTION,
    MarkerRowInstruction,
    describe_marker_row,
    describe_timing,
    marker_instruction_preview,
)
from .resolver import action_net_change, position_conflict, resolve_net_change, to_deltas
from .sequences import (
    EMPTY_SEQUENCES_ERROR,
    MarkerSequence,
    RowState,
    SequencePhase,
    SequencePhaseType,
    SequencesResult,
    SequenceTimeline,
    StartCondition,
    calculate_marker_sequences,
    sequence_timelines,
    shaping_rows,
    validate_sequences,
)
from .timing import (
    MAX_SIMULATED_ITERATIONS,
    TimingMode,
    TimingParams,
    compute_timing,
    max_safe_iterations,
)

__all__ = [
    # array
    "Item",
    "MarkerArray",
    "MarkerArrayError",
    "MarkerDelta",
    "MarkerPlacement",
    "create_initial_array",
    "place_markers",
    "sum_stitches",
    "list_markers",
    "marker_position",
    "marker_context",
    "segment_index",
    "apply_deltas",
    "format_array",
    # resolver
    "action_net_change",
    "resolve_net_change",
    "to_deltas",
    "position_conflict",
    # evolution
    "ArrayEvolution",
    "CompletedPhase",
    "EvolutionStep",
    "calculate_array_evolution",
    # timing
    "MAX_SIMULATED_ITERATIONS",
    "TimingMode",
    "TimingParams",
    "compute_timing",
    "max_safe_iterations",
    # instructions
    "NO_ACTIONS_INSTRUCTION",
    "MarkerRowInstruction",
    "describe_marker_row",
    "describe_timing",
    "marker_instruction_preview",
    # sequences
    "EMPTY_SEQUENCES_ERROR",
    "SequencePhaseType",
    "StartCondition",
    "SequencePhase",
    "MarkerSequence",
    "SequenceTimeline",
    "RowState",
    "SequencesResult",
    "shaping_rows",
    "sequence_timelines",
    "validate_sequences",
    "calculate_marker_sequences",
]
