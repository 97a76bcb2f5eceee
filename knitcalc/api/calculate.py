"""
Public step calculation API.

calculate_step() takes one step configuration mapping and dispatches on its
``shaping_type`` to the matching calculator. It returns a StepResult
regardless of whether the configuration is valid or the shaping is
feasible, so callers can show the error and keep the step editable.

Supported shaping types:

- ``even_distribution``: ``action``, ``amount``
- ``sequential_phases``: ``phases``
- ``bind_off_shaping``: ``position``, ``phases``
- ``marker_timing``: ``marker_array`` or ``markers``, ``actions``,
  ``timing``, optional ``completed_phases`` and ``base_pattern``
- ``marker_sequences``: ``marker_array`` or ``markers``, ``sequences``
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from knitcalc.api.config import (
    InvalidConfigurationError,
    action_from_dict,
    bind_off_phase_from_dict,
    completed_phases_from,
    construction_from,
    current_stitches_from,
    marker_array_from_dict,
    marker_sequence_from_dict,
    phase_from_dict,
    sequence_from,
    timing_from_dict,
)
from knitcalc.markers.array import MarkerArrayError
from knitcalc.markers.instructions import marker_instruction_preview
from knitcalc.markers.sequences import SequencesResult, calculate_marker_sequences
from knitcalc.markers.timing import compute_timing, max_safe_iterations
from knitcalc.phases.bind_off import calculate_bind_off
from knitcalc.phases.sequential import calculate_sequence
from knitcalc.schemas.phase import BindOffPosition
from knitcalc.schemas.result import CalculationResult, DistributionResult, TimingResult
from knitcalc.utilities.distribution import DistributionAction, distribute

logger = logging.getLogger(__name__)

SHAPING_TYPES = (
    "even_distribution",
    "sequential_phases",
    "bind_off_shaping",
    "marker_timing",
    "marker_sequences",
)

Detail = Union[CalculationResult, DistributionResult, TimingResult, SequencesResult]


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of calculating one configured step.

    Attributes:
        shaping_type: The configuration's ``shaping_type``.
        instruction: Instruction text, or "" on error.
        starting_stitches: Stitches before the step (0 if unknown).
        ending_stitches: Stitches after the step.
        total_rows: Rows (or rounds) the step takes.
        error: Error message, or None when the step is valid.
        detail: The calculator's own result, or None if the configuration
            could not be parsed.
        max_safe_iterations: Safety bound for marker timing steps.
    """

    shaping_type: str
    instruction: str
    starting_stitches: int
    ending_stitches: int
    total_rows: int
    error: str | None = None
    detail: Detail | None = None
    max_safe_iterations: int | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "shaping_type": self.shaping_type,
            "instruction": self.instruction,
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
            "total_rows": self.total_rows,
        }
        if self.detail is not None:
            data["detail"] = self.detail.to_dict()
        if self.max_safe_iterations is not None:
            data["max_safe_iterations"] = self.max_safe_iterations
        if self.error is not None:
            data["error"] = self.error
        return data


def _failure(shaping_type: str, error: str, starting_stitches: int = 0) -> StepResult:
    return StepResult(
        shaping_type=shaping_type,
        instruction="",
        starting_stitches=starting_stitches,
        ending_stitches=starting_stitches,
        total_rows=0,
        error=error,
    )


def _from_calculation(shaping_type: str, result: CalculationResult) -> StepResult:
    error = result.error
    if error is None and result.overdrawn:
        error = (
            f"Calculation results in {result.ending_stitches} stitches - "
            "cannot bind off more stitches than available"
        )
    return StepResult(
        shaping_type=shaping_type,
        instruction=result.instruction,
        starting_stitches=result.starting_stitches,
        ending_stitches=result.ending_stitches,
        total_rows=result.total_rows,
        error=error,
        detail=result,
    )


# ── Per shaping type ───────────────────────────────────────────────────────────


def _even_distribution(config: Mapping[str, Any]) -> StepResult:
    current = current_stitches_from(config)
    construction = construction_from(config)
    try:
        action = DistributionAction(config.get("action"))
    except ValueError:
        raise InvalidConfigurationError(
            f"even_distribution: unknown action {config.get('action')!r}"
        ) from None
    amount = config.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidConfigurationError(
            f"even_distribution: amount must be a non-negative integer, got {amount!r}"
        )

    result = distribute(current, action, amount, construction)
    return StepResult(
        shaping_type="even_distribution",
        instruction=result.instruction,
        starting_stitches=result.starting_stitches,
        ending_stitches=result.ending_stitches,
        total_rows=1,
        error=result.error,
        detail=result,
    )


def _sequential_phases(config: Mapping[str, Any]) -> StepResult:
    current = current_stitches_from(config)
    construction = construction_from(config)
    phases = [phase_from_dict(p) for p in sequence_from(config, "phases", "sequential_phases")]
    return _from_calculation("sequential_phases", calculate_sequence(phases, current, construction))


def _bind_off_shaping(config: Mapping[str, Any]) -> StepResult:
    current = current_stitches_from(config)
    construction = construction_from(config)
    try:
        position = BindOffPosition(config.get("position", "both_edges"))
    except ValueError:
        raise InvalidConfigurationError(
            f"bind_off_shaping: unknown position {config.get('position')!r}"
        ) from None
    phases = [
        bind_off_phase_from_dict(p) for p in sequence_from(config, "phases", "bind_off_shaping")
    ]
    result = calculate_bind_off(phases, position, current, construction)
    return _from_calculation("bind_off_shaping", result)


def _marker_timing(config: Mapping[str, Any]) -> StepResult:
    construction = construction_from(config)
    array = marker_array_from_dict(config, construction)
    actions = [action_from_dict(a) for a in sequence_from(config, "actions", "marker_timing")]
    if not actions:
        raise InvalidConfigurationError("marker_timing: at least one action is required")
    mode, params = timing_from_dict(config.get("timing") or {})
    completed = completed_phases_from(config)

    timing = compute_timing(actions, array, mode, params)
    if not timing.passed:
        return StepResult(
            shaping_type="marker_timing",
            instruction="",
            starting_stitches=timing.starting_stitches,
            ending_stitches=timing.starting_stitches,
            total_rows=0,
            error="; ".join(timing.errors),
            detail=timing,
        )

    instruction = marker_instruction_preview(
        actions, array, mode, params, str(config.get("base_pattern", "pattern"))
    )
    return StepResult(
        shaping_type="marker_timing",
        instruction=instruction,
        starting_stitches=timing.starting_stitches,
        ending_stitches=timing.ending_stitches,
        total_rows=timing.total_rows,
        detail=timing,
        max_safe_iterations=max_safe_iterations(actions, array, completed),
    )


def _marker_sequences(config: Mapping[str, Any]) -> StepResult:
    construction = construction_from(config)
    array = marker_array_from_dict(config, construction)
    sequences = [
        marker_sequence_from_dict(s) for s in sequence_from(config, "sequences", "marker_sequences")
    ]
    result = calculate_marker_sequences(sequences, array)
    return StepResult(
        shaping_type="marker_sequences",
        instruction=result.instruction,
        starting_stitches=result.starting_stitches,
        ending_stitches=result.ending_stitches,
        total_rows=result.total_rows,
        error=result.error,
        detail=result,
    )


_DISPATCH = {
    "even_distribution": _even_distribution,
    "sequential_phases": _sequential_phases,
    "bind_off_shaping": _bind_off_shaping,
    "marker_timing": _marker_timing,
    "marker_sequences": _marker_sequences,
}


def calculate_step(config: Mapping[str, Any]) -> StepResult:
    """
    Calculate one configured shaping step.

    Returns
    -------
    StepResult
        Always returned; never raises for malformed configuration. Inspect
        ``passed`` and ``error``.
    """
    if not isinstance(config, Mapping):
        return _failure("", f"step configuration must be a mapping, got {type(config).__name__}")
    shaping_type = str(config.get("shaping_type", ""))
    handler = _DISPATCH.get(shaping_type)
    if handler is None:
        allowed = ", ".join(SHAPING_TYPES)
        return _failure(
            shaping_type, f"Unknown shaping type {shaping_type!r} (expected one of: {allowed})"
        )

    try:
        return handler(config)
    except (InvalidConfigurationError, MarkerArrayError) as exc:
        logger.warning("Rejected %s configuration: %s", shaping_type, exc)
        starting = config.get("current_stitches")
        return _failure(shaping_type, str(exc), starting if isinstance(starting, int) else 0)
