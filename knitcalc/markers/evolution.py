"""
Array evolution: replay an action set over completed phases.

Each completed phase repeats the same simultaneous action set ``times``
times. The evolution records the array after every phase so callers can show
how the segments between markers grow or shrink, and so the timing
calculator can start its safety simulation from the current state.

A phase that would push a segment below zero stops the replay; the failure
is reported in ``error`` rather than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable

from knitcalc.markers.array import MarkerArray, MarkerArrayError, apply_deltas
from knitcalc.markers.resolver import to_deltas
from knitcalc.schemas.action import ShapingAction

logger = logging.getLogger(__name__)


@runtime_checkable
class Repeated(Protocol):
    """Anything that says how many times an action set was worked."""

    times: int


CompletedPhase = Union[int, Repeated]


@dataclass(frozen=True)
class EvolutionStep:
    phase_index: int
    times: int
    array: MarkerArray

    @property
    def total_stitches(self) -> int:
        return self.array.total_stitches


@dataclass(frozen=True)
class ArrayEvolution:
    starting: MarkerArray
    steps: tuple[EvolutionStep, ...]
    current: MarkerArray
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None


def _times_of(phase: CompletedPhase) -> int:
    times = phase if isinstance(phase, int) else phase.times
    if times < 0:
        raise ValueError(f"completed phase times must be >= 0, got {times}")
    return times


def calculate_array_evolution(
    actions: Sequence[ShapingAction],
    starting_array: MarkerArray,
    completed_phases: Sequence[CompletedPhase],
) -> ArrayEvolution:
    """
    Apply *actions* ``times`` times for each completed phase, in order.

    Returns an ArrayEvolution whose ``current`` is the array after the last
    phase that could be applied in full.
    """
    current = starting_array
    steps: list[EvolutionStep] = []
    for index, phase in enumerate(completed_phases):
        times = _times_of(phase)
        try:
            for _ in range(times):
                current = apply_deltas(current, to_deltas(actions, current))
        except MarkerArrayError as exc:
            logger.warning("Array evolution stopped at phase %d: %s", index + 1, exc)
            return ArrayEvolution(
                starting=starting_array,
                steps=tuple(steps),
                current=current,
                error=f"Phase {index + 1}: {exc}",
            )
        steps.append(EvolutionStep(phase_index=index, times=times, array=current))

    return ArrayEvolution(starting=starting_array, steps=tuple(steps), current=current)
