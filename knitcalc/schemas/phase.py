"""
Phase schemas: typed, timed groupings of one shaping behaviour.

Phase is a tagged union of four frozen dataclasses. Each carries a
``phase_type`` class attribute so callers can dispatch with ``match`` on the
class or compare the tag when serialising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class PhaseType(str, Enum):
    DECREASE = "decrease"
    INCREASE = "increase"
    SETUP = "setup"
    BIND_OFF = "bind_off"


class PhasePosition(str, Enum):
    """Where a shaping row works its increases/decreases."""

    BEGINNING = "beginning"
    END = "end"
    BOTH_ENDS = "both_ends"


class BindOffPosition(str, Enum):
    """Where a graduated bind-off removes stitches."""

    BOTH_EDGES = "both_edges"
    BEGINNING = "beginning"
    END = "end"
    ALL_STITCHES = "all_stitches"


def _require_positive(name: str, value: int) -> None:
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class _ShapingPhase:
    """
    Repeated edge shaping: work ``amount`` stitches of shaping at ``position``
    on one row out of every ``frequency`` rows, ``times`` times.
    """

    amount: int
    position: PhasePosition
    frequency: int
    times: int

    def __post_init__(self) -> None:
        _require_positive("amount", self.amount)
        _require_positive("frequency", self.frequency)
        _require_positive("times", self.times)

    @property
    def per_row(self) -> int:
        """Stitches changed on each shaping row."""
        return self.amount * 2 if self.position == PhasePosition.BOTH_ENDS else self.amount

    @property
    def rows(self) -> int:
        return self.frequency * self.times


@dataclass(frozen=True)
class DecreasePhase(_ShapingPhase):
    phase_type: ClassVar[PhaseType] = PhaseType.DECREASE


@dataclass(frozen=True)
class IncreasePhase(_ShapingPhase):
    phase_type: ClassVar[PhaseType] = PhaseType.INCREASE


@dataclass(frozen=True)
class SetupPhase:
    """Plain rows worked without shaping."""

    rows: int
    phase_type: ClassVar[PhaseType] = PhaseType.SETUP

    def __post_init__(self) -> None:
        _require_positive("rows", self.rows)


@dataclass(frozen=True)
class BindOffPhase:
    """Bind off ``amount`` stitches at one edge on each of the next ``frequency`` rows."""

    amount: int
    frequency: int
    position: PhasePosition = PhasePosition.BEGINNING
    phase_type: ClassVar[PhaseType] = PhaseType.BIND_OFF

    def __post_init__(self) -> None:
        _require_positive("amount", self.amount)
        _require_positive("frequency", self.frequency)
        if self.position == PhasePosition.BOTH_ENDS:
            raise ValueError("bind-off phases work at 'beginning' or 'end', not 'both_ends'")

    @property
    def rows(self) -> int:
        return self.frequency


Phase = Union[DecreasePhase, IncreasePhase, SetupPhase, BindOffPhase]


@dataclass(frozen=True)
class GraduatedBindOffPhase:
    """
    One step of a stepped bind-off (e.g. armhole or shoulder shaping).

    Attributes:
        amount: Stitches bound off at each position per time.
        times: How many times the step is repeated.
        method: Bind-off method; anything other than "standard" is named
            in the instruction text (e.g. "sloped").
    """

    amount: int
    times: int = 1
    method: str = "standard"

    def __post_init__(self) -> None:
        _require_positive("amount", self.amount)
        _require_positive("times", self.times)
        if not self.method:
            raise ValueError("method must be non-empty")
