"""
Result records returned by the calculators.

Results are derived values, never stored by the engine. Expected failures
(infeasible targets, insufficient stitches, negative running totals) are
carried in ``error`` / ``errors`` rather than raised, so callers can show the
message and keep the configuration editable.

``to_dict`` produces plain JSON-compatible data for collaborators that
persist the final configuration alongside its calculation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .construction import Construction


@dataclass(frozen=True)
class PhaseDetail:
    """Per-phase breakdown of a calculation. Rows are 1-based and inclusive."""

    phase_type: str
    description: str
    row_start: int
    row_end: int
    stitch_change: int
    starting_stitches: int
    ending_stitches: int

    @property
    def rows(self) -> int:
        return self.row_end - self.row_start + 1

    @property
    def row_range(self) -> str:
        """``"3-7"``, or ``"3"`` for a single-row phase."""
        if self.row_start == self.row_end:
            return str(self.row_start)
        return f"{self.row_start}-{self.row_end}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.phase_type,
            "description": self.description,
            "row_range": self.row_range,
            "rows": self.rows,
            "stitch_change": self.stitch_change,
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
        }


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of a sequential-phase or bind-off calculation."""

    instruction: str
    starting_stitches: int
    ending_stitches: int
    total_rows: int
    net_stitch_change: int
    phases: tuple[PhaseDetail, ...] = ()
    construction: Construction = Construction.FLAT
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    @property
    def overdrawn(self) -> bool:
        """True when more stitches were consumed than were available."""
        return self.ending_stitches < 0

    @classmethod
    def failure(
        cls, error: str, starting_stitches: int, construction: Construction = Construction.FLAT
    ) -> CalculationResult:
        """An error result: no instruction, no rows, stitch count unchanged."""
        return cls(
            instruction="",
            starting_stitches=starting_stitches,
            ending_stitches=starting_stitches,
            total_rows=0,
            net_stitch_change=0,
            phases=(),
            construction=construction,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "instruction": self.instruction,
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
            "total_rows": self.total_rows,
            "net_stitch_change": self.net_stitch_change,
            "phases": [p.to_dict() for p in self.phases],
            "construction": self.construction.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DistributionResult:
    """
    Outcome of an even distribution across one row/round.

    ``sections`` are the plain-stitch runs between shaping tokens, in working order.
    """

    instruction: str
    sections: tuple[int, ...]
    starting_stitches: int
    ending_stitches: int
    change_count: int
    construction: Construction
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "instruction": self.instruction,
            "sections": list(self.sections),
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
            "change_count": self.change_count,
            "construction": self.construction.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class TimingResult:
    """Stitch and row totals for an action set repeated over several iterations."""

    starting_stitches: int
    ending_stitches: int
    stitch_change_per_iteration: int
    total_iterations: int
    total_rows: int
    errors: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "starting_stitches": self.starting_stitches,
            "ending_stitches": self.ending_stitches,
            "stitch_change_per_iteration": self.stitch_change_per_iteration,
            "total_iterations": self.total_iterations,
            "total_rows": self.total_rows,
            "errors": list(self.errors),
        }
