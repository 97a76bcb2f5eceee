"""
Core type definitions for the stitch technique table.

TechniqueEntry records are loaded from the YAML lookup table and are frozen
after startup and never written to at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

COMPOUND_SEPARATOR = "_"


class TechniqueCategory(str, Enum):
    """Broad effect of a technique on the stitch count."""

    PLAIN = "plain"
    DECREASE = "decrease"
    INCREASE = "increase"


@dataclass(frozen=True)
class TechniqueEntry:
    """
    One row of the technique table.

    Attributes:
        id: Technique symbol as written in instructions (e.g. "K2tog").
        category: Plain, decrease or increase.
        stitch_change: Net stitches added (+) or removed (-) per working.
        consumption: Stitches read from the existing fabric per working.
        description: Human-readable explanation.
    """

    id: str
    category: TechniqueCategory
    stitch_change: int
    consumption: int
    description: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("technique id must be non-empty")
        if COMPOUND_SEPARATOR in self.id:
            raise ValueError(
                f"technique id {self.id!r} must not contain {COMPOUND_SEPARATOR!r} "
                f"(reserved for compound techniques)"
            )
        if self.consumption < 0:
            raise ValueError(f"consumption must be >= 0, got {self.consumption} for {self.id!r}")

    @property
    def produces(self) -> int:
        """Stitches left on the needle after working the technique once."""
        return self.consumption + self.stitch_change
