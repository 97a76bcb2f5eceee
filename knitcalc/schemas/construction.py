"""Knitting topology: worked flat in rows or in the round."""

from __future__ import annotations

from enum import Enum

BOR = "BOR"
BEGINNING = "beginning"
END = "end"


class Construction(str, Enum):
    """
    Flat pieces are worked in rows and expose two edges (beginning and end).
    Round pieces are circular; the reserved BOR marker denotes the round boundary.
    """

    FLAT = "flat"
    ROUND = "round"
