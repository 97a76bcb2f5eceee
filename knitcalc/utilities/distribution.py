"""
Even distribution calculator: spread increases/decreases evenly across one
row or round.

The row is split into plain-stitch sections with one shaping token between
neighbouring sections. A flat row has one more section than changes (the row
starts and ends with plain stitches); a round has exactly as many sections as
changes, with a closing token after the last section.

When the plain stitches do not divide evenly, the extra stitches go one each
to ``remainder`` sections:

- round: spread around the circle with stride ceil(sections / remainder),
  then topped up in index order so exactly ``remainder`` sections grow;
- flat: the sections closest to the centre of the row grow (ties go to the
  lower index), keeping the edges symmetric.

Example (flat, decrease 5 from 30): 20 plain stitches over 6 sections →
base 3, remainder 2 → sections [3, 3, 4, 4, 3, 3] →
K3, K2tog, K3, K2tog, K4, K2tog, K4, K2tog, K3, K2tog, K3 → 25 stitches.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

from knitcalc.schemas.construction import Construction
from knitcalc.schemas.result import DistributionResult

logger = logging.getLogger(__name__)

NO_CHANGE_INSTRUCTION = "No changes needed"


class DistributionAction(str, Enum):
    """Direction of an even distribution."""

    INCREASE = "increase"
    DECREASE = "decrease"

    @property
    def token(self) -> str:
        return "inc" if self == DistributionAction.INCREASE else "K2tog"


def distribute(
    current_stitches: int,
    action: DistributionAction | str,
    amount: int,
    construction: Construction | str,
) -> DistributionResult:
    """
    Compute an evenly spaced increase/decrease row.

    Args:
        current_stitches: Stitches on the needle before the row.
        action: "increase" or "decrease".
        amount: Number of increases/decreases to work.
        construction: Flat (rows) or round.

    Returns:
        DistributionResult. ``error`` is set (and ``sections`` empty) when the
        target count would be <= 0 or there are too few stitches to host the
        sections; nothing is raised for these cases.

    Raises:
        ValueError: If amount or current_stitches is negative, or action /
            construction are not recognised values.
    """
    action = DistributionAction(action)
    construction = Construction(construction)
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")
    if current_stitches < 0:
        raise ValueError(f"current_stitches must be >= 0, got {current_stitches}")

    target = (
        current_stitches + amount
        if action == DistributionAction.INCREASE
        else current_stitches - amount
    )

    if amount == 0:
        return DistributionResult(
            instruction=NO_CHANGE_INSTRUCTION,
            sections=(),
            starting_stitches=current_stitches,
            ending_stitches=current_stitches,
            change_count=0,
            construction=construction,
        )

    if target <= 0:
        return _failure(
            f"Cannot end with {target} stitches - must be at least 1 stitch",
            current_stitches,
            construction,
        )

    num_sections = amount if construction == Construction.ROUND else amount + 1
    if current_stitches < num_sections:
        return _failure(
            f"Impossible: {amount} {action.value}s would create {num_sections} sections, "
            f"but only {current_stitches} stitches available",
            current_stitches,
            construction,
        )

    # Each decrease reads two stitches; increases read none.
    if action == DistributionAction.DECREASE:
        stitches_for_sections = current_stitches - 2 * amount
    else:
        stitches_for_sections = current_stitches
    if stitches_for_sections < 0:
        return _failure(
            f"Impossible: {amount} decreases need {2 * amount} stitches, "
            f"but only {current_stitches} stitches available",
            current_stitches,
            construction,
        )

    base, remainder = divmod(stitches_for_sections, num_sections)
    if construction == Construction.ROUND:
        larger = _spread_round(num_sections, remainder)
    else:
        larger = _centre_weighted(num_sections, remainder)
    sections = tuple(base + 1 if i in larger else base for i in range(num_sections))

    instruction = ", ".join(_tokens(sections, action.token, construction))
    logger.debug(
        "Distributed %d %ss over %d sections (base %d, remainder %d): %s",
        amount,
        action.value,
        num_sections,
        base,
        remainder,
        instruction,
    )
    return DistributionResult(
        instruction=instruction,
        sections=sections,
        starting_stitches=current_stitches,
        ending_stitches=target,
        change_count=amount,
        construction=construction,
    )


def _failure(message: str, current_stitches: int, construction: Construction) -> DistributionResult:
    logger.debug("Distribution rejected: %s", message)
    return DistributionResult(
        instruction="",
        sections=(),
        starting_stitches=current_stitches,
        ending_stitches=current_stitches,
        change_count=0,
        construction=construction,
        error=message,
    )


def _spread_round(num_sections: int, remainder: int) -> set[int]:
    """Indices of the ``remainder`` sections that get an extra stitch in a round."""
    if remainder == 0:
        return set()
    stride = math.ceil(num_sections / remainder)
    larger = set(range(0, num_sections, stride))
    # The stride alone can leave the count short (e.g. 6 sections, 4 extras).
    for i in range(num_sections):
        if len(larger) >= remainder:
            break
        larger.add(i)
    return larger


def _centre_weighted(num_sections: int, remainder: int) -> set[int]:
    """Indices of the ``remainder`` sections closest to the centre of a flat row."""
    centre = num_sections // 2
    by_distance = sorted(range(num_sections), key=lambda i: (abs(i - centre), i))
    return set(by_distance[:remainder])


def _tokens(sections: tuple[int, ...], change: str, construction: Construction) -> list[str]:
    parts: list[str] = []
    last = len(sections) - 1
    for i, count in enumerate(sections):
        if count > 0:
            parts.append(f"K{count}")
        if i < last or construction == Construction.ROUND:
            parts.append(change)
    return parts
