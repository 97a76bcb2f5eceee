"""
Marker array model: the stitches on the needle as segments between markers.

A MarkerArray is an immutable sequence strictly alternating plain-stitch
segment counts (ints >= 0) and marker names (unique strings):

    flat:   [12, "L1", 20, "R1", 12]           starts and ends with a segment
    round:  ["BOR", 10, "M1", 20, "M2", 10]    BOR first, ends with a segment

Zero-length segments are kept so every marker always has a segment on each
side (round markers wrap: the segment before BOR is the last one). The sum of
the segments is the stitch count.

Mutation goes through apply_deltas(), which returns a new array. Structural
violations raise MarkerArrayError (a ValueError).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from knitcalc.schemas.construction import BEGINNING, BOR, END, Construction


Item = Union[int, str]

_RESERVED_NAMES = frozenset({BEGINNING, END})


class MarkerArrayError(ValueError):
    """Raised when a marker array would become structurally invalid."""


@dataclass(frozen=True)
class MarkerDelta:
    """
    Signed stitch-count changes next to one or more markers.

    ``before`` is added to the segment preceding each marker, ``after`` to the
    segment following it. The edge names "beginning" and "end" address the
    first and last segment of a flat piece (either side's count applies);
    "BOR" addresses the last segment (before) and the first segment (after).
    """

    markers: tuple[str, ...]
    before: int = 0
    after: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.markers, tuple):
            object.__setattr__(self, "markers", tuple(self.markers))

    @property
    def total(self) -> int:
        """Net stitch change this delta applies to the array."""
        return (self.before + self.after) * len(self.markers)


@dataclass(frozen=True)
class MarkerPlacement:
    """A marker placed after ``position`` stitches from the start of the row/round."""

    name: str
    position: int


@dataclass(frozen=True)
class MarkerArray:
    """Immutable segment/marker sequence. See module docstring for the layout."""

    items: tuple[Item, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        _validate_items(self.items)

    @property
    def construction(self) -> Construction:
        return Construction.ROUND if self.items[0] == BOR else Construction.FLAT

    @property
    def segments(self) -> tuple[int, ...]:
        return tuple(item for item in self.items if isinstance(item, int))

    @property
    def total_stitches(self) -> int:
        return sum(self.segments)

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> Item:
        return self.items[index]


def _validate_items(items: tuple[Item, ...]) -> None:
    if not items:
        raise MarkerArrayError("marker array cannot be empty")

    body = items[1:] if items[0] == BOR else items
    if not body:
        raise MarkerArrayError("a round marker array needs a segment after BOR")

    seen: set[str] = set()
    for i, item in enumerate(body):
        expect_segment = i % 2 == 0
        if expect_segment:
            if isinstance(item, bool) or not isinstance(item, int):
                raise MarkerArrayError(
                    f"expected a stitch segment at position {i}, got {item!r} in {list(items)}"
                )
            if item < 0:
                raise MarkerArrayError(f"negative stitch count at position {i}: {item}")
        else:
            if not isinstance(item, str) or not item:
                raise MarkerArrayError(
                    f"expected a marker name at position {i}, got {item!r} in {list(items)}"
                )
            if item == BOR:
                raise MarkerArrayError("BOR may only appear at the start of a round array")
            if item in _RESERVED_NAMES:
                raise MarkerArrayError(f"{item!r} is reserved for flat edges")
            if item in seen:
                raise MarkerArrayError(f"duplicate marker name {item!r}")
            seen.add(item)
    if len(body) % 2 == 0:
        raise MarkerArrayError(f"marker array must end with a stitch segment: {list(items)}")


# ── Construction ───────────────────────────────────────────────────────────────


def create_initial_array(total_stitches: int, construction: Construction | str) -> MarkerArray:
    """A marker-free array: ``[n]`` for flat, ``["BOR", n]`` for round."""
    return place_markers(total_stitches, (), construction)


def place_markers(
    total_stitches: int,
    placements: Iterable[MarkerPlacement | tuple[str, int]],
    construction: Construction | str,
) -> MarkerArray:
    """
    Build an array by placing named markers at absolute stitch positions.

    Placements are sorted by position; two markers at the same position get a
    zero-length segment between them.

    Raises:
        MarkerArrayError: If a position lies outside ``0..total_stitches``.
    """
    construction = Construction(construction)
    if total_stitches < 0:
        raise MarkerArrayError(f"total_stitches must be >= 0, got {total_stitches}")

    resolved = [p if isinstance(p, MarkerPlacement) else MarkerPlacement(*p) for p in placements]
    items: list[Item] = [BOR] if construction == Construction.ROUND else []
    current = 0
    for placement in sorted(resolved, key=lambda p: p.position):
        if not 0 <= placement.position <= total_stitches:
            raise MarkerArrayError(
                f"marker {placement.name!r} position {placement.position} is outside "
                f"0..{total_stitches}"
            )
        items.append(placement.position - current)
        items.append(placement.name)
        current = placement.position
    items.append(total_stitches - current)
    return MarkerArray(tuple(items))


# ── Queries ────────────────────────────────────────────────────────────────────


def sum_stitches(array: MarkerArray) -> int:
    """Total stitches across all segments."""
    return array.total_stitches


def list_markers(array: MarkerArray) -> list[str]:
    """Marker names in array order, excluding BOR."""
    return [item for item in array.items if isinstance(item, str) and item != BOR]


def _marker_index(array: MarkerArray, marker: str) -> int:
    try:
        return array.items.index(marker)
    except ValueError:
        raise MarkerArrayError(f"marker {marker!r} not found in {list(array.items)}") from None


def marker_position(array: MarkerArray, marker: str) -> int:
    """Number of stitches worked before reaching *marker*."""
    index = _marker_index(array, marker)
    return sum(item for item in array.items[:index] if isinstance(item, int))


def segment_index(array: MarkerArray, target: str, side: str) -> int:
    """
    Index in ``array.items`` of the segment next to *target* on *side*.

    *side* is "before" or "after". Edge targets ignore the side: "beginning"
    is the first segment and "end" the last.

    Raises:
        MarkerArrayError: For an unknown marker, an edge target on a round
            array, or BOR on a flat one.
    """
    items = array.items
    first = 1 if items[0] == BOR else 0
    last = len(items) - 1
    if target in (BEGINNING, END) and array.construction == Construction.ROUND:
        raise MarkerArrayError("edges only exist in flat arrays")
    if target == BEGINNING:
        return first
    if target == END:
        return last
    if side not in ("before", "after"):
        raise MarkerArrayError(f"side must be 'before' or 'after', got {side!r}")
    if target == BOR:
        if array.construction != Construction.ROUND:
            raise MarkerArrayError("BOR only exists in round arrays")
        return last if side == "before" else first
    index = _marker_index(array, target)
    return index - 1 if side == "before" else index + 1


def marker_context(array: MarkerArray, marker: str) -> tuple[int, int]:
    """Stitch counts of the segments (before, after) *marker*."""
    before = array.items[segment_index(array, marker, "before")]
    after = array.items[segment_index(array, marker, "after")]
    return int(before), int(after)


# ── Mutation ───────────────────────────────────────────────────────────────────


def apply_deltas(array: MarkerArray, deltas: Sequence[MarkerDelta]) -> MarkerArray:
    """
    Apply positional stitch changes and return a new array.

    All deltas are resolved against the array as passed in (simultaneous
    semantics), so the order of *deltas* does not matter. The result always
    satisfies ``sum_stitches(result) == sum_stitches(array) + sum(d.total)``.

    Raises:
        MarkerArrayError: If a delta names an unknown marker, or a segment
            would drop below zero.
    """
    adjustments: dict[int, int] = {}
    for delta in deltas:
        for marker in delta.markers:
            if marker in (BEGINNING, END):
                count = delta.before + delta.after
                if count:
                    index = segment_index(array, marker, "before")
                    adjustments[index] = adjustments.get(index, 0) + count
                continue
            for side, count in (("before", delta.before), ("after", delta.after)):
                if count:
                    index = segment_index(array, marker, side)
                    adjustments[index] = adjustments.get(index, 0) + count

    items = list(array.items)
    for index, change in adjustments.items():
        new_count = int(items[index]) + change
        if new_count < 0:
            raise MarkerArrayError(
                f"segment {index} would drop to {new_count} stitches "
                f"({items[index]} {change:+d}) in {list(array.items)}"
            )
        items[index] = new_count
    return MarkerArray(tuple(items))


# ── Display ────────────────────────────────────────────────────────────────────


def format_array(array: MarkerArray) -> str:
    """``"[12] L1 [20] R1 [12]"``; round arrays end with ``↻``."""
    text = " ".join(item if isinstance(item, str) else f"[{item}]" for item in array.items)
    if array.construction == Construction.ROUND:
        return f"{text} ↻"
    return text
