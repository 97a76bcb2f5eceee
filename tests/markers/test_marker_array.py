"""Tests for markers.array: the immutable segment/marker model."""

import pytest

from knitcalc.markers import (
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
from knitcalc.schemas import Construction


@pytest.fixture
def flat():
    return MarkerArray((12, "L1", 20, "R1", 12))


@pytest.fixture
def round_array():
    return MarkerArray(("BOR", 10, "M1", 20, "M2", 10))


# ── Structure ──────────────────────────────────────────────────────────────────


class TestStructure:
    def test_list_promoted_to_tuple(self):
        array = MarkerArray([5, "M", 5])
        assert array.items == (5, "M", 5)

    def test_construction_inferred(self, flat, round_array):
        assert flat.construction == Construction.FLAT
        assert round_array.construction == Construction.ROUND

    def test_sum_stitches(self, flat, round_array):
        assert sum_stitches(flat) == 44
        assert sum_stitches(round_array) == 40

    def test_list_markers_excludes_bor(self, round_array):
        assert list_markers(round_array) == ["M1", "M2"]

    def test_zero_length_segments_allowed(self):
        array = MarkerArray((0, "A", 0, "B", 10))
        assert array.segments == (0, 0, 10)

    @pytest.mark.parametrize(
        "items",
        [
            (),
            (5, 5),
            ("M", 5),
            (5, "M"),
            (5, "M", -1),
            (5, "M", 5, "M", 5),
            (5, "BOR", 5),
            ("BOR",),
            (5, "end", 5),
            (True, "M", 5),
        ],
    )
    def test_invalid_layouts_rejected(self, items):
        with pytest.raises(MarkerArrayError):
            MarkerArray(items)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            MarkerArray((5, 5))


# ── Construction helpers ───────────────────────────────────────────────────────


class TestConstructionHelpers:
    def test_initial_flat(self):
        assert create_initial_array(40, "flat").items == (40,)

    def test_initial_round(self):
        assert create_initial_array(40, "round").items == ("BOR", 40)

    def test_place_markers_sorts_by_position(self):
        array = place_markers(40, [("R", 30), MarkerPlacement("L", 10)], "flat")
        assert array.items == (10, "L", 20, "R", 10)

    def test_place_markers_round(self):
        array = place_markers(
            96, [("M1", 24), ("M2", 48), ("M3", 72)], Construction.ROUND
        )
        assert array.items == ("BOR", 24, "M1", 24, "M2", 24, "M3", 24)

    def test_same_position_gives_zero_segment(self):
        array = place_markers(10, [("A", 5), ("B", 5)], "flat")
        assert array.items == (5, "A", 0, "B", 5)

    def test_position_out_of_range(self):
        with pytest.raises(MarkerArrayError, match="outside"):
            place_markers(10, [("A", 11)], "flat")


# ── Queries ────────────────────────────────────────────────────────────────────


class TestQueries:
    def test_marker_position(self, flat):
        assert marker_position(flat, "L1") == 12
        assert marker_position(flat, "R1") == 32

    def test_marker_context(self, flat):
        assert marker_context(flat, "R1") == (20, 12)

    def test_bor_context_wraps(self, round_array):
        # before BOR is the last segment, after BOR the first
        assert segment_index(round_array, "BOR", "before") == 5
        assert segment_index(round_array, "BOR", "after") == 1

    def test_edges(self, flat):
        assert segment_index(flat, "beginning", "before") == 0
        assert segment_index(flat, "end", "after") == 4

    def test_unknown_marker(self, flat):
        with pytest.raises(MarkerArrayError, match="not found"):
            marker_context(flat, "X")

    def test_bor_in_flat_array(self, flat):
        with pytest.raises(MarkerArrayError):
            segment_index(flat, "BOR", "before")

    @pytest.mark.parametrize("edge", ["beginning", "end"])
    def test_edges_in_round_array(self, round_array, edge):
        with pytest.raises(MarkerArrayError, match="flat arrays"):
            segment_index(round_array, edge, "before")

    def test_edge_delta_on_round_array(self, round_array):
        with pytest.raises(MarkerArrayError):
            apply_deltas(round_array, [MarkerDelta(("beginning",), before=1)])

    def test_format(self, flat, round_array):
        assert format_array(flat) == "[12] L1 [20] R1 [12]"
        assert format_array(round_array) == "BOR [10] M1 [20] M2 [10] ↻"


# ── Mutation ───────────────────────────────────────────────────────────────────


class TestApplyDeltas:
    def test_before_and_after(self, flat):
        result = apply_deltas(flat, [MarkerDelta(("L1",), before=-1, after=-1)])
        assert result.items == (11, "L1", 19, "R1", 12)

    def test_input_unchanged(self, flat):
        apply_deltas(flat, [MarkerDelta(("L1",), before=-1)])
        assert flat.items == (12, "L1", 20, "R1", 12)

    def test_simultaneous_semantics(self):
        # Both deltas hit the middle segment; applied one at a time the first
        # would take it to -1, but only the combined result is checked.
        array = MarkerArray((5, "A", 2, "B", 5))
        result = apply_deltas(
            array, [MarkerDelta(("A",), after=-3), MarkerDelta(("B",), before=2)]
        )
        assert result.items == (5, "A", 1, "B", 5)

    def test_order_does_not_matter(self, flat):
        deltas = [MarkerDelta(("L1",), after=1), MarkerDelta(("R1",), before=-1, after=1)]
        assert apply_deltas(flat, deltas) == apply_deltas(flat, list(reversed(deltas)))

    def test_edges_map_to_first_and_last(self, flat):
        result = apply_deltas(
            flat,
            [MarkerDelta(("beginning",), before=-1), MarkerDelta(("end",), after=-2)],
        )
        assert result.items == (11, "L1", 20, "R1", 10)

    def test_bor_both_sides(self, round_array):
        result = apply_deltas(round_array, [MarkerDelta(("BOR",), before=1, after=1)])
        assert result.items == ("BOR", 11, "M1", 20, "M2", 11)

    def test_multiple_markers_in_one_delta(self, round_array):
        result = apply_deltas(round_array, [MarkerDelta(("M1", "M2"), before=1, after=1)])
        assert result.items == ("BOR", 11, "M1", 22, "M2", 11)

    @pytest.mark.parametrize(
        "deltas",
        [
            [MarkerDelta(("L1",), before=3, after=-4)],
            [MarkerDelta(("L1", "R1"), before=1, after=1)],
            [MarkerDelta(("beginning",), before=-2), MarkerDelta(("R1",), after=5)],
            [],
        ],
    )
    def test_sum_invariant(self, flat, deltas):
        result = apply_deltas(flat, deltas)
        assert sum_stitches(result) == sum_stitches(flat) + sum(d.total for d in deltas)

    def test_negative_segment_raises(self):
        with pytest.raises(MarkerArrayError, match="drop to -1"):
            apply_deltas(MarkerArray((1, "M", 5)), [MarkerDelta(("M",), before=-2)])

    def test_unknown_marker_raises(self, flat):
        with pytest.raises(MarkerArrayError):
            apply_deltas(flat, [MarkerDelta(("X",), before=1)])
