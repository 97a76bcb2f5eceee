"""Tests for phases.bind_off: graduated bind-off sequencing."""

import pytest

from knitcalc.phases import EMPTY_BIND_OFF_ERROR, calculate_bind_off
from knitcalc.schemas import BindOffPosition, GraduatedBindOffPhase


class TestCalculateBindOff:
    def test_both_edges_example(self):
        result = calculate_bind_off(
            [GraduatedBindOffPhase(amount=4, times=3)], BindOffPosition.BOTH_EDGES, 40
        )
        assert result.passed is True
        assert result.net_stitch_change == -24
        assert result.total_rows == 6
        assert result.ending_stitches == 16
        assert result.instruction == "bind off 4 sts at beginning of next 6 rows"

    def test_single_edge_takes_one_row_per_time(self):
        result = calculate_bind_off([GraduatedBindOffPhase(amount=3, times=2)], "end", 20)
        assert result.total_rows == 2
        assert result.ending_stitches == 14
        assert result.instruction == "bind off 3 sts at end of next 2 rows"

    def test_stepped_phases(self):
        phases = [
            GraduatedBindOffPhase(amount=5),
            GraduatedBindOffPhase(amount=3, times=2, method="sloped"),
            GraduatedBindOffPhase(amount=2),
        ]
        result = calculate_bind_off(phases, "both_edges", 60)
        assert result.instruction == (
            "bind off 5 sts at beginning of next 2 rows, then "
            "bind off 3 sts at beginning of next 4 rows using sloped, then "
            "bind off 2 sts at beginning of next 2 rows"
        )
        assert [p.row_range for p in result.phases] == ["1-2", "3-6", "7-8"]
        assert [p.ending_stitches for p in result.phases] == [50, 38, 34]
        assert result.total_rows == 8

    def test_single_row_phase(self):
        result = calculate_bind_off([GraduatedBindOffPhase(amount=10)], "all_stitches", 10)
        assert result.instruction == "bind off 10 sts across next row"
        assert result.phases[0].row_range == "1"
        assert result.ending_stitches == 0

    def test_round_wording(self):
        result = calculate_bind_off(
            [GraduatedBindOffPhase(amount=4, times=2)], "beginning", 40, "round"
        )
        assert result.instruction == "bind off 4 sts at beginning of next 2 rounds"

    def test_over_consumption_is_reported_not_failed(self):
        result = calculate_bind_off([GraduatedBindOffPhase(amount=10, times=3)], "both_edges", 40)
        assert result.passed is True
        assert result.ending_stitches == -20
        assert result.overdrawn is True

    def test_empty_phases(self):
        result = calculate_bind_off([], "both_edges", 40)
        assert result.passed is False
        assert result.error == EMPTY_BIND_OFF_ERROR

    def test_unknown_position_raises(self):
        with pytest.raises(ValueError):
            calculate_bind_off([GraduatedBindOffPhase(amount=1)], "middle", 10)

    def test_phase_validation(self):
        with pytest.raises(ValueError):
            GraduatedBindOffPhase(amount=0)
