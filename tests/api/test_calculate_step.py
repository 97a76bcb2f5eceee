"""Tests for the calculate_step() entry point."""

import pytest

from knitcalc import StepResult, calculate_step, load_config
from knitcalc.schemas import CalculationResult, DistributionResult, TimingResult


def marker_step(**overrides):
    config = {
        "shaping_type": "marker_timing",
        "construction": "flat",
        "marker_array": [5, "M1", 5],
        "actions": [
            {
                "target_type": "markers",
                "targets": ["M1"],
                "position": "before",
                "action_type": "decrease",
                "technique": "K2tog",
            }
        ],
        "timing": {"mode": "fixed", "frequency": 1, "times": 2},
    }
    config.update(overrides)
    return config


class TestEvenDistribution:
    def test_decrease(self):
        result = calculate_step(
            {
                "shaping_type": "even_distribution",
                "current_stitches": 30,
                "construction": "flat",
                "action": "decrease",
                "amount": 5,
            }
        )
        assert isinstance(result, StepResult)
        assert result.passed is True
        assert result.ending_stitches == 25
        assert result.total_rows == 1
        assert result.instruction == "K3, K2tog, K3, K2tog, K4, K2tog, K4, K2tog, K3, K2tog, K3"
        assert isinstance(result.detail, DistributionResult)

    def test_bad_amount(self):
        result = calculate_step(
            {
                "shaping_type": "even_distribution",
                "current_stitches": 30,
                "action": "decrease",
                "amount": "five",
            }
        )
        assert result.passed is False
        assert "amount" in result.error
        assert result.starting_stitches == 30


class TestSequentialPhases:
    def test_single_decrease(self):
        result = calculate_step(
            {
                "shaping_type": "sequential_phases",
                "current_stitches": 50,
                "phases": [
                    {
                        "type": "decrease",
                        "config": {
                            "amount": 1,
                            "position": "both_ends",
                            "frequency": 2,
                            "times": 5,
                        },
                    }
                ],
            }
        )
        assert result.passed is True
        assert (result.starting_stitches, result.ending_stitches) == (50, 40)
        assert result.total_rows == 10
        assert isinstance(result.detail, CalculationResult)

    def test_no_phases(self):
        result = calculate_step({"shaping_type": "sequential_phases", "current_stitches": 50})
        assert result.passed is False
        assert result.error == "Please add at least one phase"

    def test_malformed_phase_never_raises(self):
        result = calculate_step(
            {
                "shaping_type": "sequential_phases",
                "current_stitches": 50,
                "phases": [{"type": "decrease", "config": {"amount": 1}}],
            }
        )
        assert result.passed is False
        assert "missing required key" in result.error
        assert result.detail is None


class TestBindOffShaping:
    def test_both_edges(self):
        result = calculate_step(
            {
                "shaping_type": "bind_off_shaping",
                "current_stitches": 40,
                "position": "both_edges",
                "phases": [{"amount": 4, "times": 3}],
            }
        )
        assert result.passed is True
        assert result.ending_stitches == 16
        assert result.total_rows == 6

    def test_overdrawn_is_an_error(self):
        result = calculate_step(
            {
                "shaping_type": "bind_off_shaping",
                "current_stitches": 40,
                "phases": [{"amount": 10, "times": 3}],
            }
        )
        assert result.passed is False
        assert "-20 stitches" in result.error
        assert result.detail.overdrawn is True

    def test_unknown_position(self):
        result = calculate_step(
            {
                "shaping_type": "bind_off_shaping",
                "current_stitches": 40,
                "position": "middle",
                "phases": [{"amount": 2}],
            }
        )
        assert result.passed is False
        assert "'middle'" in result.error


class TestMarkerTiming:
    def test_fixed_timing(self):
        result = calculate_step(marker_step())
        assert result.passed is True
        assert (result.starting_stitches, result.ending_stitches) == (10, 8)
        assert result.total_rows == 2
        assert result.max_safe_iterations == 2
        assert result.instruction == (
            "Work in pattern until 2 stitches before marker, K2tog, slip marker, "
            "work to end every row 2 times (-1 sts)"
        )
        assert isinstance(result.detail, TimingResult)

    def test_completed_phases_lower_the_bound(self):
        # two completed K2tog rows leave 3 before M1: one more fits
        result = calculate_step(marker_step(completed_phases=[2]))
        assert result.max_safe_iterations == 1

    def test_one_completed_phase_keeps_two(self):
        # 5 -> 4 after one row; the simulation then runs 4 -> 2 -> 0
        result = calculate_step(marker_step(completed_phases=[1]))
        assert result.max_safe_iterations == 2

    def test_unknown_marker(self):
        config = marker_step()
        config["actions"][0]["targets"] = ["X"]
        result = calculate_step(config)
        assert result.passed is False
        assert "not found" in result.error

    def test_requires_actions(self):
        result = calculate_step(marker_step(actions=[]))
        assert result.passed is False
        assert "at least one action" in result.error

    def test_to_dict(self):
        data = calculate_step(marker_step()).to_dict()
        assert data["max_safe_iterations"] == 2
        assert data["detail"]["ending_stitches"] == 8
        assert "error" not in data


def sequences_step(**overrides):
    config = {
        "shaping_type": "marker_sequences",
        "marker_array": [10, "L", 20, "R", 10],
        "sequences": [
            {
                "name": "Waist decreases",
                "actions": [
                    {
                        "target_type": "markers",
                        "targets": ["L"],
                        "position": "before",
                        "action_type": "decrease",
                        "technique": "K2tog",
                    }
                ],
                "phases": [{"type": "initial"}, {"type": "repeat", "times": 2, "rows": 2}],
            },
            {
                "name": "Side increases",
                "start": {"type": "after_rows", "value": 2},
                "actions": [
                    {
                        "target_type": "markers",
                        "targets": ["R"],
                        "position": "after",
                        "action_type": "increase",
                        "technique": "M1L",
                    }
                ],
                "phases": [{"type": "repeat", "times": 2, "rows": 1}],
            },
        ],
    }
    config.update(overrides)
    return config


class TestMarkerSequences:
    def test_worked_together(self):
        result = calculate_step(sequences_step())
        assert result.passed is True
        assert result.instruction == "Waist decreases, Side increases at the same time"
        assert (result.starting_stitches, result.ending_stitches) == (40, 39)
        assert result.total_rows == 5
        assert result.detail.final_array.items == (7, "L", 20, "R", 12)

    def test_unknown_marker(self):
        config = sequences_step()
        config["sequences"][1]["actions"][0]["targets"] = ["Q"]
        result = calculate_step(config)
        assert result.passed is False
        assert 'Sequence "Side increases"' in result.error

    def test_no_sequences(self):
        result = calculate_step(sequences_step(sequences=[]))
        assert result.passed is False
        assert result.error == "At least one sequence is required"

    def test_unknown_start(self):
        config = sequences_step()
        config["sequences"][1]["start"] = {"type": "whenever"}
        result = calculate_step(config)
        assert result.passed is False
        assert "unknown start" in result.error


class TestMalformedShapes:
    @pytest.mark.parametrize(
        "config",
        [
            {"shaping_type": "sequential_phases", "current_stitches": 50, "phases": [5]},
            {"shaping_type": "sequential_phases", "current_stitches": 50, "phases": 5},
            {"shaping_type": "bind_off_shaping", "current_stitches": 40, "phases": ["x"]},
            marker_step(timing=5),
            marker_step(completed_phases=3),
            marker_step(marker_array=5),
            marker_step(actions=[7]),
            marker_step(
                actions=[
                    {
                        "target_type": "markers",
                        "targets": 7,
                        "position": "before",
                        "action_type": "decrease",
                        "technique": "K2tog",
                    }
                ]
            ),
            {
                "shaping_type": "marker_timing",
                "current_stitches": 10,
                "markers": [3],
                "actions": [],
            },
            sequences_step(sequences=[1]),
            sequences_step(sequences={"name": "A"}),
        ],
    )
    def test_reported_as_failed_result(self, config):
        result = calculate_step(config)
        assert isinstance(result, StepResult)
        assert result.passed is False
        assert result.detail is None

    def test_config_not_a_mapping(self):
        result = calculate_step(["shaping_type", "sequential_phases"])
        assert result.passed is False
        assert "mapping" in result.error


class TestDispatch:
    @pytest.mark.parametrize("config", [{}, {"shaping_type": "short_rows"}])
    def test_unknown_shaping_type(self, config):
        result = calculate_step(config)
        assert result.passed is False
        assert result.error.startswith("Unknown shaping type")
        assert result.instruction == ""

    def test_bad_current_stitches(self):
        result = calculate_step(
            {"shaping_type": "sequential_phases", "current_stitches": "lots", "phases": []}
        )
        assert result.passed is False
        assert result.starting_stitches == 0

    def test_loaded_from_file(self, tmp_path):
        path = tmp_path / "step.yaml"
        path.write_text(
            "shaping_type: bind_off_shaping\n"
            "current_stitches: 40\n"
            "phases:\n"
            "  - {amount: 4, times: 3}\n"
        )
        assert calculate_step(load_config(path)).ending_stitches == 16
