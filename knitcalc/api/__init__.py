"""
Configuration entry point: parse dict/YAML step configurations and calculate
them with the matching shaping calculator.
"""

from .calculate import SHAPING_TYPES, StepResult, calculate_step
from .config import (
    InvalidConfigurationError,
    action_from_dict,
    bind_off_phase_from_dict,
    load_config,
    marker_array_from_dict,
    marker_sequence_from_dict,
    phase_from_dict,
    phase_to_dict,
    timing_from_dict,
)

__all__ = [
    # config
    "InvalidConfigurationError",
    "load_config",
    "phase_from_dict",
    "phase_to_dict",
    "bind_off_phase_from_dict",
    "action_from_dict",
    "marker_array_from_dict",
    "marker_sequence_from_dict",
    "timing_from_dict",
    # calculate
    "SHAPING_TYPES",
    "StepResult",
    "calculate_step",
]
