"""
Data model for the shaping engine.

Frozen dataclasses and str Enums shared by every calculator: construction
vocabulary, declarative shaping actions, typed phases, and result records.
"""

from .action import POSITION_SIDES, ActionType, Position, ShapingAction, TargetType
from .construction import BEGINNING, BOR, END, Construction
from .phase import (
    BindOffPhase,
    BindOffPosition,
    DecreasePhase,
    GraduatedBindOffPhase,
    IncreasePhase,
    Phase,
    PhasePosition,
    PhaseType,
    SetupPhase,
)
from .result import CalculationResult, DistributionResult, PhaseDetail, TimingResult

__all__ = [
    # construction
    "Construction",
    "BOR",
    "BEGINNING",
    "END",
    # actions
    "TargetType",
    "ActionType",
    "Position",
    "POSITION_SIDES",
    "ShapingAction",
    # phases
    "PhaseType",
    "PhasePosition",
    "BindOffPosition",
    "DecreasePhase",
    "IncreasePhase",
    "SetupPhase",
    "BindOffPhase",
    "Phase",
    "GraduatedBindOffPhase",
    # results
    "PhaseDetail",
    "CalculationResult",
    "DistributionResult",
    "TimingResult",
]
