"""
Shared utilities for the knitcalc shaping engine: even distribution across a
row/round and construction-aware wording.
"""

from .distribution import NO_CHANGE_INSTRUCTION, DistributionAction, distribute
from .terminology import ConstructionTerms, get_terms

__all__ = [
    # distribution
    "DistributionAction",
    "NO_CHANGE_INSTRUCTION",
    "distribute",
    # terminology
    "ConstructionTerms",
    "get_terms",
]
