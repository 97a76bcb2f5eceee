from .registry import (
    TechniqueRegistry,
    get_registry,
    split_technique,
    technique_consumption,
    technique_delta,
)
from .types import COMPOUND_SEPARATOR, TechniqueCategory, TechniqueEntry

__all__ = [
    # Types
    "TechniqueCategory",
    "TechniqueEntry",
    "COMPOUND_SEPARATOR",
    # Registry
    "TechniqueRegistry",
    "get_registry",
    # Lookups
    "split_technique",
    "technique_delta",
    "technique_consumption",
]
