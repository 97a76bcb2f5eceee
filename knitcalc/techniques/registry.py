"""
Technique registry: loads the stitch technique table from YAML at startup,
validates it, and exposes a read-only query API.

The registry is a module-level singleton; call get_registry() to obtain it.
The table is loaded and validated once at import time. Nothing writes to the
registry after startup.

Lookups never raise for unknown techniques: an unrecognised symbol has a net
stitch change of 0 and a consumption of 1 (it is treated as a plain stitch).
Compound keys ("A_B") are split by callers with split_technique().
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

import yaml

from .types import COMPOUND_SEPARATOR, TechniqueCategory, TechniqueEntry

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent / "data"

UNKNOWN_STITCH_CHANGE = 0
UNKNOWN_CONSUMPTION = 1


class TechniqueRegistry:
    """
    Read-only registry of stitch techniques.

    ``techniques`` is wrapped in MappingProxyType after loading and is
    immutable for the lifetime of the registry instance.

    Instantiate directly to use a custom data directory (e.g. in tests);
    otherwise use get_registry() for the module singleton.
    """

    def __init__(self, data_dir: Path = _DATA_DIR) -> None:
        self._data_dir = data_dir
        self.techniques: MappingProxyType[str, TechniqueEntry]

        self._load_techniques()
        self._validate()

    # ── Loading ────────────────────────────────────────────────────────────────

    def _load_yaml(self, filename: str) -> dict[str, Any]:
        path = self._data_dir / filename
        try:
            with open(path) as f:
                return cast(dict[str, Any], yaml.safe_load(f))
        except FileNotFoundError:
            raise FileNotFoundError(f"Technique data file not found: {path}") from None
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse technique data file {path}: {exc}") from exc

    def _load_techniques(self) -> None:
        data = self._load_yaml("techniques.yaml")
        result: dict[str, TechniqueEntry] = {}
        duplicates: list[str] = []
        for entry in data["entries"]:
            technique_id = str(entry["id"])
            if technique_id in result:
                duplicates.append(technique_id)
                continue
            result[technique_id] = TechniqueEntry(
                id=technique_id,
                category=TechniqueCategory(entry["category"]),
                stitch_change=int(entry["stitch_change"]),
                consumption=int(entry["consumption"]),
                description=entry.get("description", "").strip(),
            )
        if duplicates:
            raise ValueError(f"Duplicate technique ids in technique table: {sorted(duplicates)}")
        self.techniques = MappingProxyType(result)
        logger.debug("Loaded %d techniques from %s", len(result), self._data_dir)

    # ── Validation ─────────────────────────────────────────────────────────────

    def _validate(self) -> None:
        """
        Run at startup. Raises ValueError listing all problems found if an
        entry's numbers contradict its category or would produce a negative
        number of stitches.
        """
        errors: list[str] = []
        for technique_id, entry in self.techniques.items():
            if entry.produces < 0:
                errors.append(
                    f"{technique_id}: consumes {entry.consumption} but changes the count by "
                    f"{entry.stitch_change} (would produce {entry.produces} stitches)"
                )
            if entry.category == TechniqueCategory.DECREASE and entry.stitch_change >= 0:
                errors.append(f"{technique_id}: decrease must have a negative stitch_change")
            if entry.category == TechniqueCategory.INCREASE and entry.stitch_change <= 0:
                errors.append(f"{technique_id}: increase must have a positive stitch_change")
            if entry.category == TechniqueCategory.PLAIN and entry.stitch_change != 0:
                errors.append(f"{technique_id}: plain stitch must have a stitch_change of 0")
        if errors:
            raise ValueError(
                "Technique table validation failed:\n" + "\n".join(f"  • {e}" for e in errors)
            )

    # ── Query API ──────────────────────────────────────────────────────────────

    def get(self, technique: str) -> TechniqueEntry | None:
        """Return the entry for *technique*, or None if it is not in the table."""
        return self.techniques.get(technique)

    def stitch_change(self, technique: str) -> int:
        """Net stitch change for a single (non-compound) technique; 0 if unknown."""
        entry = self.techniques.get(technique)
        return entry.stitch_change if entry else UNKNOWN_STITCH_CHANGE

    def consumption(self, technique: str) -> int:
        """Stitches read from the fabric by a single technique; 1 if unknown."""
        entry = self.techniques.get(technique)
        return entry.consumption if entry else UNKNOWN_CONSUMPTION

    def is_known(self, technique: str) -> bool:
        """True if *technique*, or every side of a compound key, is in the table."""
        return all(part in self.techniques for part in split_technique(technique))


def split_technique(technique: str) -> tuple[str, ...]:
    """
    Split a compound technique key into its sides.

    ``"M1L_M1R"`` → ``("M1L", "M1R")``; a plain key returns a 1-tuple.
    The first element is worked on the "before" (or beginning) side.
    """
    return tuple(technique.split(COMPOUND_SEPARATOR))


# ── Module-level singleton ─────────────────────────────────────────────────────
#
# Built eagerly at import time; read-only afterwards, so sharing it across
# threads is safe.

_registry: TechniqueRegistry = TechniqueRegistry()


def get_registry() -> TechniqueRegistry:
    """Return the module-level registry singleton."""
    return _registry


def technique_delta(technique: str) -> int:
    """
    Net stitch change of *technique*.

    A compound key sums its sides (``"M1L_M1R"`` → +2). Unknown symbols
    contribute 0.
    """
    return sum(_registry.stitch_change(part) for part in split_technique(technique))


def technique_consumption(technique: str) -> int:
    """
    Stitches *technique* reads from the existing fabric.

    A compound key sums its sides. Unknown symbols read 1 stitch.
    """
    return sum(_registry.consumption(part) for part in split_technique(technique))
