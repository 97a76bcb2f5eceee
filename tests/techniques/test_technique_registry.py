"""
Tests for the technique registry.

Covers:
  - The YAML table loads and exposes the required deltas and consumptions
  - Compound keys sum their sides
  - Unknown techniques fall back to a neutral plain stitch
  - Corrupted data raises at load time (not silently at query time)
"""

import shutil
from pathlib import Path

import pytest

from knitcalc.techniques import (
    TechniqueCategory,
    TechniqueEntry,
    get_registry,
    split_technique,
    technique_consumption,
    technique_delta,
)
from knitcalc.techniques.registry import TechniqueRegistry

_DATA_DIR = Path(__file__).parent.parent.parent / "knitcalc" / "techniques" / "data"


@pytest.fixture(scope="module")
def registry():
    return get_registry()


# ── Registry loads ─────────────────────────────────────────────────────────────


class TestRegistryLoads:
    def test_loads_without_error(self, registry):
        assert registry is not None

    def test_singleton(self):
        assert get_registry() is get_registry()

    def test_tables_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.techniques["NEW"] = registry.techniques["K"]

    def test_every_entry_produces_non_negative_stitches(self, registry):
        for entry in registry.techniques.values():
            assert entry.produces >= 0, entry.id


# ── Required values ────────────────────────────────────────────────────────────


class TestRequiredValues:
    @pytest.mark.parametrize(
        "technique, delta",
        [
            ("SSK", -1),
            ("K2tog", -1),
            ("K3tog", -2),
            ("CDD", -2),
            ("M1L", 1),
            ("M1R", 1),
            ("YO", 1),
            ("KFB", 1),
        ],
    )
    def test_stitch_change(self, technique, delta):
        assert technique_delta(technique) == delta

    @pytest.mark.parametrize(
        "technique, consumption",
        [
            ("K", 1),
            ("K1", 1),
            ("P", 1),
            ("P1", 1),
            ("SSK", 2),
            ("K2tog", 2),
            ("K3tog", 3),
            ("CDD", 3),
            ("YO", 0),
            ("M1L", 0),
            ("M1R", 0),
            ("KFB", 1),
        ],
    )
    def test_consumption(self, technique, consumption):
        assert technique_consumption(technique) == consumption

    def test_categories(self, registry):
        assert registry.get("K2tog").category == TechniqueCategory.DECREASE
        assert registry.get("YO").category == TechniqueCategory.INCREASE
        assert registry.get("K").category == TechniqueCategory.PLAIN


# ── Compound and unknown keys ──────────────────────────────────────────────────


class TestLookups:
    def test_split_compound(self):
        assert split_technique("M1L_M1R") == ("M1L", "M1R")

    def test_split_plain(self):
        assert split_technique("SSK") == ("SSK",)

    def test_compound_delta_sums_sides(self):
        assert technique_delta("M1L_M1R") == 2
        assert technique_delta("SSK_K2tog") == -2

    def test_compound_consumption_sums_sides(self):
        assert technique_consumption("SSK_K2tog") == 4

    def test_unknown_technique_is_neutral(self, registry):
        assert technique_delta("WRAP3") == 0
        assert technique_consumption("WRAP3") == 1
        assert registry.get("WRAP3") is None
        assert registry.is_known("WRAP3") is False

    def test_is_known_checks_every_side(self, registry):
        assert registry.is_known("M1L_M1R") is True
        assert registry.is_known("M1L_WRAP3") is False


# ── Entry validation ───────────────────────────────────────────────────────────


class TestTechniqueEntry:
    def test_underscore_in_id_rejected(self):
        with pytest.raises(ValueError):
            TechniqueEntry(
                id="K_P", category=TechniqueCategory.PLAIN, stitch_change=0, consumption=1
            )

    def test_negative_consumption_rejected(self):
        with pytest.raises(ValueError):
            TechniqueEntry(
                id="X", category=TechniqueCategory.PLAIN, stitch_change=0, consumption=-1
            )

    def test_produces(self):
        entry = TechniqueEntry(
            id="K2tog", category=TechniqueCategory.DECREASE, stitch_change=-1, consumption=2
        )
        assert entry.produces == 1


# ── Corrupt data ───────────────────────────────────────────────────────────────


class TestCorruptData:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TechniqueRegistry(data_dir=tmp_path)

    def test_invalid_yaml_raises(self, tmp_path):
        (tmp_path / "techniques.yaml").write_text("entries: [unclosed\n")
        with pytest.raises(ValueError, match="Failed to parse"):
            TechniqueRegistry(data_dir=tmp_path)

    def test_duplicate_id_raises(self, tmp_path):
        data_dir = tmp_path / "data"
        shutil.copytree(_DATA_DIR, data_dir)
        table = data_dir / "techniques.yaml"
        table.write_text(
            table.read_text()
            + (
                "\n  - id: SSK\n"
                "    category: decrease\n"
                "    stitch_change: -1\n"
                "    consumption: 2\n"
            )
        )
        with pytest.raises(ValueError, match="Duplicate"):
            TechniqueRegistry(data_dir=data_dir)

    def test_sign_contradicting_category_raises(self, tmp_path):
        data_dir = tmp_path / "data"
        shutil.copytree(_DATA_DIR, data_dir)
        table = data_dir / "techniques.yaml"
        table.write_text(
            table.read_text()
            + (
                "\n  - id: BADDEC\n"
                "    category: decrease\n"
                "    stitch_change: 1\n"
                "    consumption: 2\n"
            )
        )
        with pytest.raises(ValueError, match="validation failed"):
            TechniqueRegistry(data_dir=data_dir)

    def test_negative_production_raises(self, tmp_path):
        data_dir = tmp_path / "data"
        shutil.copytree(_DATA_DIR, data_dir)
        table = data_dir / "techniques.yaml"
        table.write_text(
            table.read_text()
            + (
                "\n  - id: OVERDEC\n"
                "    category: decrease\n"
                "    stitch_change: -3\n"
                "    consumption: 2\n"
            )
        )
        with pytest.raises(ValueError, match="OVERDEC"):
            TechniqueRegistry(data_dir=data_dir)
