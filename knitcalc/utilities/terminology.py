"""
Construction-aware wording: "row" for flat pieces, "round" for circular ones.
"""

from __future__ import annotations

from dataclasses import dataclass

from knitcalc.schemas.construction import Construction


@dataclass(frozen=True)
class ConstructionTerms:
    row: str
    rows: str
    at_both_ends: str

    def rows_word(self, count: int) -> str:
        return self.row if count == 1 else self.rows

    def every(self, frequency: int) -> str:
        """Frequency phrase: "every row", "every other row", "every 4 rows"."""
        if frequency == 1:
            return f"every {self.row}"
        if frequency == 2:
            return f"every other {self.row}"
        return f"every {frequency} {self.rows}"

    def next_rows(self, count: int) -> str:
        """"next row" or "next 3 rows"."""
        if count == 1:
            return f"next {self.row}"
        return f"next {count} {self.rows}"

    def plain_rows(self, count: int) -> str:
        return f"Work {count} plain {self.rows_word(count)}"


_FLAT = ConstructionTerms(row="row", rows="rows", at_both_ends="at each end")
_ROUND = ConstructionTerms(row="round", rows="rounds", at_both_ends="at both sides")


def get_terms(construction: Construction) -> ConstructionTerms:
    """Return the wording for *construction*."""
    return _ROUND if construction == Construction.ROUND else _FLAT
