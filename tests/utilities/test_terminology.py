"""Tests for utilities.terminology."""

from knitcalc.schemas import Construction
from knitcalc.utilities import get_terms


class TestConstructionTerms:
    def test_flat_words(self):
        terms = get_terms(Construction.FLAT)
        assert terms.row == "row"
        assert terms.at_both_ends == "at each end"

    def test_round_words(self):
        terms = get_terms(Construction.ROUND)
        assert terms.rows == "rounds"
        assert terms.at_both_ends == "at both sides"

    def test_every(self):
        terms = get_terms(Construction.FLAT)
        assert terms.every(1) == "every row"
        assert terms.every(2) == "every other row"
        assert terms.every(4) == "every 4 rows"

    def test_every_round(self):
        assert get_terms(Construction.ROUND).every(3) == "every 3 rounds"

    def test_next_rows(self):
        terms = get_terms(Construction.FLAT)
        assert terms.next_rows(1) == "next row"
        assert terms.next_rows(6) == "next 6 rows"

    def test_plain_rows(self):
        assert get_terms(Construction.ROUND).plain_rows(1) == "Work 1 plain round"
        assert get_terms(Construction.FLAT).plain_rows(4) == "Work 4 plain rows"
