"""Unit tests for listing query parsing."""

import pytest

from asmr.content.service import MAX_LIMIT, parse_sort, parse_where, to_positive_int
from asmr.exceptions import ValidationFailed


class TestToPositiveInt:
    @pytest.mark.parametrize(("value", "expected"), [("3", 3), (5, 5), ("2.9", 2), ("  7 ", 7)])
    def test_positive_values(self, value, expected):
        assert to_positive_int(value, 1) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "0", "-4", 0, "nan", "inf"])
    def test_falls_back_to_default(self, value):
        assert to_positive_int(value, 10) == 10

    def test_limit_cap_constant(self):
        assert MAX_LIMIT == 100


class TestParseSort:
    def test_default_is_newest_first_with_id_tiebreak(self):
        clauses = parse_sort(None)
        assert len(clauses) == 2
        assert "created_at DESC" in str(clauses[0])
        assert "id ASC" in str(clauses[1])

    def test_ascending_key(self):
        assert "title ASC" in str(parse_sort("title")[0])

    def test_descending_key(self):
        assert "price DESC" in str(parse_sort("-price")[0])

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            parse_sort("password_hash")
        assert exc_info.value.status_code == 400
        assert "price" in exc_info.value.details["allowed"]


class TestParseWhere:
    def test_ignores_other_parameters(self):
        assert parse_where([("page", "2"), ("sort", "-price")]) == []

    def test_price_comparison(self):
        (clause,) = parse_where([("where[price][less_than_equal]", " 200 ")])
        assert "price <=" in str(clause)

    def test_title_like(self):
        (clause,) = parse_where([("where[title][like]", "rain")])
        assert "lower" in str(clause).lower()

    def test_filters_combine(self):
        assert len(parse_where([("where[price][equals]", "0"), ("where[title][equals]", "Rain")])) == 2

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("where[password_hash][equals]", "x"),
            ("where[price][like]", "1"),
            ("where[title][greater_than]", "a"),
            ("where[price][equals]", "1.5"),
            ("where[price][equals]", "99999999999"),
        ],
    )
    def test_rejected(self, key, value):
        with pytest.raises(ValidationFailed) as exc_info:
            parse_where([(key, value)])
        assert exc_info.value.status_code == 400
