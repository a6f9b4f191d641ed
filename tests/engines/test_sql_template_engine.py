"""Unit tests for engines.sql.template_engine and engines.sql.parser."""

import re
from decimal import Decimal

import pytest

from pgscope.core.errors import InvalidParameterError, MissingParameterError
from pgscope.engines.sql import ParameterBag, SQLTemplateEngine, parse_parameters, render
from pgscope.engines.sql.parser import find_placeholders
from pgscope.engines.sql.template_engine import compile_template


class TestRender:
    def test_renders_templated_query(self):
        template = "SELECT %I:colname FROM %I:schema.%I:tableName WHERE my_v = %L:myVal AND %s:literal"
        params = {
            "colname": "things",
            "schema": "all",
            "tableName": "the_things",
            "myVal": 10,
            "literal": "1=1; Little bobby drop tables;",
        }
        assert render(template, params) == (
            """SELECT things FROM "all".the_things WHERE my_v = '10' AND 1=1; Little bobby drop tables;"""
        )

    def test_dotted_identifier_is_one_quoted_name(self):
        template = "SELECT %I:col FROM %I:tbl WHERE v = %L:val AND %s:lit"
        params = {"col": "things", "tbl": "all.the_things", "val": 10, "lit": "1=1"}
        assert render(template, params) == """SELECT things FROM "all.the_things" WHERE v = '10' AND 1=1"""

    def test_no_substitutions_unchanged(self):
        assert render("SELECT 1", {}) == "SELECT 1"

    def test_no_substitutions_keeps_percent(self):
        assert render("SELECT * FROM t WHERE a LIKE 'x%'", None) == "SELECT * FROM t WHERE a LIKE 'x%'"

    def test_percent_survives_alongside_placeholders(self):
        out = render("SELECT * FROM %I:tbl WHERE a LIKE 'x%' AND b = '%s'", {"tbl": "t"})
        assert out == "SELECT * FROM t WHERE a LIKE 'x%' AND b = '%s'"

    def test_extra_params_ignored(self):
        params = {"one": "first", "two": "second", "free": "param"}
        assert render("SELECT %I:one FROM %I:two", params) == "SELECT first FROM second"

    def test_extra_params_not_validated(self):
        assert render("SELECT %I:a", {"a": "x", "flag": True}) == "SELECT x"

    def test_repeated_params(self):
        assert render("SELECT %I:one FROM %I:one", {"one": "first"}) == "SELECT first FROM first"

    def test_same_name_under_different_sigils(self):
        out = render("SELECT %I:v, %L:v, %s:v", {"v": "col"})
        assert out == "SELECT col, 'col', col"

    def test_null_literal(self):
        template = "SELECT 1 FROM sth WHERE or_other IS %L:myVal"
        assert render(template, {"myVal": None}) == "SELECT 1 FROM sth WHERE or_other IS NULL"

    def test_injection_is_single_literal(self):
        out = render("SELECT * FROM t WHERE v = %L:v", {"v": "1=1; DROP TABLE x;"})
        assert out == "SELECT * FROM t WHERE v = '1=1; DROP TABLE x;'"

    def test_quote_in_literal_escaped(self):
        out = render("WHERE name = %L:name", {"name": "'; DROP TABLE users; --"})
        assert out == "WHERE name = '''; DROP TABLE users; --'"

    def test_no_raw_tokens_left(self):
        template = "SELECT %I:a, %L:b, %s:c FROM %I:a"
        out = render(template, {"a": "x", "b": 2, "c": "3"})
        assert not re.search(r"%[ILs]:", out)

    def test_name_followed_by_digits(self):
        # names are alphabetic only; trailing digits are template text
        assert render("SELECT %I:col1", {"col": "a"}) == "SELECT a1"

    def test_accepts_parameter_bag(self):
        assert render("SELECT %L:x", ParameterBag(x=Decimal("1.10"))) == "SELECT '1.10'"


class TestRenderErrors:
    def test_missing_key(self):
        with pytest.raises(MissingParameterError) as exc_info:
            render("SELECT %I:one FROM %I:two", {"one": "one"})
        assert exc_info.value.names == ["two"]
        assert "two" in str(exc_info.value)
        assert exc_info.value.template == "SELECT %I:one FROM %I:two"

    def test_missing_keys_all_listed(self):
        with pytest.raises(MissingParameterError) as exc_info:
            render("SELECT %L:b, %s:a, %L:b", {})
        assert exc_info.value.names == ["a", "b"]

    def test_missing_key_is_value_error(self):
        with pytest.raises(ValueError):
            render("SELECT %L:x", {})

    def test_null_identifier_rejected(self):
        with pytest.raises(InvalidParameterError, match="identifier"):
            render("SELECT %I:col", {"col": None})

    def test_invalid_value_type(self):
        with pytest.raises(InvalidParameterError, match="flag"):
            render("SELECT %L:flag", {"flag": True})


class TestParameterBag:
    def test_from_mapping(self):
        bag = ParameterBag({"a": "x", "b": 1})
        assert dict(bag) == {"a": "x", "b": 1}
        assert len(bag) == 2

    def test_from_pairs_and_kwargs(self):
        bag = ParameterBag([("a", 1.5)], b=None)
        assert bag["a"] == 1.5
        assert bag["b"] is None

    def test_duplicate_pairs_rejected(self):
        with pytest.raises(InvalidParameterError, match="Duplicate"):
            ParameterBag([("a", 1), ("a", 2)])

    def test_duplicate_between_items_and_kwargs_rejected(self):
        with pytest.raises(InvalidParameterError, match="Duplicate"):
            ParameterBag({"a": 1}, a=2)

    def test_non_string_key_rejected(self):
        with pytest.raises(InvalidParameterError):
            ParameterBag({1: "x"})

    @pytest.mark.parametrize("value", [True, [1, 2], {"k": "v"}, object()])
    def test_unsupported_values_rejected(self, value):
        with pytest.raises(InvalidParameterError):
            ParameterBag(v=value)


class TestCompile:
    def test_compile_markers(self):
        compiled = compile_template("SELECT %I:a FROM %I:b WHERE c LIKE 'x%' AND d = %L:a")
        assert compiled.fmt == "SELECT %I FROM %I WHERE c LIKE 'x%%' AND d = %L"
        assert compiled.placeholders == (("I", "a"), ("I", "b"), ("L", "a"))
        assert compiled.names == frozenset({"a", "b"})

    def test_engine_reuses_compiled_template(self):
        e = SQLTemplateEngine()
        t = "SELECT %L:x"
        assert e.render(t, {"x": 1}) == "SELECT '1'"
        assert e.render(t, {"x": 2}) == "SELECT '2'"


class TestParseParameters:
    def test_sorted_unique(self):
        assert parse_parameters("SELECT %I:b, %L:a, %s:b") == ["a", "b"]

    def test_none(self):
        assert parse_parameters("SELECT 1") == []

    def test_engine_method(self):
        assert SQLTemplateEngine().parse_parameters("%L:x") == ["x"]

    def test_find_placeholders_keeps_order_and_duplicates(self):
        assert find_placeholders("%I:one %L:two %I:one") == [("I", "one"), ("L", "two"), ("I", "one")]

    def test_unknown_sigil_not_a_placeholder(self):
        assert find_placeholders("%X:one %i:two") == []
