from __future__ import annotations

from screenassert.selectors import coerce_index, parse_field_selector
from screenassert.store import VariableStore
from screenassert.templates import TemplateResolver


def test_plain_and_keyword_indices() -> None:
    assert parse_field_selector("header").field == "header"
    assert parse_field_selector("header").index is None

    for keyword in ("first", "last", "all", "any"):
        parsed = parse_field_selector(f"rows[{keyword}]")
        assert parsed.field == "rows"
        assert parsed.index == keyword

    parsed = parse_field_selector("rows[12]")
    assert parsed.index == 12
    assert str(parsed) == "rows[12]"


def test_count_reference() -> None:
    parsed = parse_field_selector("title[all:titleCount]")
    assert parsed.field == "title"
    assert parsed.index == "all"
    assert parsed.count_of == "titleCount"
    assert parsed.is_collection


def test_variable_index_resolves_through_templates() -> None:
    resolver = TemplateResolver(VariableStore({"selected": "2"}))
    parsed = parse_field_selector("rows[{{selected}}]", resolver, {})
    assert parsed.index == 2
    assert parsed.variable_index == "selected"
    assert not parsed.resolution_failed

    parsed = parse_field_selector("rows[{{pick.idx}}]", resolver, {"pick": {"idx": 4}})
    assert parsed.index == 4


def test_variable_index_falls_back_to_zero() -> None:
    resolver = TemplateResolver(VariableStore({"word": "abc"}))

    missing = parse_field_selector("rows[{{nope}}]", resolver, {})
    assert missing.index == 0
    assert missing.resolution_failed

    not_numeric = parse_field_selector("rows[{{word}}]", resolver, {})
    assert not_numeric.index == 0
    assert not_numeric.resolution_failed


def test_unrecognized_suffix_is_part_of_field_name() -> None:
    parsed = parse_field_selector("rows[foo]")
    assert parsed.field == "rows[foo]"
    assert parsed.index is None


def test_coerce_index() -> None:
    assert coerce_index(3) == 3
    assert coerce_index(" 7 ") == 7
    assert coerce_index(2.0) == 2
    assert coerce_index(2.5) is None
    assert coerce_index(True) is None
    assert coerce_index("x") is None
