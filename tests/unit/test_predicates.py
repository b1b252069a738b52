from __future__ import annotations

import pytest

from recordkit.domain.alert import AlertState
from recordkit.errors import UnknownFieldError
from recordkit.query.predicates import (
    Compare,
    Comparator,
    Equals,
    In,
    build_where,
    date_window,
    normalize,
    quote_identifier,
)

COLUMNS = {"state", "search_id", "content_hash", "create_date", "alert_date", "escalated"}
LOWER = 1_000
UPPER = 2_000


def test_sequence_becomes_in_membership():
    where, params = build_where({"state": [0, 1]}, COLUMNS)
    assert where == ['"state" IN (%s, %s)']
    assert params == [0, 1]


def test_base_filters_come_first_then_map_order():
    where, params = build_where(
        {"create_date": {Comparator.GT: LOWER}},
        COLUMNS,
        base_where=['"search_id" = %s', '"content_hash" = %s'],
        base_params=[5, "abc"],
    )
    assert where == ['"search_id" = %s', '"content_hash" = %s', '"create_date" > %s']
    assert params == [5, "abc", LOWER]


def test_filter_map_insertion_order_is_kept():
    where, params = build_where(
        {"search_id": 5, "content_hash": "abc", "create_date": {Comparator.GT: LOWER}}, COLUMNS
    )
    assert where == ['"search_id" = %s', '"content_hash" = %s', '"create_date" > %s']
    assert params == [5, "abc", LOWER]


@pytest.mark.parametrize(
    "window",
    [
        {Comparator.GTE: LOWER, Comparator.LT: UPPER},
        {Comparator.LT: UPPER, Comparator.GTE: LOWER},
        {">=": LOWER, "<": UPPER},
        {"LT": UPPER, "GTE": LOWER},
        [Compare(Comparator.LT, UPPER), Compare(Comparator.GTE, LOWER)],
    ],
)
def test_range_produces_two_fragments_lower_bound_first(window):
    where, params = build_where({"state": 1, "create_date": window, "search_id": [3, 4]}, COLUMNS)
    on_field = [fragment for fragment in where if fragment.startswith('"create_date"')]
    assert on_field == ['"create_date" >= %s', '"create_date" < %s']
    assert params == [1, LOWER, UPPER, 3, 4]


def test_fragment_and_param_counts_agree():
    where, params = build_where(
        {"state": [0, 1, 2], "search_id": 9, "create_date": {Comparator.GT: 1, Comparator.LTE: 5}},
        COLUMNS,
    )
    assert sum(fragment.count("%s") for fragment in where) == len(params)


def test_equals_none_renders_is_null():
    where, params = build_where({"content_hash": None}, COLUMNS)
    assert where == ['"content_hash" IS NULL']
    assert params == []


def test_empty_membership_matches_nothing():
    where, params = build_where({"state": []}, COLUMNS)
    assert where == ["FALSE"]
    assert params == []


def test_tagged_predicates_can_be_passed_directly():
    where, params = build_where({"state": In([AlertState.NEW]), "search_id": Equals(2)}, COLUMNS)
    assert where == ['"state" IN (%s)', '"search_id" = %s']
    assert params == [0, 2]


def test_params_are_unwrapped_for_binding():
    _, params = build_where({"escalated": True, "state": AlertState.RESOLVED}, COLUMNS)
    assert params == [1, 2]
    assert type(params[1]) is int


def test_strings_are_equality_not_membership():
    assert normalize("abc") == (Equals("abc"),)


def test_unknown_column_is_rejected():
    with pytest.raises(UnknownFieldError):
        build_where({"bogus": 1}, COLUMNS)


def test_without_columns_any_identifier_is_accepted():
    where, _ = build_where({"anything": 1})
    assert where == ['"anything" = %s']


def test_comparator_parsing():
    assert Comparator.parse(">=") is Comparator.GTE
    assert Comparator.parse("lt") is Comparator.LT
    assert Comparator.parse(Comparator.GT) is Comparator.GT
    with pytest.raises(ValueError):
        Comparator.parse("~")


def test_extra_callback_is_appended_after_generic_fragments():
    calls = []

    def extra():
        calls.append(True)
        return ['"alert_date" > %s'], [LOWER]

    where, params = build_where({"state": 0}, COLUMNS, extra=extra)
    assert where == ['"state" = %s', '"alert_date" > %s']
    assert params == [0, LOWER]
    assert calls == [True]


def test_date_window_extension():
    extension = date_window("alert_date")
    filters, options = extension.split({"state": 0, "from": [str(LOWER)], "to": UPPER})
    assert filters == {"state": 0}
    assert options == {"from": [str(LOWER)], "to": UPPER}
    assert extension.build(options) == (
        ['"alert_date" > %s', '"alert_date" < %s'],
        [LOWER, UPPER],
    )


def test_date_window_with_one_bound_and_inclusive_bounds():
    assert date_window("alert_date").build({"to": UPPER}) == (['"alert_date" < %s'], [UPPER])
    inclusive = date_window("create_date", "since", "until", inclusive_lower=True, inclusive_upper=True)
    assert inclusive.build({"since": LOWER, "until": UPPER}) == (
        ['"create_date" >= %s', '"create_date" <= %s'],
        [LOWER, UPPER],
    )
    assert date_window("alert_date").build({"from": []}) == ([], [])


@pytest.mark.parametrize("name", ['state"; DROP TABLE alerts; --', "1abc", "a b", ""])
def test_quote_identifier_rejects_non_identifiers(name):
    with pytest.raises(ValueError):
        quote_identifier(name)
