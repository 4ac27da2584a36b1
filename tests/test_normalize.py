"""Tests for row normalization and stacking."""
import pandas as pd
import pytest

from peloton.common.cells import Nested, classify, is_null, unbox
from peloton.common.errors import ConfigurationError
from peloton.common.normalize import (
    normalize,
    parse_items,
    parse_response,
    prefix_row,
    stack_rows,
)


class TestClassify:
    """Scalar vs Nested decision for single values."""

    def test_null_and_empty_containers(self):
        assert classify(None) is None
        assert classify([]) is None
        assert classify({}) is None

    def test_empty_string_is_kept(self):
        assert classify("") == ""

    def test_structures_are_boxed(self):
        assert classify([1, 2]) == Nested([1, 2])
        assert classify([5]) == Nested([5])
        assert classify({"a": 1}) == Nested({"a": 1})

    def test_scalars_keep_their_type(self):
        assert classify(3) == 3
        assert classify(2.5) == 2.5
        assert classify(True) is True
        assert classify("x") == "x"

    def test_nested_is_not_reboxed(self):
        box = Nested([1])
        assert classify(box) is box

    def test_helpers(self):
        assert unbox(Nested([1])) == [1]
        assert unbox(3) == 3
        assert is_null(None)
        assert is_null(float("nan"))
        assert is_null(pd.NaT)
        assert not is_null(Nested([]))
        assert not is_null(0)


class TestNormalize:
    """One JSON object -> one row."""

    def test_empty_inputs_give_empty_row(self):
        assert normalize({}) == {}
        assert normalize(None) == {}

    def test_unnamed_inputs_give_empty_row(self):
        assert normalize(42) == {}
        assert normalize("text") == {}
        assert normalize([{"a": 1}, {"a": 2}]) == {}

    def test_one_cell_per_named_field(self):
        row = normalize({
            "a": 1,
            "": "dropped",
            "b": None,
            "c": [],
            "d": {},
            "e": [1, 2],
            "f": {"x": 1},
            "g": "",
            "h": True,
        })
        assert list(row) == ["a", "b", "c", "d", "e", "f", "g", "h"]
        assert row["a"] == 1
        assert row["b"] is None
        assert row["c"] is None
        assert row["d"] is None
        assert row["e"] == Nested([1, 2])
        assert row["f"] == Nested({"x": 1})
        assert row["g"] == ""
        assert row["h"] is True

    def test_none_key_dropped(self):
        assert normalize({None: 1, "a": 2}) == {"a": 2}

    def test_nested_values_are_not_flattened(self):
        ride = {"id": "r1", "instructor": {"name": "Robin"}}
        row = normalize({"ride": ride})
        assert isinstance(row["ride"], Nested)
        assert row["ride"].value is ride

    def test_prefix_row(self):
        assert prefix_row({"id": 1, "title": "x"}, "ride_") == {"ride_id": 1, "ride_title": "x"}


class TestStackRows:
    """Many rows -> one table."""

    def test_union_of_columns_in_first_seen_order(self):
        df = stack_rows([{"a": 1, "b": "x"}, {"b": "y", "c": Nested([1])}])
        assert list(df.columns) == ["a", "b", "c"]
        assert len(df) == 2
        assert pd.isna(df.loc[1, "a"])
        assert pd.isna(df.loc[0, "c"])
        assert df.loc[1, "c"] == Nested([1])

    def test_type_drift_does_not_fail(self):
        df = stack_rows([{"a": 1}, {"a": "x"}, {"a": Nested([1])}])
        assert df["a"].tolist() == [1, "x", Nested([1])]

    def test_empty_row_keeps_its_place(self):
        df = stack_rows([{}, {"a": 1}])
        assert len(df) == 2
        assert pd.isna(df.loc[0, "a"])
        assert df.loc[1, "a"] == 1

    def test_all_rows_empty(self):
        df = stack_rows([{}, {}])
        assert len(df) == 2
        assert df.shape[1] == 0

    def test_no_rows(self):
        assert stack_rows([]).empty

    def test_large_int_survives_missing_cell(self):
        df = stack_rows([{"member_id": 10000000000000001}, {}])
        value = df.loc[0, "member_id"]
        assert type(value) is int
        assert value == 10000000000000001
        assert pd.isna(df.loc[1, "member_id"])

    def test_int_column_with_hole_stays_int(self):
        df = stack_rows([{"a": 1}, {"b": 2}])
        assert type(df.loc[0, "a"]) is int
        assert type(df.loc[1, "b"]) is int

    def test_complete_numeric_column_gets_numeric_dtype(self):
        df = stack_rows([{"a": 1}, {"a": 2}])
        assert pd.api.types.is_integer_dtype(df["a"])


class TestParseResponse:
    """Single-object responses -> single-row tables."""

    def test_single_row_with_dates(self):
        df = parse_response(
            {"id": "abc", "created_at": 1700000000, "tags": ["a"]},
            tz="UTC",
        )
        assert len(df) == 1
        assert list(df.columns) == ["id", "created_at", "tags"]
        assert df.loc[0, "id"] == "abc"
        assert df.loc[0, "created_at"] == pd.Timestamp("2023-11-14 22:13:20", tz="UTC")
        assert df.loc[0, "tags"] == Nested(["a"])

    def test_date_parsing_off(self):
        df = parse_response({"created_at": 1700000000}, date_parsing=False)
        assert df.loc[0, "created_at"] == 1700000000

    def test_dictionary_is_applied_after_dates(self):
        df = parse_response(
            {"created_at": 1700000000, "rank": "7"},
            dictionary={"numeric": ["created_at", "rank"]},
        )
        assert df.loc[0, "created_at"] == 1700000000.0
        assert df.loc[0, "rank"] == 7.0

    def test_unnamed_response_is_empty(self):
        assert parse_response(["a", "b"]).empty
        assert parse_response(None).empty

    def test_bad_dictionary_raises(self):
        with pytest.raises(ConfigurationError):
            parse_response({"a": 1}, dictionary={"character": ["a"]})
        with pytest.raises(ConfigurationError):
            parse_response(None, dictionary={"character": ["a"]})


class TestParseItems:
    def test_one_row_per_item_with_prefix(self):
        df = parse_items(
            [{"id": "r1", "title": "Ride"}, None, {"id": "r3"}],
            prefix="ride_",
        )
        assert list(df.columns) == ["ride_id", "ride_title"]
        assert len(df) == 3
        assert df["ride_id"].tolist()[0] == "r1"
        assert pd.isna(df.loc[1, "ride_id"])
        assert pd.isna(df.loc[2, "ride_title"])
