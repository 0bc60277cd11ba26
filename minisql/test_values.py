from datetime import datetime, timedelta, timezone

import pytest

from minisql.errors import MappingError
from minisql.orm_types import ColumnType, cast_to_column
from minisql.values import CastType, Casts, Value, ValueKind, cast


class TestValue:
    def test_kind_is_part_of_equality(self):
        assert Value.int(1) != Value.float(1.0)
        assert Value.int(1) != Value.bool(True)
        assert Value.int(1) == Value.from_python(1)

    def test_nan_equals_nan_and_hashes_alike(self):
        a = Value.float(float("nan"))
        b = Value.float(float("nan"))
        assert a == b
        assert hash(a) == hash(b)
        assert Value.float(-0.0) == Value.float(0.0)

    def test_json_hashes_by_canonical_form(self):
        a = Value.json({"a": 1, "b": [1, 2]})
        b = Value.json({"b": [1, 2], "a": 1})
        assert a == b
        assert len({a, b}) == 1

    def test_int_range_is_checked(self):
        Value.int(2 ** 63 - 1)
        with pytest.raises(MappingError):
            Value.int(2 ** 63)

    def test_from_python(self):
        assert Value.from_python(None).kind == ValueKind.NULL
        assert Value.from_python(True).kind == ValueKind.BOOL
        assert Value.from_python("x").kind == ValueKind.TEXT
        assert Value.from_python(b"\x00").kind == ValueKind.BINARY
        assert Value.from_python([1, 2]).kind == ValueKind.JSON
        assert Value.from_python(datetime(2024, 1, 1)).kind == ValueKind.NAIVE_DATETIME
        with pytest.raises(MappingError):
            Value.from_python(object())

    def test_aware_datetime_is_normalised_to_utc(self):
        local = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        value = Value.from_python(local)
        assert value.kind == ValueKind.DATETIME
        assert value.data == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_values_are_immutable(self):
        value = Value.int(1)
        with pytest.raises(AttributeError):
            value.data = 2

    def test_sql_literals(self):
        assert Value.null().sql_literal() == "NULL"
        assert Value.text("O'Brien").sql_literal() == "'O''Brien'"
        assert Value.bool(False).sql_literal() == "FALSE"
        assert Value.int(-3).sql_literal() == "-3"
        assert Value.binary(b"\xab\x01").sql_literal() == "X'ab01'"
        assert Value.naive_datetime(datetime(2024, 3, 1, 8, 5, 0)).sql_literal() == "'2024-03-01 08:05:00'"

    def test_bind_per_dialect(self):
        assert Value.bool(True).bind("sqlite") == 1
        assert Value.bool(True).bind("postgres") is True
        assert Value.json({"a": 1}).bind("mysql") == '{"a":1}'
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert Value.datetime(moment).bind("postgres") == moment
        assert Value.datetime(moment).bind("mysql") == datetime(2024, 1, 1)
        assert Value.datetime(moment).bind("sqlite") == "2024-01-01T00:00:00+00:00"


class TestCast:
    @pytest.mark.parametrize("word,expected", [
        ("true", True), ("YES", True), ("On", True), ("1", True),
        ("false", False), ("no", False), ("OFF", False), ("0", False), ("", False),
    ])
    def test_text_to_bool_vocabulary(self, word, expected):
        assert cast(CastType.BOOL, Value.text(word)) == Value.bool(expected)

    def test_text_to_bool_rejects_other_words(self):
        with pytest.raises(MappingError):
            cast(CastType.BOOL, Value.text("maybe"))

    def test_bool_int_use_zero_and_one(self):
        assert cast(CastType.INT, Value.bool(True)) == Value.int(1)
        assert cast(CastType.BOOL, Value.int(0)) == Value.bool(False)
        assert cast(CastType.BOOL, Value.int(7)) == Value.bool(True)

    def test_numeric_widening(self):
        assert cast(CastType.FLOAT, Value.int(3)) == Value.float(3.0)
        assert cast(CastType.INT, Value.float(3.9)) == Value.int(3)

    def test_text_to_number_fails_on_parse_error(self):
        assert cast("int", Value.text("-12")) == Value.int(-12)
        assert cast("float", Value.text("2.5")) == Value.float(2.5)
        with pytest.raises(MappingError):
            cast(CastType.INT, Value.text("12abc"))
        with pytest.raises(MappingError):
            cast(CastType.FLOAT, Value.text("abc"))

    def test_json_accepts_anything_verbatim(self):
        for value in (Value.int(1), Value.text("x"), Value.bool(True)):
            assert cast(CastType.JSON, value) is value

    def test_null_passes_through(self):
        for target in CastType:
            assert cast(target, Value.null()).is_null

    def test_error_names_both_kinds(self):
        with pytest.raises(MappingError, match="Binary to INT"):
            cast(CastType.INT, Value.binary(b"x"))

    def test_text_to_datetime(self):
        value = cast(CastType.DATETIME, Value.text("2024-01-01T10:00:00+00:00"))
        assert value == Value.datetime(datetime(2024, 1, 1, 10, tzinfo=timezone.utc))

    @pytest.mark.parametrize("target,value", [
        (CastType.BOOL, Value.text("yes")),
        (CastType.INT, Value.float(2.7)),
        (CastType.FLOAT, Value.text("1e3")),
        (CastType.TEXT, Value.bool(False)),
        (CastType.DATETIME, Value.text("2024-05-01 12:00:00")),
        (CastType.BINARY, Value.text("abc")),
    ])
    def test_cast_is_idempotent(self, target, value):
        once = cast(target, value)
        assert cast(target, once) == once

    def test_unknown_cast_name(self):
        with pytest.raises(MappingError):
            cast("decimal", Value.int(1))

    def test_cast_to_column(self):
        assert cast_to_column(ColumnType.BOOL, Value.int(1)) == Value.bool(True)
        assert cast_to_column(ColumnType.BIG_INT, Value.text("9")) == Value.int(9)

    def test_json_column_decodes_stored_text(self):
        assert cast_to_column(ColumnType.JSON, Value.text('{"a":[1,2]}')) == Value.json({"a": [1, 2]})
        assert cast_to_column(ColumnType.JSON, Value.int(3)) == Value.int(3)
        assert cast_to_column(ColumnType.JSON, Value.null()).is_null
        with pytest.raises(MappingError):
            cast_to_column(ColumnType.JSON, Value.text("{not json"))


def test_casts_apply_only_declared_fields():
    casts = Casts({"active": "bool", "score": CastType.FLOAT})
    row = casts.cast_on_load({"active": 1, "score": 3, "name": "x"})
    assert row == {"active": Value.bool(True), "score": Value.float(3.0), "name": Value.text("x")}
    assert casts.get_cast("name") is None
    assert not Casts()
