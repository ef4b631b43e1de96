# tests/test_values.py

from decimal import Decimal

import pytest

from apollo.core import DecodeError
from apollo.expressions import Value, ValueKind, coerce_raw_value, to_value
from apollo.expressions.values import normalize_number, format_number

from conftest import OWNER


class TestCoercionPolicy:
    def test_hex_address_becomes_checksum_string(self):
        value = coerce_raw_value(OWNER.lower())
        assert value == Value.string(OWNER)

    def test_plain_string_is_kept(self):
        assert coerce_raw_value("hello") == Value.string("hello")

    def test_bytes_become_hex_string(self):
        assert coerce_raw_value(b"\x01\x02") == Value.string("0x0102")

    def test_numbers(self):
        assert coerce_raw_value(42) == Value(ValueKind.NUMBER, 42)
        assert coerce_raw_value(1.5) == Value(ValueKind.NUMBER, Decimal("1.5"))
        assert coerce_raw_value(Decimal("10.000")) == Value(ValueKind.NUMBER, 10)

    def test_bool_is_numeric(self):
        assert coerce_raw_value(True) == Value(ValueKind.NUMBER, 1)

    def test_list_items_are_coerced(self):
        value = coerce_raw_value([1, OWNER.lower()])
        assert value.kind == ValueKind.LIST
        assert value.raw == (Value.number(1), Value.string(OWNER))

    def test_unsupported_type_raises(self):
        with pytest.raises(DecodeError):
            coerce_raw_value(object())


class TestNumbers:
    def test_integral_decimal_normalizes_to_int(self):
        n = normalize_number(Decimal("2.000"))
        assert n == 2
        assert isinstance(n, int)

    def test_fraction_stays_decimal(self):
        assert normalize_number(Decimal("0.25")) == Decimal("0.25")

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            normalize_number(Decimal("NaN"))

    def test_uint256_precision(self):
        big = 2 ** 256 - 1
        assert Value.number(big).raw == big

    def test_format_trims_trailing_zeros(self):
        assert format_number(Decimal("1.500")) == "1.5"
        assert format_number(7) == "7"


def test_to_value_nested():
    value = to_value({"a": [1, "x"], "b": None, "c": True})
    assert value.kind == ValueKind.MAP
    assert value.raw["a"].raw == (Value.number(1), Value.string("x"))
    assert value.raw["b"].is_null
    assert value.as_python() == {"a": [1, "x"], "b": None, "c": True}


def test_display_forms():
    assert Value.boolean(False).to_display() == "false"
    assert Value.null().to_display() == "null"
    assert Value.list_of([Value.number(1), Value.string("a")]).to_display() == "[1, a]"
    assert Value.map_of({"k": Value.number(2)}).to_display() == "{k = 2}"
