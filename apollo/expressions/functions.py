# apollo/expressions/functions.py
"""
Builtin functions available to every schema expression.

Functions receive ``Value`` arguments and return a ``Value`` (or plain data,
which the evaluator converts). Type mistakes raise ``DecodeError``.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, localcontext
from typing import Callable, Dict

from ..core.errors import DecodeError
from .values import Value, ValueKind, NUMBER_PRECISION, normalize_number


def _expect(value: Value, kind: ValueKind, fn: str):
    if value.kind != kind:
        raise DecodeError(f"{fn}() expects a {kind.value}, got {value.kind.value}")
    return value.raw


def _whole(value: Value, fn: str) -> int:
    n = _expect(value, ValueKind.NUMBER, fn)
    if not isinstance(n, int):
        raise DecodeError(f"{fn}() expects a whole number, got {value.to_display()}")
    return n


# --- strings ---

def upper(s: Value) -> Value:
    return Value.string(_expect(s, ValueKind.STRING, "upper").upper())


def lower(s: Value) -> Value:
    return Value.string(_expect(s, ValueKind.STRING, "lower").lower())


def trim(s: Value) -> Value:
    return Value.string(_expect(s, ValueKind.STRING, "trim").strip())


def format_(fmt: Value, *args: Value) -> Value:
    pattern = _expect(fmt, ValueKind.STRING, "format")
    natives = tuple(a.as_python() if a.kind == ValueKind.NUMBER else a.to_display() for a in args)
    try:
        return Value.string(pattern % natives)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"format() failed: {e}") from e


def join(sep: Value, items: Value) -> Value:
    separator = _expect(sep, ValueKind.STRING, "join")
    return Value.string(separator.join(v.to_display() for v in _expect(items, ValueKind.LIST, "join")))


def split(sep: Value, s: Value) -> Value:
    separator = _expect(sep, ValueKind.STRING, "split")
    return Value.list_of([Value.string(p) for p in _expect(s, ValueKind.STRING, "split").split(separator)])


def replace(s: Value, old: Value, new: Value) -> Value:
    text = _expect(s, ValueKind.STRING, "replace")
    return Value.string(text.replace(_expect(old, ValueKind.STRING, "replace"),
                                     _expect(new, ValueKind.STRING, "replace")))


def substr(s: Value, offset: Value, length: Value) -> Value:
    text = _expect(s, ValueKind.STRING, "substr")
    start = _whole(offset, "substr")
    size = _whole(length, "substr")
    if size < 0:
        return Value.string(text[start:])
    return Value.string(text[start:start + size])


# --- collections ---

def length(v: Value) -> Value:
    if v.kind in (ValueKind.STRING, ValueKind.LIST, ValueKind.MAP):
        return Value.number(len(v.raw))
    raise DecodeError(f"length() expects a string, list or map, got {v.kind.value}")


def concat(*lists: Value) -> Value:
    items = []
    for lst in lists:
        items.extend(_expect(lst, ValueKind.LIST, "concat"))
    return Value.list_of(items)


def contains(lst: Value, v: Value) -> Value:
    return Value.boolean(v in _expect(lst, ValueKind.LIST, "contains"))


def element(lst: Value, index: Value) -> Value:
    items = _expect(lst, ValueKind.LIST, "element")
    if not items:
        raise DecodeError("element() on an empty list")
    return items[_whole(index, "element") % len(items)]


def lookup(m: Value, key: Value, default: Value = None) -> Value:
    items = _expect(m, ValueKind.MAP, "lookup")
    name = _expect(key, ValueKind.STRING, "lookup")
    if name in items:
        return items[name]
    if default is None:
        raise DecodeError(f"lookup() found no key '{name}' and no default was given")
    return default


def keys(m: Value) -> Value:
    return Value.list_of([Value.string(k) for k in sorted(_expect(m, ValueKind.MAP, "keys"))])


def coalesce(*values: Value) -> Value:
    for v in values:
        if not v.is_null and not (v.kind == ValueKind.STRING and v.raw == ""):
            return v
    raise DecodeError("coalesce() found no non-null, non-empty argument")


# --- numbers ---

def _numbers(values, fn: str):
    if len(values) == 1 and values[0].kind == ValueKind.LIST:
        values = values[0].raw
    if not values:
        raise DecodeError(f"{fn}() needs at least one number")
    return [_expect(v, ValueKind.NUMBER, fn) for v in values]


def min_(*values: Value) -> Value:
    return Value.number(min(_numbers(values, "min")))


def max_(*values: Value) -> Value:
    return Value.number(max(_numbers(values, "max")))


def abs_(n: Value) -> Value:
    return Value.number(abs(_expect(n, ValueKind.NUMBER, "abs")))


def ceil(n: Value) -> Value:
    return Value.number(math.ceil(_expect(n, ValueKind.NUMBER, "ceil")))


def floor(n: Value) -> Value:
    return Value.number(math.floor(_expect(n, ValueKind.NUMBER, "floor")))


def pow_(base: Value, exponent: Value) -> Value:
    b = _expect(base, ValueKind.NUMBER, "pow")
    e = _expect(exponent, ValueKind.NUMBER, "pow")
    with localcontext() as ctx:
        ctx.prec = NUMBER_PRECISION
        if isinstance(b, int) and isinstance(e, int) and e >= 0:
            return Value.number(b ** e)
        return Value.number(Decimal(b) ** Decimal(e))


def parse_decimals(amount: Value, decimals: Value) -> Value:
    """Scale a raw token amount down by 10**decimals"""
    raw = _expect(amount, ValueKind.NUMBER, "parse_decimals")
    places = _whole(decimals, "parse_decimals")
    with localcontext() as ctx:
        ctx.prec = NUMBER_PRECISION
        return Value.number(Decimal(raw).scaleb(-places))


# --- conversions ---

def tostring(v: Value) -> Value:
    return Value.string(v.to_display())


def tonumber(v: Value) -> Value:
    if v.kind == ValueKind.NUMBER:
        return v
    if v.kind == ValueKind.STRING:
        try:
            return Value.number(int(v.raw, 0) if v.raw.lower().startswith("0x") else Decimal(v.raw))
        except (ValueError, ArithmeticError) as e:
            raise DecodeError(f"tonumber() cannot convert '{v.raw}'") from e
    if v.kind == ValueKind.BOOL:
        return Value.number(int(v.raw))
    raise DecodeError(f"tonumber() cannot convert a {v.kind.value}")


def parseint(s: Value, base: Value) -> Value:
    text = _expect(s, ValueKind.STRING, "parseint")
    try:
        return Value.number(int(text, _whole(base, "parseint")))
    except ValueError as e:
        raise DecodeError(f"parseint() cannot parse '{text}'") from e


def format_date(fmt: Value, timestamp: Value) -> Value:
    """strftime() of a unix timestamp, in UTC"""
    pattern = _expect(fmt, ValueKind.STRING, "format_date")
    seconds = normalize_number(_expect(timestamp, ValueKind.NUMBER, "format_date"))
    moment = datetime.fromtimestamp(float(seconds), tz=timezone.utc)
    return Value.string(moment.strftime(pattern))


BUILTIN_FUNCTIONS: Dict[str, Callable[..., Value]] = {
    "upper": upper,
    "lower": lower,
    "trim": trim,
    "format": format_,
    "join": join,
    "split": split,
    "replace": replace,
    "substr": substr,
    "length": length,
    "concat": concat,
    "contains": contains,
    "element": element,
    "lookup": lookup,
    "keys": keys,
    "coalesce": coalesce,
    "min": min_,
    "max": max_,
    "abs": abs_,
    "ceil": ceil,
    "floor": floor,
    "pow": pow_,
    "parse_decimals": parse_decimals,
    "tostring": tostring,
    "tonumber": tonumber,
    "parseint": parseint,
    "format_date": format_date,
}
