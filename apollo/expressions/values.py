# apollo/expressions/values.py
"""
Tagged value model shared by the expression engine and the runtime.

Every value an expression can produce or consume is a ``Value`` carrying an
explicit ``ValueKind``. Numbers are kept as ``int`` or ``Decimal`` so token
amounts keep full precision.
"""

from decimal import Decimal, localcontext
from enum import Enum
from typing import Any, Dict, List

from eth_utils import encode_hex, is_hex_address, to_checksum_address
from msgspec import Struct

from ..core.errors import DecodeError


# uint256 has 78 decimal digits
NUMBER_PRECISION = 100


class ValueKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    LIST = "list"
    MAP = "map"
    NULL = "null"


class Value(Struct, frozen=True):
    kind: ValueKind
    raw: Any = None

    @classmethod
    def string(cls, s: str) -> 'Value':
        return cls(ValueKind.STRING, str(s))

    @classmethod
    def number(cls, n: Any) -> 'Value':
        return cls(ValueKind.NUMBER, normalize_number(n))

    @classmethod
    def boolean(cls, b: bool) -> 'Value':
        return cls(ValueKind.BOOL, bool(b))

    @classmethod
    def list_of(cls, items: List['Value']) -> 'Value':
        return cls(ValueKind.LIST, tuple(items))

    @classmethod
    def map_of(cls, items: Dict[str, 'Value']) -> 'Value':
        return cls(ValueKind.MAP, dict(items))

    @classmethod
    def null(cls) -> 'Value':
        return cls(ValueKind.NULL, None)

    @property
    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def as_python(self) -> Any:
        """Unwrap into plain Python data (lists and dicts are rebuilt)"""
        if self.kind == ValueKind.LIST:
            return [item.as_python() for item in self.raw]
        if self.kind == ValueKind.MAP:
            return {k: v.as_python() for k, v in self.raw.items()}
        return self.raw

    def to_display(self) -> str:
        """String form used by templates, tostring() and format()"""
        if self.kind == ValueKind.STRING:
            return self.raw
        if self.kind == ValueKind.BOOL:
            return "true" if self.raw else "false"
        if self.kind == ValueKind.NULL:
            return "null"
        if self.kind == ValueKind.NUMBER:
            return format_number(self.raw)
        if self.kind == ValueKind.LIST:
            return "[" + ", ".join(item.to_display() for item in self.raw) + "]"
        return "{" + ", ".join(f"{k} = {v.to_display()}" for k, v in self.raw.items()) + "}"

    def __repr__(self) -> str:
        return f"Value({self.kind.value}, {self.raw!r})"


def normalize_number(n: Any) -> Any:
    if isinstance(n, bool):
        return int(n)
    if isinstance(n, int):
        return n
    if isinstance(n, float):
        n = Decimal(repr(n))
    elif isinstance(n, str):
        n = Decimal(n)
    elif not isinstance(n, Decimal):
        raise TypeError(f"cannot use {type(n).__name__} as a number")

    if not n.is_finite():
        raise ValueError(f"non-finite number {n}")
    with localcontext() as ctx:
        ctx.prec = NUMBER_PRECISION
        if n == n.to_integral_value():
            return int(n)
    return n


def format_number(n: Any) -> str:
    if isinstance(n, int):
        return str(n)
    text = format(n, 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def to_value(native: Any) -> Value:
    """Convert plain Python data (YAML literals, function results) to a Value"""
    if isinstance(native, Value):
        return native
    if native is None:
        return Value.null()
    if isinstance(native, bool):
        return Value.boolean(native)
    if isinstance(native, (int, float, Decimal)):
        return Value.number(native)
    if isinstance(native, str):
        return Value.string(native)
    if isinstance(native, (list, tuple)):
        return Value.list_of([to_value(item) for item in native])
    if isinstance(native, dict):
        return Value.map_of({str(k): to_value(v) for k, v in native.items()})
    raise DecodeError(f"unsupported value of type {type(native).__name__}")


def coerce_raw_value(raw: Any) -> Value:
    """Coercion policy for raw call/event inputs and outputs.

    address -> checksum String, str -> String, bytes -> hex String,
    bool/int/float/Decimal -> Number, list/tuple -> List of coerced items.
    """
    if isinstance(raw, Value):
        return raw
    if isinstance(raw, str):
        if is_hex_address(raw):
            return Value.string(to_checksum_address(raw))
        return Value.string(raw)
    if isinstance(raw, (bytes, bytearray)):
        return Value.string(encode_hex(raw))
    if isinstance(raw, (list, tuple)):
        return Value.list_of([coerce_raw_value(item) for item in raw])
    try:
        return Value.number(raw)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise DecodeError(f"cannot convert raw value of type {type(raw).__name__}: {e}") from e
