import json
import math
import re
from datetime import datetime, timezone
from enum import Enum

from minisql.errors import MappingError

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

_INT_PATTERN = re.compile(r'^[+-]?[0-9]+$')


class ValueKind(Enum):
    NULL = "Null"
    TEXT = "Text"
    INT = "Int"
    FLOAT = "Float"
    BOOL = "Bool"
    DATETIME = "DateTime"
    NAIVE_DATETIME = "NaiveDateTime"
    JSON = "Json"
    BINARY = "Binary"


class Value:
    """Tagged scalar used both as a SQL literal and as a bound parameter.

    Values are immutable. Equality and hashing take the kind into account,
    so ``Value.int(1)`` never equals ``Value.bool(True)`` or
    ``Value.float(1.0)``. Floats compare on a total order: every NaN equals
    every other NaN.
    """

    __slots__ = ("kind", "data")

    def __init__(self, kind, data=None):
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "data", data)

    def __setattr__(self, name, value):
        raise AttributeError(f"Value is immutable, cannot set '{name}'")

    @classmethod
    def null(cls):
        return cls(ValueKind.NULL)

    @classmethod
    def text(cls, s):
        if not isinstance(s, str):
            raise MappingError("Value", f"Text expects str, got {type(s).__name__}")
        return cls(ValueKind.TEXT, s)

    @classmethod
    def int(cls, i):
        if isinstance(i, bool) or not isinstance(i, int):
            raise MappingError("Value", f"Int expects int, got {type(i).__name__}")
        if i < INT_MIN or i > INT_MAX:
            raise MappingError("Value", f"Int value {i} is out of 64-bit range")
        return cls(ValueKind.INT, i)

    @classmethod
    def float(cls, f):
        if isinstance(f, bool) or not isinstance(f, (int, float)):
            raise MappingError("Value", f"Float expects float, got {type(f).__name__}")
        return cls(ValueKind.FLOAT, float(f))

    @classmethod
    def bool(cls, b):
        if not isinstance(b, bool):
            raise MappingError("Value", f"Bool expects bool, got {type(b).__name__}")
        return cls(ValueKind.BOOL, b)

    @classmethod
    def datetime(cls, dt):
        if not isinstance(dt, datetime) or dt.tzinfo is None:
            raise MappingError("Value", "DateTime expects a timezone-aware datetime")
        return cls(ValueKind.DATETIME, dt.astimezone(timezone.utc))

    @classmethod
    def naive_datetime(cls, dt):
        if not isinstance(dt, datetime) or dt.tzinfo is not None:
            raise MappingError("Value", "NaiveDateTime expects a datetime without tzinfo")
        return cls(ValueKind.NAIVE_DATETIME, dt)

    @classmethod
    def json(cls, document):
        try:
            copied = json.loads(json.dumps(document))
        except (TypeError, ValueError) as e:
            raise MappingError("Value", f"Json document is not serializable: {e}") from e
        return cls(ValueKind.JSON, copied)

    @classmethod
    def binary(cls, b):
        if not isinstance(b, (bytes, bytearray, memoryview)):
            raise MappingError("Value", f"Binary expects bytes, got {type(b).__name__}")
        return cls(ValueKind.BINARY, bytes(b))

    @classmethod
    def from_python(cls, obj):
        """Wrap a plain Python (or driver-native) object."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls.null()
        # bool first, it is a subclass of int
        if isinstance(obj, bool):
            return cls.bool(obj)
        if isinstance(obj, int):
            return cls.int(obj)
        if isinstance(obj, float):
            return cls.float(obj)
        if isinstance(obj, str):
            return cls.text(obj)
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return cls.naive_datetime(obj)
            return cls.datetime(obj)
        if isinstance(obj, (dict, list)):
            return cls.json(obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls.binary(obj)
        raise MappingError("Value", f"Unsupported type {type(obj).__name__}")

    @property
    def is_null(self):
        return self.kind == ValueKind.NULL

    def to_python(self):
        if self.kind == ValueKind.JSON:
            return json.loads(json.dumps(self.data))
        return self.data

    def _key(self):
        if self.kind == ValueKind.FLOAT and math.isnan(self.data):
            return "NaN"
        if self.kind == ValueKind.JSON:
            return json.dumps(self.data, sort_keys=True, separators=(",", ":"))
        return self.data

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind == other.kind and self._key() == other._key()

    def __hash__(self):
        return hash((self.kind, self._key()))

    def __repr__(self):
        if self.kind == ValueKind.NULL:
            return "Null"
        return f"{self.kind.value}({self.data!r})"

    def __str__(self):
        return self.sql_literal()

    def sql_literal(self):
        """Canonical SQL literal. Only for DDL defaults and debug output;
        user data always goes through parameter binding."""
        kind = self.kind
        if kind == ValueKind.NULL:
            return "NULL"
        if kind == ValueKind.TEXT:
            return _quote_literal(self.data)
        if kind == ValueKind.INT:
            return str(self.data)
        if kind == ValueKind.FLOAT:
            if math.isfinite(self.data):
                return repr(self.data)
            return _quote_literal(repr(self.data))
        if kind == ValueKind.BOOL:
            return "TRUE" if self.data else "FALSE"
        if kind == ValueKind.DATETIME:
            return _quote_literal(self.data.isoformat())
        if kind == ValueKind.NAIVE_DATETIME:
            return _quote_literal(self.data.strftime("%Y-%m-%d %H:%M:%S"))
        if kind == ValueKind.JSON:
            return _quote_literal(json.dumps(self.data, separators=(",", ":")))
        return f"X'{self.data.hex()}'"

    def bind(self, dialect):
        """Driver-native object for binding this value in the given dialect."""
        from minisql.dialects import Dialect, get_dialect

        dialect = get_dialect(dialect)
        kind = self.kind
        if kind == ValueKind.BOOL and dialect == Dialect.SQLITE:
            return 1 if self.data else 0
        if kind == ValueKind.DATETIME:
            if dialect == Dialect.SQLITE:
                return self.data.isoformat()
            if dialect == Dialect.MYSQL:
                # MySQL DATETIME has no offset, values are stored as UTC
                return self.data.replace(tzinfo=None)
            return self.data
        if kind == ValueKind.NAIVE_DATETIME and dialect == Dialect.SQLITE:
            return self.data.strftime("%Y-%m-%d %H:%M:%S")
        if kind == ValueKind.JSON:
            return json.dumps(self.data, separators=(",", ":"))
        return self.data


def _quote_literal(s):
    return "'" + s.replace("'", "''") + "'"


class CastType(Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "string"
    JSON = "json"
    DATETIME = "datetime"
    BINARY = "binary"

    @classmethod
    def from_str(cls, name):
        aliases = {"text": cls.TEXT, "str": cls.TEXT, "integer": cls.INT, "boolean": cls.BOOL}
        key = str(name).lower()
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key:
                return member
        raise MappingError("Cast", f"Unknown cast type: {name}")


_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off", ""}


def _cast_error(value, target, reason=None):
    message = f"Cannot cast {value.kind.value} to {target.name}"
    if reason:
        message += f": {reason}"
    return MappingError("Cast", message)


def _text_to_bool(value):
    word = value.data.lower()
    if word in _TRUE_WORDS:
        return Value.bool(True)
    if word in _FALSE_WORDS:
        return Value.bool(False)
    raise _cast_error(value, CastType.BOOL, f"unrecognised word {value.data!r}")


def _text_to_int(value):
    if not _INT_PATTERN.match(value.data):
        raise _cast_error(value, CastType.INT, f"{value.data!r} is not an integer")
    return Value.int(int(value.data))


def _text_to_float(value):
    s = value.data
    if not s or s != s.strip() or "_" in s:
        raise _cast_error(value, CastType.FLOAT, f"{s!r} is not a number")
    try:
        return Value.float(float(s))
    except ValueError:
        raise _cast_error(value, CastType.FLOAT, f"{s!r} is not a number")


def _float_to_int(value):
    if not math.isfinite(value.data):
        raise _cast_error(value, CastType.INT, f"{value.data!r} has no integer value")
    return Value.int(int(value.data))


def _text_to_datetime(value):
    try:
        parsed = datetime.fromisoformat(value.data)
    except ValueError:
        raise _cast_error(value, CastType.DATETIME, f"{value.data!r} is not ISO-8601")
    return Value.from_python(parsed)


_CASTS = {
    (CastType.BOOL, ValueKind.BOOL): lambda v: v,
    (CastType.BOOL, ValueKind.INT): lambda v: Value.bool(v.data != 0),
    (CastType.BOOL, ValueKind.TEXT): _text_to_bool,
    (CastType.INT, ValueKind.INT): lambda v: v,
    (CastType.INT, ValueKind.FLOAT): _float_to_int,
    (CastType.INT, ValueKind.BOOL): lambda v: Value.int(1 if v.data else 0),
    (CastType.INT, ValueKind.TEXT): _text_to_int,
    (CastType.FLOAT, ValueKind.FLOAT): lambda v: v,
    (CastType.FLOAT, ValueKind.INT): lambda v: Value.float(float(v.data)),
    (CastType.FLOAT, ValueKind.TEXT): _text_to_float,
    (CastType.TEXT, ValueKind.TEXT): lambda v: v,
    (CastType.TEXT, ValueKind.INT): lambda v: Value.text(str(v.data)),
    (CastType.TEXT, ValueKind.FLOAT): lambda v: Value.text(repr(v.data)),
    (CastType.TEXT, ValueKind.BOOL): lambda v: Value.text("true" if v.data else "false"),
    (CastType.DATETIME, ValueKind.DATETIME): lambda v: v,
    (CastType.DATETIME, ValueKind.NAIVE_DATETIME): lambda v: v,
    (CastType.DATETIME, ValueKind.TEXT): _text_to_datetime,
    (CastType.BINARY, ValueKind.BINARY): lambda v: v,
    (CastType.BINARY, ValueKind.TEXT): lambda v: Value.binary(v.data.encode("utf-8")),
}


def cast(target, value):
    """Cast ``value`` to ``target``. Raises MappingError on failure."""
    if isinstance(target, str):
        target = CastType.from_str(target)
    value = Value.from_python(value)
    if value.kind == ValueKind.NULL or target == CastType.JSON:
        return value
    caster = _CASTS.get((target, value.kind))
    if caster is None:
        raise _cast_error(value, target)
    return caster(value)


class Casts:
    """Per-field cast definitions applied to row maps on load and save."""

    def __init__(self, definitions=None):
        self.definitions = {}
        for field, cast_type in (definitions or {}).items():
            self.add(field, cast_type)

    def add(self, field, cast_type):
        if not isinstance(cast_type, CastType):
            cast_type = CastType.from_str(cast_type)
        self.definitions[field] = cast_type
        return self

    def get_cast(self, field):
        return self.definitions.get(field)

    def _apply(self, values):
        out = {}
        for field, value in values.items():
            cast_type = self.definitions.get(field)
            out[field] = cast(cast_type, value) if cast_type else Value.from_python(value)
        return out

    def cast_on_load(self, row):
        return self._apply(row)

    def cast_on_save(self, values):
        return self._apply(values)

    def __bool__(self):
        return bool(self.definitions)

    def __repr__(self):
        return f"<Casts {self.definitions}>"
