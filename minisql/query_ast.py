"""
Dialect-independent representation of one query.

Nodes are plain value objects: they compare by their fields and are never
mutated after construction. ``SelectQuery.replace`` returns a modified copy.
"""

import re
from enum import Enum

from minisql.values import Value

_FUNCTION_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class Node:
    _fields = ()

    def _values(self):
        return tuple(getattr(self, f) for f in self._fields)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._values() == other._values()

    def __hash__(self):
        return hash((type(self).__name__,) + self._values())

    def __repr__(self):
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{type(self).__name__}({args})"


class Expression(Node):
    pass


class Column(Expression):
    _fields = ("name",)

    def __init__(self, name):
        self.name = name


class QualifiedColumn(Expression):
    _fields = ("table", "name")

    def __init__(self, table, name):
        self.table = table
        self.name = name


class Literal(Expression):
    _fields = ("value",)

    def __init__(self, value):
        self.value = Value.from_python(value)


class Function(Expression):
    _fields = ("name", "args")

    def __init__(self, name, args=()):
        if not _FUNCTION_NAME.match(name or ""):
            raise ValueError(f"Unsafe SQL function name: {name}")
        self.name = name.upper()
        self.args = tuple(args)


def as_expression(obj):
    """Expressions pass through, anything else is wrapped in a Literal."""
    if isinstance(obj, Expression):
        return obj
    return Literal(obj)


class Operator(Enum):
    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LIKE = "LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"

    @property
    def sql(self):
        return self.value

    @property
    def supports_multiple(self):
        return self in (Operator.IN, Operator.NOT_IN)

    @property
    def is_unary(self):
        return self in (Operator.IS_NULL, Operator.IS_NOT_NULL)

    @classmethod
    def from_str(cls, op):
        if isinstance(op, Operator):
            return op
        key = " ".join(str(op).upper().split())
        aliases = {"==": cls.EQ, "<>": cls.NE}
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key or member.name == key.replace(" ", "_"):
                return member
        raise ValueError(f"Unknown operator: {op}")


class Condition(Node):
    _fields = ("left", "operator", "right")

    def __init__(self, left, operator, right=()):
        self.left = left
        self.operator = operator
        self.right = tuple(right)
        if operator.is_unary:
            if self.right:
                raise ValueError(f"{operator.sql} takes no operands, got {len(self.right)}")
        elif not operator.supports_multiple and len(self.right) != 1:
            raise ValueError(f"{operator.sql} takes exactly one operand, got {len(self.right)}")


class JoinKind(Enum):
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"
    RIGHT = "RIGHT JOIN"
    FULL = "FULL OUTER JOIN"


class Join(Node):
    _fields = ("table", "on", "kind")

    def __init__(self, table, on, kind=JoinKind.LEFT):
        self.table = table
        self.on = on
        self.kind = kind


class OrderDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


class OrderBy(Node):
    _fields = ("expression", "direction")

    def __init__(self, expression, direction=OrderDirection.ASC):
        self.expression = expression
        self.direction = direction


class SelectQuery(Node):
    _fields = ("table", "columns", "distinct", "joins", "filters", "group_by",
               "having", "order_by", "limit", "offset")

    def __init__(self, table, columns=None, distinct=False, joins=(), filters=(),
                 group_by=(), having=(), order_by=(), limit=None, offset=None):
        self.table = table
        self.columns = tuple(columns) if columns else (Column("*"),)
        self.distinct = distinct
        self.joins = tuple(joins)
        self.filters = tuple(filters)
        self.group_by = tuple(group_by)
        self.having = tuple(having)
        self.order_by = tuple(order_by)
        self.limit = limit
        self.offset = offset

    def replace(self, **changes):
        fields = {f: getattr(self, f) for f in self._fields}
        fields.update(changes)
        return SelectQuery(**fields)


class InsertQuery(Node):
    _fields = ("table", "columns", "values")

    def __init__(self, table, columns, values):
        self.table = table
        self.columns = tuple(columns)
        self.values = tuple(Value.from_python(v) for v in values)
        if len(self.columns) != len(self.values):
            raise ValueError(
                f"INSERT into {table}: {len(self.columns)} columns but {len(self.values)} values"
            )


class UpdateQuery(Node):
    _fields = ("table", "assignments", "filters")

    def __init__(self, table, assignments, filters=()):
        self.table = table
        self.assignments = tuple((name, Value.from_python(v)) for name, v in assignments)
        self.filters = tuple(filters)


class DeleteQuery(Node):
    _fields = ("table", "filters")

    def __init__(self, table, filters=()):
        self.table = table
        self.filters = tuple(filters)


def equals(column, value):
    """``column = value`` with ``column`` given by name."""
    return Condition(Column(column), Operator.EQ, [Literal(value)])
