from minisql.dialects import get_dialect
from minisql.query_ast import (
    Column, DeleteQuery, Function, InsertQuery, Literal, Operator, QualifiedColumn,
    SelectQuery, UpdateQuery,
)

AGGREGATES = ("COUNT", "SUM", "AVG", "MIN", "MAX")


def aggregate_function(function, column, table, joined=False):
    """``FUNCTION(column)`` over ``table``.

    With joins in play a bare column name is qualified with the base table.
    """
    name = function.upper()
    if name not in AGGREGATES:
        raise ValueError(f"Unsupported aggregate function: {function}")
    if column == "*":
        target = Column("*")
    elif "." in column:
        target = QualifiedColumn(*column.split(".", 1))
    elif joined:
        target = QualifiedColumn(table, column)
    else:
        target = Column(column)
    return Function(name, [target])


class _Params:
    """Collects bound values in the order their placeholders are emitted."""

    def __init__(self, dialect):
        self.dialect = dialect
        self.values = []

    def add(self, value):
        placeholder = self.dialect.placeholder(len(self.values))
        self.values.append(value)
        return placeholder


class SqlGenerator:
    """Renders query AST nodes as ``(sql, params)`` for one dialect.

    ``params`` lists the bound values in exactly the order their
    placeholders appear in ``sql``, since executors bind positionally.
    """

    def __init__(self, dialect="sqlite"):
        self.dialect = get_dialect(dialect)

    @classmethod
    def for_dialect(cls, name):
        return cls(name)

    def __repr__(self):
        return f"<SqlGenerator {self.dialect.display_name}>"

    def _quote(self, identifier):
        return self.dialect.quote_identifier(identifier)

    def generate(self, query):
        if isinstance(query, SelectQuery):
            return self.generate_select(query)
        if isinstance(query, InsertQuery):
            return self.generate_insert(query)
        if isinstance(query, UpdateQuery):
            return self.generate_update(query)
        if isinstance(query, DeleteQuery):
            return self.generate_delete(query)
        raise TypeError(f"Cannot generate SQL for {type(query).__name__}")

    def generate_select(self, query):
        params = _Params(self.dialect)
        parts = ["SELECT"]
        if query.distinct:
            parts.append("DISTINCT")
        parts.append(", ".join(self._expression(e, params) for e in query.columns))
        parts.append(f"FROM {self._quote(query.table)}")

        for join in query.joins:
            on = self._condition(join.on, params)
            parts.append(f"{join.kind.value} {self._quote(join.table)} ON {on}")

        if query.filters:
            parts.append("WHERE " + self._conditions(query.filters, params))
        if query.group_by:
            parts.append("GROUP BY " + ", ".join(self._expression(e, params) for e in query.group_by))
        if query.having:
            parts.append("HAVING " + self._conditions(query.having, params))
        if query.order_by:
            orders = [f"{self._expression(o.expression, params)} {o.direction.value}" for o in query.order_by]
            parts.append("ORDER BY " + ", ".join(orders))

        parts.extend(self._pagination(query.limit, query.offset))
        return " ".join(parts), params.values

    def generate_aggregate(self, query, function=None, column="*"):
        """Render an aggregate over ``query``.

        Grouping, ordering and pagination are dropped from the source query.
        Joins stay, so filters on joined tables still resolve. Without
        ``function`` the query's own projection is used.
        """
        columns = query.columns
        if function is not None:
            columns = (aggregate_function(function, column, query.table, bool(query.joins)),)
        stripped = query.replace(
            columns=columns, distinct=False, group_by=(), having=(),
            order_by=(), limit=None, offset=None,
        )
        return self.generate_select(stripped)

    def generate_count(self, query):
        return self.generate_aggregate(query, "COUNT", "*")

    def generate_insert(self, query):
        params = _Params(self.dialect)
        table = self._quote(query.table)
        if not query.columns:
            return f"INSERT INTO {table} {self.dialect.spec.empty_insert}", []
        columns = ", ".join(self._quote(c) for c in query.columns)
        placeholders = ", ".join(params.add(v) for v in query.values)
        return f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", params.values

    def generate_update(self, query):
        if not query.assignments:
            raise ValueError(f"UPDATE on {query.table} has no assignments")
        params = _Params(self.dialect)
        set_parts = [f"{self._quote(col)} = {params.add(val)}" for col, val in query.assignments]
        sql = f"UPDATE {self._quote(query.table)} SET {', '.join(set_parts)}"
        if query.filters:
            sql += " WHERE " + self._conditions(query.filters, params)
        return sql, params.values

    def generate_delete(self, query):
        params = _Params(self.dialect)
        sql = f"DELETE FROM {self._quote(query.table)}"
        if query.filters:
            sql += " WHERE " + self._conditions(query.filters, params)
        return sql, params.values

    def _pagination(self, limit, offset):
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {_non_negative(limit, 'LIMIT')}")
        if offset is not None:
            if limit is None and self.dialect.spec.offset_only_limit:
                parts.append(f"LIMIT {self.dialect.spec.offset_only_limit}")
            parts.append(f"OFFSET {_non_negative(offset, 'OFFSET')}")
        return parts

    def _expression(self, expr, params):
        if isinstance(expr, Column):
            return self._quote(expr.name)
        if isinstance(expr, QualifiedColumn):
            return f"{self._quote(expr.table)}.{self._quote(expr.name)}"
        if isinstance(expr, Literal):
            return params.add(expr.value)
        if isinstance(expr, Function):
            args = ", ".join(self._expression(a, params) for a in expr.args)
            return f"{expr.name}({args})"
        raise TypeError(f"Unknown expression node: {expr!r}")

    def _conditions(self, conditions, params):
        return " AND ".join(self._condition(c, params) for c in conditions)

    def _condition(self, cond, params):
        left = self._expression(cond.left, params)
        op = cond.operator
        if op.is_unary:
            return f"{left} {op.sql}"
        if op.supports_multiple:
            if not cond.right:
                # empty lists: IN matches nothing, NOT IN matches everything
                return "1 = 0" if op == Operator.IN else "1 = 1"
            placeholders = ", ".join(self._expression(e, params) for e in cond.right)
            return f"{left} {op.sql} ({placeholders})"
        return f"{left} {op.sql} {self._expression(cond.right[0], params)}"


def _non_negative(n, clause):
    n = int(n)
    if n < 0:
        raise ValueError(f"{clause} must not be negative, got {n}")
    return n
