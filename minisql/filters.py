"""
Filter expressions for the fluent query builder.

    query.filter(col("age") >= 18, col("status").in_(["active", "pending"]))
    query.filter(col("email").like("%@example.com") & col("deleted_at").is_null())

Combined filters are always ANDed.
"""

from minisql.query_ast import Column, Condition, Operator, QualifiedColumn, as_expression


def column_expression(name, table=None):
    """``Column`` for a plain name, ``QualifiedColumn`` for ``table.name``."""
    if table:
        return QualifiedColumn(table, name)
    if "." in name:
        table, name = name.split(".", 1)
        return QualifiedColumn(table, name)
    return Column(name)


def comparison(left, operator, value):
    """Single-operand condition. Comparing to None with = or != tests for NULL."""
    if value is None and operator == Operator.EQ:
        return Condition(left, Operator.IS_NULL)
    if value is None and operator == Operator.NE:
        return Condition(left, Operator.IS_NOT_NULL)
    if isinstance(value, ColumnFilter):
        value = value.expression()
    return Condition(left, operator, [as_expression(value)])


def membership(left, operator, values):
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise ValueError(f"{operator.sql} expects a list of values, got {values!r}")
    return Condition(left, operator, [as_expression(v) for v in values])


class FilterExpression:
    def to_conditions(self):
        raise NotImplementedError

    def __and__(self, other):
        return and_(self, other)


class ColumnFilter:
    """A column that can be used in filter expressions"""

    def __init__(self, column_name, table=None):
        self.column_name = column_name
        self.table = table

    def expression(self):
        return column_expression(self.column_name, self.table)

    def __eq__(self, other):
        return ComparisonFilter(self, Operator.EQ, other)

    def __ne__(self, other):
        return ComparisonFilter(self, Operator.NE, other)

    def __lt__(self, other):
        return ComparisonFilter(self, Operator.LT, other)

    def __le__(self, other):
        return ComparisonFilter(self, Operator.LTE, other)

    def __gt__(self, other):
        return ComparisonFilter(self, Operator.GT, other)

    def __ge__(self, other):
        return ComparisonFilter(self, Operator.GTE, other)

    __hash__ = None

    def in_(self, values):
        return MembershipFilter(self, Operator.IN, values)

    def not_in(self, values):
        return MembershipFilter(self, Operator.NOT_IN, values)

    def like(self, pattern):
        return ComparisonFilter(self, Operator.LIKE, pattern)

    def is_null(self):
        return NullFilter(self, Operator.IS_NULL)

    def is_not_null(self):
        return NullFilter(self, Operator.IS_NOT_NULL)

    def __repr__(self):
        return f"col({self.column_name!r})"


class ComparisonFilter(FilterExpression):
    """=, !=, <, <=, >, >= and LIKE; the value may be another column"""

    def __init__(self, column, operator, value):
        self.column = column
        self.operator = operator
        self.value = value

    def to_conditions(self):
        return [comparison(self.column.expression(), self.operator, self.value)]


class MembershipFilter(FilterExpression):
    def __init__(self, column, operator, values):
        self.column = column
        self.operator = operator
        self.values = values

    def to_conditions(self):
        return [membership(self.column.expression(), self.operator, self.values)]


class NullFilter(FilterExpression):
    def __init__(self, column, operator):
        self.column = column
        self.operator = operator

    def to_conditions(self):
        return [Condition(self.column.expression(), self.operator)]


class CombinedFilter(FilterExpression):
    def __init__(self, *filters):
        self.filters = filters

    def to_conditions(self):
        conditions = []
        for f in self.filters:
            conditions.extend(to_conditions(f))
        return conditions


def to_conditions(expr):
    """Flatten a filter expression (or a ready Condition) into a list of Conditions."""
    if isinstance(expr, Condition):
        return [expr]
    if isinstance(expr, FilterExpression):
        return expr.to_conditions()
    raise TypeError(f"Cannot use {expr!r} as a filter")


def col(column_name, table=None):
    return ColumnFilter(column_name, table)


def and_(*filters):
    flat = []
    for f in filters:
        if isinstance(f, CombinedFilter):
            flat.extend(f.filters)
        else:
            flat.append(f)
    return CombinedFilter(*flat)
