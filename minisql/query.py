from minisql.filters import column_expression, comparison, col, membership, to_conditions
from minisql.query_ast import Condition, Expression, Operator, OrderBy, OrderDirection


def _expression(column):
    if isinstance(column, Expression):
        return column
    return column_expression(column)


def _count(n, what):
    if isinstance(n, bool) or not isinstance(n, int):
        raise ValueError(f"{what} must be an integer, got {n!r}")
    if n < 0:
        raise ValueError(f"{what} must not be negative, got {n}")
    return n


class Query:
    """Fluent query state for one entity class.

    Every method that adds a filter checks the operator against its operands,
    so a Query always builds into a valid SelectQuery. A Query created by
    ``Session.query`` can also run itself (``all``, ``first``, ``count``...).
    """

    def __init__(self, entity, session=None):
        self.entity = entity
        self.session = session
        self._columns = []
        self._distinct = False
        self._filters = []
        self._group_by = []
        self._having = []
        self._order_by = []
        self._limit = None
        self._offset = None
        self._with = []

    def __repr__(self):
        return f"<Query {self.entity.__name__} filters={len(self._filters)} with={self._with}>"

    def _clone(self):
        q = Query(self.entity, self.session)
        q._columns = list(self._columns)
        q._distinct = self._distinct
        q._filters = list(self._filters)
        q._group_by = list(self._group_by)
        q._having = list(self._having)
        q._order_by = list(self._order_by)
        q._limit = self._limit
        q._offset = self._offset
        q._with = list(self._with)
        return q

    def filter(self, *exprs, **kwargs):
        for expr in exprs:
            self._filters.extend(to_conditions(expr))
        for name, value in kwargs.items():
            self._filters.extend(to_conditions(col(name) == value))
        return self

    def where(self, column, operator, value=None):
        self._filters.append(self._condition(column, operator, value))
        return self

    def where_in(self, column, values):
        return self.where(column, Operator.IN, values)

    def where_not_in(self, column, values):
        return self.where(column, Operator.NOT_IN, values)

    def where_null(self, column):
        return self.where(column, Operator.IS_NULL)

    def where_not_null(self, column):
        return self.where(column, Operator.IS_NOT_NULL)

    def where_like(self, column, pattern):
        return self.where(column, Operator.LIKE, pattern)

    def _condition(self, column, operator, value):
        op = Operator.from_str(operator)
        left = _expression(column)
        if op.is_unary:
            if value is not None:
                raise ValueError(f"{op.sql} takes no value, got {value!r}")
            return Condition(left, op)
        if op.supports_multiple:
            return membership(left, op, value)
        return comparison(left, op, value)

    def select(self, *columns):
        self._columns.extend(_expression(c) for c in columns)
        return self

    def distinct(self):
        self._distinct = True
        return self

    def group_by(self, *columns):
        self._group_by.extend(_expression(c) for c in columns)
        return self

    def having(self, expr, operator, value=None):
        self._having.append(self._condition(expr, operator, value))
        return self

    def order_by(self, column, direction=OrderDirection.ASC):
        if not isinstance(direction, OrderDirection):
            try:
                direction = OrderDirection(str(direction).upper())
            except ValueError:
                raise ValueError(f"Unknown order direction: {direction}")
        self._order_by.append(OrderBy(_expression(column), direction))
        return self

    def order_by_asc(self, column):
        return self.order_by(column, OrderDirection.ASC)

    def order_by_desc(self, column):
        return self.order_by(column, OrderDirection.DESC)

    def limit(self, value):
        self._limit = _count(value, "limit")
        return self

    def offset(self, value):
        self._offset = _count(value, "offset")
        return self

    def with_(self, relation):
        from minisql.relationships import JoinResolver

        # unknown names fail here rather than at build time
        JoinResolver(self.entity.relationships(), self.entity.__name__).get(relation)
        if relation not in self._with:
            self._with.append(relation)
        return self

    def _require_session(self):
        if self.session is None:
            raise RuntimeError(f"Query on {self.entity.__name__} is not bound to a session")
        return self.session

    def all(self):
        return self._require_session().fetch(self)

    def first(self):
        results = self._clone().limit(1).all()
        return results[0] if results else None

    def count(self):
        return self._require_session().aggregate(self, "COUNT")

    def sum(self, field):
        return self._require_session().aggregate(self, "SUM", field)

    def avg(self, field):
        return self._require_session().aggregate(self, "AVG", field)

    def min(self, field):
        return self._require_session().aggregate(self, "MIN", field)

    def max(self, field):
        return self._require_session().aggregate(self, "MAX", field)

    def exists(self):
        return self.count() > 0
