from minisql.query_ast import (
    DeleteQuery, InsertQuery, SelectQuery, UpdateQuery, equals,
)
from minisql.relationships import JoinResolver
from minisql.sql_generator import aggregate_function


class QueryBuilder:
    """Turns Query state and entities into query AST nodes.

    ``build_select`` cannot fail on a Query: filters are validated as they are
    added. Rejecting a missing primary key before update/delete is left to the
    Session.
    """

    def build_select(self, query, entity=None):
        entity = entity or query.entity
        table = entity.table_name()
        resolver = JoinResolver(entity.relationships(), entity.__name__)

        relations = [rel.name for rel in resolver.eager_relationships()]
        relations += [name for name in query._with if name not in relations]
        joins = []
        for name in relations:
            joins.extend(resolver.resolve(table, name))

        return SelectQuery(
            table,
            columns=query._columns or None,
            distinct=query._distinct,
            joins=joins,
            filters=query._filters,
            group_by=query._group_by,
            having=query._having,
            order_by=query._order_by,
            limit=query._limit,
            offset=query._offset,
        )

    def build_aggregate(self, query, function, field="*", entity=None):
        select = self.build_select(query, entity)
        column = aggregate_function(function, field, select.table, bool(select.joins))
        return select.replace(
            columns=(column,), distinct=False,
            group_by=(), having=(), order_by=(), limit=None, offset=None,
        )

    def build_count(self, query, entity=None):
        return self.build_aggregate(query, "COUNT", "*", entity)

    def build_insert(self, entity):
        table = entity.table_definition()
        values = entity.to_values()
        columns, row = [], []
        for name, value in values.items():
            column = table.column(name)
            if column is not None and value.is_null:
                # let the database assign the key
                if column.auto_increment:
                    continue
                if column.default is not None:
                    value = column.default
            columns.append(name)
            row.append(value)
        return InsertQuery(entity.table_name(), columns, row)

    def build_update(self, entity):
        pk = entity.primary_key()
        values = entity.to_values()
        pk_value = values.pop(pk)
        return UpdateQuery(entity.table_name(), list(values.items()), [equals(pk, pk_value)])

    def build_delete(self, entity):
        pk = entity.primary_key()
        pk_value = entity.to_values()[pk]
        return DeleteQuery(entity.table_name(), [equals(pk, pk_value)])
