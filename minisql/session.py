from minisql.builder import QueryBuilder
from minisql.errors import ExecutionError, MiniSQLError, ValidationError
from minisql.query import Query
from minisql.query_ast import Column, QualifiedColumn
from minisql.settings import Settings
from minisql.values import Value


class Session:
    """Runs entity operations through an executor.

    Update and delete refuse entities without a primary key value before any
    SQL is built. Executor failures are re-raised as ExecutionError carrying
    the table and the operation.
    """

    def __init__(self, executor, settings=None):
        if settings is None:
            settings = Settings()
        elif not isinstance(settings, Settings):
            settings = Settings(dialect=settings)
        self.executor = executor
        self.settings = settings
        self.query_builder = QueryBuilder()
        self.sql_generator = settings.sql_generator()

    def query(self, entity):
        return Query(entity, self)

    def get(self, entity, pk_value):
        return self.query(entity).filter(**{entity.primary_key(): pk_value}).first()

    def _execute(self, table, operation, sql, params, fetch=False):
        try:
            if fetch:
                return self.executor.fetch_all(sql, params)
            return self.executor.execute(sql, params)
        except MiniSQLError:
            raise
        except Exception as e:
            raise ExecutionError(table, operation, str(e)) from e

    def fetch(self, query):
        entity = query.entity
        select = self.query_builder.build_select(query)
        if select.joins and select.columns == (Column("*"),):
            # joined tables share column names, hydrate from the base table only
            select = select.replace(columns=(QualifiedColumn(select.table, "*"),))
        sql, params = self.sql_generator.generate_select(select)
        rows = self._execute(select.table, "select", sql, params, fetch=True)
        return [entity.from_row(row) for row in rows]

    def aggregate(self, query, function, field="*"):
        select = self.query_builder.build_aggregate(query, function, field)
        sql, params = self.sql_generator.generate_select(select)
        rows = self._execute(select.table, function.lower(), sql, params, fetch=True)
        if not rows:
            return None
        return Value.from_python(next(iter(rows[0].values()))).to_python()

    def insert(self, entity):
        insert = self.query_builder.build_insert(entity)
        sql, params = self.sql_generator.generate_insert(insert)
        affected = self._execute(insert.table, "insert", sql, params)
        pk = entity.primary_key()
        if getattr(entity, pk, None) is None:
            new_id = self.executor.last_insert_id()
            if new_id is not None:
                setattr(entity, pk, new_id)
        return affected

    def save(self, entity):
        if getattr(entity, entity.primary_key(), None) is None:
            return self.insert(entity)
        return self.update(entity)

    def _require_primary_key(self, entity, operation):
        pk = entity.primary_key()
        if Value.from_python(getattr(entity, pk, None)).is_null:
            raise ValidationError(
                pk, f"Cannot {operation} {type(entity).__name__} without a primary key value"
            )

    def update(self, entity):
        self._require_primary_key(entity, "update")
        update = self.query_builder.build_update(entity)
        sql, params = self.sql_generator.generate_update(update)
        return self._execute(update.table, "update", sql, params)

    def delete(self, entity):
        self._require_primary_key(entity, "delete")
        delete = self.query_builder.build_delete(entity)
        sql, params = self.sql_generator.generate_delete(delete)
        return self._execute(delete.table, "delete", sql, params)
