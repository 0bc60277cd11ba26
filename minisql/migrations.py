"""
Versioned schema migrations.

A migration moves from Pending to Applied once; the runner records every
applied ``(name, version)`` in a metadata table and skips a migration whose
name already has an equal or higher recorded version. Rolling back is always
explicit and leaves the metadata table alone.
"""

import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from minisql.errors import MappingError, MigrationError
from minisql.orm_types import ColumnType
from minisql.query_ast import Column, DeleteQuery, InsertQuery, OrderBy, SelectQuery, equals
from minisql.schema import TableBuilder
from minisql.settings import Settings
from minisql.values import Value

logger = logging.getLogger("MiniSQL")


class Migration(ABC):
    name = None
    version = None

    def __init__(self, name=None, version=None):
        if name is not None:
            self.name = name
        if version is not None:
            self.version = version
        if not self.name or self.version is None:
            raise MappingError(type(self).__name__, "Migration needs a name and a version")

    @abstractmethod
    def up(self, schema):
        pass

    @abstractmethod
    def down(self, schema):
        pass

    def __repr__(self):
        return f"<Migration {self.name} v{self.version}>"


class SchemaOperations:
    """What a migration is allowed to do to the database."""

    def __init__(self, executor, schema_generator):
        self.executor = executor
        self.generator = schema_generator

    def create_table(self, table):
        for sql in self.generator.create_statements(table):
            self.executor.execute(sql, [])

    def drop_table(self, name):
        self.executor.execute(self.generator.generate_drop_table(name), [])

    def create_index(self, table_name, index):
        self.executor.execute(self.generator.generate_create_index(table_name, index), [])

    def drop_index(self, name, table_name=None):
        self.executor.execute(self.generator.generate_drop_index(name, table_name), [])

    def add_column(self, table_name, column):
        self.executor.execute(self.generator.generate_add_column(table_name, column), [])

    def drop_column(self, table_name, column_name):
        self.executor.execute(self.generator.generate_drop_column(table_name, column_name), [])

    def execute(self, sql, params=None):
        return self.executor.execute(sql, list(params or []))


class AppliedMigration(BaseModel):
    model_config = ConfigDict(strict=True)

    name: str
    version: int


class MigrationStatus(BaseModel):
    name: str
    version: int
    applied: bool


class MigrationManager:
    def __init__(self, executor, settings=None):
        self.executor = executor
        self.settings = settings or Settings()
        self.table_name = self.settings.migrations_table
        self.sql = self.settings.sql_generator()
        self.schema = self.settings.schema_generator()

    def table_definition(self):
        return (TableBuilder(self.table_name)
                .id()
                .column("name", ColumnType.TEXT).finish()
                .column("version", ColumnType.BIG_INT).finish()
                .build())

    def create_migrations_table(self, executor=None):
        executor = executor or self.executor
        executor.execute(self.schema.generate_create_table(self.table_definition()), [])

    def _parse_row(self, row):
        try:
            return AppliedMigration(
                name=Value.from_python(row["name"]).to_python(),
                version=Value.from_python(row["version"]).to_python(),
            )
        except KeyError as e:
            raise MappingError(self.table_name, f"Row is missing column {e}") from e
        except PydanticValidationError as e:
            raise MappingError(self.table_name, f"Invalid migration row {row}: {e}") from e

    def applied_migrations(self, executor=None):
        """Map of migration name -> highest applied version."""
        executor = executor or self.executor
        select = SelectQuery(
            self.table_name,
            columns=[Column("name"), Column("version")],
            order_by=[OrderBy(Column("version"))],
        )
        sql, params = self.sql.generate_select(select)
        applied = {}
        for row in executor.fetch_all(sql, params):
            record = self._parse_row(row)
            applied[record.name] = max(record.version, applied.get(record.name, record.version))
        return applied

    def is_applied(self, name, version, executor=None):
        current = self.applied_migrations(executor).get(name)
        return current is not None and current >= version

    def mark_applied(self, name, version, executor=None):
        executor = executor or self.executor
        sql, params = self.sql.generate_insert(
            InsertQuery(self.table_name, ["name", "version"], [name, version])
        )
        executor.execute(sql, params)

    def forget(self, name, version, executor=None):
        executor = executor or self.executor
        sql, params = self.sql.generate_delete(
            DeleteQuery(self.table_name, [equals("name", name), equals("version", version)])
        )
        return executor.execute(sql, params)


class MigrationRunner:
    def __init__(self, executor, migrations, settings=None, transactional=None):
        self.executor = executor
        self.settings = settings or Settings()
        self.migrations = list(migrations)
        if transactional is None:
            transactional = self.settings.transactional_migrations
        self.transactional = transactional
        self.manager = MigrationManager(executor, self.settings)
        self.schema_generator = self.settings.schema_generator()

    def _ordered(self):
        # sorted() is stable, equal versions keep their given order
        return sorted(self.migrations, key=lambda m: m.version)

    def run_pending(self):
        """Apply every pending migration in version order, return the ones applied."""
        self.manager.create_migrations_table()
        applied = self.manager.applied_migrations()
        ran = []
        for migration in self._ordered():
            current = applied.get(migration.name)
            if current is not None and current >= migration.version:
                logger.info(f"[MIGRATION SKIP]: {migration.name} v{migration.version} (applied v{current})")
                continue
            self._run(migration, "up", record=True)
            applied[migration.name] = migration.version
            ran.append(migration)
        logger.info(f"[MIGRATIONS]: {len(ran)} applied, {len(self.migrations) - len(ran)} skipped")
        return ran

    def rollback(self, migration):
        """Run ``down`` for one migration. The metadata table is not touched."""
        self._run(migration, "down", record=False)

    def status(self):
        self.manager.create_migrations_table()
        applied = self.manager.applied_migrations()
        return [
            MigrationStatus(
                name=m.name, version=m.version,
                applied=m.name in applied and applied[m.name] >= m.version,
            )
            for m in self._ordered()
        ]

    def _run(self, migration, direction, record):
        logger.info(f"[MIGRATION {direction.upper()}]: {migration.name} v{migration.version}")
        try:
            if self.transactional:
                with self.executor.begin() as transaction:
                    self._step(transaction, migration, direction, record)
            else:
                self._step(self.executor, migration, direction, record)
        except Exception as e:
            logger.error(f"[MIGRATION FAILED]: {migration.name} v{migration.version}: {e}")
            raise MigrationError(migration.name, migration.version, str(e)) from e

    def _step(self, executor, migration, direction, record):
        schema = SchemaOperations(executor, self.schema_generator)
        getattr(migration, direction)(schema)
        if record:
            self.manager.mark_applied(migration.name, migration.version, executor)
