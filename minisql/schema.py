"""
Fluent schema builder producing TableDefinition objects.

    users = (TableBuilder("users")
             .id()
             .column("email", ColumnType.TEXT).unique().finish()
             .column("nickname", ColumnType.TEXT).nullable().finish()
             .timestamps()
             .unique_index(["email"])
             .finish()
             .build())
"""

from minisql.orm_types import ColumnDefinition, ColumnType, IndexDefinition, TableDefinition


class ColumnBuilder:
    def __init__(self, table_builder, name, column_type):
        self._table_builder = table_builder
        self._name = name
        self._column_type = column_type
        self._nullable = False
        self._primary_key = False
        self._auto_increment = False
        self._unique = False
        self._default = None

    def nullable(self):
        self._nullable = True
        return self

    def not_null(self):
        self._nullable = False
        return self

    def primary_key(self):
        self._primary_key = True
        self._nullable = False
        return self

    def auto_increment(self):
        self._auto_increment = True
        return self

    def unique(self):
        self._unique = True
        return self

    def default(self, value):
        self._default = value
        return self

    def finish(self):
        column = ColumnDefinition(
            self._name, self._column_type, nullable=self._nullable,
            primary_key=self._primary_key, auto_increment=self._auto_increment,
            unique=self._unique, default=self._default,
        )
        return self._table_builder._add_column(column)


class IndexBuilder:
    def __init__(self, table_builder, columns, unique):
        self._table_builder = table_builder
        self._columns = list(columns)
        self._unique = unique
        self._name = None

    def name(self, name):
        self._name = name
        return self

    def finish(self):
        name = self._name
        if name is None:
            prefix = "unique" if self._unique else "idx"
            name = f"{prefix}_{self._table_builder.name}_on_{'_'.join(self._columns)}"
        index = IndexDefinition(name, self._columns, unique=self._unique)
        return self._table_builder._add_index(index)


class TableBuilder:
    def __init__(self, name):
        self.name = name
        self._columns = []
        self._indexes = []

    def column(self, name, column_type):
        return ColumnBuilder(self, name, column_type)

    def id(self, name="id"):
        return self.column(name, ColumnType.ID).primary_key().auto_increment().finish()

    def timestamps(self):
        self._columns.append(ColumnDefinition("created_at", ColumnType.DATETIME, nullable=False))
        self._columns.append(ColumnDefinition("updated_at", ColumnType.DATETIME, nullable=True))
        return self

    def soft_deletes(self):
        self._columns.append(ColumnDefinition("deleted_at", ColumnType.DATETIME, nullable=True))
        return self

    def index(self, columns):
        return IndexBuilder(self, columns, unique=False)

    def unique_index(self, columns):
        return IndexBuilder(self, columns, unique=True)

    def _add_column(self, column):
        self._columns.append(column)
        return self

    def _add_index(self, index):
        self._indexes.append(index)
        return self

    def build(self):
        return TableDefinition(self.name, self._columns, self._indexes)

    @classmethod
    def simple(cls, name):
        return cls(name).id()

    @classmethod
    def with_timestamps(cls, name):
        return cls(name).id().timestamps()
