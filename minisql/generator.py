from minisql.dialects import get_dialect


class SchemaGenerator:
    """DDL statements for TableDefinitions in one dialect."""

    def __init__(self, dialect="sqlite"):
        self.dialect = get_dialect(dialect)

    def __repr__(self):
        return f"<SchemaGenerator {self.dialect.display_name}>"

    def _quote(self, identifier):
        return self.dialect.quote_identifier(identifier)

    def generate_column_definition(self, column):
        parts = [self._quote(column.name), self.dialect.column_type_sql(column)]
        if column.primary_key:
            parts.append("PRIMARY KEY")
        suffix = self.dialect.auto_increment_suffix(column)
        if suffix:
            parts.append(suffix)
        if not column.nullable and not column.primary_key:
            parts.append("NOT NULL")
        if column.unique and not column.primary_key:
            parts.append("UNIQUE")
        if column.default is not None:
            parts.append(f"DEFAULT {column.default.sql_literal()}")
        return " ".join(parts)

    def generate_create_table(self, table):
        column_defs = ",\n".join(f"  {self.generate_column_definition(c)}" for c in table.columns)
        return (f"CREATE TABLE IF NOT EXISTS {self._quote(table.name)} (\n"
                f"{column_defs}\n"
                f"){self.dialect.spec.table_options}")

    def generate_drop_table(self, name):
        sql = f"DROP TABLE IF EXISTS {self._quote(name)}"
        if self.dialect.spec.supports_cascade:
            sql += " CASCADE"
        return sql

    def generate_create_index(self, table_name, index):
        unique = "UNIQUE " if index.unique else ""
        columns = ", ".join(self._quote(c) for c in index.columns)
        return f"CREATE {unique}INDEX {self._quote(index.name)} ON {self._quote(table_name)} ({columns})"

    def generate_drop_index(self, name, table_name=None):
        if self.dialect.spec.drop_index_needs_table:
            if not table_name:
                raise ValueError(f"{self.dialect.display_name} needs the table name to drop index {name}")
            return f"DROP INDEX {self._quote(name)} ON {self._quote(table_name)}"
        return f"DROP INDEX IF EXISTS {self._quote(name)}"

    def generate_add_column(self, table_name, column):
        return f"ALTER TABLE {self._quote(table_name)} ADD COLUMN {self.generate_column_definition(column)}"

    def generate_drop_column(self, table_name, column_name):
        return f"ALTER TABLE {self._quote(table_name)} DROP COLUMN {self._quote(column_name)}"

    def create_statements(self, table):
        statements = [self.generate_create_table(table)]
        statements.extend(self.generate_create_index(table.name, index) for index in table.indexes)
        return statements

    def create_all(self, executor, tables):
        """Create every table, then its indexes. Accepts TableDefinitions or Entity classes."""
        for table in tables:
            if hasattr(table, "table_definition"):
                table = table.table_definition()
            for sql in self.create_statements(table):
                executor.execute(sql, [])

    def drop_all(self, executor, tables):
        for table in reversed(list(tables)):
            if hasattr(table, "table_definition"):
                table = table.table_definition()
            executor.execute(self.generate_drop_table(table.name), [])
