from enum import Enum

from minisql.errors import ConfigurationError
from minisql.orm_types import ColumnType


class AutoIncrementStyle(Enum):
    SUFFIX = "suffix"
    # suffix keyword, only legal on a PRIMARY KEY column
    PRIMARY_KEY_SUFFIX = "primary_key_suffix"
    # the column type itself is replaced (SERIAL/BIGSERIAL)
    TYPE_SUBSTITUTION = "type_substitution"


DEFAULT_TYPES = {
    ColumnType.ID: "INTEGER",
    ColumnType.TEXT: "TEXT",
    ColumnType.LONG_TEXT: "TEXT",
    ColumnType.INT: "INTEGER",
    ColumnType.BIG_INT: "BIGINT",
    ColumnType.FLOAT: "REAL",
    ColumnType.BOOL: "BOOLEAN",
    ColumnType.DATETIME: "DATETIME",
    ColumnType.NAIVE_DATETIME: "DATETIME",
    ColumnType.JSON: "JSON",
    ColumnType.BINARY: "BLOB",
}


class DialectSpec:
    def __init__(self, name, quote_char, numbered_placeholders, type_overrides,
                 auto_increment_style, auto_increment_keyword="", serial_types=None,
                 table_options=";", supports_cascade=False, offset_only_limit=None,
                 drop_index_needs_table=False, empty_insert="DEFAULT VALUES"):
        self.name = name
        self.quote_char = quote_char
        self.numbered_placeholders = numbered_placeholders
        self.types = dict(DEFAULT_TYPES)
        self.types.update(type_overrides)
        self.auto_increment_style = auto_increment_style
        self.auto_increment_keyword = auto_increment_keyword
        self.serial_types = serial_types or {}
        self.table_options = table_options
        self.supports_cascade = supports_cascade
        self.offset_only_limit = offset_only_limit
        self.drop_index_needs_table = drop_index_needs_table
        self.empty_insert = empty_insert


class Dialect(Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"

    @property
    def spec(self):
        return _SPECS[self]

    @property
    def display_name(self):
        return self.spec.name

    def placeholder(self, index):
        """Placeholder for the parameter at zero-based ``index``."""
        if self.spec.numbered_placeholders:
            return f"${index + 1}"
        return "?"

    def quote_identifier(self, name):
        if name == "*":
            return "*"
        q = self.spec.quote_char
        return f"{q}{name.replace(q, q + q)}{q}"

    def map_type(self, column_type):
        return self.spec.types[column_type]

    def column_type_sql(self, column):
        """Physical type of a column, after auto-increment type substitution."""
        spec = self.spec
        if column.auto_increment and spec.auto_increment_style == AutoIncrementStyle.TYPE_SUBSTITUTION:
            serial = spec.serial_types.get(column.column_type)
            if serial:
                return serial
        return self.map_type(column.column_type)

    def auto_increment_suffix(self, column):
        spec = self.spec
        if not column.auto_increment:
            return ""
        if spec.auto_increment_style == AutoIncrementStyle.SUFFIX:
            return spec.auto_increment_keyword
        if spec.auto_increment_style == AutoIncrementStyle.PRIMARY_KEY_SUFFIX and column.primary_key:
            return spec.auto_increment_keyword
        return ""


_SPECS = {
    Dialect.MYSQL: DialectSpec(
        "MySQL", "`", numbered_placeholders=False,
        type_overrides={
            ColumnType.ID: "BIGINT",
            ColumnType.TEXT: "VARCHAR(255)",
            ColumnType.LONG_TEXT: "LONGTEXT",
            ColumnType.FLOAT: "DOUBLE",
            ColumnType.BOOL: "TINYINT(1)",
            ColumnType.BINARY: "LONGBLOB",
        },
        auto_increment_style=AutoIncrementStyle.SUFFIX,
        auto_increment_keyword="AUTO_INCREMENT",
        table_options=" ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci",
        supports_cascade=False,
        offset_only_limit="18446744073709551615",
        drop_index_needs_table=True,
        empty_insert="() VALUES ()",
    ),
    Dialect.POSTGRES: DialectSpec(
        "PostgreSQL", '"', numbered_placeholders=True,
        type_overrides={
            ColumnType.ID: "BIGINT",
            ColumnType.FLOAT: "DOUBLE PRECISION",
            ColumnType.DATETIME: "TIMESTAMP WITH TIME ZONE",
            ColumnType.NAIVE_DATETIME: "TIMESTAMP",
            ColumnType.JSON: "JSONB",
            ColumnType.BINARY: "BYTEA",
        },
        auto_increment_style=AutoIncrementStyle.TYPE_SUBSTITUTION,
        serial_types={
            ColumnType.INT: "SERIAL",
            ColumnType.ID: "BIGSERIAL",
            ColumnType.BIG_INT: "BIGSERIAL",
        },
        supports_cascade=True,
    ),
    Dialect.SQLITE: DialectSpec(
        "SQLite", '"', numbered_placeholders=False,
        type_overrides={
            ColumnType.BIG_INT: "INTEGER",
            ColumnType.BOOL: "INTEGER",
            ColumnType.DATETIME: "TEXT",
            ColumnType.NAIVE_DATETIME: "TEXT",
            ColumnType.JSON: "TEXT",
        },
        auto_increment_style=AutoIncrementStyle.PRIMARY_KEY_SUFFIX,
        auto_increment_keyword="AUTOINCREMENT",
        offset_only_limit="-1",
    ),
}

_ALIASES = {
    "mysql": Dialect.MYSQL,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "sqlite": Dialect.SQLITE,
}


def get_dialect(name):
    """Map a dialect discriminator string to its Dialect."""
    if isinstance(name, Dialect):
        return name
    dialect = _ALIASES.get(str(name).strip().lower())
    if dialect is None:
        raise ConfigurationError(
            f"Unknown dialect '{name}', expected one of: mysql, postgres, sqlite"
        )
    return dialect
