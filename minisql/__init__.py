# MiniSQL - dialect-aware SQL query compiler, DDL generator and migrations
from minisql.base import Entity
from minisql.builder import QueryBuilder
from minisql.database import DatabaseEngine
from minisql.dialects import Dialect, get_dialect
from minisql.errors import (
    ConfigurationError, ExecutionError, MappingError, MigrationError, MiniSQLError,
    RelationError, ValidationError,
)
from minisql.filters import and_, col
from minisql.generator import SchemaGenerator
from minisql.migrations import Migration, MigrationManager, MigrationRunner, SchemaOperations
from minisql.orm_types import (
    ColumnDefinition, ColumnType, IndexDefinition, RelationshipKind, RelationshipMeta,
    TableDefinition,
)
from minisql.query import Query
from minisql.schema import TableBuilder
from minisql.session import Session
from minisql.settings import Settings
from minisql.sql_generator import SqlGenerator
from minisql.values import CastType, Casts, Value, ValueKind, cast

__version__ = "0.1.0"
__all__ = [
    "Entity", "QueryBuilder", "DatabaseEngine", "Dialect", "get_dialect",
    "ConfigurationError", "ExecutionError", "MappingError", "MigrationError", "MiniSQLError",
    "RelationError", "ValidationError", "and_", "col", "SchemaGenerator",
    "Migration", "MigrationManager", "MigrationRunner", "SchemaOperations",
    "ColumnDefinition", "ColumnType", "IndexDefinition", "RelationshipKind", "RelationshipMeta",
    "TableDefinition", "Query", "TableBuilder", "Session", "Settings", "SqlGenerator",
    "CastType", "Casts", "Value", "ValueKind", "cast",
]
