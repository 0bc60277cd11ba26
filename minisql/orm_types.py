import json
from enum import Enum

from minisql.errors import MappingError
from minisql.values import CastType, Value, ValueKind, cast


class ColumnType(Enum):
    ID = "Id"
    TEXT = "Text"
    LONG_TEXT = "LongText"
    INT = "Int"
    BIG_INT = "BigInt"
    FLOAT = "Float"
    BOOL = "Bool"
    DATETIME = "DateTime"
    NAIVE_DATETIME = "NaiveDateTime"
    JSON = "Json"
    BINARY = "Binary"


COLUMN_CASTS = {
    ColumnType.ID: CastType.INT,
    ColumnType.TEXT: CastType.TEXT,
    ColumnType.LONG_TEXT: CastType.TEXT,
    ColumnType.INT: CastType.INT,
    ColumnType.BIG_INT: CastType.INT,
    ColumnType.FLOAT: CastType.FLOAT,
    ColumnType.BOOL: CastType.BOOL,
    ColumnType.DATETIME: CastType.DATETIME,
    ColumnType.NAIVE_DATETIME: CastType.DATETIME,
    ColumnType.JSON: CastType.JSON,
    ColumnType.BINARY: CastType.BINARY,
}


def cast_to_column(column_type, value):
    value = Value.from_python(value)
    if column_type == ColumnType.JSON and value.kind == ValueKind.TEXT:
        # drivers without a json type hand documents back as text
        try:
            return Value.json(json.loads(value.data))
        except ValueError as e:
            raise MappingError("Value", f"Json column holds invalid text: {e}") from e
    return cast(COLUMN_CASTS[column_type], value)


class ColumnDefinition:
    def __init__(self, name, column_type, nullable=True, primary_key=False,
                 auto_increment=False, unique=False, default=None):
        self.name = name
        self.column_type = column_type
        self.primary_key = primary_key
        # primary key columns are implicitly NOT NULL
        self.nullable = nullable and not primary_key
        self.auto_increment = auto_increment
        self.unique = unique
        self.default = None if default is None else Value.from_python(default)

    def _fields(self):
        return (self.name, self.column_type, self.nullable, self.primary_key,
                self.auto_increment, self.unique, self.default)

    def __eq__(self, other):
        if not isinstance(other, ColumnDefinition):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self):
        return hash(self._fields())

    def __repr__(self):
        flags = [f for f in ("primary_key", "auto_increment", "unique", "nullable") if getattr(self, f)]
        return f"<ColumnDefinition {' '.join([self.name, self.column_type.value] + flags)}>"


class IndexDefinition:
    def __init__(self, name, columns, unique=False):
        if not columns:
            raise MappingError("Index", f"Index '{name}' needs at least one column")
        self.name = name
        self.columns = tuple(columns)
        self.unique = unique

    def __eq__(self, other):
        if not isinstance(other, IndexDefinition):
            return NotImplemented
        return (self.name, self.columns, self.unique) == (other.name, other.columns, other.unique)

    def __hash__(self):
        return hash((self.name, self.columns, self.unique))

    def __repr__(self):
        kind = "UniqueIndex" if self.unique else "Index"
        return f"<{kind} {self.name}({', '.join(self.columns)})>"


class TableDefinition:
    def __init__(self, name, columns, indexes=None):
        self.name = name
        self.columns = tuple(columns)
        self.indexes = tuple(indexes or ())

        names = [c.name for c in self.columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise MappingError(name, f"Duplicate column(s): {', '.join(duplicates)}")
        auto = [c.name for c in self.columns if c.auto_increment]
        if len(auto) > 1:
            raise MappingError(name, f"At most one auto-increment column allowed, got {auto}")

    def column(self, name):
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def primary_key_column(self):
        return next((c for c in self.columns if c.primary_key), None)

    def column_names(self):
        return [c.name for c in self.columns]

    def __eq__(self, other):
        if not isinstance(other, TableDefinition):
            return NotImplemented
        return (self.name, self.columns, self.indexes) == (other.name, other.columns, other.indexes)

    def __hash__(self):
        return hash((self.name, self.columns, self.indexes))

    def __repr__(self):
        return f"<TableDefinition {self.name}({', '.join(self.column_names())})>"


class RelationshipKind(Enum):
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"
    MANY_TO_MANY = "many_to_many"


class RelationshipMeta:
    """Relationship metadata for one named relation of an entity.

    Validated on construction: a many-to-many relation must name both its
    join table and the join table's key pointing at the target.
    """

    def __init__(self, name, kind, foreign_key, target_table, join_table=None,
                 target_foreign_key=None, cascade_delete=False, eager_load=False,
                 target_key="id"):
        self.name = name
        self.kind = kind
        self.foreign_key = foreign_key
        self.target_table = target_table
        self.join_table = join_table
        self.target_foreign_key = target_foreign_key
        self.cascade_delete = cascade_delete
        self.eager_load = eager_load
        self.target_key = target_key
        self._validate()

    def _validate(self):
        if not self.name:
            raise MappingError("Relationship", "Relationship name cannot be empty")
        if not self.target_table:
            raise MappingError(self.name, "Target table cannot be empty")
        if not self.foreign_key:
            raise MappingError(self.name, "Foreign key cannot be empty")
        if self.kind == RelationshipKind.MANY_TO_MANY:
            if not self.join_table:
                raise MappingError(self.name, "Join table is required for many-to-many relationships")
            if not self.target_foreign_key:
                raise MappingError(self.name, "Target foreign key is required for many-to-many relationships")

    @classmethod
    def belongs_to(cls, name, foreign_key, target_table):
        return cls(name, RelationshipKind.BELONGS_TO, foreign_key, target_table)

    @classmethod
    def has_many(cls, name, foreign_key, target_table):
        return cls(name, RelationshipKind.HAS_MANY, foreign_key, target_table)

    @classmethod
    def has_one(cls, name, foreign_key, target_table):
        return cls(name, RelationshipKind.HAS_ONE, foreign_key, target_table)

    @classmethod
    def many_to_many(cls, name, join_table, foreign_key, target_foreign_key, target_table):
        return cls(name, RelationshipKind.MANY_TO_MANY, foreign_key, target_table,
                   join_table=join_table, target_foreign_key=target_foreign_key)

    def eager(self):
        self.eager_load = True
        return self

    def cascade(self):
        self.cascade_delete = True
        return self

    def __repr__(self):
        parts = [self.kind.value, f"target={self.target_table}", f"fk={self.foreign_key}"]
        if self.join_table:
            parts.append(f"join_table={self.join_table}")
        return f"<Relationship {self.name} {', '.join(parts)}>"


def build_relationship_map(relationships):
    rel_map = {}
    for rel in relationships:
        if rel.name in rel_map:
            raise MappingError(rel.name, "Relationship declared twice")
        rel_map[rel.name] = rel
    return rel_map
