"""
Entity base class.

Entities describe their table explicitly through an inner ``Meta`` class;
nothing is reflected from attributes:

    class Post(Entity):
        class Meta:
            table = (TableBuilder("posts").id()
                     .column("title", ColumnType.TEXT).finish()
                     .column("author_id", ColumnType.BIG_INT).finish()
                     .build())
            relationships = [RelationshipMeta.belongs_to("author", "author_id", "authors")]
            casts = {"published": "bool"}

Column values live as plain instance attributes.
"""

from minisql.errors import MappingError
from minisql.orm_types import TableDefinition, build_relationship_map, cast_to_column
from minisql.values import Casts, Value


class EntityDescriptor:
    def __init__(self, cls, table, table_name, primary_key, relationships, casts):
        self.cls = cls
        self.table = table
        self.table_name = table_name
        self.primary_key = primary_key
        self.relationships = build_relationship_map(relationships)
        self.casts = casts

    def __repr__(self):
        return (f"<EntityDescriptor class={self.cls.__name__} table={self.table_name} "
                f"columns=[{', '.join(self.table.column_names())}] pk={self.primary_key}>")


class Entity:
    _descriptor = None

    def __init__(self, **kwargs):
        for name in self.table_definition().column_names():
            setattr(self, name, None)
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        meta = getattr(cls, "Meta", None)
        table = getattr(meta, "table", None)
        if not isinstance(table, TableDefinition):
            raise MappingError(cls.__name__, "Meta.table must be a TableDefinition")

        table_name = getattr(meta, "table_name", None) or table.name
        primary_key = getattr(meta, "primary_key", None)
        if primary_key is None:
            pk_column = table.primary_key_column()
            primary_key = pk_column.name if pk_column else "id"
        if table.column(primary_key) is None:
            raise MappingError(cls.__name__, f"Primary key '{primary_key}' is not a column of {table_name}")

        casts = getattr(meta, "casts", None)
        if not isinstance(casts, Casts):
            casts = Casts(casts)

        cls._descriptor = EntityDescriptor(
            cls, table, table_name, primary_key,
            getattr(meta, "relationships", None) or [], casts,
        )

    def __repr__(self):
        pk_val = getattr(self, self.primary_key(), None)
        return f"<{self.__class__.__name__}({self.primary_key()}={pk_val})>"

    @classmethod
    def table_name(cls):
        return cls._descriptor.table_name

    @classmethod
    def primary_key(cls):
        return cls._descriptor.primary_key

    @classmethod
    def relationships(cls):
        return list(cls._descriptor.relationships.values())

    @classmethod
    def table_definition(cls):
        return cls._descriptor.table

    @classmethod
    def casts(cls):
        return cls._descriptor.casts

    def to_values(self):
        """Column name -> Value for every column of the table, in column order."""
        values = {name: getattr(self, name, None) for name in self.table_definition().column_names()}
        return self.casts().cast_on_save(values)

    @classmethod
    def from_row(cls, row):
        """Build an entity from a row map (column name -> Value or plain value).

        Declared casts win over the column type; a row without one of the
        table's columns raises MappingError.
        """
        casts = cls.casts()
        obj = cls.__new__(cls)
        for column in cls.table_definition().columns:
            if column.name not in row:
                raise MappingError(cls.__name__, f"Row is missing column '{column.name}'")
            value = Value.from_python(row[column.name])
            if casts.get_cast(column.name):
                value = casts.cast_on_load({column.name: value})[column.name]
            else:
                value = cast_to_column(column.column_type, value)
            setattr(obj, column.name, value.to_python())
        return obj
