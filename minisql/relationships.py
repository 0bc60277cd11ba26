from minisql.errors import RelationError
from minisql.orm_types import RelationshipKind, build_relationship_map
from minisql.query_ast import Condition, Join, JoinKind, Literal, Operator, QualifiedColumn


def _on(left_table, left_column, right_table, right_column):
    return Condition(
        QualifiedColumn(left_table, left_column),
        Operator.EQ,
        [QualifiedColumn(right_table, right_column)],
    )


def resolve_joins(base_table, meta):
    """Joins that bring ``meta``'s target table into a select on ``base_table``.

    BelongsTo, HasMany and HasOne need one join, ManyToMany needs two: the
    join table first, then the target. All joins are LEFT joins.
    """
    kind = meta.kind
    target = meta.target_table
    if kind == RelationshipKind.BELONGS_TO:
        return [Join(target, _on(base_table, meta.foreign_key, target, meta.target_key), JoinKind.LEFT)]
    if kind in (RelationshipKind.HAS_MANY, RelationshipKind.HAS_ONE):
        return [Join(target, _on(target, meta.foreign_key, base_table, "id"), JoinKind.LEFT)]

    join_table = meta.join_table
    return [
        Join(join_table, _on(join_table, meta.foreign_key, base_table, "id"), JoinKind.LEFT),
        Join(target, _on(target, meta.target_key, join_table, meta.target_foreign_key), JoinKind.LEFT),
    ]


def resolve_predicate(meta, value):
    """Condition selecting rows related to ``value`` through ``meta``.

    Used together with ``resolve_joins``: ``value`` is compared against the
    target key for BelongsTo, the target's foreign key for HasMany/HasOne and
    the join table's target key for ManyToMany.
    """
    kind = meta.kind
    if kind == RelationshipKind.BELONGS_TO:
        left = QualifiedColumn(meta.target_table, meta.target_key)
    elif kind in (RelationshipKind.HAS_MANY, RelationshipKind.HAS_ONE):
        left = QualifiedColumn(meta.target_table, meta.foreign_key)
    else:
        left = QualifiedColumn(meta.join_table, meta.target_foreign_key)
    return Condition(left, Operator.EQ, [Literal(value)])


class JoinResolver:
    def __init__(self, relationships, entity_name=None):
        self.relationships = build_relationship_map(relationships)
        self.entity_name = entity_name

    def get(self, name):
        rel = self.relationships.get(name)
        if rel is None:
            raise RelationError(self.entity_name or "entity", name)
        return rel

    def resolve(self, base_table, name):
        return resolve_joins(base_table, self.get(name))

    def eager_relationships(self):
        return [rel for rel in self.relationships.values() if rel.eager_load]

    def __contains__(self, name):
        return name in self.relationships
