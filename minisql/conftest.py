import pytest

from minisql.base import Entity
from minisql.database import DatabaseEngine
from minisql.orm_types import ColumnType, RelationshipMeta
from minisql.schema import TableBuilder
from minisql.transactions import Executor, Transaction
from minisql.values import Value


class Author(Entity):
    class Meta:
        table = (TableBuilder("authors").id()
                 .column("name", ColumnType.TEXT).finish()
                 .build())
        relationships = [RelationshipMeta.has_many("posts", "author_id", "posts")]


class Post(Entity):
    class Meta:
        table = (TableBuilder("posts").id()
                 .column("title", ColumnType.TEXT).finish()
                 .column("author_id", ColumnType.BIG_INT).nullable().finish()
                 .column("published", ColumnType.BOOL).default(False).finish()
                 .build())
        relationships = [
            RelationshipMeta.belongs_to("author", "author_id", "authors"),
            RelationshipMeta.many_to_many("tags", "post_tags", "post_id", "tag_id", "tags"),
        ]


class User(Entity):
    class Meta:
        table = (TableBuilder("users").id()
                 .column("email", ColumnType.TEXT).unique().finish()
                 .column("age", ColumnType.INT).nullable().finish()
                 .column("active", ColumnType.BOOL).finish()
                 .build())
        relationships = [RelationshipMeta.has_one("profile", "user_id", "profiles").eager()]
        casts = {"active": "bool"}


class RecordingTransaction(Transaction):
    def __init__(self, executor):
        self.executor = executor

    def execute(self, sql, params=None):
        return self.executor.execute(sql, params)

    def fetch_all(self, sql, params=None):
        return self.executor.fetch_all(sql, params)

    def commit(self):
        self.executor.events.append("COMMIT")

    def rollback(self):
        self.executor.events.append("ROLLBACK")


class RecordingExecutor(Executor):
    """Remembers every statement; ``rows`` is returned by fetch_all, ``error`` is raised."""

    def __init__(self, rows=None, error=None):
        self.statements = []
        self.events = []
        self.rows = rows or []
        self.error = error

    def execute(self, sql, params=None):
        self.statements.append((sql, list(params or [])))
        if self.error:
            raise self.error
        return 1

    def fetch_all(self, sql, params=None):
        self.statements.append((sql, list(params or [])))
        if self.error:
            raise self.error
        return [{k: Value.from_python(v) for k, v in row.items()} for row in self.rows]

    def begin(self):
        self.events.append("BEGIN")
        return RecordingTransaction(self)

    def last_insert_id(self):
        return 42


@pytest.fixture
def recorder():
    return RecordingExecutor()


@pytest.fixture
def engine():
    engine = DatabaseEngine(":memory:")
    yield engine
    engine.close()
