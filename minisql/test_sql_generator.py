import re

import pytest

from minisql.dialects import Dialect, get_dialect
from minisql.errors import ConfigurationError
from minisql.orm_types import ColumnType
from minisql.query_ast import (
    Column, Condition, DeleteQuery, Function, InsertQuery, Join, JoinKind, Literal, Operator,
    OrderBy, OrderDirection, QualifiedColumn, SelectQuery, UpdateQuery, equals,
)
from minisql.sql_generator import SqlGenerator
from minisql.values import Value


def _placeholder_count(sql):
    return sql.count("?")


class TestConditions:
    def test_arity_is_validated(self):
        with pytest.raises(ValueError):
            Condition(Column("a"), Operator.EQ, [])
        with pytest.raises(ValueError):
            Condition(Column("a"), Operator.IS_NULL, [Literal(1)])
        Condition(Column("a"), Operator.IN, [])

    def test_operator_from_str(self):
        assert Operator.from_str("==") == Operator.EQ
        assert Operator.from_str("not in") == Operator.NOT_IN
        assert Operator.from_str("is  null") == Operator.IS_NULL
        with pytest.raises(ValueError):
            Operator.from_str("~")

    def test_unsafe_function_name(self):
        with pytest.raises(ValueError):
            Function("count(*); drop table x", [])

    def test_nodes_compare_by_value(self):
        assert equals("id", 5) == Condition(Column("id"), Operator.EQ, [Literal(Value.int(5))])
        assert SelectQuery("users") == SelectQuery("users", columns=[Column("*")])

    def test_insert_lengths_must_match(self):
        with pytest.raises(ValueError):
            InsertQuery("users", ["a", "b"], [1])


class TestSelect:
    def test_sqlite_select_by_id(self):
        sql, params = SqlGenerator("sqlite").generate_select(
            SelectQuery("users", filters=[equals("id", 5)], limit=1)
        )
        assert sql == 'SELECT * FROM "users" WHERE "id" = ? LIMIT 1'
        assert params == [Value.int(5)]

    def test_postgres_select_by_id(self):
        sql, params = SqlGenerator.for_dialect("postgres").generate_select(
            SelectQuery("users", filters=[equals("id", 5)], limit=1)
        )
        assert sql == 'SELECT * FROM "users" WHERE "id" = $1 LIMIT 1'
        assert params == [Value.int(5)]

    def test_mysql_quotes_with_backticks(self):
        sql, _ = SqlGenerator("mysql").generate_select(
            SelectQuery("users", columns=[Column("name")], filters=[equals("id", 1)])
        )
        assert sql == "SELECT `name` FROM `users` WHERE `id` = ?"

    def test_in_expands_one_placeholder_per_value(self):
        query = SelectQuery("users", filters=[
            equals("active", True),
            Condition(Column("id"), Operator.IN, [Literal(1), Literal(2), Literal(3)]),
        ])
        sql, params = SqlGenerator("sqlite").generate_select(query)
        assert sql == 'SELECT * FROM "users" WHERE "active" = ? AND "id" IN (?, ?, ?)'
        assert params == [Value.bool(True), Value.int(1), Value.int(2), Value.int(3)]

    def test_empty_in_and_not_in(self):
        query = SelectQuery("users", filters=[
            Condition(Column("id"), Operator.IN, []),
            Condition(Column("id"), Operator.NOT_IN, []),
        ])
        sql, params = SqlGenerator("sqlite").generate_select(query)
        assert sql == 'SELECT * FROM "users" WHERE 1 = 0 AND 1 = 1'
        assert params == []

    def test_null_checks_take_no_params(self):
        query = SelectQuery("users", filters=[
            Condition(Column("deleted_at"), Operator.IS_NULL),
            Condition(Column("email"), Operator.IS_NOT_NULL),
        ])
        sql, params = SqlGenerator("postgres").generate_select(query)
        assert sql == 'SELECT * FROM "users" WHERE "deleted_at" IS NULL AND "email" IS NOT NULL'
        assert params == []

    def test_clause_order_and_postgres_numbering(self):
        on = Condition(QualifiedColumn("posts", "author_id"), Operator.EQ,
                       [QualifiedColumn("authors", "id")])
        query = SelectQuery(
            "posts",
            columns=[QualifiedColumn("authors", "name"), Function("COUNT", [Column("*")])],
            distinct=True,
            joins=[Join("authors", on, JoinKind.INNER)],
            filters=[Condition(Column("status"), Operator.IN, [Literal("a"), Literal("b")]),
                     Condition(Column("title"), Operator.LIKE, [Literal("%sql%")])],
            group_by=[QualifiedColumn("authors", "name")],
            having=[Condition(Function("COUNT", [Column("*")]), Operator.GT, [Literal(2)])],
            order_by=[OrderBy(QualifiedColumn("authors", "name"), OrderDirection.DESC)],
            limit=10,
            offset=20,
        )
        sql, params = SqlGenerator("postgres").generate_select(query)
        assert sql == (
            'SELECT DISTINCT "authors"."name", COUNT(*) FROM "posts" '
            'INNER JOIN "authors" ON "posts"."author_id" = "authors"."id" '
            'WHERE "status" IN ($1, $2) AND "title" LIKE $3 '
            'GROUP BY "authors"."name" HAVING COUNT(*) > $4 '
            'ORDER BY "authors"."name" DESC LIMIT 10 OFFSET 20'
        )
        assert params == [Value.text("a"), Value.text("b"), Value.text("%sql%"), Value.int(2)]

    def test_placeholders_are_numbered_without_gaps(self):
        filters = [Condition(Column(f"c{i}"), Operator.IN, [Literal(j) for j in range(i)])
                   for i in range(1, 5)]
        sql, params = SqlGenerator("postgres").generate_select(SelectQuery("t", filters=filters))
        numbers = [int(n) for n in re.findall(r"\$(\d+)", sql)]
        assert numbers == list(range(1, len(params) + 1))

    @pytest.mark.parametrize("dialect,expected", [
        ("sqlite", 'SELECT * FROM "t" LIMIT -1 OFFSET 5'),
        ("mysql", "SELECT * FROM `t` LIMIT 18446744073709551615 OFFSET 5"),
        ("postgres", 'SELECT * FROM "t" OFFSET 5'),
    ])
    def test_offset_without_limit(self, dialect, expected):
        sql, _ = SqlGenerator(dialect).generate_select(SelectQuery("t", offset=5))
        assert sql == expected

    def test_negative_limit_is_rejected(self):
        with pytest.raises(ValueError):
            SqlGenerator("sqlite").generate_select(SelectQuery("t", limit=-1))

    def test_aggregate_drops_clauses(self):
        query = SelectQuery(
            "posts",
            filters=[equals("published", True)],
            group_by=[Column("author_id")],
            order_by=[OrderBy(Column("id"))],
            limit=5,
            offset=10,
            distinct=True,
        )
        sql, params = SqlGenerator("sqlite").generate_aggregate(query, "count")
        assert sql == 'SELECT COUNT(*) FROM "posts" WHERE "published" = ?'
        assert params == [Value.bool(True)]

        sql, _ = SqlGenerator("sqlite").generate_aggregate(query, "max", "id")
        assert sql == 'SELECT MAX("id") FROM "posts" WHERE "published" = ?'

        with pytest.raises(ValueError):
            SqlGenerator("sqlite").generate_aggregate(query, "median", "id")

    def test_aggregate_keeps_joins(self):
        on = Condition(QualifiedColumn("posts", "author_id"), Operator.EQ, [QualifiedColumn("authors", "id")])
        query = SelectQuery(
            "posts",
            joins=[Join("authors", on)],
            filters=[Condition(QualifiedColumn("authors", "name"), Operator.EQ, [Literal("ann")])],
            order_by=[OrderBy(Column("id"))],
            limit=3,
        )
        sql, params = SqlGenerator("postgres").generate_aggregate(query, "sum", "id")
        assert sql == ('SELECT SUM("posts"."id") FROM "posts" '
                       'LEFT JOIN "authors" ON "posts"."author_id" = "authors"."id" '
                       'WHERE "authors"."name" = $1')
        assert params == [Value.text("ann")]

        sql, _ = SqlGenerator("postgres").generate_count(query)
        assert sql.startswith('SELECT COUNT(*) FROM "posts" LEFT JOIN "authors"')


class TestWrites:
    def test_insert(self):
        sql, params = SqlGenerator("postgres").generate_insert(
            InsertQuery("users", ["email", "age"], ["a@b.c", 30])
        )
        assert sql == 'INSERT INTO "users" ("email", "age") VALUES ($1, $2)'
        assert params == [Value.text("a@b.c"), Value.int(30)]

    def test_insert_without_columns(self):
        assert SqlGenerator("sqlite").generate_insert(InsertQuery("t", [], [])) == \
            ('INSERT INTO "t" DEFAULT VALUES', [])
        assert SqlGenerator("mysql").generate_insert(InsertQuery("t", [], [])) == \
            ("INSERT INTO `t` () VALUES ()", [])
        assert SqlGenerator("postgres").generate_insert(InsertQuery("t", [], [])) == \
            ('INSERT INTO "t" DEFAULT VALUES', [])
        assert get_dialect("mysql").spec.empty_insert == "() VALUES ()"
        assert get_dialect("sqlite").spec.empty_insert == "DEFAULT VALUES"

    def test_update_params_follow_placeholders(self):
        update = UpdateQuery("users", [("email", "x@y.z"), ("age", 31)], [equals("id", 7)])
        sql, params = SqlGenerator("postgres").generate_update(update)
        assert sql == 'UPDATE "users" SET "email" = $1, "age" = $2 WHERE "id" = $3'
        assert params == [Value.text("x@y.z"), Value.int(31), Value.int(7)]

    def test_update_without_assignments(self):
        with pytest.raises(ValueError):
            SqlGenerator("sqlite").generate_update(UpdateQuery("users", [], [equals("id", 1)]))

    def test_delete(self):
        sql, params = SqlGenerator("mysql").generate_delete(DeleteQuery("users", [equals("id", 3)]))
        assert sql == "DELETE FROM `users` WHERE `id` = ?"
        assert params == [Value.int(3)]

    def test_generate_dispatches_on_node_type(self):
        generator = SqlGenerator("sqlite")
        assert generator.generate(DeleteQuery("t")) == ('DELETE FROM "t"', [])
        with pytest.raises(TypeError):
            generator.generate("SELECT 1")

    def test_placeholder_count_matches_params(self):
        generator = SqlGenerator("sqlite")
        nodes = [
            InsertQuery("t", ["a", "b", "c"], [1, None, "x"]),
            UpdateQuery("t", [("a", 1)], [Condition(Column("b"), Operator.NOT_IN, [Literal(1), Literal(2)])]),
            SelectQuery("t", filters=[equals("a", 1)], having=[equals("b", 2)]),
        ]
        for node in nodes:
            sql, params = generator.generate(node)
            assert _placeholder_count(sql) == len(params)


class TestDialects:
    def test_get_dialect(self):
        assert get_dialect("PostgreSQL") is Dialect.POSTGRES
        assert get_dialect(Dialect.MYSQL) is Dialect.MYSQL
        with pytest.raises(ConfigurationError):
            get_dialect("oracle")
        with pytest.raises(ConfigurationError):
            SqlGenerator.for_dialect("mssql")

    def test_star_is_never_quoted(self):
        for dialect in Dialect:
            assert dialect.quote_identifier("*") == "*"

    def test_quote_characters_are_doubled(self):
        assert Dialect.MYSQL.quote_identifier('we"ird`name') == '`we"ird``name`'
        assert Dialect.POSTGRES.quote_identifier('we"ird`name') == '"we""ird`name"'
        assert Dialect.SQLITE.quote_identifier("plain") == '"plain"'

    def test_placeholders(self):
        assert [Dialect.POSTGRES.placeholder(i) for i in range(3)] == ["$1", "$2", "$3"]
        assert Dialect.SQLITE.placeholder(4) == "?"

    def test_type_mapping_is_total(self):
        for dialect in Dialect:
            for column_type in ColumnType:
                assert dialect.map_type(column_type)

    def test_postgres_widenings(self):
        assert Dialect.POSTGRES.map_type(ColumnType.FLOAT) == "DOUBLE PRECISION"
        assert Dialect.POSTGRES.map_type(ColumnType.JSON) == "JSONB"
        assert Dialect.POSTGRES.map_type(ColumnType.BINARY) == "BYTEA"
