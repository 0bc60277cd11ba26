import logging
import sqlite3

from minisql.dialects import Dialect
from minisql.transactions import Executor, Transaction
from minisql.values import Value


class DatabaseEngine(Executor):
    """Executor over the standard library sqlite3 driver."""

    logger = logging.getLogger("MiniSQL")
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO)

    dialect = Dialect.SQLITE

    def __init__(self, db_path=":memory:"):
        # autocommit mode; transactions are opened explicitly so DDL is covered too
        self.connection = sqlite3.connect(db_path, isolation_level=None)
        self.connection.row_factory = sqlite3.Row
        self.in_transaction = False
        self._last_insert_id = None

    def _log(self, sql, params=None):
        msg = f"[SQL EXECUTE]: {sql}"
        if params:
            msg += f" | [PARAMS]: {params}"
        self.logger.info(msg)

    def _bind(self, params):
        return tuple(Value.from_python(p).bind(self.dialect) for p in params or ())

    def _run(self, sql, params):
        self._log(sql, params)
        cursor = self.connection.cursor()
        cursor.execute(sql, self._bind(params))
        return cursor

    def execute(self, sql, params=None):
        cursor = self._run(sql, params)
        self._last_insert_id = cursor.lastrowid
        return max(cursor.rowcount, 0)

    def fetch_all(self, sql, params=None):
        cursor = self._run(sql, params)
        return [{key: Value.from_python(row[key]) for key in row.keys()} for row in cursor.fetchall()]

    def last_insert_id(self):
        return self._last_insert_id

    def begin(self):
        if self.in_transaction:
            raise RuntimeError("A transaction is already active on this engine")
        self._log("BEGIN")
        self.connection.execute("BEGIN")
        self.in_transaction = True
        return SQLiteTransaction(self)

    def commit(self):
        self._log("COMMIT")
        self.connection.execute("COMMIT")
        self.in_transaction = False

    def rollback(self):
        self._log("ROLLBACK")
        self.connection.execute("ROLLBACK")
        self.in_transaction = False

    def close(self):
        self.connection.close()


class SQLiteTransaction(Transaction):
    def __init__(self, engine):
        self.engine = engine
        self.finished = False

    def _check(self):
        if self.finished:
            raise RuntimeError("Transaction already finished")

    def execute(self, sql, params=None):
        self._check()
        return self.engine.execute(sql, params)

    def fetch_all(self, sql, params=None):
        self._check()
        return self.engine.fetch_all(sql, params)

    def last_insert_id(self):
        return self.engine.last_insert_id()

    def commit(self):
        self._check()
        self.engine.commit()
        self.finished = True

    def rollback(self):
        self._check()
        self.finished = True
        self.engine.rollback()
