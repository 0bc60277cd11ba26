from abc import ABC, abstractmethod


class Executor(ABC):
    """Runs ``(sql, params)`` pairs produced by the generators.

    ``params`` is a list of Values in placeholder order. Rows come back as
    dicts mapping column name to Value.
    """

    @abstractmethod
    def execute(self, sql, params=None):
        """Run a statement, return the number of rows affected."""

    @abstractmethod
    def fetch_all(self, sql, params=None):
        pass

    @abstractmethod
    def begin(self):
        """Start a Transaction."""

    def last_insert_id(self):
        """Key generated by the last INSERT, when the driver reports one."""
        return None


class Transaction(ABC):
    """Executor scoped to one database transaction.

    Used as a context manager it commits on success and rolls back when the
    block raises.
    """

    @abstractmethod
    def execute(self, sql, params=None):
        pass

    @abstractmethod
    def fetch_all(self, sql, params=None):
        pass

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    def last_insert_id(self):
        return None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
            return False
        try:
            self.commit()
        except Exception:
            # a failed COMMIT leaves the transaction open
            self.rollback()
            raise
        return False
