class MiniSQLError(Exception):
    """Base class for every error raised by minisql."""


class MappingError(MiniSQLError, ValueError):
    """A value, row or metadata definition could not be mapped."""

    def __init__(self, entity, message):
        self.entity = entity
        self.message = message
        super().__init__(f"Mapping error ({entity}): {message}")


class ValidationError(MiniSQLError, ValueError):
    def __init__(self, field, message):
        self.field = field
        self.message = message
        super().__init__(f"Validation error on '{field}': {message}")


class RelationError(MiniSQLError, AttributeError):
    def __init__(self, entity, relation):
        self.entity = entity
        self.relation = relation
        super().__init__(f"Model {entity} has no relationship '{relation}'")


class ConfigurationError(MiniSQLError, ValueError):
    pass


class MigrationError(MiniSQLError, RuntimeError):
    def __init__(self, name, version, message):
        self.name = name
        self.version = version
        super().__init__(f"Migration '{name}' (version {version}) failed: {message}")


class ExecutionError(MiniSQLError, RuntimeError):
    """Executor failure, wrapped with the table and operation it happened in."""

    def __init__(self, table, operation, message):
        self.table = table
        self.operation = operation
        super().__init__(f"Failed to {operation} on table '{table}': {message}")
