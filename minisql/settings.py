from pydantic import BaseModel, field_validator

from minisql.dialects import get_dialect


class Settings(BaseModel):
    """Configuration built once by the host application and passed around.

    ``dialect`` is the discriminator string. It is normalised before model
    validation, so an unknown value raises ConfigurationError itself rather
    than a pydantic error.
    """

    dialect: str = "sqlite"
    migrations_table: str = "__migrations"
    transactional_migrations: bool = True

    def __init__(self, **data):
        if "dialect" in data:
            data["dialect"] = get_dialect(data["dialect"]).value
        super().__init__(**data)

    @field_validator("migrations_table")
    @classmethod
    def check_migrations_table(cls, value):
        if not value.strip():
            raise ValueError("migrations_table cannot be empty")
        return value

    def dialect_strategy(self):
        return get_dialect(self.dialect)

    def sql_generator(self):
        from minisql.sql_generator import SqlGenerator
        return SqlGenerator(self.dialect)

    def schema_generator(self):
        from minisql.generator import SchemaGenerator
        return SchemaGenerator(self.dialect)
