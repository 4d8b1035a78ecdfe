"""Declarative base shared by every table of the economy database."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class BaseSchema(DeclarativeBase):
    """Base class for all SQLAlchemy schemas.

    Constraint names are deterministic so that Alembic autogenerate diffs
    stay stable between PostgreSQL and SQLite.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
