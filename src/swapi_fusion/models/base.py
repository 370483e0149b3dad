"""SQLAlchemy Base model and common mixins.

Usage:
    from swapi_fusion.models.base import Base, UUIDPrimaryKeyMixin

    class MyModel(UUIDPrimaryKeyMixin, Base):
        __tablename__ = "my_table"
        name: Mapped[str]
"""

import uuid

from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    All models should inherit from this class to be included in migrations.
    """

    pass


class UUIDPrimaryKeyMixin:
    """Mixin that adds a client-generated UUID primary key column."""

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            primary_key=True,
            default=uuid.uuid4,
            nullable=False,
        )
