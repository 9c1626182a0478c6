"""Column helpers shared by the models."""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import Enum, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column


def enum_column(enum_cls: type[PyEnum]) -> Enum:
    """Store an enum by name in a VARCHAR column and load it back as the enum."""
    return Enum(enum_cls, native_enum=False, length=20, validate_strings=True)


def uuid_pk() -> Mapped[UUID]:
    return mapped_column(Uuid, primary_key=True, default=uuid4)


def created_at_column() -> Mapped[datetime]:
    return mapped_column(nullable=False, default=datetime.utcnow, server_default=func.now())


def updated_at_column() -> Mapped[datetime]:
    return mapped_column(
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=func.now(),
    )
