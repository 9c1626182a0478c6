"""Customer and commission recipient models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, updated_at_column, uuid_pk


class CustomerTier(str, Enum):
    """Customer tier derived from booking history."""
    PROSPECT = "PROSPECT"
    CLIENT = "CLIENT"
    VIP = "VIP"


class Customer(Base):
    """Traveller who places bookings."""

    __tablename__ = "customers"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    tier: Mapped[CustomerTier] = mapped_column(
        enum_column(CustomerTier),
        nullable=False,
        default=CustomerTier.PROSPECT
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, code='{self.code}', tier={self.tier})>"


class Agent(Base):
    """External agent earning commission on referred bookings."""

    __tablename__ = "agents"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    commission_rate: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint(
            "commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 100)",
            name="ck_agent_commission_rate_percent"
        ),
    )


class Salesperson(Base):
    """In-house salesperson earning commission when no agent is involved."""

    __tablename__ = "salespeople"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    commission_rate: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint(
            "commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 100)",
            name="ck_salesperson_commission_rate_percent"
        ),
    )
