"""Commission and loyalty ledger models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, updated_at_column, uuid_pk


class CommissionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"


class LoyaltyKind(str, Enum):
    EARN = "EARN"
    REDEEM = "REDEEM"


class CommissionRecord(Base):
    """Payout owed to the agent or salesperson of a completed booking."""

    __tablename__ = "commissions"

    id: Mapped[UUID] = uuid_pk()
    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    agent_id: Mapped[UUID | None] = mapped_column(ForeignKey("agents.id"), nullable=True)
    salesperson_id: Mapped[UUID | None] = mapped_column(ForeignKey("salespeople.id"), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    rate: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[CommissionStatus] = mapped_column(
        enum_column(CommissionStatus),
        nullable=False,
        default=CommissionStatus.PENDING
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_commission_amount_non_negative"),
    )


class LoyaltyAward(Base):
    """Points credited to a customer for a completed booking."""

    __tablename__ = "loyalty_awards"

    id: Mapped[UUID] = uuid_pk()
    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False, index=True)
    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[LoyaltyKind] = mapped_column(enum_column(LoyaltyKind), nullable=False, default=LoyaltyKind.EARN)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint("points > 0", name="ck_loyalty_award_points_positive"),
    )
