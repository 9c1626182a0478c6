"""Roster (trip manifest), roster entry and room assignment models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, updated_at_column, uuid_pk
from .booking import RoomType


class RosterStatus(str, Enum):
    DRAFT = "DRAFT"
    FINAL = "FINAL"


class Roster(Base):
    """Ordered list of travellers for one departure."""

    __tablename__ = "rosters"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    # One roster per departure
    departure_id: Mapped[UUID] = mapped_column(
        ForeignKey("departures.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    departure_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[RosterStatus] = mapped_column(
        enum_column(RosterStatus),
        nullable=False,
        default=RosterStatus.DRAFT
    )

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    def __repr__(self) -> str:
        return f"<Roster(id={self.id}, code='{self.code}', departure_id={self.departure_id})>"


class RosterEntry(Base):
    """One customer's place in a roster."""

    __tablename__ = "roster_entries"

    id: Mapped[UUID] = uuid_pk()
    roster_id: Mapped[UUID] = mapped_column(
        ForeignKey("rosters.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False, index=True)
    booking_id: Mapped[UUID | None] = mapped_column(ForeignKey("bookings.id"), nullable=True)
    order_no: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint("order_no > 0", name="ck_roster_entry_order_no_positive"),
        UniqueConstraint("roster_id", "customer_id", name="uq_roster_entry_customer"),
        UniqueConstraint("roster_id", "order_no", name="uq_roster_entry_order_no"),
    )

    def __repr__(self) -> str:
        return f"<RosterEntry(roster_id={self.roster_id}, customer_id={self.customer_id}, order_no={self.order_no})>"


class RoomAssignment(Base):
    """Hotel room placement of a roster member."""

    __tablename__ = "room_assignments"

    id: Mapped[UUID] = uuid_pk()
    roster_id: Mapped[UUID] = mapped_column(
        ForeignKey("rosters.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # Hotels live in the external catalog
    hotel_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    customer_id: Mapped[UUID] = mapped_column(ForeignKey("customers.id"), nullable=False)
    room_number: Mapped[str] = mapped_column(String(16), nullable=False)
    room_type: Mapped[RoomType] = mapped_column(enum_column(RoomType), nullable=False)
    check_in: Mapped[datetime | None] = mapped_column(nullable=True)
    check_out: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        UniqueConstraint("roster_id", "customer_id", name="uq_room_assignment_customer"),
    )

    def __repr__(self) -> str:
        return (
            f"<RoomAssignment(roster_id={self.roster_id}, hotel_id={self.hotel_id}, "
            f"customer_id={self.customer_id}, room_number='{self.room_number}')>"
        )
