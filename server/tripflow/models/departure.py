"""Departure model definition.

A departure is one scheduled run of a package and owns the finite seat pool
that bookings draw from.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, updated_at_column, uuid_pk


class DepartureStatus(str, Enum):
    """Seat availability band, derived from available vs total seats."""
    OPEN = "OPEN"
    ALMOST_FULL = "ALMOST_FULL"
    FULL = "FULL"


class Departure(Base):
    """Departure entity holding the seat pool for one scheduled trip."""

    __tablename__ = "departures"

    id: Mapped[UUID] = uuid_pk()

    package_id: Mapped[UUID] = mapped_column(
        ForeignKey("travel_packages.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    departure_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Seat pool
    capacity_total: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity_available: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[DepartureStatus] = mapped_column(
        enum_column(DepartureStatus),
        nullable=False,
        default=DepartureStatus.OPEN,
        index=True
    )

    # Optional per-departure prices, keyed like the package columns (price_quad, ...)
    price_override: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint("capacity_total >= 0", name="ck_departure_capacity_total_non_negative"),
        CheckConstraint("capacity_available >= 0", name="ck_departure_capacity_available_non_negative"),
        CheckConstraint("capacity_available <= capacity_total", name="ck_departure_capacity_available_lte_total"),
    )

    def __repr__(self) -> str:
        return (
            f"<Departure(id={self.id}, package_id={self.package_id}, "
            f"departure_date={self.departure_date}, capacity={self.capacity_available}/{self.capacity_total}, "
            f"status={self.status})>"
        )
