"""Travel package model definition."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, updated_at_column, uuid_pk


class TravelPackage(Base):
    """Sellable package with per-person prices by room occupancy."""

    __tablename__ = "travel_packages"

    id: Mapped[UUID] = uuid_pk()

    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    business_type: Mapped[str] = mapped_column(String(32), nullable=False, default="TOUR")

    # Per-person prices in minor units
    price_quad: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_triple: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_double: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_single: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = created_at_column()
    updated_at: Mapped[datetime] = updated_at_column()

    __table_args__ = (
        CheckConstraint("price_quad >= 0", name="ck_package_price_quad_non_negative"),
        CheckConstraint("price_triple >= 0", name="ck_package_price_triple_non_negative"),
        CheckConstraint("price_double >= 0", name="ck_package_price_double_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<TravelPackage(id={self.id}, code='{self.code}', name='{self.name}')>"
