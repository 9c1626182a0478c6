"""Voucher model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from ._types import created_at_column, enum_column, uuid_pk


class VoucherKind(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class Voucher(Base):
    """Discount voucher with an optional usage quota."""

    __tablename__ = "vouchers"

    id: Mapped[UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    kind: Mapped[VoucherKind] = mapped_column(enum_column(VoucherKind), nullable=False)
    # Percent for PERCENTAGE vouchers, minor units for FIXED ones
    value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_discount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    quota: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = created_at_column()

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_voucher_value_non_negative"),
        CheckConstraint("used >= 0", name="ck_voucher_used_non_negative"),
        CheckConstraint("quota IS NULL OR used <= quota", name="ck_voucher_used_lte_quota"),
    )
