"""Booking price computation and voucher redemption."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import VoucherExhaustedError
from ..models.booking import RoomType
from ..models.departure import Departure
from ..models.package import TravelPackage
from ..models.voucher import Voucher, VoucherKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddOn:
    """Optional extra sold with a booking (visa, insurance, ...)."""

    name: str
    price: int
    quantity: int = 1

    @property
    def amount(self) -> int:
        return self.price * self.quantity

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "price": self.price, "quantity": self.quantity}


@dataclass(frozen=True)
class PriceBreakdown:
    """Price snapshot stored on a booking, all amounts in minor units."""

    unit_price: int
    base_price: int
    additional_fees: int
    discount: int
    total_price: int


def unit_price_for(
    package: TravelPackage,
    room_type: RoomType,
    price_override: dict[str, Any] | None = None,
) -> int:
    """
    Per-person price for a room type.

    A departure's price override wins over the package price. DOUBLE and TWIN
    share the double price; SINGLE falls back to the double price when the
    package has no single price.
    """
    override = price_override or {}

    def pick(key: str, fallback: int | None) -> int | None:
        value = override.get(key)
        return int(value) if value else fallback

    match room_type:
        case RoomType.QUAD:
            price = pick("price_quad", package.price_quad)
        case RoomType.TRIPLE:
            price = pick("price_triple", package.price_triple)
        case RoomType.DOUBLE | RoomType.TWIN:
            price = pick("price_double", package.price_double)
        case RoomType.SINGLE:
            price = pick("price_single", package.price_single) or pick("price_double", package.price_double)

    return int(price or 0)


def voucher_applies(voucher: Voucher | None) -> bool:
    """A voucher applies when it is active and its quota is not used up."""
    if voucher is None or not voucher.is_active:
        return False
    return voucher.quota is None or voucher.used < voucher.quota


def compute_discount(voucher: Voucher | None, base_price: int) -> int:
    """
    Discount granted by a voucher on the base price.

    PERCENTAGE vouchers take ``value`` percent of the base price, capped by
    ``max_discount``. FIXED vouchers take ``value`` as is.
    """
    if not voucher_applies(voucher):
        return 0

    if voucher.kind == VoucherKind.PERCENTAGE:
        discount = base_price * voucher.value // 100
        if voucher.max_discount:
            discount = min(discount, voucher.max_discount)
        return discount

    return voucher.value


def price_booking(
    unit_price: int,
    pax: int,
    add_ons: Iterable[AddOn] = (),
    voucher: Voucher | None = None,
) -> PriceBreakdown:
    """Compute the full price breakdown; the total never goes below zero."""
    base_price = unit_price * pax
    additional_fees = sum(add_on.amount for add_on in add_ons)
    discount = compute_discount(voucher, base_price)
    total_price = max(0, base_price + additional_fees - discount)

    return PriceBreakdown(
        unit_price=unit_price,
        base_price=base_price,
        additional_fees=additional_fees,
        discount=discount,
        total_price=total_price,
    )


class PricingService:
    """Prices bookings against the catalog and redeems vouchers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def quote(
        self,
        package: TravelPackage,
        departure: Departure,
        room_type: RoomType,
        pax: int,
        add_ons: Iterable[AddOn] = (),
        voucher_id: UUID | None = None,
    ) -> tuple[PriceBreakdown, Voucher | None]:
        """
        Price a booking request.

        Returns:
            Price breakdown and the voucher that was looked up, if any
        """
        voucher = await self.db.get(Voucher, voucher_id) if voucher_id else None
        if voucher_id and voucher is None:
            logger.info("Unknown voucher ignored", extra={"voucher_id": str(voucher_id)})

        unit_price = unit_price_for(package, room_type, departure.price_override)
        breakdown = price_booking(unit_price, pax, add_ons, voucher)

        logger.debug(
            "Booking priced",
            extra={
                "package_id": str(package.id),
                "departure_id": str(departure.id),
                "room_type": room_type.value,
                "pax": pax,
                "total_price": breakdown.total_price,
                "discount": breakdown.discount,
            }
        )
        return breakdown, voucher

    async def redeem_voucher(self, voucher_id: UUID) -> None:
        """
        Count one use of a voucher, guarded against exceeding its quota.

        Raises:
            VoucherExhaustedError: If the quota ran out concurrently
        """
        stmt = (
            update(Voucher)
            .where(
                Voucher.id == voucher_id,
                Voucher.is_active.is_(True),
                or_(Voucher.quota.is_(None), Voucher.used < Voucher.quota),
            )
            .values(used=Voucher.used + 1)
            .returning(Voucher.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.scalar_one_or_none() is None:
            logger.warning("Voucher redemption rejected", extra={"voucher_id": str(voucher_id)})
            raise VoucherExhaustedError(str(voucher_id))
