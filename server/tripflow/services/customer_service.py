"""Customer service: CRM records and tier derivation."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.booking import Booking, BookingStatus
from ..models.party import Customer, CustomerTier
from .codes import generate_code

logger = logging.getLogger(__name__)

TIER_COUNTED_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


def derive_tier(booking_count: int) -> CustomerTier:
    if booking_count >= 3:
        return CustomerTier.VIP
    if booking_count >= 1:
        return CustomerTier.CLIENT
    return CustomerTier.PROSPECT


class CustomerService:
    """Service for customer-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_customer(
        self,
        full_name: str,
        phone: str | None = None,
        email: str | None = None,
        gender: str | None = None,
    ) -> Customer:
        customer = Customer(
            code=generate_code("CUST"),
            full_name=full_name,
            phone=phone,
            email=email,
            gender=gender,
            tier=CustomerTier.PROSPECT,
        )
        self.db.add(customer)
        await self.db.commit()

        logger.info(
            "Customer created successfully",
            extra={"customer_id": str(customer.id), "code": customer.code}
        )
        return customer

    async def get_customer_by_id(self, customer_id: UUID) -> Customer | None:
        return await self.db.get(Customer, customer_id)

    async def get_customer_by_id_or_raise(self, customer_id: UUID) -> Customer:
        customer = await self.get_customer_by_id(customer_id)
        if not customer:
            logger.warning("Customer not found", extra={"customer_id": str(customer_id)})
            raise NotFoundError(resource_type="customer", resource_id=str(customer_id))
        return customer

    async def recompute_tier(self, customer_id: UUID) -> Customer:
        """
        Derive the customer's tier from their CONFIRMED and COMPLETED bookings.

        Flushes only; the caller commits.
        """
        customer = await self.get_customer_by_id_or_raise(customer_id)

        stmt = select(func.count(Booking.id)).where(
            Booking.customer_id == customer_id,
            Booking.status.in_(TIER_COUNTED_STATUSES),
        )
        result = await self.db.execute(stmt)
        booking_count = int(result.scalar_one())

        tier = derive_tier(booking_count)
        if customer.tier != tier:
            logger.info(
                "Customer tier changed",
                extra={
                    "customer_id": str(customer_id),
                    "from_tier": customer.tier.value,
                    "to_tier": tier.value,
                    "booking_count": booking_count,
                }
            )
            customer.tier = tier
            await self.db.flush()
        return customer
