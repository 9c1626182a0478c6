"""Commission calculator: one payout record per completed booking."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..models.booking import Booking
from ..models.ledger import CommissionRecord, CommissionStatus
from ..models.party import Agent, Salesperson

logger = logging.getLogger(__name__)


def commission_amount(total_price: int, rate: float) -> int:
    """``total_price * rate / 100`` rounded to the nearest minor unit."""
    return round(total_price * rate / 100)


class CommissionCalculator:
    """Creates the commission owed to a booking's agent or salesperson."""

    def __init__(self, db: AsyncSession, default_rate: float | None = None):
        self.db = db
        self.default_rate = settings.default_commission_rate if default_rate is None else default_rate

    async def get_commission_for_booking(self, booking_id: UUID) -> CommissionRecord | None:
        stmt = select(CommissionRecord).where(CommissionRecord.booking_id == booking_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _resolve_rate(self, booking: Booking) -> float | None:
        # Agent takes precedence over salesperson
        recipient = None
        if booking.agent_id is not None:
            recipient = await self.db.get(Agent, booking.agent_id)
        if recipient is None and booking.salesperson_id is not None:
            recipient = await self.db.get(Salesperson, booking.salesperson_id)
        if recipient is None:
            return None
        # A zero or missing rate means "use the house rate"
        return recipient.commission_rate or self.default_rate

    async def ensure_commission(self, booking_id: UUID) -> CommissionRecord | None:
        """
        Return the booking's commission record, creating it on first call.

        Returns None without writing anything when the booking has neither an
        agent nor a salesperson.

        Raises:
            NotFoundError: If booking not found
        """
        existing = await self.get_commission_for_booking(booking_id)
        if existing is not None:
            return existing

        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        rate = await self._resolve_rate(booking)
        if rate is None:
            logger.debug("No commission recipient for booking", extra={"booking_id": str(booking_id)})
            return None

        record = CommissionRecord(
            booking_id=booking.id,
            agent_id=booking.agent_id,
            salesperson_id=booking.salesperson_id,
            amount=commission_amount(booking.total_price, rate),
            rate=rate,
            status=CommissionStatus.PENDING,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            existing = await self.get_commission_for_booking(booking_id)
            if existing is None:
                raise
            return existing

        logger.info(
            "Commission recorded",
            extra={
                "booking_id": str(booking_id),
                "commission_id": str(record.id),
                "amount": record.amount,
                "rate": rate,
            }
        )
        return record
