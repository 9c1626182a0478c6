"""Loyalty awarder: one point award per completed booking."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..models.booking import Booking
from ..models.ledger import LoyaltyAward, LoyaltyKind

logger = logging.getLogger(__name__)


class LoyaltyAwarder:
    """Credits EARN points for a booking's total price, at most once."""

    def __init__(self, db: AsyncSession, points_unit: int | None = None, expiry_days: int | None = None):
        self.db = db
        self.points_unit = settings.loyalty_points_unit if points_unit is None else points_unit
        self.expiry_days = settings.loyalty_expiry_days if expiry_days is None else expiry_days

    def points_for(self, total_price: int) -> int:
        return total_price // self.points_unit

    async def get_award_for_booking(self, booking_id: UUID) -> LoyaltyAward | None:
        stmt = select(LoyaltyAward).where(LoyaltyAward.booking_id == booking_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_loyalty_award(self, booking_id: UUID) -> LoyaltyAward | None:
        """
        Return the booking's award, creating it on first call.

        Returns None when the booking is worth no points.

        Raises:
            NotFoundError: If booking not found
        """
        existing = await self.get_award_for_booking(booking_id)
        if existing is not None:
            return existing

        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        points = self.points_for(booking.total_price)
        if points <= 0:
            return None

        award = LoyaltyAward(
            customer_id=booking.customer_id,
            booking_id=booking.id,
            points=points,
            kind=LoyaltyKind.EARN,
            description=f"Booking {booking.code} completed",
            expires_at=datetime.utcnow() + timedelta(days=self.expiry_days),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(award)
        except IntegrityError:
            existing = await self.get_award_for_booking(booking_id)
            if existing is None:
                raise
            return existing

        logger.info(
            "Loyalty points awarded",
            extra={
                "booking_id": str(booking_id),
                "customer_id": str(booking.customer_id),
                "points": points,
                "expires_at": award.expires_at.isoformat(),
            }
        )
        return award
