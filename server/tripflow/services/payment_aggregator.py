"""Payment aggregator: derives a booking's payment status from its payments."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.invoice import Invoice
from ..models.payment import Payment, PaymentRecordStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentSummary:
    """
    Outcome of a payment recompute.

    ``requested_transition`` is set when the payments settle a PENDING
    booking; the orchestrator decides whether and how to apply it.
    """

    payment_status: PaymentStatus
    total_paid: int
    requested_transition: BookingStatus | None = None


def derive_payment_status(total_paid: int, total_price: int) -> PaymentStatus:
    if total_paid >= total_price:
        return PaymentStatus.PAID
    if total_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


class PaymentAggregator:
    """Reduces SUCCESS payment records into a paid total and status."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def total_paid(self, booking_id: UUID) -> int:
        """Sum of successful payment amounts for a booking."""
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.booking_id == booking_id,
            Payment.status == PaymentRecordStatus.SUCCESS,
        )
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def recompute(self, booking_id: UUID) -> PaymentSummary:
        """
        Recompute payment status for a booking and sync its invoice.

        Runs inside the caller's transaction, so the sum is taken over the
        same snapshot the caller is writing to.

        Args:
            booking_id: Booking to recompute

        Returns:
            Payment summary, possibly requesting a CONFIRMED transition

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        total_paid = await self.total_paid(booking_id)
        payment_status = derive_payment_status(total_paid, booking.total_price)

        booking.payment_status = payment_status
        await self.sync_invoice(booking_id, total_paid)
        await self.db.flush()

        requested = None
        if payment_status == PaymentStatus.PAID and booking.status == BookingStatus.PENDING:
            requested = BookingStatus.CONFIRMED

        logger.info(
            "Payment status recomputed",
            extra={
                "booking_id": str(booking_id),
                "total_paid": total_paid,
                "total_price": booking.total_price,
                "payment_status": payment_status.value,
                "requested_transition": requested.value if requested else None,
            }
        )
        return PaymentSummary(payment_status=payment_status, total_paid=total_paid, requested_transition=requested)

    async def sync_invoice(self, booking_id: UUID, total_paid: int) -> Invoice | None:
        """Copy the paid total onto the booking's invoice, if one exists."""
        result = await self.db.execute(select(Invoice).where(Invoice.booking_id == booking_id))
        invoice = result.scalar_one_or_none()
        if invoice is None:
            return None

        invoice.paid_amount = total_paid
        invoice.balance = invoice.total - total_paid
        await self.db.flush()
        return invoice
