"""Invoice generator: one billing document per booking."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..models.booking import Booking
from ..models.invoice import Invoice
from ..models.package import TravelPackage
from .codes import generate_code

logger = logging.getLogger(__name__)


class InvoiceGenerator:
    """Creates invoices idempotently from a booking's price snapshot."""

    def __init__(self, db: AsyncSession, due_days: int | None = None):
        self.db = db
        self.due_days = settings.invoice_due_days if due_days is None else due_days

    async def get_invoice_for_booking(self, booking_id: UUID) -> Invoice | None:
        stmt = select(Invoice).where(Invoice.booking_id == booking_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_invoice(self, booking_id: UUID) -> Invoice:
        """
        Return the booking's invoice, creating it on first call.

        The unique constraint on ``invoices.booking_id`` decides concurrent
        first calls: the loser's insert fails inside a savepoint and the
        winner's row is returned instead.

        Args:
            booking_id: Booking to invoice

        Returns:
            The single invoice of the booking

        Raises:
            NotFoundError: If booking not found
        """
        existing = await self.get_invoice_for_booking(booking_id)
        if existing is not None:
            return existing

        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        package = await self.db.get(TravelPackage, booking.package_id)
        package_name = package.name if package else "Package"

        invoice = Invoice(
            invoice_no=generate_code("INV"),
            booking_id=booking.id,
            subtotal=booking.base_price,
            discount=booking.discount,
            tax=0,
            total=booking.total_price,
            paid_amount=0,
            balance=booking.total_price,
            due_date=datetime.utcnow() + timedelta(days=self.due_days),
            items=[
                {
                    "description": f"{package_name} - {booking.room_type.value} ({booking.pax} pax)",
                    "quantity": booking.pax,
                    "unit_price": booking.base_price // booking.pax,
                    "total": booking.base_price,
                }
            ],
        )

        try:
            async with self.db.begin_nested():
                self.db.add(invoice)
        except IntegrityError:
            existing = await self.get_invoice_for_booking(booking_id)
            if existing is None:
                raise
            logger.info(
                "Invoice already created concurrently",
                extra={"booking_id": str(booking_id), "invoice_id": str(existing.id)}
            )
            return existing

        logger.info(
            "Invoice created",
            extra={
                "booking_id": str(booking_id),
                "invoice_id": str(invoice.id),
                "invoice_no": invoice.invoice_no,
                "total": invoice.total,
                "due_date": invoice.due_date.isoformat(),
            }
        )
        return invoice
