"""Unit tests for the invoice generator."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from tripflow.core.exceptions import NotFoundError
from tripflow.models import Invoice, RoomType
from tripflow.services.invoice_generator import InvoiceGenerator


@pytest.mark.asyncio
async def test_ensure_invoice_snapshots_booking(test_session, seed_catalog, make_booking):
    """The invoice copies the booking's price snapshot."""
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog, pax=2, room_type=RoomType.DOUBLE)

    invoice = await InvoiceGenerator(test_session, due_days=7).ensure_invoice(booking.id)

    assert invoice.invoice_no.startswith("INV-")
    assert invoice.subtotal == 1_000_000
    assert invoice.total == booking.total_price
    assert invoice.paid_amount == 0
    assert invoice.balance == booking.total_price
    assert invoice.items == [
        {
            "description": "Umrah Plus Turkey - DOUBLE (2 pax)",
            "quantity": 2,
            "unit_price": 500_000,
            "total": 1_000_000,
        }
    ]
    assert (invoice.due_date - invoice.created_at).days in (6, 7)


@pytest.mark.asyncio
async def test_ensure_invoice_is_idempotent(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)
    generator = InvoiceGenerator(test_session)

    first = await generator.ensure_invoice(booking.id)
    second = await generator.ensure_invoice(booking.id)

    assert first.id == second.id
    count = await test_session.scalar(select(func.count(Invoice.id)).where(Invoice.booking_id == booking.id))
    assert count == 1


@pytest.mark.asyncio
async def test_ensure_invoice_unknown_booking(test_session):
    with pytest.raises(NotFoundError):
        await InvoiceGenerator(test_session).ensure_invoice(uuid4())
