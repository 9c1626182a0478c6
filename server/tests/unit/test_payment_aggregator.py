"""Unit tests for the payment aggregator."""

import pytest

from tripflow.models import BookingStatus, Payment, PaymentMethod, PaymentRecordStatus, PaymentStatus
from tripflow.services.invoice_generator import InvoiceGenerator
from tripflow.services.payment_aggregator import PaymentAggregator, derive_payment_status


@pytest.mark.parametrize(
    "total_paid,total_price,expected",
    [
        (0, 1_000, PaymentStatus.UNPAID),
        (1, 1_000, PaymentStatus.PARTIAL),
        (999, 1_000, PaymentStatus.PARTIAL),
        (1_000, 1_000, PaymentStatus.PAID),
        (0, 0, PaymentStatus.PAID),
    ],
)
def test_derive_payment_status(total_paid, total_price, expected):
    assert derive_payment_status(total_paid, total_price) == expected


def _payment(booking, code, amount, status):
    return Payment(
        code=code,
        booking_id=booking.id,
        amount=amount,
        method=PaymentMethod.TRANSFER,
        status=status,
    )


@pytest.mark.asyncio
async def test_only_successful_payments_count(test_session, seed_catalog, make_booking):
    """PENDING and FAILED payments never add to the paid total."""
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)

    test_session.add_all([
        _payment(booking, "PAY-1", 300_000, PaymentRecordStatus.SUCCESS),
        _payment(booking, "PAY-2", 500_000, PaymentRecordStatus.FAILED),
        _payment(booking, "PAY-3", 100_000, PaymentRecordStatus.PENDING),
    ])
    await test_session.flush()

    summary = await PaymentAggregator(test_session).recompute(booking.id)

    assert summary.total_paid == 300_000
    assert summary.payment_status == PaymentStatus.PARTIAL
    assert summary.requested_transition is None
    assert booking.payment_status == PaymentStatus.PARTIAL


@pytest.mark.asyncio
async def test_full_payment_requests_confirmation(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)

    test_session.add(_payment(booking, "PAY-1", booking.total_price, PaymentRecordStatus.SUCCESS))
    await test_session.flush()

    summary = await PaymentAggregator(test_session).recompute(booking.id)

    assert summary.payment_status == PaymentStatus.PAID
    assert summary.requested_transition == BookingStatus.CONFIRMED
    # The aggregator only asks; the status is left to the orchestrator
    assert booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_recompute_syncs_invoice(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)
    invoice = await InvoiceGenerator(test_session).ensure_invoice(booking.id)

    test_session.add(_payment(booking, "PAY-1", 400_000, PaymentRecordStatus.SUCCESS))
    await test_session.flush()
    await PaymentAggregator(test_session).recompute(booking.id)

    assert invoice.paid_amount == 400_000
    assert invoice.balance == booking.total_price - 400_000
