"""Unit tests for commission and loyalty bookkeeping."""

import pytest

from tripflow.models import CommissionStatus, LoyaltyKind
from tripflow.services.commission_calculator import CommissionCalculator, commission_amount
from tripflow.services.loyalty_awarder import LoyaltyAwarder


def test_commission_amount_rounds():
    assert commission_amount(1_000_000, 5) == 50_000
    assert commission_amount(333, 2.5) == 8


@pytest.mark.asyncio
async def test_agent_rate_takes_precedence(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session, with_agent=True, agent_rate=7.5, with_salesperson=True, salesperson_rate=2)
    booking = await make_booking(
        test_session, catalog, agent_id=catalog.agent.id, salesperson_id=catalog.salesperson.id
    )

    record = await CommissionCalculator(test_session).ensure_commission(booking.id)

    assert record.rate == 7.5
    assert record.amount == 75_000
    assert record.agent_id == catalog.agent.id
    assert record.status == CommissionStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.parametrize("salesperson_rate", [None, 0])
async def test_recipient_without_rate_uses_default(test_session, seed_catalog, make_booking, salesperson_rate):
    catalog = await seed_catalog(test_session, with_salesperson=True, salesperson_rate=salesperson_rate)
    booking = await make_booking(test_session, catalog, salesperson_id=catalog.salesperson.id)

    record = await CommissionCalculator(test_session, default_rate=3).ensure_commission(booking.id)

    assert record.rate == 3
    assert record.amount == 30_000


@pytest.mark.asyncio
async def test_no_recipient_no_commission(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)

    assert await CommissionCalculator(test_session).ensure_commission(booking.id) is None


@pytest.mark.asyncio
async def test_commission_is_created_once(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session, with_agent=True)
    booking = await make_booking(test_session, catalog, agent_id=catalog.agent.id)
    calculator = CommissionCalculator(test_session)

    first = await calculator.ensure_commission(booking.id)
    second = await calculator.ensure_commission(booking.id)

    assert first.id == second.id


@pytest.mark.asyncio
async def test_loyalty_award(test_session, seed_catalog, make_booking):
    """One point per 100,000 of total price, awarded once."""
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)
    awarder = LoyaltyAwarder(test_session, points_unit=100_000, expiry_days=365)

    award = await awarder.ensure_loyalty_award(booking.id)
    again = await awarder.ensure_loyalty_award(booking.id)

    assert award.id == again.id
    assert award.points == 10
    assert award.kind == LoyaltyKind.EARN
    assert award.description == f"Booking {booking.code} completed"
    assert (award.expires_at - award.created_at).days in (364, 365)


@pytest.mark.asyncio
async def test_loyalty_below_one_point(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)

    awarder = LoyaltyAwarder(test_session, points_unit=booking.total_price + 1)

    assert await awarder.ensure_loyalty_award(booking.id) is None
