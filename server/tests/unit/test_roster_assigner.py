"""Unit tests for the roster assigner."""

import pytest

from tripflow.models import RosterStatus
from tripflow.services.roster_assigner import RosterAssigner


@pytest.mark.asyncio
async def test_ensure_roster_creates_draft_once(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)
    assigner = RosterAssigner(test_session)

    roster = await assigner.ensure_roster(catalog.departure.id)
    again = await assigner.ensure_roster(catalog.departure.id)

    assert roster.id == again.id
    assert roster.code.startswith("MNF-")
    assert roster.name == "Manifest 5/12/2026"
    assert roster.status == RosterStatus.DRAFT
    assert roster.departure_date == catalog.departure.departure_date


@pytest.mark.asyncio
async def test_add_customer_orders_sequentially(test_session, seed_catalog, add_customer):
    """Order numbers run 1, 2, 3 and a repeated add returns the existing entry."""
    catalog = await seed_catalog(test_session)
    second = await add_customer(test_session, "Budi")
    third = await add_customer(test_session, "Citra")
    assigner = RosterAssigner(test_session)
    roster = await assigner.ensure_roster(catalog.departure.id)

    first_entry = await assigner.add_customer(roster.id, catalog.customer.id)
    second_entry = await assigner.add_customer(roster.id, second.id)
    repeat = await assigner.add_customer(roster.id, catalog.customer.id)
    third_entry = await assigner.add_customer(roster.id, third.id)

    assert [first_entry.order_no, second_entry.order_no, third_entry.order_no] == [1, 2, 3]
    assert repeat.id == first_entry.id

    entries = await assigner.list_entries(roster.id)
    assert [entry.customer_id for entry in entries] == [catalog.customer.id, second.id, third.id]


@pytest.mark.asyncio
async def test_add_to_roster_links_booking(test_session, seed_catalog, make_booking):
    catalog = await seed_catalog(test_session)
    booking = await make_booking(test_session, catalog)

    entry = await RosterAssigner(test_session).add_to_roster(booking.id)

    assert entry.booking_id == booking.id
    assert entry.customer_id == catalog.customer.id
    assert entry.order_no == 1
