"""Unit tests for the room allocator."""

from datetime import datetime
from uuid import uuid4

import pytest

from tripflow.core.exceptions import NotFoundError, RoomAlreadyAssignedError, ValidationError
from tripflow.models import RoomType
from tripflow.services.room_allocator import RoomAllocator
from tripflow.services.roster_assigner import RosterAssigner

HOTEL_ID = uuid4()


async def _roster_with(session, catalog, customers):
    assigner = RosterAssigner(session)
    roster = await assigner.ensure_roster(catalog.departure.id)
    for customer in customers:
        await assigner.add_customer(roster.id, customer.id)
    return roster


@pytest.mark.asyncio
async def test_assign_room(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)
    roster = await _roster_with(test_session, catalog, [catalog.customer])

    assignment = await RoomAllocator(test_session).assign_room(
        roster.id, HOTEL_ID, catalog.customer.id, "201", RoomType.DOUBLE
    )

    assert assignment.room_number == "201"
    assert assignment.room_type == RoomType.DOUBLE
    assert assignment.hotel_id == HOTEL_ID


@pytest.mark.asyncio
async def test_second_room_for_same_customer_is_rejected(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)
    roster = await _roster_with(test_session, catalog, [catalog.customer])
    allocator = RoomAllocator(test_session)

    await allocator.assign_room(roster.id, HOTEL_ID, catalog.customer.id, "201", RoomType.DOUBLE)

    with pytest.raises(RoomAlreadyAssignedError):
        await allocator.assign_room(roster.id, uuid4(), catalog.customer.id, "305", RoomType.SINGLE)


@pytest.mark.asyncio
async def test_assign_requires_roster_membership(test_session, seed_catalog, add_customer):
    catalog = await seed_catalog(test_session)
    outsider = await add_customer(test_session, "Dewi")
    roster = await _roster_with(test_session, catalog, [catalog.customer])

    with pytest.raises(ValidationError):
        await RoomAllocator(test_session).assign_room(roster.id, HOTEL_ID, outsider.id, "101", RoomType.DOUBLE)


@pytest.mark.asyncio
async def test_assign_rejects_inverted_dates(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)
    roster = await _roster_with(test_session, catalog, [catalog.customer])

    with pytest.raises(ValidationError):
        await RoomAllocator(test_session).assign_room(
            roster.id,
            HOTEL_ID,
            catalog.customer.id,
            "101",
            RoomType.DOUBLE,
            check_in=datetime(2026, 12, 6, 14, 0),
            check_out=datetime(2026, 12, 5, 12, 0),
        )


@pytest.mark.asyncio
async def test_assign_unknown_roster(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)

    with pytest.raises(NotFoundError):
        await RoomAllocator(test_session).assign_room(uuid4(), HOTEL_ID, catalog.customer.id, "101", RoomType.DOUBLE)


@pytest.mark.asyncio
async def test_auto_assign_skips_assigned_members(test_session, seed_catalog, add_customer):
    """Unassigned members get sequential rooms in roster order."""
    catalog = await seed_catalog(test_session)
    budi = await add_customer(test_session, "Budi")
    citra = await add_customer(test_session, "Citra")
    roster = await _roster_with(test_session, catalog, [catalog.customer, budi, citra])
    allocator = RoomAllocator(test_session)

    await allocator.assign_room(roster.id, HOTEL_ID, budi.id, "900", RoomType.SINGLE)
    assignments = await allocator.auto_assign(roster.id, HOTEL_ID, start_room_number=101)

    assert [(a.customer_id, a.room_number) for a in assignments] == [
        (catalog.customer.id, "101"),
        (citra.id, "102"),
    ]
    assert all(a.room_type == RoomType.DOUBLE for a in assignments)

    # Nothing left to assign
    assert await allocator.auto_assign(roster.id, HOTEL_ID) == []


@pytest.mark.asyncio
async def test_auto_assign_numbers_from_explicit_zero(test_session, seed_catalog, add_customer):
    catalog = await seed_catalog(test_session)
    budi = await add_customer(test_session, "Budi")
    roster = await _roster_with(test_session, catalog, [catalog.customer, budi])

    assignments = await RoomAllocator(test_session).auto_assign(roster.id, HOTEL_ID, start_room_number=0)

    assert [a.room_number for a in assignments] == ["0", "1"]


@pytest.mark.asyncio
async def test_rooming_list_groups_by_room(test_session, seed_catalog, add_customer):
    catalog = await seed_catalog(test_session)
    budi = await add_customer(test_session, "Budi")
    citra = await add_customer(test_session, "Citra")
    roster = await _roster_with(test_session, catalog, [catalog.customer, budi, citra])
    allocator = RoomAllocator(test_session)

    await allocator.assign_room(roster.id, HOTEL_ID, catalog.customer.id, "101", RoomType.DOUBLE)
    await allocator.assign_room(roster.id, HOTEL_ID, budi.id, "101", RoomType.DOUBLE)
    await allocator.assign_room(roster.id, HOTEL_ID, citra.id, "102", RoomType.SINGLE)

    groups = await allocator.rooming_list(roster.id)

    assert [group.room_number for group in groups] == ["101", "102"]
    assert {guest.id for guest in groups[0].guests} == {catalog.customer.id, budi.id}
    assert [guest.id for guest in groups[1].guests] == [citra.id]


@pytest.mark.asyncio
async def test_update_and_remove_assignment(test_session, seed_catalog):
    catalog = await seed_catalog(test_session)
    roster = await _roster_with(test_session, catalog, [catalog.customer])
    allocator = RoomAllocator(test_session)
    assignment = await allocator.assign_room(roster.id, HOTEL_ID, catalog.customer.id, "101", RoomType.DOUBLE)

    updated = await allocator.update_assignment(assignment.id, room_number="110", check_in=datetime(2026, 12, 5, 14))
    assert updated.room_number == "110"
    assert updated.check_in == datetime(2026, 12, 5, 14)

    await allocator.remove_assignment(assignment.id)
    assert await allocator.get_assignment(roster.id, catalog.customer.id) is None
