"""Concurrency tests for booking operations.

Each task uses its own session over a file-backed database, so writers really
compete for the database lock.
"""

import asyncio
import json

import pytest
from sqlalchemy import func, select

from tripflow.core.exceptions import (
    ConcurrentModificationError,
    InsufficientCapacityError,
    InvalidTransitionError,
)
from tripflow.models import Booking, BookingStatus, Departure, DepartureStatus, Invoice
from tripflow.schemas.booking import CreateBookingRequest
from tripflow.services.booking_orchestrator import BookingOrchestrator
from tripflow.routers.idempotent import handle_idempotent_operation
from tripflow.services.idempotency_service import IdempotencyInProgressError
from tripflow.services.invoice_generator import InvoiceGenerator


@pytest.mark.asyncio
async def test_concurrent_bookings_no_overbooking(session_factory, seed_catalog):
    """N single-seat bookings against N-1 seats: exactly one is turned away."""
    seats = 5
    async with session_factory() as session:
        catalog = await seed_catalog(session, capacity=seats)

    request = CreateBookingRequest(
        customer_id=catalog.customer.id,
        package_id=catalog.package.id,
        departure_id=catalog.departure.id,
        room_type="QUAD",
        pax=1,
    )

    async def book():
        async with session_factory() as session:
            return await BookingOrchestrator(session).create_booking(request)

    results = await asyncio.gather(*(book() for _ in range(seats + 1)), return_exceptions=True)

    booked = [r for r in results if isinstance(r, Booking)]
    rejected = [r for r in results if isinstance(r, InsufficientCapacityError)]
    assert len(booked) == seats
    assert len(rejected) == 1

    async with session_factory() as session:
        departure = await session.get(Departure, catalog.departure.id)
        assert departure.capacity_available == 0
        assert departure.status == DepartureStatus.FULL
        assert await session.scalar(select(func.count(Booking.id))) == seats


@pytest.mark.asyncio
async def test_concurrent_invoice_creation(session_factory, seed_catalog, make_booking):
    """Racing ensure_invoice calls all end up with the same single invoice."""
    async with session_factory() as session:
        catalog = await seed_catalog(session)
        booking = await make_booking(session, catalog)

    async def ensure():
        async with session_factory() as session:
            invoice = await InvoiceGenerator(session).ensure_invoice(booking.id)
            await session.commit()
            return invoice.id

    invoice_ids = await asyncio.gather(*(ensure() for _ in range(5)))

    assert len(set(invoice_ids)) == 1
    async with session_factory() as session:
        count = await session.scalar(select(func.count(Invoice.id)).where(Invoice.booking_id == booking.id))
        assert count == 1


@pytest.mark.asyncio
async def test_concurrent_roster_placement(session_factory, seed_catalog, make_booking, add_customer):
    """Bookings reaching READY together get distinct consecutive roster positions."""
    async with session_factory() as session:
        catalog = await seed_catalog(session)
        customers = [catalog.customer] + [await add_customer(session, f"Guest{i}") for i in range(3)]
        bookings = [await make_booking(session, catalog, pax=1, customer=c) for c in customers]

    async def ready(booking_id):
        async with session_factory() as session:
            result = await BookingOrchestrator(session).transition_booking(booking_id, BookingStatus.READY)
            return result.roster_entry.order_no

    order_numbers = await asyncio.gather(*(ready(b.id) for b in bookings))

    assert sorted(order_numbers) == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_concurrent_cancellation_releases_once(session_factory, seed_catalog, make_booking):
    async with session_factory() as session:
        catalog = await seed_catalog(session, capacity=10)
        booking = await make_booking(session, catalog, pax=3)

    async def cancel():
        async with session_factory() as session:
            return await BookingOrchestrator(session).transition_booking(booking.id, BookingStatus.CANCELLED)

    results = await asyncio.gather(*(cancel() for _ in range(4)), return_exceptions=True)

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 1
    assert all(isinstance(e, (InvalidTransitionError, ConcurrentModificationError)) for e in failed)

    async with session_factory() as session:
        departure = await session.get(Departure, catalog.departure.id)
        assert departure.capacity_available == 10


@pytest.mark.asyncio
async def test_same_idempotency_key_books_once(session_factory, seed_catalog):
    """Concurrent creates sharing one Idempotency-Key reserve seats only once."""
    async with session_factory() as session:
        catalog = await seed_catalog(session, capacity=10)

    request = CreateBookingRequest(
        customer_id=catalog.customer.id,
        package_id=catalog.package.id,
        departure_id=catalog.departure.id,
        room_type="DOUBLE",
        pax=2,
    )

    async def create():
        async with session_factory() as session:
            orchestrator = BookingOrchestrator(session)

            async def operation():
                booking = await orchestrator.create_booking(request)
                return {"id": str(booking.id)}

            return await handle_idempotent_operation(
                operation="booking/create",
                idempotency_key="KEY-1",
                request_body=request.model_dump(mode="json"),
                operation_func=operation,
                db=session,
            )

    results = await asyncio.gather(*(create() for _ in range(4)), return_exceptions=True)

    responses = [r for r in results if not isinstance(r, Exception)]
    in_progress = [r for r in results if isinstance(r, IdempotencyInProgressError)]
    assert len(responses) + len(in_progress) == 4
    assert len({json.loads(r.body)["id"] for r in responses}) == 1

    async with session_factory() as session:
        assert await session.scalar(select(func.count(Booking.id))) == 1
        departure = await session.get(Departure, catalog.departure.id)
        assert departure.capacity_available == 8

    # Once settled, every retry replays the one booking
    replay = await create()
    assert replay.headers["Idempotent-Replayed"] == "true"
    assert json.loads(replay.body)["id"] == json.loads(responses[0].body)["id"]
