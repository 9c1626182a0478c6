"""Roster assigner: places booked customers on the departure's roster."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.booking import Booking
from ..models.departure import Departure
from ..models.roster import Roster, RosterEntry, RosterStatus
from .codes import generate_code

logger = logging.getLogger(__name__)

MAX_ORDER_NO_ATTEMPTS = 5


class RosterAssigner:
    """Resolves the roster of a departure and appends customers in order."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_roster_by_id(self, roster_id: UUID) -> Roster | None:
        return await self.db.get(Roster, roster_id)

    async def get_roster_by_id_or_raise(self, roster_id: UUID) -> Roster:
        roster = await self.get_roster_by_id(roster_id)
        if roster is None:
            logger.warning("Roster not found", extra={"roster_id": str(roster_id)})
            raise NotFoundError(resource_type="roster", resource_id=str(roster_id))
        return roster

    async def get_roster_for_departure(self, departure_id: UUID) -> Roster | None:
        stmt = select(Roster).where(Roster.departure_id == departure_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_entries(self, roster_id: UUID) -> list[RosterEntry]:
        stmt = select(RosterEntry).where(RosterEntry.roster_id == roster_id).order_by(RosterEntry.order_no)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_entry(self, roster_id: UUID, customer_id: UUID) -> RosterEntry | None:
        stmt = select(RosterEntry).where(
            RosterEntry.roster_id == roster_id,
            RosterEntry.customer_id == customer_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_roster(self, departure_id: UUID) -> Roster:
        """
        Return the departure's roster, creating a DRAFT one on first use.

        Raises:
            NotFoundError: If departure not found
        """
        roster = await self.get_roster_for_departure(departure_id)
        if roster is not None:
            return roster

        departure = await self.db.get(Departure, departure_id)
        if departure is None:
            raise NotFoundError(resource_type="departure", resource_id=str(departure_id))

        date = departure.departure_date
        roster = Roster(
            code=generate_code("MNF"),
            departure_id=departure_id,
            name=f"Manifest {date.day}/{date.month}/{date.year}",
            departure_date=departure.departure_date,
            return_date=departure.return_date,
            status=RosterStatus.DRAFT,
        )

        try:
            async with self.db.begin_nested():
                self.db.add(roster)
        except IntegrityError:
            roster = await self.get_roster_for_departure(departure_id)
            if roster is None:
                raise
            return roster

        logger.info(
            "Roster created",
            extra={"roster_id": str(roster.id), "departure_id": str(departure_id), "code": roster.code}
        )
        return roster

    async def _next_order_no(self, roster_id: UUID) -> int:
        stmt = select(func.coalesce(func.max(RosterEntry.order_no), 0)).where(RosterEntry.roster_id == roster_id)
        result = await self.db.execute(stmt)
        return int(result.scalar_one()) + 1

    async def add_customer(
        self,
        roster_id: UUID,
        customer_id: UUID,
        booking_id: UUID | None = None,
    ) -> RosterEntry:
        """
        Append a customer to a roster, or return their existing entry.

        ``order_no`` is ``max + 1``; a concurrent insert that grabbed the same
        number trips the (roster_id, order_no) unique constraint and the next
        number is tried.
        """
        for attempt in range(1, MAX_ORDER_NO_ATTEMPTS + 1):
            existing = await self.get_entry(roster_id, customer_id)
            if existing is not None:
                return existing

            entry = RosterEntry(
                roster_id=roster_id,
                customer_id=customer_id,
                booking_id=booking_id,
                order_no=await self._next_order_no(roster_id),
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(entry)
            except IntegrityError:
                logger.info(
                    "Roster entry insert collided, retrying",
                    extra={"roster_id": str(roster_id), "customer_id": str(customer_id), "attempt": attempt}
                )
                continue

            logger.info(
                "Customer added to roster",
                extra={
                    "roster_id": str(roster_id),
                    "customer_id": str(customer_id),
                    "order_no": entry.order_no,
                }
            )
            return entry

        existing = await self.get_entry(roster_id, customer_id)
        if existing is not None:
            return existing
        raise ConflictError(
            detail=f"Could not allocate a roster position in roster {roster_id}",
            code="ROSTER_CONTENTION",
            retryable=True,
        )

    async def add_to_roster(self, booking_id: UUID) -> RosterEntry:
        """
        Place the booking's customer on its departure's roster.

        Raises:
            NotFoundError: If booking or departure not found
        """
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))

        roster = await self.ensure_roster(booking.departure_id)
        return await self.add_customer(roster.id, booking.customer_id, booking_id=booking.id)
