"""Room allocator: hotel room placement of roster members."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError, RoomAlreadyAssignedError, ValidationError
from ..models.booking import RoomType
from ..models.party import Customer
from ..models.roster import RoomAssignment, RosterEntry
from .roster_assigner import RosterAssigner

logger = logging.getLogger(__name__)


@dataclass
class RoomGroup:
    """Guests sharing one hotel room."""

    hotel_id: UUID
    room_number: str
    room_type: RoomType
    check_in: datetime | None
    check_out: datetime | None
    guests: list[Customer] = field(default_factory=list)


class RoomAllocator:
    """Assigns roster members to hotel rooms, explicitly or sequentially."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.roster_assigner = RosterAssigner(db)

    async def get_assignment(self, roster_id: UUID, customer_id: UUID) -> RoomAssignment | None:
        stmt = select(RoomAssignment).where(
            RoomAssignment.roster_id == roster_id,
            RoomAssignment.customer_id == customer_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_assignments(self, roster_id: UUID, hotel_id: UUID | None = None) -> list[RoomAssignment]:
        stmt = select(RoomAssignment).where(RoomAssignment.roster_id == roster_id)
        if hotel_id is not None:
            stmt = stmt.where(RoomAssignment.hotel_id == hotel_id)
        stmt = stmt.order_by(RoomAssignment.hotel_id, RoomAssignment.room_number, RoomAssignment.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def assign_room(
        self,
        roster_id: UUID,
        hotel_id: UUID,
        customer_id: UUID,
        room_number: str,
        room_type: RoomType,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
    ) -> RoomAssignment:
        """
        Assign a roster member to a room.

        Args:
            roster_id: Roster the customer travels on
            hotel_id: Hotel of the room
            customer_id: Customer to place
            room_number: Room label, e.g. "101"
            room_type: Occupancy type of the room
            check_in: Optional check-in time
            check_out: Optional check-out time

        Returns:
            Created room assignment

        Raises:
            NotFoundError: If roster not found
            ValidationError: If the customer is not on the roster or dates are inverted
            RoomAlreadyAssignedError: If the customer already has a room in this roster
        """
        await self.roster_assigner.get_roster_by_id_or_raise(roster_id)

        if check_in and check_out and check_out < check_in:
            raise ValidationError(
                detail="check_out must not be before check_in",
                errors={"check_out": "must not be before check_in"},
            )

        if await self.roster_assigner.get_entry(roster_id, customer_id) is None:
            raise ValidationError(
                detail=f"Customer {customer_id} is not on roster {roster_id}",
                errors={"customer_id": "not on roster"},
            )

        if await self.get_assignment(roster_id, customer_id) is not None:
            raise RoomAlreadyAssignedError(str(roster_id), str(customer_id))

        assignment = RoomAssignment(
            roster_id=roster_id,
            hotel_id=hotel_id,
            customer_id=customer_id,
            room_number=room_number,
            room_type=room_type,
            check_in=check_in,
            check_out=check_out,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(assignment)
        except IntegrityError as exc:
            raise RoomAlreadyAssignedError(str(roster_id), str(customer_id)) from exc

        logger.info(
            "Room assigned",
            extra={
                "roster_id": str(roster_id),
                "hotel_id": str(hotel_id),
                "customer_id": str(customer_id),
                "room_number": room_number,
                "room_type": room_type.value,
            }
        )
        return assignment

    async def auto_assign(
        self,
        roster_id: UUID,
        hotel_id: UUID,
        start_room_number: int | None = None,
        room_type: RoomType | None = None,
    ) -> list[RoomAssignment]:
        """
        Give every unassigned roster member the next sequential room number.

        Members are taken in roster order. Members assigned concurrently by
        another request are skipped, so each member ends up with exactly one
        room.

        Raises:
            NotFoundError: If roster not found
        """
        await self.roster_assigner.get_roster_by_id_or_raise(roster_id)

        room_number = settings.auto_assign_start_room if start_room_number is None else start_room_number
        room_type = room_type or RoomType(settings.auto_assign_room_type)

        assigned = select(RoomAssignment.customer_id).where(RoomAssignment.roster_id == roster_id)
        stmt = (
            select(RosterEntry)
            .where(RosterEntry.roster_id == roster_id, RosterEntry.customer_id.not_in(assigned))
            .order_by(RosterEntry.order_no)
        )
        result = await self.db.execute(stmt)
        entries = list(result.scalars())

        assignments = []
        for entry in entries:
            assignment = RoomAssignment(
                roster_id=roster_id,
                hotel_id=hotel_id,
                customer_id=entry.customer_id,
                room_number=str(room_number),
                room_type=room_type,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(assignment)
            except IntegrityError:
                logger.info(
                    "Roster member assigned concurrently, skipping",
                    extra={"roster_id": str(roster_id), "customer_id": str(entry.customer_id)}
                )
                continue
            assignments.append(assignment)
            room_number += 1

        logger.info(
            "Rooms auto-assigned",
            extra={
                "roster_id": str(roster_id),
                "hotel_id": str(hotel_id),
                "assigned_count": len(assignments),
                "room_type": room_type.value,
            }
        )
        return assignments

    async def update_assignment(
        self,
        assignment_id: UUID,
        room_number: str | None = None,
        room_type: RoomType | None = None,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
    ) -> RoomAssignment:
        """Change room details or record check-in/check-out."""
        assignment = await self.db.get(RoomAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError(resource_type="room_assignment", resource_id=str(assignment_id))

        if room_number is not None:
            assignment.room_number = room_number
        if room_type is not None:
            assignment.room_type = room_type
        if check_in is not None:
            assignment.check_in = check_in
        if check_out is not None:
            assignment.check_out = check_out

        if assignment.check_in and assignment.check_out and assignment.check_out < assignment.check_in:
            raise ValidationError(
                detail="check_out must not be before check_in",
                errors={"check_out": "must not be before check_in"},
            )

        await self.db.flush()
        return assignment

    async def remove_assignment(self, assignment_id: UUID) -> None:
        assignment = await self.db.get(RoomAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError(resource_type="room_assignment", resource_id=str(assignment_id))
        await self.db.delete(assignment)
        await self.db.flush()

    async def rooming_list(self, roster_id: UUID, hotel_id: UUID | None = None) -> list[RoomGroup]:
        """
        Rooming list of a roster grouped by hotel and room number.

        Raises:
            NotFoundError: If roster not found
        """
        await self.roster_assigner.get_roster_by_id_or_raise(roster_id)

        stmt = (
            select(RoomAssignment, Customer)
            .join(Customer, Customer.id == RoomAssignment.customer_id)
            .where(RoomAssignment.roster_id == roster_id)
        )
        if hotel_id is not None:
            stmt = stmt.where(RoomAssignment.hotel_id == hotel_id)
        stmt = stmt.order_by(RoomAssignment.hotel_id, RoomAssignment.room_number, RoomAssignment.created_at)

        result = await self.db.execute(stmt)

        groups: dict[tuple[UUID, str], RoomGroup] = {}
        for assignment, customer in result.all():
            key = (assignment.hotel_id, assignment.room_number)
            if key not in groups:
                groups[key] = RoomGroup(
                    hotel_id=assignment.hotel_id,
                    room_number=assignment.room_number,
                    room_type=assignment.room_type,
                    check_in=assignment.check_in,
                    check_out=assignment.check_out,
                )
            groups[key].guests.append(customer)

        return list(groups.values())
