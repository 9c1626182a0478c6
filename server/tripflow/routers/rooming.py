"""Rooming router for rosters and hotel room assignments."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError, ValidationError
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.rooming import (
    AssignRoomRequest,
    AutoAssignRoomsRequest,
    AutoAssignRoomsResponse,
    GetRosterRequest,
    Guest,
    RemoveRoomRequest,
    RoomAssignment,
    RoomGroup,
    RoomingListRequest,
    RoomingListResponse,
    Roster,
    RosterEntry,
    UpdateRoomRequest,
)
from ..services.booking_orchestrator import BookingOrchestrator
from ..services.room_allocator import RoomAllocator
from ..services.roster_assigner import RosterAssigner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/rooming", tags=["rooming"], responses=PROBLEM_RESPONSES)

DB_DEPENDENCY = Depends(get_db)


def _convert_assignment_to_schema(assignment) -> RoomAssignment:
    return RoomAssignment(
        id=str(assignment.id),
        roster_id=str(assignment.roster_id),
        hotel_id=str(assignment.hotel_id),
        customer_id=str(assignment.customer_id),
        room_number=assignment.room_number,
        room_type=assignment.room_type,
        check_in=assignment.check_in,
        check_out=assignment.check_out,
    )


@router.post("/assign", response_model=RoomAssignment)
async def assign_room(
    request: AssignRoomRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Assign a roster member to a hotel room."""
    orchestrator = BookingOrchestrator(db)
    assignment = await orchestrator.add_room_assignment(
        request.roster_id,
        request.hotel_id,
        request.customer_id,
        request.room_number,
        request.room_type,
        request.check_in,
        request.check_out,
    )
    return JSONResponse(
        status_code=200,
        content=_convert_assignment_to_schema(assignment).model_dump(mode="json")
    )


@router.post("/auto-assign", response_model=AutoAssignRoomsResponse)
async def auto_assign_rooms(
    request: AutoAssignRoomsRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Assign sequential rooms to every roster member without one."""
    orchestrator = BookingOrchestrator(db)
    assignments = await orchestrator.auto_assign_rooms(
        request.roster_id, request.hotel_id, request.start_room_number, request.room_type
    )
    response_data = AutoAssignRoomsResponse(
        assigned_count=len(assignments),
        assignments=[_convert_assignment_to_schema(a) for a in assignments],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/update", response_model=RoomAssignment)
async def update_room(
    request: UpdateRoomRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Change a room assignment or record check-in/check-out."""
    allocator = RoomAllocator(db)
    try:
        assignment = await allocator.update_assignment(
            request.assignment_id,
            room_number=request.room_number,
            room_type=request.room_type,
            check_in=request.check_in,
            check_out=request.check_out,
        )
        await db.commit()
    except ValidationError:
        await db.rollback()
        raise

    logger.info(
        "Room assignment updated",
        extra={"assignment_id": str(request.assignment_id), "room_number": assignment.room_number}
    )
    return JSONResponse(
        status_code=200,
        content=_convert_assignment_to_schema(assignment).model_dump(mode="json")
    )


@router.post("/remove")
async def remove_room(
    request: RemoveRoomRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Remove a room assignment."""
    allocator = RoomAllocator(db)
    await allocator.remove_assignment(request.assignment_id)
    await db.commit()

    logger.info("Room assignment removed", extra={"assignment_id": str(request.assignment_id)})
    return JSONResponse(status_code=200, content={"removed": str(request.assignment_id)})


@router.post("/roster", response_model=Roster)
async def get_roster(
    request: GetRosterRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a roster with its entries in order, by roster id or departure id."""
    assigner = RosterAssigner(db)

    if request.roster_id is not None:
        roster = await assigner.get_roster_by_id_or_raise(request.roster_id)
    elif request.departure_id is not None:
        roster = await assigner.get_roster_for_departure(request.departure_id)
        if roster is None:
            raise NotFoundError(
                resource_type="roster",
                detail=f"Departure {request.departure_id} has no roster yet"
            )
    else:
        raise ValidationError(
            detail="Either roster_id or departure_id is required",
            errors={"roster_id": "required without departure_id"}
        )

    entries = await assigner.list_entries(roster.id)
    response_data = Roster(
        id=str(roster.id),
        code=roster.code,
        departure_id=str(roster.departure_id),
        name=roster.name,
        status=roster.status,
        departure_date=roster.departure_date,
        return_date=roster.return_date,
        entries=[
            RosterEntry(
                customer_id=str(entry.customer_id),
                booking_id=str(entry.booking_id) if entry.booking_id else None,
                order_no=entry.order_no,
            )
            for entry in entries
        ],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/list", response_model=RoomingListResponse)
async def rooming_list(
    request: RoomingListRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Rooming list of a roster grouped by hotel and room."""
    allocator = RoomAllocator(db)
    groups = await allocator.rooming_list(request.roster_id, request.hotel_id)

    response_data = RoomingListResponse(
        roster_id=str(request.roster_id),
        rooms=[
            RoomGroup(
                hotel_id=str(group.hotel_id),
                room_number=group.room_number,
                room_type=group.room_type,
                check_in=group.check_in,
                check_out=group.check_out,
                guests=[
                    Guest(
                        customer_id=str(guest.id),
                        code=guest.code,
                        full_name=guest.full_name,
                        gender=guest.gender,
                    )
                    for guest in group.guests
                ],
            )
            for group in groups
        ],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
