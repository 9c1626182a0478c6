"""Roster and rooming Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.booking import RoomType
from ..models.roster import RosterStatus


class AssignRoomRequest(BaseModel):
    """Request schema for an explicit room assignment."""

    roster_id: UUID
    hotel_id: UUID
    customer_id: UUID
    room_number: str = Field(..., min_length=1, max_length=16)
    room_type: RoomType
    check_in: datetime | None = None
    check_out: datetime | None = None


class AutoAssignRoomsRequest(BaseModel):
    """Request schema for sequential auto-assignment."""

    roster_id: UUID
    hotel_id: UUID
    start_room_number: int | None = Field(None, ge=1, description="First room number, defaults to 101")
    room_type: RoomType | None = Field(None, description="Room type for every assignment")


class UpdateRoomRequest(BaseModel):
    """Request schema for changing a room assignment or recording check-in/out."""

    assignment_id: UUID
    room_number: str | None = Field(None, min_length=1, max_length=16)
    room_type: RoomType | None = None
    check_in: datetime | None = None
    check_out: datetime | None = None


class RemoveRoomRequest(BaseModel):
    assignment_id: UUID


class GetRosterRequest(BaseModel):
    """Request schema for reading a roster, by id or by departure."""

    roster_id: UUID | None = None
    departure_id: UUID | None = None


class RoomingListRequest(BaseModel):
    roster_id: UUID
    hotel_id: UUID | None = None


class RoomAssignment(BaseModel):
    """Room assignment response schema."""

    id: str
    roster_id: str
    hotel_id: str
    customer_id: str
    room_number: str
    room_type: RoomType
    check_in: datetime | None = None
    check_out: datetime | None = None


class RosterEntry(BaseModel):
    customer_id: str
    booking_id: str | None = None
    order_no: int


class Roster(BaseModel):
    """Roster response schema."""

    id: str
    code: str
    departure_id: str
    name: str
    status: RosterStatus
    departure_date: datetime
    return_date: datetime | None = None
    entries: list[RosterEntry] = Field(default_factory=list)


class Guest(BaseModel):
    customer_id: str
    code: str
    full_name: str
    gender: str | None = None


class RoomGroup(BaseModel):
    """Guests sharing one hotel room."""

    hotel_id: str
    room_number: str
    room_type: RoomType
    check_in: datetime | None = None
    check_out: datetime | None = None
    guests: list[Guest]


class RoomingListResponse(BaseModel):
    roster_id: str
    rooms: list[RoomGroup]


class AutoAssignRoomsResponse(BaseModel):
    assigned_count: int
    assignments: list[RoomAssignment]
