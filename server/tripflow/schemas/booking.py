"""Booking-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.booking import BookingStatus, PaymentStatus, RoomType


class AddOnItem(BaseModel):
    """Optional extra sold with a booking."""

    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0, description="Unit price in minor units")
    quantity: int = Field(1, ge=1, description="Number of units")


class CreateBookingRequest(BaseModel):
    """Request schema for creating a booking."""

    customer_id: UUID = Field(..., description="Booking customer")
    departure_id: UUID = Field(..., description="Departure to reserve seats on")
    package_id: UUID = Field(..., description="Package of the departure")
    room_type: RoomType = Field(..., description="Room occupancy type")
    pax: int = Field(..., ge=1, le=100, description="Party size")
    add_ons: list[AddOnItem] = Field(default_factory=list, description="Optional extras")
    voucher_id: UUID | None = Field(None, description="Discount voucher")
    agent_id: UUID | None = Field(None, description="Referring agent")
    salesperson_id: UUID | None = Field(None, description="Handling salesperson")
    notes: str | None = Field(None, max_length=2000)


class TransitionBookingRequest(BaseModel):
    """Request schema for moving a booking to another status."""

    booking_id: UUID = Field(..., description="Booking to transition")
    target_status: BookingStatus = Field(..., description="Status to move to")
    reason: str | None = Field(None, max_length=2000, description="Cancellation reason")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: UUID = Field(..., description="Booking to retrieve")


class Booking(BaseModel):
    """Booking response schema."""

    id: str = Field(..., description="Unique booking ID")
    code: str = Field(..., description="Booking code")
    customer_id: str
    package_id: str
    departure_id: str
    room_type: RoomType
    pax: int = Field(..., ge=1)
    base_price: int
    discount: int
    additional_fees: int
    total_price: int
    currency: str
    status: BookingStatus
    payment_status: PaymentStatus
    add_ons: list[AddOnItem] | None = None
    agent_id: str | None = None
    salesperson_id: str | None = None
    voucher_id: str | None = None
    notes: str | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    created_at: datetime = Field(..., description="Booking creation time (ISO 8601)")


class Invoice(BaseModel):
    """Invoice response schema."""

    id: str
    invoice_no: str
    booking_id: str
    subtotal: int
    discount: int
    tax: int
    total: int
    paid_amount: int
    balance: int
    due_date: datetime
    items: list[dict]


class Commission(BaseModel):
    """Commission record response schema."""

    id: str
    booking_id: str
    agent_id: str | None = None
    salesperson_id: str | None = None
    amount: int
    rate: float
    status: str


class LoyaltyAward(BaseModel):
    """Loyalty award response schema."""

    id: str
    customer_id: str
    booking_id: str
    points: int
    kind: str
    description: str
    expires_at: datetime


class RosterPlacement(BaseModel):
    """Roster entry created or found for a booking."""

    roster_id: str
    customer_id: str
    order_no: int


class TransitionResponse(BaseModel):
    """Outcome of a booking transition and the side effects it ran."""

    booking: Booking
    previous_status: BookingStatus | None = None
    effects: list[str] = Field(default_factory=list, description="Side effects executed, in order")
    invoice: Invoice | None = None
    roster_entry: RosterPlacement | None = None
    commission: Commission | None = None
    loyalty_award: LoyaltyAward | None = None
    capacity_available: int | None = Field(None, description="Free seats after a release")
