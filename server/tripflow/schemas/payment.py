"""Payment-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.payment import PaymentMethod, PaymentRecordStatus
from .booking import TransitionResponse


class RecordPaymentRequest(BaseModel):
    """Request schema for recording a payment."""

    booking_id: UUID = Field(..., description="Booking being paid")
    amount: int = Field(..., gt=0, description="Amount in minor units")
    method: PaymentMethod = Field(..., description="Payment method")
    notes: str | None = Field(None, max_length=2000)


class VerifyPaymentRequest(BaseModel):
    """Request schema for verifying a pending payment."""

    payment_id: UUID = Field(..., description="Payment to verify")


class RejectPaymentRequest(BaseModel):
    """Request schema for rejecting a pending payment."""

    payment_id: UUID = Field(..., description="Payment to reject")
    reason: str | None = Field(None, max_length=2000)


class Payment(BaseModel):
    """Payment response schema."""

    id: str
    code: str
    booking_id: str
    amount: int
    method: PaymentMethod
    status: PaymentRecordStatus
    verified_at: datetime | None = None
    created_at: datetime


class PaymentResponse(BaseModel):
    """Payment together with the booking state it produced."""

    payment: Payment
    total_paid: int = Field(..., description="Sum of successful payments")
    result: TransitionResponse
