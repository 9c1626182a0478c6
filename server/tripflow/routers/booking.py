"""Booking router for booking lifecycle commands."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import ProblemDetailsException
from ..schemas.booking import (
    AddOnItem,
    Booking,
    Commission,
    CreateBookingRequest,
    GetBookingRequest,
    Invoice,
    LoyaltyAward,
    RosterPlacement,
    TransitionBookingRequest,
    TransitionResponse,
)
from ..schemas.common import PROBLEM_RESPONSES
from ..services.booking_orchestrator import BookingOrchestrator, OrchestrationResult
from .idempotent import IDEMPOTENCY_KEY_DEPENDENCY, handle_idempotent_operation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"], responses=PROBLEM_RESPONSES)

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)


def _str_or_none(value) -> str | None:
    return str(value) if value is not None else None


def convert_booking_to_schema(booking_model) -> Booking:
    """Convert booking model to schema."""
    return Booking(
        id=str(booking_model.id),
        code=booking_model.code,
        customer_id=str(booking_model.customer_id),
        package_id=str(booking_model.package_id),
        departure_id=str(booking_model.departure_id),
        room_type=booking_model.room_type,
        pax=booking_model.pax,
        base_price=booking_model.base_price,
        discount=booking_model.discount,
        additional_fees=booking_model.additional_fees,
        total_price=booking_model.total_price,
        currency=booking_model.currency,
        status=booking_model.status,
        payment_status=booking_model.payment_status,
        add_ons=[AddOnItem(**item) for item in booking_model.add_ons] if booking_model.add_ons else None,
        agent_id=_str_or_none(booking_model.agent_id),
        salesperson_id=_str_or_none(booking_model.salesperson_id),
        voucher_id=_str_or_none(booking_model.voucher_id),
        notes=booking_model.notes,
        cancelled_at=booking_model.cancelled_at,
        cancel_reason=booking_model.cancel_reason,
        created_at=booking_model.created_at
    )


def convert_result_to_schema(result: OrchestrationResult) -> TransitionResponse:
    """Convert an orchestration result, including the documents its effects produced."""
    invoice = None
    if result.invoice is not None:
        invoice = Invoice(
            id=str(result.invoice.id),
            invoice_no=result.invoice.invoice_no,
            booking_id=str(result.invoice.booking_id),
            subtotal=result.invoice.subtotal,
            discount=result.invoice.discount,
            tax=result.invoice.tax,
            total=result.invoice.total,
            paid_amount=result.invoice.paid_amount,
            balance=result.invoice.balance,
            due_date=result.invoice.due_date,
            items=result.invoice.items,
        )

    roster_entry = None
    if result.roster_entry is not None:
        roster_entry = RosterPlacement(
            roster_id=str(result.roster_entry.roster_id),
            customer_id=str(result.roster_entry.customer_id),
            order_no=result.roster_entry.order_no,
        )

    commission = None
    if result.commission is not None:
        commission = Commission(
            id=str(result.commission.id),
            booking_id=str(result.commission.booking_id),
            agent_id=_str_or_none(result.commission.agent_id),
            salesperson_id=_str_or_none(result.commission.salesperson_id),
            amount=result.commission.amount,
            rate=result.commission.rate,
            status=result.commission.status.value,
        )

    loyalty_award = None
    if result.loyalty_award is not None:
        loyalty_award = LoyaltyAward(
            id=str(result.loyalty_award.id),
            customer_id=str(result.loyalty_award.customer_id),
            booking_id=str(result.loyalty_award.booking_id),
            points=result.loyalty_award.points,
            kind=result.loyalty_award.kind.value,
            description=result.loyalty_award.description,
            expires_at=result.loyalty_award.expires_at,
        )

    return TransitionResponse(
        booking=convert_booking_to_schema(result.booking),
        previous_status=result.previous_status,
        effects=[effect.value for effect in result.effects],
        invoice=invoice,
        roster_entry=roster_entry,
        commission=commission,
        loyalty_award=loyalty_award,
        capacity_available=result.departure.capacity_available if result.departure is not None else None,
    )


@router.post("/create", response_model=Booking)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    idempotency_key: str = IDEMPOTENCY_KEY_DEPENDENCY
) -> JSONResponse:
    """
    Create a booking, reserving seats on the departure.

    This operation is idempotent based on the Idempotency-Key header.
    """
    orchestrator = BookingOrchestrator(db)

    async def operation():
        booking = await orchestrator.create_booking(request)
        return convert_booking_to_schema(booking).model_dump(mode="json")

    try:
        return await handle_idempotent_operation(
            operation="booking/create",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            operation_func=operation,
            db=db
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "departure_id": str(request.departure_id),
                "pax": request.pax,
                "idempotency_key": idempotency_key,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/transition", response_model=TransitionResponse)
async def transition_booking(
    request: TransitionBookingRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Move a booking to another status and run the side effects of the move.

    Repeating a transition is rejected as an invalid transition, so effects
    never run twice.
    """
    orchestrator = BookingOrchestrator(db)

    result = await orchestrator.transition_booking(request.booking_id, request.target_status, request.reason)
    response_data = convert_result_to_schema(result)

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """
    Get booking details.

    This is a read operation and does not require idempotency.
    """
    orchestrator = BookingOrchestrator(db)

    booking = await orchestrator.get_booking_by_id_or_raise(request.booking_id)
    response_data = convert_booking_to_schema(booking)

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )
