"""Payment router for recording and settling payments."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.payment import (
    Payment,
    PaymentResponse,
    RecordPaymentRequest,
    RejectPaymentRequest,
    VerifyPaymentRequest,
)
from ..services.booking_orchestrator import BookingOrchestrator, PaymentOutcome
from .booking import convert_result_to_schema
from .idempotent import IDEMPOTENCY_KEY_DEPENDENCY, handle_idempotent_operation

router = APIRouter(prefix="/v1/payment", tags=["payment"], responses=PROBLEM_RESPONSES)

DB_DEPENDENCY = Depends(get_db)


def _convert_outcome_to_schema(outcome: PaymentOutcome) -> PaymentResponse:
    payment = outcome.payment
    return PaymentResponse(
        payment=Payment(
            id=str(payment.id),
            code=payment.code,
            booking_id=str(payment.booking_id),
            amount=payment.amount,
            method=payment.method,
            status=payment.status,
            verified_at=payment.verified_at,
            created_at=payment.created_at,
        ),
        total_paid=outcome.summary.total_paid,
        result=convert_result_to_schema(outcome.result),
    )


@router.post("/record", response_model=PaymentResponse)
async def record_payment(
    request: RecordPaymentRequest,
    db: AsyncSession = DB_DEPENDENCY,
    idempotency_key: str = IDEMPOTENCY_KEY_DEPENDENCY
) -> JSONResponse:
    """
    Record a payment against a booking.

    CASH payments settle immediately. This operation is idempotent based on
    the Idempotency-Key header.
    """
    orchestrator = BookingOrchestrator(db)

    async def operation():
        outcome = await orchestrator.record_payment(
            request.booking_id, request.amount, request.method, request.notes
        )
        return _convert_outcome_to_schema(outcome).model_dump(mode="json")

    return await handle_idempotent_operation(
        operation="payment/record",
        idempotency_key=idempotency_key,
        request_body=request.model_dump(mode="json"),
        operation_func=operation,
        db=db
    )


@router.post("/verify", response_model=PaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Verify a pending payment; may confirm the booking when it is fully paid."""
    orchestrator = BookingOrchestrator(db)
    outcome = await orchestrator.record_payment_verified(request.payment_id)

    return JSONResponse(
        status_code=200,
        content=_convert_outcome_to_schema(outcome).model_dump(mode="json")
    )


@router.post("/reject", response_model=PaymentResponse)
async def reject_payment(
    request: RejectPaymentRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Reject a pending payment."""
    orchestrator = BookingOrchestrator(db)
    outcome = await orchestrator.reject_payment(request.payment_id, request.reason)

    return JSONResponse(
        status_code=200,
        content=_convert_outcome_to_schema(outcome).model_dump(mode="json")
    )
