"""Typed failures following RFC 9457 Problem Details for HTTP APIs.

4xx problems are caller-facing ("reject and show the user"); 5xx problems are
operational ("log and alert").
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application specific error code, if any."""
        return self.problem_details.get("code")

    @property
    def is_client_error(self) -> bool:
        """True for failures the caller should be shown rather than alerted on."""
        return self.status_code < 500


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=422,
            title="Validation Error",
            detail=detail,
            type_uri="https://example.com/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://example.com/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
        code: Optional[str] = None,
        retryable: bool = False,
    ):
        extensions: Dict[str, Any] = {"retryable": retryable}
        if code:
            extensions["code"] = code
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://example.com/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        merged = {
            "error_id": error_id,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
        merged.update(extensions or {})

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri="https://example.com/problems/internal-server-error",
            instance=instance,
            extensions=merged,
        )


# Booking lifecycle failures

class InsufficientCapacityError(ConflictError):
    """Departure does not have enough free seats for the requested party."""

    def __init__(self, departure_id: str, requested_seats: int, available_seats: int):
        super().__init__(
            detail=(
                f"Departure {departure_id} has insufficient capacity. "
                f"Requested: {requested_seats}, Available: {available_seats}"
            ),
            conflicting_resource={
                "departure_id": departure_id,
                "requested_seats": requested_seats,
                "available_seats": available_seats,
            },
            code="INSUFFICIENT_CAPACITY",
        )
        self.departure_id = departure_id
        self.requested_seats = requested_seats
        self.available_seats = available_seats


class InvalidTransitionError(ConflictError):
    """Requested booking status is not reachable from the current one."""

    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            detail=f"Booking {booking_id} cannot move from {current_status} to {target_status}",
            conflicting_resource={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
            code="INVALID_TRANSITION",
        )
        self.current_status = current_status
        self.target_status = target_status


class ConcurrentModificationError(ConflictError):
    """Another request changed the booking between load and write."""

    def __init__(self, booking_id: str, expected_status: str):
        super().__init__(
            detail=f"Booking {booking_id} was modified concurrently (expected status {expected_status})",
            conflicting_resource={"booking_id": booking_id, "expected_status": expected_status},
            code="CONCURRENT_MODIFICATION",
            retryable=True,
        )


class RoomAlreadyAssignedError(ConflictError):
    """Customer already has a room in the roster."""

    def __init__(self, roster_id: str, customer_id: str):
        super().__init__(
            detail=f"Customer {customer_id} is already assigned to a room in roster {roster_id}",
            conflicting_resource={"roster_id": roster_id, "customer_id": customer_id},
            code="ROOM_ALREADY_ASSIGNED",
        )


class PaymentExceedsBalanceError(ValidationError):
    """Payment amount is larger than what is still owed."""

    def __init__(self, booking_id: str, amount: int, remaining: int):
        super().__init__(
            detail=f"Amount {amount} exceeds remaining balance ({remaining}) of booking {booking_id}",
            errors={"amount": f"must not exceed {remaining}"},
        )
        self.problem_details["code"] = "PAYMENT_EXCEEDS_BALANCE"


class PaymentNotPendingError(ConflictError):
    """Payment has already been settled one way or the other."""

    def __init__(self, payment_id: str, status: str):
        super().__init__(
            detail=f"Payment {payment_id} is not pending (status: {status})",
            conflicting_resource={"payment_id": payment_id, "status": status},
            code="PAYMENT_NOT_PENDING",
        )


class VoucherExhaustedError(ConflictError):
    """Voucher quota ran out between pricing and redemption."""

    def __init__(self, voucher_id: str):
        super().__init__(
            detail=f"Voucher {voucher_id} has no remaining quota",
            conflicting_resource={"voucher_id": voucher_id},
            code="VOUCHER_EXHAUSTED",
            retryable=True,
        )


class OrchestrationError(InternalServerError):
    """A side effect failed mid-sequence; the whole unit of work was rolled back."""

    def __init__(self, booking_id: Optional[str], step: str, cause: Exception):
        super().__init__(
            detail=f"Booking orchestration failed during '{step}'",
            extensions={
                "code": "ORCHESTRATION_FAILED",
                "retryable": False,
                "booking_id": booking_id,
                "step": step,
            },
        )
        self.step = step


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    problem_details = {
        "type": "https://example.com/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": str(uuid.uuid4()),
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI request validation failures as Problem Details with violations."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    problem_details = {
        "type": "https://example.com/problems/validation-error",
        "title": "Validation Error",
        "status": 422,
        "detail": "The request data failed validation",
        "instance": str(request.url),
        "code": "VALIDATION_ERROR",
        "retryable": False,
        "violations": violations,
    }
    return JSONResponse(status_code=422, content=problem_details)
