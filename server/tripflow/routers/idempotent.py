"""Replay support for Idempotency-Key protected commands."""

import logging
from typing import Any, Awaitable, Callable

from fastapi import Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ProblemDetailsException
from ..services.idempotency_service import IdempotencyService

logger = logging.getLogger(__name__)

# Define dependencies to avoid B008 linting errors
IDEMPOTENCY_KEY_DEPENDENCY = Header(..., alias="Idempotency-Key", min_length=1, max_length=255)


async def handle_idempotent_operation(
    operation: str,
    idempotency_key: str,
    request_body: dict[str, Any],
    operation_func: Callable[[], Awaitable[dict[str, Any]]],
    db: AsyncSession,
) -> JSONResponse:
    """
    Run a command once per (Idempotency-Key, operation).

    The key is claimed in the same unit of work as the command, so concurrent
    requests with one key cannot both run it; the losers get the stored
    response or a retryable IDEMPOTENCY_IN_PROGRESS conflict. A replay with
    the same body gets the stored response, including stored 4xx problems.
    Retryable and 5xx failures are not stored so the client can try again
    with the same key.
    """
    idempotency_service = IdempotencyService(db)

    cached_response = await idempotency_service.claim(
        idempotency_key=idempotency_key,
        operation=operation,
        request_body=request_body
    )
    if cached_response:
        status_code, response_body = cached_response
        return JSONResponse(
            status_code=status_code,
            content=response_body,
            headers={"Idempotent-Replayed": "true"}
        )

    try:
        response_body = await operation_func()
    except ProblemDetailsException as e:
        # Drops the claim along with whatever the command wrote
        await db.rollback()
        if e.is_client_error and not e.problem_details.get("retryable", False):
            await idempotency_service.store_response(
                idempotency_key=idempotency_key,
                operation=operation,
                request_body=request_body,
                status_code=e.status_code,
                response_body=e.problem_details
            )
        raise

    await idempotency_service.complete(
        idempotency_key=idempotency_key,
        operation=operation,
        status_code=200,
        response_body=response_body
    )
    return JSONResponse(status_code=200, content=response_body)
