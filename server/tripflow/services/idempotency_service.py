"""Idempotency service for replaying Idempotency-Key protected commands."""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ConflictError, ProblemDetailsException
from ..models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)


class IdempotencyMismatchError(ProblemDetailsException):
    """Exception when idempotency key is reused with different request body."""

    def __init__(self, idempotency_key: str, operation: str):
        super().__init__(
            status_code=422,
            title="Idempotency Key Mismatch",
            detail=(
                f"Idempotency key '{idempotency_key}' was already used for '{operation}' "
                "with a different request body"
            ),
            type_uri="https://example.com/problems/idempotency-key-mismatch",
            extensions={
                "code": "IDEMPOTENCY_KEY_MISMATCH",
                "retryable": False,
                "idempotency_key": idempotency_key,
                "operation": operation,
            },
        )


class IdempotencyInProgressError(ConflictError):
    """Another request holding the same key has not finished yet."""

    def __init__(self, idempotency_key: str, operation: str):
        super().__init__(
            detail=f"A request with idempotency key '{idempotency_key}' for '{operation}' is still in progress",
            conflicting_resource={"idempotency_key": idempotency_key, "operation": operation},
            code="IDEMPOTENCY_IN_PROGRESS",
            retryable=True,
        )


def compute_request_hash(request_body: dict[str, Any]) -> str:
    """SHA-256 of the request body with keys sorted recursively."""
    normalized = json.dumps(request_body, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class IdempotencyService:
    """Stores command outcomes by (Idempotency-Key, operation)."""

    def __init__(self, db: AsyncSession, ttl_hours: int | None = None):
        self.db = db
        self.ttl_hours = settings.idempotency_ttl_hours if ttl_hours is None else ttl_hours

    async def check_idempotency(
        self,
        idempotency_key: str,
        operation: str,
        request_body: dict[str, Any],
    ) -> tuple[int, dict[str, Any]] | None:
        """
        Return the stored outcome of a previous identical request.

        Args:
            idempotency_key: Client supplied key
            operation: Command name, e.g. "booking/create"
            request_body: Request body to hash and compare

        Returns:
            Tuple of (status_code, response_body) if a live record exists, None otherwise

        Raises:
            IdempotencyMismatchError: If the key was used with a different body
            IdempotencyInProgressError: If the request holding the key is still running
        """
        request_hash = compute_request_hash(request_body)

        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.idempotency_key == idempotency_key,
            IdempotencyRecord.operation == operation,
            IdempotencyRecord.expires_at > datetime.utcnow()
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        existing_record = result.scalar_one_or_none()

        if existing_record is None:
            return None

        if existing_record.request_body_hash != request_hash:
            logger.warning(
                "Idempotency key mismatch",
                extra={
                    "idempotency_key": idempotency_key,
                    "operation": operation,
                    "existing_hash": existing_record.request_body_hash[:8],
                    "new_hash": request_hash[:8]
                }
            )
            raise IdempotencyMismatchError(idempotency_key, operation)

        if existing_record.is_pending:
            raise IdempotencyInProgressError(idempotency_key, operation)

        logger.info(
            "Returning stored idempotent response",
            extra={
                "idempotency_key": idempotency_key,
                "operation": operation,
                "status_code": existing_record.response_status_code,
            }
        )
        return existing_record.response_status_code, json.loads(existing_record.response_body)

    async def claim(
        self,
        idempotency_key: str,
        operation: str,
        request_body: dict[str, Any],
    ) -> tuple[int, dict[str, Any]] | None:
        """
        Reserve the key for this request before the command runs.

        The claim is only flushed, so it commits or rolls back together with
        the command's own unit of work. A second request with the same key
        either waits on the unique constraint or finds the claim.

        Returns:
            The stored outcome to replay, or None when this request now holds the key

        Raises:
            IdempotencyMismatchError: If the key was used with a different body
            IdempotencyInProgressError: If another request holds the key
        """
        cached = await self.check_idempotency(idempotency_key, operation, request_body)
        if cached is not None:
            return cached

        # An expired record still occupies the unique key
        await self.db.execute(
            delete(IdempotencyRecord).where(
                IdempotencyRecord.idempotency_key == idempotency_key,
                IdempotencyRecord.operation == operation,
                IdempotencyRecord.expires_at <= datetime.utcnow(),
            )
        )

        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            operation=operation,
            request_body_hash=compute_request_hash(request_body),
            expires_at=datetime.utcnow() + timedelta(hours=self.ttl_hours),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            logger.info(
                "Idempotency key claimed concurrently",
                extra={"idempotency_key": idempotency_key, "operation": operation}
            )
            cached = await self.check_idempotency(idempotency_key, operation, request_body)
            if cached is None:
                raise
            return cached

        logger.debug(
            "Idempotency key claimed",
            extra={"idempotency_key": idempotency_key, "operation": operation}
        )
        return None

    async def complete(
        self,
        idempotency_key: str,
        operation: str,
        status_code: int,
        response_body: dict[str, Any],
    ) -> None:
        """Fill in the response of a claimed key and commit."""
        stmt = (
            update(IdempotencyRecord)
            .where(
                IdempotencyRecord.idempotency_key == idempotency_key,
                IdempotencyRecord.operation == operation,
            )
            .values(
                response_status_code=status_code,
                response_body=json.dumps(response_body, sort_keys=True, separators=(",", ":"), default=str),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info(
            "Stored idempotency record",
            extra={"idempotency_key": idempotency_key, "operation": operation, "status_code": status_code}
        )

    async def store_response(
        self,
        idempotency_key: str,
        operation: str,
        request_body: dict[str, Any],
        status_code: int,
        response_body: dict[str, Any],
    ) -> None:
        """Persist a command outcome; a concurrent duplicate store is ignored."""
        expires_at = datetime.utcnow() + timedelta(hours=self.ttl_hours)

        record = IdempotencyRecord(
            idempotency_key=idempotency_key,
            operation=operation,
            request_body_hash=compute_request_hash(request_body),
            response_status_code=status_code,
            response_body=json.dumps(response_body, sort_keys=True, separators=(",", ":"), default=str),
            expires_at=expires_at
        )

        try:
            self.db.add(record)
            await self.db.commit()
        except IntegrityError as e:
            # Another request stored the same key+operation first
            await self.db.rollback()
            logger.info(
                "Idempotency record already exists (race condition)",
                extra={"idempotency_key": idempotency_key, "operation": operation, "error": str(e)}
            )
            return

        logger.info(
            "Stored idempotency record",
            extra={
                "idempotency_key": idempotency_key,
                "operation": operation,
                "status_code": status_code,
                "expires_at": expires_at.isoformat()
            }
        )

    async def cleanup_expired_records(self) -> int:
        """Delete expired records and return how many were removed."""
        stmt = delete(IdempotencyRecord).where(IdempotencyRecord.expires_at <= datetime.utcnow())
        result = await self.db.execute(stmt)
        await self.db.commit()

        deleted_count = result.rowcount
        if deleted_count > 0:
            logger.info("Cleaned up expired idempotency records", extra={"deleted_count": deleted_count})
        return deleted_count
