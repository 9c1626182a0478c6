"""Unit tests for idempotency service."""

from datetime import datetime, timedelta

import pytest

from tripflow.models import IdempotencyRecord
from tripflow.services.idempotency_service import (
    IdempotencyInProgressError,
    IdempotencyMismatchError,
    IdempotencyService,
    compute_request_hash,
)


def test_request_hash_ignores_key_order():
    assert compute_request_hash({"a": 1, "b": {"c": 2, "d": 3}}) == compute_request_hash({"b": {"d": 3, "c": 2}, "a": 1})
    assert compute_request_hash({"a": 1}) != compute_request_hash({"a": 2})


@pytest.mark.asyncio
async def test_store_and_replay(test_session):
    service = IdempotencyService(test_session)
    body = {"booking_id": "b-1", "amount": 100}

    assert await service.check_idempotency("key-1", "payment/record", body) is None

    await service.store_response("key-1", "payment/record", body, 200, {"ok": True})

    assert await service.check_idempotency("key-1", "payment/record", body) == (200, {"ok": True})
    # Same key under another operation is independent
    assert await service.check_idempotency("key-1", "booking/create", body) is None


@pytest.mark.asyncio
async def test_reuse_with_different_body(test_session):
    service = IdempotencyService(test_session)
    await service.store_response("key-1", "payment/record", {"amount": 100}, 200, {"ok": True})

    with pytest.raises(IdempotencyMismatchError) as exc_info:
        await service.check_idempotency("key-1", "payment/record", {"amount": 200})

    assert exc_info.value.status_code == 422
    assert exc_info.value.code == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_duplicate_store_is_ignored(test_session):
    service = IdempotencyService(test_session)
    await service.store_response("key-1", "op", {}, 200, {"first": True})
    await service.store_response("key-1", "op", {}, 200, {"second": True})

    assert await service.check_idempotency("key-1", "op", {}) == (200, {"first": True})


@pytest.mark.asyncio
async def test_cleanup_expired_records(test_session):
    test_session.add(
        IdempotencyRecord(
            idempotency_key="old",
            operation="op",
            request_body_hash=compute_request_hash({}),
            response_status_code=200,
            response_body="{}",
            expires_at=datetime.utcnow() - timedelta(hours=1),
        )
    )
    await test_session.commit()
    service = IdempotencyService(test_session)
    await service.store_response("fresh", "op", {}, 200, {})

    assert await service.cleanup_expired_records() == 1
    assert await service.check_idempotency("fresh", "op", {}) == (200, {})


@pytest.mark.asyncio
async def test_claim_holds_key_until_completed(test_session):
    service = IdempotencyService(test_session)
    body = {"booking_id": "b-1", "amount": 100}

    assert await service.claim("key-1", "payment/record", body) is None

    with pytest.raises(IdempotencyInProgressError) as exc_info:
        await service.claim("key-1", "payment/record", body)
    assert exc_info.value.status_code == 409
    assert exc_info.value.problem_details["retryable"] is True

    await service.complete("key-1", "payment/record", 200, {"ok": True})

    assert await service.claim("key-1", "payment/record", body) == (200, {"ok": True})


@pytest.mark.asyncio
async def test_claim_rolls_back_with_the_command(test_session):
    service = IdempotencyService(test_session)

    assert await service.claim("key-1", "op", {}) is None
    await test_session.rollback()

    assert await service.check_idempotency("key-1", "op", {}) is None
    assert await service.claim("key-1", "op", {}) is None


@pytest.mark.asyncio
async def test_claim_replaces_expired_record(test_session):
    test_session.add(
        IdempotencyRecord(
            idempotency_key="key-1",
            operation="op",
            request_body_hash=compute_request_hash({"old": True}),
            response_status_code=200,
            response_body="{}",
            expires_at=datetime.utcnow() - timedelta(hours=1),
        )
    )
    await test_session.commit()
    service = IdempotencyService(test_session)

    assert await service.claim("key-1", "op", {"new": True}) is None
    await service.complete("key-1", "op", 200, {"fresh": True})

    assert await service.check_idempotency("key-1", "op", {"new": True}) == (200, {"fresh": True})
