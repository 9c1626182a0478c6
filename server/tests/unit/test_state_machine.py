"""Unit tests for the booking state machine rules."""

import pytest

from tripflow.models import BookingStatus
from tripflow.services.booking_orchestrator import (
    BOOKING_PROGRESSION,
    Effect,
    effects_on_entry,
    is_legal_transition,
    plan_effects,
    states_entered,
)

S = BookingStatus


@pytest.mark.parametrize(
    "current,target",
    [
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.COMPLETED),
        (S.CONFIRMED, S.READY),
        (S.DEPARTED, S.COMPLETED),
        (S.PENDING, S.CANCELLED),
        (S.DEPARTED, S.CANCELLED),
    ],
)
def test_legal_transitions(current, target):
    assert is_legal_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.CONFIRMED, S.PENDING),
        (S.READY, S.READY),
        (S.CANCELLED, S.CANCELLED),
        (S.CANCELLED, S.CONFIRMED),
        (S.COMPLETED, S.CANCELLED),
    ],
)
def test_illegal_transitions(current, target):
    assert not is_legal_transition(current, target)


def test_every_status_has_an_effect_list():
    for status in BookingStatus:
        assert isinstance(effects_on_entry(status), tuple)


def test_states_entered_cumulative():
    assert states_entered(S.PENDING, S.READY) == [S.CONFIRMED, S.PROCESSING, S.READY]
    assert states_entered(S.PENDING, S.READY, cumulative=False) == [S.READY]
    assert states_entered(S.CONFIRMED, S.CANCELLED) == [S.CANCELLED]


def test_plan_effects_pending_to_completed():
    assert plan_effects(S.PENDING, S.COMPLETED) == [
        Effect.ENSURE_INVOICE,
        Effect.RECOMPUTE_CUSTOMER_TIER,
        Effect.ADD_TO_ROSTER,
        Effect.ENSURE_COMMISSION,
        Effect.ENSURE_LOYALTY_AWARD,
    ]
    assert plan_effects(S.PENDING, S.COMPLETED, cumulative=False) == [
        Effect.ENSURE_COMMISSION,
        Effect.ENSURE_LOYALTY_AWARD,
    ]


def test_progression_order():
    assert BOOKING_PROGRESSION[0] == S.PENDING
    assert BOOKING_PROGRESSION[-1] == S.COMPLETED
    assert S.CANCELLED not in BOOKING_PROGRESSION
