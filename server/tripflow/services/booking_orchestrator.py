"""
Booking orchestrator.

The state machine that owns booking status. Every command runs as one unit of
work on the injected session: component services only flush, and the
orchestrator commits once at the end or rolls everything back.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import assert_never
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import (
    ConcurrentModificationError,
    InvalidTransitionError,
    NotFoundError,
    OrchestrationError,
    PaymentExceedsBalanceError,
    PaymentNotPendingError,
    ProblemDetailsException,
    ValidationError,
)
from ..core.observability import get_tracer, metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus, RoomType
from ..models.departure import Departure
from ..models.invoice import Invoice
from ..models.ledger import CommissionRecord, LoyaltyAward
from ..models.party import Agent, Salesperson
from ..models.payment import Payment, PaymentMethod, PaymentRecordStatus
from ..models.roster import RoomAssignment, RosterEntry
from ..schemas.booking import CreateBookingRequest
from .capacity_ledger import CapacityLedger
from .codes import generate_code
from .commission_calculator import CommissionCalculator
from .customer_service import CustomerService
from .departure_service import DepartureService
from .invoice_generator import InvoiceGenerator
from .loyalty_awarder import LoyaltyAwarder
from .package_service import PackageService
from .payment_aggregator import PaymentAggregator, PaymentSummary
from .pricing import AddOn, PricingService
from .room_allocator import RoomAllocator
from .roster_assigner import RosterAssigner

logger = logging.getLogger(__name__)

BOOKING_PROGRESSION = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.PROCESSING,
    BookingStatus.READY,
    BookingStatus.DEPARTED,
    BookingStatus.COMPLETED,
)
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


class Effect(str, Enum):
    """Side effects a transition can run, in execution order per state."""
    ENSURE_INVOICE = "ENSURE_INVOICE"
    RECOMPUTE_CUSTOMER_TIER = "RECOMPUTE_CUSTOMER_TIER"
    ADD_TO_ROSTER = "ADD_TO_ROSTER"
    ENSURE_COMMISSION = "ENSURE_COMMISSION"
    ENSURE_LOYALTY_AWARD = "ENSURE_LOYALTY_AWARD"
    RELEASE_CAPACITY = "RELEASE_CAPACITY"


def is_legal_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Forward along the progression, or from any non-terminal state to CANCELLED."""
    if current in TERMINAL_STATUSES:
        return False
    if target == BookingStatus.CANCELLED:
        return True
    return BOOKING_PROGRESSION.index(target) > BOOKING_PROGRESSION.index(current)


def effects_on_entry(status: BookingStatus) -> tuple[Effect, ...]:
    match status:
        case BookingStatus.CONFIRMED:
            return (Effect.ENSURE_INVOICE, Effect.RECOMPUTE_CUSTOMER_TIER)
        case BookingStatus.READY:
            return (Effect.ADD_TO_ROSTER,)
        case BookingStatus.COMPLETED:
            return (Effect.ENSURE_COMMISSION, Effect.ENSURE_LOYALTY_AWARD)
        case BookingStatus.CANCELLED:
            return (Effect.RELEASE_CAPACITY,)
        case BookingStatus.PENDING | BookingStatus.PROCESSING | BookingStatus.DEPARTED:
            return ()
        case _:
            assert_never(status)


def states_entered(current: BookingStatus, target: BookingStatus, cumulative: bool = True) -> list[BookingStatus]:
    """
    States whose entry effects a legal transition runs.

    Cumulative mode walks every state between current (exclusive) and target
    (inclusive), so skipped states still get their effects. Otherwise only the
    target state counts.
    """
    if target == BookingStatus.CANCELLED or not cumulative:
        return [target]
    start = BOOKING_PROGRESSION.index(current) + 1
    stop = BOOKING_PROGRESSION.index(target) + 1
    return list(BOOKING_PROGRESSION[start:stop])


def plan_effects(current: BookingStatus, target: BookingStatus, cumulative: bool = True) -> list[Effect]:
    return [
        effect
        for status in states_entered(current, target, cumulative)
        for effect in effects_on_entry(status)
    ]


@dataclass
class OrchestrationResult:
    """Booking after a transition plus whatever its side effects produced."""

    booking: Booking
    previous_status: BookingStatus | None = None
    effects: list[Effect] = field(default_factory=list)
    invoice: Invoice | None = None
    roster_entry: RosterEntry | None = None
    commission: CommissionRecord | None = None
    loyalty_award: LoyaltyAward | None = None
    departure: Departure | None = None


@dataclass
class PaymentOutcome:
    payment: Payment
    summary: PaymentSummary
    result: OrchestrationResult

    @property
    def booking(self) -> Booking:
        return self.result.booking


class BookingOrchestrator:
    """Coordinates capacity, payments, invoices, rosters and ledgers for bookings."""

    def __init__(self, db: AsyncSession, cumulative_effects: bool | None = None):
        self.db = db
        self.cumulative_effects = (
            settings.cumulative_transition_effects if cumulative_effects is None else cumulative_effects
        )
        self.capacity = CapacityLedger(db)
        self.pricing = PricingService(db)
        self.payments = PaymentAggregator(db)
        self.invoices = InvoiceGenerator(db)
        self.rosters = RosterAssigner(db)
        self.rooms = RoomAllocator(db)
        self.commissions = CommissionCalculator(db)
        self.loyalty = LoyaltyAwarder(db)
        self.customers = CustomerService(db)
        self.packages = PackageService(db)
        self.departures = DepartureService(db)

    # Queries

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        return await self.db.get(Booking, booking_id)

    async def get_booking_by_id_or_raise(self, booking_id: UUID) -> Booking:
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning("Booking not found", extra={"booking_id": str(booking_id)})
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking

    async def _lock_booking(self, booking_id: UUID) -> Booking:
        # Row lock on PostgreSQL; SQLite serializes writers with BEGIN IMMEDIATE instead
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking

    async def _commit_or_abort(self, booking_id: UUID | None, step: str, work):
        """Run ``work`` and commit, or roll back the whole unit of work."""
        try:
            outcome = await work()
            await self.db.commit()
            return outcome
        except OrchestrationError as exc:
            await self.db.rollback()
            logger.error(
                "Booking orchestration aborted",
                extra={"booking_id": str(booking_id) if booking_id else None, "step": exc.step},
                exc_info=True
            )
            raise
        except ProblemDetailsException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(
                "Booking orchestration aborted",
                extra={"booking_id": str(booking_id) if booking_id else None, "step": step},
                exc_info=True
            )
            raise OrchestrationError(str(booking_id) if booking_id else None, step, exc) from exc

    # Commands

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """
        Price a booking, reserve its seats and persist it as PENDING/UNPAID.

        Args:
            request: Booking creation request

        Returns:
            Created booking

        Raises:
            NotFoundError: If customer, package, departure, agent or salesperson not found
            ValidationError: If the departure does not belong to the package
            InsufficientCapacityError: If the departure cannot seat the party
            VoucherExhaustedError: If the voucher ran out while booking
            OrchestrationError: If persistence fails; nothing is written
        """
        with get_tracer().start_as_current_span("booking.create") as span:
            span.set_attribute("booking.departure_id", str(request.departure_id))
            span.set_attribute("booking.pax", request.pax)

            async def work() -> Booking:
                await self.customers.get_customer_by_id_or_raise(request.customer_id)
                package = await self.packages.get_package_by_id_or_raise(request.package_id)
                departure = await self.departures.get_departure_by_id_or_raise(request.departure_id)
                if departure.package_id != package.id:
                    raise ValidationError(
                        detail=f"Departure {departure.id} does not belong to package {package.id}",
                        errors={"departure_id": "does not belong to package"},
                    )
                if request.agent_id and await self.db.get(Agent, request.agent_id) is None:
                    raise NotFoundError(resource_type="agent", resource_id=str(request.agent_id))
                if request.salesperson_id and await self.db.get(Salesperson, request.salesperson_id) is None:
                    raise NotFoundError(resource_type="salesperson", resource_id=str(request.salesperson_id))

                add_ons = [AddOn(name=item.name, price=item.price, quantity=item.quantity) for item in request.add_ons]
                breakdown, voucher = await self.pricing.quote(
                    package, departure, request.room_type, request.pax, add_ons, request.voucher_id
                )

                await self.capacity.reserve(departure.id, request.pax)

                if voucher is not None and breakdown.discount > 0:
                    await self.pricing.redeem_voucher(voucher.id)

                booking = Booking(
                    code=generate_code("BK"),
                    customer_id=request.customer_id,
                    package_id=package.id,
                    departure_id=departure.id,
                    room_type=request.room_type,
                    pax=request.pax,
                    base_price=breakdown.base_price,
                    discount=breakdown.discount,
                    additional_fees=breakdown.additional_fees,
                    total_price=breakdown.total_price,
                    currency=settings.default_currency,
                    status=BookingStatus.PENDING,
                    payment_status=PaymentStatus.UNPAID,
                    add_ons=[add_on.as_dict() for add_on in add_ons] or None,
                    notes=request.notes,
                    agent_id=request.agent_id,
                    salesperson_id=request.salesperson_id,
                    voucher_id=voucher.id if voucher is not None else None,
                )
                self.db.add(booking)
                await self.db.flush()
                return booking

            booking = await self._commit_or_abort(None, "create_booking", work)
            span.set_attribute("booking.id", str(booking.id))

        metrics_collector.record_booking_created(str(booking.departure_id))
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_code": booking.code,
                "departure_id": str(booking.departure_id),
                "pax": booking.pax,
                "total_price": booking.total_price,
            }
        )
        return booking

    async def transition_booking(
        self,
        booking_id: UUID,
        target_status: BookingStatus,
        reason: str | None = None,
    ) -> OrchestrationResult:
        """
        Move a booking to ``target_status`` and run the entry effects.

        Args:
            booking_id: Booking to transition
            target_status: Status to move to
            reason: Cancellation reason, stored when cancelling

        Returns:
            Orchestration result with the effects executed

        Raises:
            NotFoundError: If booking not found
            InvalidTransitionError: If target is not reachable; nothing is executed
            ConcurrentModificationError: If the booking changed underneath us
            OrchestrationError: If any step fails to persist; nothing is written
        """
        with get_tracer().start_as_current_span("booking.transition") as span:
            span.set_attribute("booking.id", str(booking_id))
            span.set_attribute("booking.target_status", target_status.value)

            async def work() -> OrchestrationResult:
                booking = await self._lock_booking(booking_id)
                return await self._transition(booking, target_status, reason)

            result = await self._commit_or_abort(booking_id, "transition_booking", work)
            span.set_attribute("booking.effects", [effect.value for effect in result.effects])

        return result

    async def _transition(
        self,
        booking: Booking,
        target: BookingStatus,
        reason: str | None = None,
    ) -> OrchestrationResult:
        current = booking.status
        if not is_legal_transition(current, target):
            logger.warning(
                "Booking transition rejected",
                extra={"booking_id": str(booking.id), "from_status": current.value, "to_status": target.value}
            )
            raise InvalidTransitionError(str(booking.id), current.value, target.value)

        values = {"status": target}
        if target == BookingStatus.CANCELLED:
            values["cancelled_at"] = datetime.utcnow()
            values["cancel_reason"] = reason

        # Compare-and-swap on the status read above
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        swapped = await self.db.execute(stmt)
        if swapped.rowcount != 1:
            raise ConcurrentModificationError(str(booking.id), current.value)

        booking = await self.db.get(Booking, booking.id, populate_existing=True)
        result = OrchestrationResult(booking=booking, previous_status=current)

        for effect in plan_effects(current, target, self.cumulative_effects):
            try:
                await self._apply(effect, booking, result)
            except SQLAlchemyError as exc:
                raise OrchestrationError(str(booking.id), effect.value, exc) from exc
            result.effects.append(effect)

        metrics_collector.record_transition(current.value, target.value)
        logger.info(
            "Booking transitioned",
            extra={
                "booking_id": str(booking.id),
                "from_status": current.value,
                "to_status": target.value,
                "effects": [effect.value for effect in result.effects],
            }
        )
        return result

    async def _apply(self, effect: Effect, booking: Booking, result: OrchestrationResult) -> None:
        match effect:
            case Effect.ENSURE_INVOICE:
                result.invoice = await self.invoices.ensure_invoice(booking.id)
                total_paid = await self.payments.total_paid(booking.id)
                await self.payments.sync_invoice(booking.id, total_paid)
            case Effect.RECOMPUTE_CUSTOMER_TIER:
                await self.customers.recompute_tier(booking.customer_id)
            case Effect.ADD_TO_ROSTER:
                result.roster_entry = await self.rosters.add_to_roster(booking.id)
            case Effect.ENSURE_COMMISSION:
                result.commission = await self.commissions.ensure_commission(booking.id)
            case Effect.ENSURE_LOYALTY_AWARD:
                result.loyalty_award = await self.loyalty.ensure_loyalty_award(booking.id)
            case Effect.RELEASE_CAPACITY:
                result.departure = await self.capacity.release(booking.departure_id, booking.pax)
            case _:
                assert_never(effect)

    async def _settle(self, booking: Booking) -> tuple[PaymentSummary, OrchestrationResult]:
        """Aggregate payments and apply the transition they request, if any."""
        summary = await self.payments.recompute(booking.id)
        if summary.requested_transition is not None and is_legal_transition(
            booking.status, summary.requested_transition
        ):
            result = await self._transition(booking, summary.requested_transition)
        else:
            result = OrchestrationResult(booking=booking, previous_status=booking.status)
        return summary, result

    async def record_payment(
        self,
        booking_id: UUID,
        amount: int,
        method: PaymentMethod,
        notes: str | None = None,
    ) -> PaymentOutcome:
        """
        Record a payment against a booking.

        CASH payments succeed immediately and are aggregated in the same unit
        of work; other methods stay PENDING until verified.

        Raises:
            NotFoundError: If booking not found
            PaymentExceedsBalanceError: If amount is above the remaining balance
            OrchestrationError: If persistence fails; nothing is written
        """
        with get_tracer().start_as_current_span("payment.record") as span:
            span.set_attribute("booking.id", str(booking_id))
            span.set_attribute("payment.method", method.value)

            async def work() -> PaymentOutcome:
                booking = await self._lock_booking(booking_id)
                total_paid = await self.payments.total_paid(booking.id)
                remaining = booking.total_price - total_paid
                if amount > remaining:
                    raise PaymentExceedsBalanceError(str(booking.id), amount, remaining)

                is_cash = method == PaymentMethod.CASH
                payment = Payment(
                    code=generate_code("PAY"),
                    booking_id=booking.id,
                    amount=amount,
                    method=method,
                    status=PaymentRecordStatus.SUCCESS if is_cash else PaymentRecordStatus.PENDING,
                    notes=notes,
                    verified_at=datetime.utcnow() if is_cash else None,
                )
                self.db.add(payment)
                await self.db.flush()

                if is_cash:
                    summary, result = await self._settle(booking)
                else:
                    summary = PaymentSummary(payment_status=booking.payment_status, total_paid=total_paid)
                    result = OrchestrationResult(booking=booking, previous_status=booking.status)
                return PaymentOutcome(payment=payment, summary=summary, result=result)

            outcome = await self._commit_or_abort(booking_id, "record_payment", work)

        if outcome.payment.status == PaymentRecordStatus.SUCCESS:
            metrics_collector.record_payment_verified()
        logger.info(
            "Payment recorded",
            extra={
                "payment_id": str(outcome.payment.id),
                "booking_id": str(booking_id),
                "amount": amount,
                "method": method.value,
                "status": outcome.payment.status.value,
                "payment_status": outcome.summary.payment_status.value,
            }
        )
        return outcome

    async def _lock_pending_payment(self, payment_id: UUID) -> tuple[Payment, Booking]:
        """
        Lock the payment's booking, then the payment, and check it is still PENDING.

        The status is read only after both locks are held, so a concurrent
        verify and reject of one payment cannot both pass the check.
        """
        payment = await self.db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError(resource_type="payment", resource_id=str(payment_id))

        booking = await self._lock_booking(payment.booking_id)

        stmt = (
            select(Payment)
            .where(Payment.id == payment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        payment = result.scalar_one()
        if payment.status != PaymentRecordStatus.PENDING:
            raise PaymentNotPendingError(str(payment_id), payment.status.value)
        return payment, booking

    async def record_payment_verified(self, payment_id: UUID) -> PaymentOutcome:
        """
        Mark a pending payment SUCCESS and aggregate the booking's payments.

        A payment that settles a PENDING booking moves it to CONFIRMED, with
        the CONFIRMED effects, in the same unit of work.

        Raises:
            NotFoundError: If payment or booking not found
            PaymentNotPendingError: If the payment is not PENDING
            OrchestrationError: If persistence fails; nothing is written
        """
        with get_tracer().start_as_current_span("payment.verify") as span:
            span.set_attribute("payment.id", str(payment_id))

            async def work() -> PaymentOutcome:
                payment, booking = await self._lock_pending_payment(payment_id)

                payment.status = PaymentRecordStatus.SUCCESS
                payment.verified_at = datetime.utcnow()
                await self.db.flush()

                summary, result = await self._settle(booking)
                return PaymentOutcome(payment=payment, summary=summary, result=result)

            outcome = await self._commit_or_abort(None, "record_payment_verified", work)

        metrics_collector.record_payment_verified()
        logger.info(
            "Payment verified",
            extra={
                "payment_id": str(payment_id),
                "booking_id": str(outcome.booking.id),
                "total_paid": outcome.summary.total_paid,
                "payment_status": outcome.summary.payment_status.value,
                "booking_status": outcome.booking.status.value,
            }
        )
        return outcome

    async def reject_payment(self, payment_id: UUID, reason: str | None = None) -> PaymentOutcome:
        """
        Mark a pending payment FAILED. Failed payments never count as paid.

        Raises:
            NotFoundError: If payment not found
            PaymentNotPendingError: If the payment is not PENDING
        """

        async def work() -> PaymentOutcome:
            payment, booking = await self._lock_pending_payment(payment_id)

            payment.status = PaymentRecordStatus.FAILED
            if reason:
                payment.notes = reason
            await self.db.flush()

            summary = PaymentSummary(
                payment_status=booking.payment_status,
                total_paid=await self.payments.total_paid(booking.id),
            )
            result = OrchestrationResult(booking=booking, previous_status=booking.status)
            return PaymentOutcome(payment=payment, summary=summary, result=result)

        outcome = await self._commit_or_abort(None, "reject_payment", work)
        logger.info(
            "Payment rejected",
            extra={"payment_id": str(payment_id), "booking_id": str(outcome.booking.id)}
        )
        return outcome

    # Rooming

    async def add_room_assignment(
        self,
        roster_id: UUID,
        hotel_id: UUID,
        customer_id: UUID,
        room_number: str,
        room_type: RoomType,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
    ) -> RoomAssignment:
        """
        Assign a roster member to a hotel room.

        Raises:
            NotFoundError: If roster not found
            ValidationError: If the customer is not on the roster
            RoomAlreadyAssignedError: If the customer already has a room in the roster
        """

        async def work() -> RoomAssignment:
            return await self.rooms.assign_room(
                roster_id, hotel_id, customer_id, room_number, room_type, check_in, check_out
            )

        return await self._commit_or_abort(None, "add_room_assignment", work)

    async def auto_assign_rooms(
        self,
        roster_id: UUID,
        hotel_id: UUID,
        start_room_number: int | None = None,
        room_type: RoomType | None = None,
    ) -> list[RoomAssignment]:
        """Give every unassigned roster member a sequential room number."""

        async def work() -> list[RoomAssignment]:
            return await self.rooms.auto_assign(roster_id, hotel_id, start_room_number, room_type)

        return await self._commit_or_abort(None, "auto_assign_rooms", work)
