"""Capacity ledger: atomic seat reservation and release for a departure."""

import logging
from uuid import UUID

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import InsufficientCapacityError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.departure import Departure, DepartureStatus

logger = logging.getLogger(__name__)


def derive_departure_status(total: int, available: int, almost_full_threshold: int) -> DepartureStatus:
    """
    Derive the availability band from the seat counts.

    Args:
        total: Total seats of the departure
        available: Seats still free
        almost_full_threshold: Seat count at or below which the departure is ALMOST_FULL

    Returns:
        FULL when nothing is left, ALMOST_FULL when few seats are left, OPEN otherwise
    """
    if available <= 0:
        return DepartureStatus.FULL
    if available <= almost_full_threshold:
        return DepartureStatus.ALMOST_FULL
    return DepartureStatus.OPEN


class CapacityLedger:
    """
    Seat pool bookkeeping for departures.

    Every mutation is a single conditional UPDATE so that concurrent callers
    can never push ``capacity_available`` outside ``0..capacity_total``. The
    caller owns the transaction; this class only executes statements.
    """

    def __init__(self, db: AsyncSession, almost_full_threshold: int | None = None):
        self.db = db
        self.almost_full_threshold = (
            settings.almost_full_threshold if almost_full_threshold is None else almost_full_threshold
        )

    def _status_expression(self, new_available):
        # Same banding as derive_departure_status, evaluated inside the UPDATE
        return case(
            (new_available <= 0, DepartureStatus.FULL.value),
            (new_available <= self.almost_full_threshold, DepartureStatus.ALMOST_FULL.value),
            else_=DepartureStatus.OPEN.value,
        )

    async def reserve(self, departure_id: UUID, pax: int) -> Departure:
        """
        Take ``pax`` seats from the departure.

        Args:
            departure_id: Departure to reserve on
            pax: Number of seats, must be positive

        Returns:
            Departure with refreshed seat counts

        Raises:
            ValidationError: If pax is not positive
            NotFoundError: If departure not found
            InsufficientCapacityError: If fewer than pax seats are available
        """
        if pax <= 0:
            raise ValidationError(detail="pax must be positive", errors={"pax": "must be greater than 0"})

        new_available = Departure.capacity_available - pax
        stmt = (
            update(Departure)
            .where(Departure.id == departure_id, Departure.capacity_available >= pax)
            .values(capacity_available=new_available, status=self._status_expression(new_available))
            .returning(Departure.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.scalar_one_or_none() is None:
            departure = await self.db.get(Departure, departure_id, populate_existing=True)
            if departure is None:
                raise NotFoundError(resource_type="departure", resource_id=str(departure_id))

            logger.warning(
                "Seat reservation rejected - insufficient capacity",
                extra={
                    "departure_id": str(departure_id),
                    "requested_seats": pax,
                    "available_seats": departure.capacity_available,
                }
            )
            metrics_collector.record_capacity_rejection(str(departure_id))
            raise InsufficientCapacityError(
                departure_id=str(departure_id),
                requested_seats=pax,
                available_seats=departure.capacity_available,
            )

        departure = await self.db.get(Departure, departure_id, populate_existing=True)
        metrics_collector.set_capacity_utilization(
            str(departure_id), departure.capacity_total, departure.capacity_available
        )

        logger.info(
            "Seats reserved",
            extra={
                "departure_id": str(departure_id),
                "pax": pax,
                "capacity_available": departure.capacity_available,
                "status": departure.status.value,
            }
        )
        return departure

    async def release(self, departure_id: UUID, pax: int) -> Departure:
        """
        Return ``pax`` seats to the departure, never exceeding its total.

        Raises:
            ValidationError: If pax is not positive
            NotFoundError: If departure not found
        """
        if pax <= 0:
            raise ValidationError(detail="pax must be positive", errors={"pax": "must be greater than 0"})

        restored = Departure.capacity_available + pax
        new_available = case(
            (restored > Departure.capacity_total, Departure.capacity_total),
            else_=restored,
        )
        stmt = (
            update(Departure)
            .where(Departure.id == departure_id)
            .values(capacity_available=new_available, status=self._status_expression(new_available))
            .returning(Departure.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.scalar_one_or_none() is None:
            raise NotFoundError(resource_type="departure", resource_id=str(departure_id))

        departure = await self.db.get(Departure, departure_id, populate_existing=True)
        metrics_collector.set_capacity_utilization(
            str(departure_id), departure.capacity_total, departure.capacity_available
        )

        logger.info(
            "Seats released",
            extra={
                "departure_id": str(departure_id),
                "pax": pax,
                "capacity_available": departure.capacity_available,
                "status": departure.status.value,
            }
        )
        return departure
