"""Departure service for schedule and seat pool operations."""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.observability import metrics_collector
from ..models.departure import Departure
from ..schemas.departure import CreateDepartureRequest, SearchDeparturesRequest
from .capacity_ledger import derive_departure_status
from .package_service import PackageService

logger = logging.getLogger(__name__)


class DepartureService:
    """Service for departure-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.package_service = PackageService(db)

    async def create_departure(self, request: CreateDepartureRequest) -> Departure:
        """
        Create a new departure with all seats available.

        Args:
            request: Departure creation request

        Returns:
            Created departure entity

        Raises:
            NotFoundError: If package not found
        """
        await self.package_service.get_package_by_id_or_raise(request.package_id)

        price_override = None
        if request.price_override:
            price_override = request.price_override.model_dump(exclude_none=True) or None

        departure = Departure(
            package_id=request.package_id,
            departure_date=request.departure_date,
            return_date=request.return_date,
            capacity_total=request.capacity_total,
            capacity_available=request.capacity_total,  # Initially all seats are free
            status=derive_departure_status(
                request.capacity_total, request.capacity_total, settings.almost_full_threshold
            ),
            price_override=price_override,
        )

        self.db.add(departure)
        await self.db.commit()

        metrics_collector.set_capacity_utilization(
            str(departure.id), departure.capacity_total, departure.capacity_available
        )
        logger.info(
            "Departure created successfully",
            extra={
                "departure_id": str(departure.id),
                "package_id": str(departure.package_id),
                "departure_date": departure.departure_date.isoformat(),
                "capacity_total": departure.capacity_total
            }
        )

        return departure

    async def search_departures(self, request: SearchDeparturesRequest) -> tuple[list[Departure], str | None]:
        """
        Search departures based on criteria.

        Args:
            request: Search criteria

        Returns:
            Found departures and the cursor of the next page, if any
        """
        stmt = select(Departure)
        conditions = []

        if request.package_id:
            conditions.append(Departure.package_id == request.package_id)

        if request.date_from:
            conditions.append(Departure.departure_date >= datetime.combine(request.date_from, datetime.min.time()))

        if request.date_to:
            # Include the entire day
            date_to_end = datetime.combine(request.date_to, datetime.min.time()) + timedelta(days=1)
            conditions.append(Departure.departure_date < date_to_end)

        if request.available_only:
            conditions.append(Departure.capacity_available > 0)

        if conditions:
            stmt = stmt.where(and_(*conditions))

        if request.cursor:
            try:
                cursor_id = UUID(request.cursor)
                stmt = stmt.where(Departure.id > cursor_id)
            except (ValueError, TypeError):
                logger.warning(
                    "Invalid cursor provided in departure search",
                    extra={"cursor": request.cursor}
                )

        # Order by ID for consistent pagination, fetch one extra to detect a next page
        stmt = stmt.order_by(Departure.id).limit(request.limit + 1)

        result = await self.db.execute(stmt)
        departures = list(result.scalars())

        has_next_page = len(departures) > request.limit
        if has_next_page:
            departures = departures[:-1]

        next_cursor = str(departures[-1].id) if has_next_page and departures else None

        logger.info(
            "Departure search completed",
            extra={
                "total_found": len(departures),
                "has_next_page": has_next_page,
                "available_only": request.available_only
            }
        )

        return departures, next_cursor

    async def get_departure_by_id(self, departure_id: UUID) -> Departure | None:
        stmt = select(Departure).where(Departure.id == departure_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_departure_by_id_or_raise(self, departure_id: UUID) -> Departure:
        """
        Get departure by ID or raise NotFoundError.

        Raises:
            NotFoundError: If departure not found
        """
        departure = await self.get_departure_by_id(departure_id)
        if not departure:
            logger.warning(
                "Departure not found",
                extra={"departure_id": str(departure_id)}
            )
            raise NotFoundError(
                resource_type="departure",
                resource_id=str(departure_id)
            )
        return departure
