"""Departure router for schedule and seat pool operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.departure import (
    CreateDepartureRequest,
    Departure,
    GetDepartureRequest,
    SearchDeparturesRequest,
    SearchDeparturesResponse,
)
from ..services.departure_service import DepartureService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/departure", tags=["departure"])


def _convert_departure_to_schema(departure_model) -> Departure:
    """Convert departure model to schema."""
    return Departure(
        id=str(departure_model.id),
        package_id=str(departure_model.package_id),
        departure_date=departure_model.departure_date,
        return_date=departure_model.return_date,
        capacity_total=departure_model.capacity_total,
        capacity_available=departure_model.capacity_available,
        status=departure_model.status,
        price_override=departure_model.price_override,
    )


@router.post("/create", response_model=Departure)
async def create_departure(
    request: CreateDepartureRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """Create a new departure with every seat available."""
    departure_service = DepartureService(db)
    departure = await departure_service.create_departure(request)

    return JSONResponse(
        status_code=200,
        content=_convert_departure_to_schema(departure).model_dump(mode="json")
    )


@router.post("/get", response_model=Departure)
async def get_departure(
    request: GetDepartureRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """Get a departure with its current seat counts."""
    departure_service = DepartureService(db)
    departure = await departure_service.get_departure_by_id_or_raise(request.departure_id)

    return JSONResponse(
        status_code=200,
        content=_convert_departure_to_schema(departure).model_dump(mode="json")
    )


@router.post("/search", response_model=SearchDeparturesResponse)
async def search_departures(
    request: SearchDeparturesRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """
    Search departures based on criteria.

    Supports filtering by package, date range, and availability.
    Uses cursor-based pagination.
    """
    departure_service = DepartureService(db)
    departures, next_cursor = await departure_service.search_departures(request)

    response_data = SearchDeparturesResponse(
        items=[_convert_departure_to_schema(departure) for departure in departures],
        next_cursor=next_cursor
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )
