"""Unit tests for package and departure services."""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from tripflow.core.exceptions import ConflictError, NotFoundError
from tripflow.models import DepartureStatus
from tripflow.schemas.departure import CreateDepartureRequest, PriceOverride, SearchDeparturesRequest
from tripflow.schemas.package import CreatePackageRequest
from tripflow.services.departure_service import DepartureService
from tripflow.services.package_service import PackageService


@pytest.mark.asyncio
async def test_create_package(test_session, sample_package_data):
    package = await PackageService(test_session).create_package(CreatePackageRequest(**sample_package_data))

    assert package.id is not None
    assert package.code == sample_package_data["code"]
    assert package.price_single is None


@pytest.mark.asyncio
async def test_create_package_duplicate_code(test_session, sample_package_data):
    """Test creating a package with a duplicate code raises error."""
    service = PackageService(test_session)
    await service.create_package(CreatePackageRequest(**sample_package_data))

    with pytest.raises(ConflictError):
        await service.create_package(CreatePackageRequest(**{**sample_package_data, "name": "Another"}))


@pytest.mark.asyncio
async def test_create_departure(test_session, sample_package_data, departure_dates):
    package = await PackageService(test_session).create_package(CreatePackageRequest(**sample_package_data))
    starts, returns = departure_dates

    departure = await DepartureService(test_session).create_departure(
        CreateDepartureRequest(
            package_id=package.id,
            departure_date=starts,
            return_date=returns,
            capacity_total=4,
            price_override=PriceOverride(price_double=22_000_000),
        )
    )

    assert departure.capacity_available == 4
    assert departure.status == DepartureStatus.ALMOST_FULL
    assert departure.price_override == {"price_double": 22_000_000}


@pytest.mark.asyncio
async def test_create_departure_unknown_package(test_session, departure_dates):
    starts, _ = departure_dates

    with pytest.raises(NotFoundError):
        await DepartureService(test_session).create_departure(
            CreateDepartureRequest(package_id=uuid4(), departure_date=starts, capacity_total=10)
        )


def test_departure_return_before_start_is_invalid(departure_dates):
    starts, _ = departure_dates

    with pytest.raises(PydanticValidationError):
        CreateDepartureRequest(
            package_id=uuid4(), departure_date=starts, return_date=starts - timedelta(days=1), capacity_total=10
        )


@pytest.mark.asyncio
async def test_search_departures_paginates(test_session, sample_package_data):
    package = await PackageService(test_session).create_package(CreatePackageRequest(**sample_package_data))
    service = DepartureService(test_session)
    for day in range(1, 6):
        await service.create_departure(
            CreateDepartureRequest(package_id=package.id, departure_date=datetime(2026, 11, day, 8), capacity_total=10)
        )

    seen = []
    cursor = None
    while True:
        page, cursor = await service.search_departures(
            SearchDeparturesRequest(package_id=package.id, limit=2, cursor=cursor)
        )
        seen.extend(departure.id for departure in page)
        if cursor is None:
            break

    assert len(seen) == 5
    assert len(set(seen)) == 5

    filtered, _ = await service.search_departures(
        SearchDeparturesRequest(date_from=date(2026, 11, 2), date_to=date(2026, 11, 3))
    )
    assert len(filtered) == 2
