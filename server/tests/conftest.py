"""Test configuration and fixtures."""

import os

# Point the module-level engine at SQLite before the package is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripflow.core.database import Base, create_engine_for, get_db
from tripflow.models import *  # noqa: F403 - Import all models
from tripflow.models import Agent, Customer, Departure, Salesperson, TravelPackage, Voucher, VoucherKind
from tripflow.services.capacity_ledger import derive_departure_status

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_engine_for(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """
    Session factory over a file-backed SQLite database.

    Each session gets its own connection, so concurrent tasks really compete
    for the database write lock.
    """
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'tripflow.db'}", in_memory_pool=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@dataclass
class Catalog:
    """Rows a booking needs: package, departure, customer and recipients."""

    package: TravelPackage
    departure: Departure
    customer: Customer
    agent: Agent | None = None
    salesperson: Salesperson | None = None
    voucher: Voucher | None = None


@pytest.fixture
def seed_catalog():
    """Factory seeding a package with one departure and one customer."""

    async def _seed(
        session: AsyncSession,
        capacity: int = 10,
        price_double: int = 500_000,
        agent_rate: float | None = None,
        with_agent: bool = False,
        with_salesperson: bool = False,
        salesperson_rate: float | None = None,
        voucher_kind: VoucherKind | None = None,
        voucher_value: int = 10,
        voucher_max_discount: int | None = None,
        voucher_quota: int | None = None,
        price_override: dict | None = None,
    ) -> Catalog:
        package = TravelPackage(
            code="PKG-UMR01",
            name="Umrah Plus Turkey",
            business_type="UMROH",
            price_quad=300_000,
            price_triple=400_000,
            price_double=price_double,
            price_single=None,
        )
        session.add(package)
        await session.flush()

        departure = Departure(
            package_id=package.id,
            departure_date=datetime(2026, 12, 5, 8, 0),
            return_date=datetime(2026, 12, 17, 20, 0),
            capacity_total=capacity,
            capacity_available=capacity,
            status=derive_departure_status(capacity, capacity, 5),
            price_override=price_override,
        )
        customer = Customer(code="CUST-0001", full_name="Siti Rahma", gender="F")
        session.add_all([departure, customer])

        catalog = Catalog(package=package, departure=departure, customer=customer)
        if with_agent:
            catalog.agent = Agent(code="AGT-01", name="Berkah Travel", commission_rate=agent_rate)
            session.add(catalog.agent)
        if with_salesperson:
            catalog.salesperson = Salesperson(code="EMP-01", name="Andi", commission_rate=salesperson_rate)
            session.add(catalog.salesperson)
        if voucher_kind is not None:
            catalog.voucher = Voucher(
                code="HEMAT10",
                kind=voucher_kind,
                value=voucher_value,
                max_discount=voucher_max_discount,
                quota=voucher_quota,
            )
            session.add(catalog.voucher)

        await session.commit()
        return catalog

    return _seed


@pytest.fixture
def add_customer():
    """Factory adding one more customer."""

    async def _add(session: AsyncSession, name: str) -> Customer:
        customer = Customer(code=f"CUST-{name.upper()[:8]}", full_name=name)
        session.add(customer)
        await session.commit()
        return customer

    return _add


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError

    from tripflow.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
        request_validation_handler,
    )
    from tripflow.routers import booking, customer, departure, health, metrics, package, payment, rooming

    # Create a simplified test app without lifespan
    app = FastAPI(title="Tripflow Booking API (Test)", version="1.0.0-test")

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    for module in (health, package, departure, customer, booking, payment, rooming, metrics):
        app.include_router(module.router)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_package_data():
    """Sample package data for testing."""
    return {
        "code": "PKG-HALAL1",
        "name": "Halal Tour Japan",
        "business_type": "TOUR",
        "price_quad": 18_000_000,
        "price_triple": 19_500_000,
        "price_double": 21_000_000,
        "price_single": None,
    }


@pytest.fixture
def departure_dates():
    start = datetime(2026, 11, 1, 7, 30)
    return start, start + timedelta(days=9)


@pytest.fixture
def make_booking():
    """Factory creating a PENDING booking through the orchestrator."""
    from tripflow.models import RoomType
    from tripflow.schemas.booking import CreateBookingRequest
    from tripflow.services.booking_orchestrator import BookingOrchestrator

    async def _make(
        session: AsyncSession,
        catalog: Catalog,
        pax: int = 2,
        room_type: RoomType = RoomType.DOUBLE,
        customer: Customer | None = None,
        cumulative_effects: bool | None = None,
        **extra,
    ):
        request = CreateBookingRequest(
            customer_id=(customer or catalog.customer).id,
            package_id=catalog.package.id,
            departure_id=catalog.departure.id,
            room_type=room_type,
            pax=pax,
            **extra,
        )
        return await BookingOrchestrator(session, cumulative_effects=cumulative_effects).create_booking(request)

    return _make
