#!/usr/bin/env python3
"""Setup script for the Tripflow booking API."""

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from tripflow.core.database import async_session_factory, close_db
from tripflow.models import Agent, Customer, Departure, Salesperson, TravelPackage, Voucher, VoucherKind
from tripflow.services.capacity_ledger import derive_departure_status
from tripflow.services.codes import generate_code

server_dir = Path(__file__).parent.parent / "server"

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Bring the database schema up to date."""
    logger.info("Setting up database...")

    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a sample package with departures, customers and commission recipients."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing_packages = await db.scalar(select(func.count(TravelPackage.id)))
            if existing_packages > 0:
                logger.info("Sample data already exists, skipping...")
                return

            package = TravelPackage(
                code="UMR-12D-IST",
                name="Umrah Plus Istanbul 12 Days",
                business_type="UMROH",
                price_quad=32_500_000,
                price_triple=34_000_000,
                price_double=36_500_000,
                price_single=42_000_000,
            )
            db.add(package)
            await db.flush()

            base_date = datetime.utcnow().replace(hour=8, minute=0, second=0, microsecond=0) + timedelta(days=45)
            for i in range(3):
                departure_date = base_date + timedelta(days=i * 14)
                db.add(
                    Departure(
                        package_id=package.id,
                        departure_date=departure_date,
                        return_date=departure_date + timedelta(days=11),
                        capacity_total=45,
                        capacity_available=45,
                        status=derive_departure_status(45, 45, 5),
                    )
                )

            for name, gender in [("Siti Aminah", "F"), ("Muhammad Rizki", "M"), ("Dewi Lestari", "F")]:
                db.add(Customer(code=generate_code("CUST"), full_name=name, gender=gender))

            db.add(Agent(code="AGT-BERKAH", name="Berkah Wisata", commission_rate=3.0))
            db.add(Salesperson(code="EMP-001", name="Andi Saputra"))
            db.add(
                Voucher(
                    code="EARLYBIRD",
                    kind=VoucherKind.PERCENTAGE,
                    value=5,
                    max_discount=2_000_000,
                    quota=50,
                )
            )

            await db.commit()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def seed():
    try:
        await create_sample_data()
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting Tripflow booking API setup...")

    # Migrations run their own event loop
    setup_database()

    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: uvicorn tripflow.main:app --reload")


if __name__ == "__main__":
    main()
