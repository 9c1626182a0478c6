"""Travel package service for catalog operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.package import TravelPackage
from ..schemas.package import CreatePackageRequest

logger = logging.getLogger(__name__)


class PackageService:
    """Service for travel package operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _conflict(self, package: TravelPackage) -> ConflictError:
        return ConflictError(
            detail=f"Package with code '{package.code}' already exists",
            conflicting_resource={"id": str(package.id), "code": package.code, "name": package.name},
        )

    async def create_package(self, request: CreatePackageRequest) -> TravelPackage:
        """
        Create a new travel package.

        Args:
            request: Package creation request

        Returns:
            Created package entity

        Raises:
            ConflictError: If a package with the same code already exists
        """
        existing = await self.get_package_by_code(request.code)
        if existing:
            logger.warning(
                "Package creation failed - code already exists",
                extra={"code": request.code, "existing_package_id": str(existing.id)}
            )
            raise self._conflict(existing)

        package = TravelPackage(
            code=request.code,
            name=request.name,
            business_type=request.business_type,
            price_quad=request.price_quad,
            price_triple=request.price_triple,
            price_double=request.price_double,
            price_single=request.price_single,
        )

        try:
            self.db.add(package)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Package creation failed due to integrity constraint",
                extra={"code": request.code, "error": str(e)}
            )
            existing = await self.get_package_by_code(request.code)
            if existing:
                raise self._conflict(existing) from e
            raise ConflictError(detail="Package creation failed due to constraint violation") from e

        logger.info(
            "Package created successfully",
            extra={"package_id": str(package.id), "code": package.code, "name": package.name}
        )
        return package

    async def get_package_by_id(self, package_id: UUID) -> Optional[TravelPackage]:
        return await self.db.get(TravelPackage, package_id)

    async def get_package_by_code(self, code: str) -> Optional[TravelPackage]:
        stmt = select(TravelPackage).where(TravelPackage.code == code)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_package_by_id_or_raise(self, package_id: UUID) -> TravelPackage:
        """
        Get package by ID or raise NotFoundError.

        Raises:
            NotFoundError: If package not found
        """
        package = await self.get_package_by_id(package_id)
        if not package:
            logger.warning("Package not found", extra={"package_id": str(package_id)})
            raise NotFoundError(resource_type="package", resource_id=str(package_id))
        return package
