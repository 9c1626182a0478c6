"""Package router for catalog operations."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.package import CreatePackageRequest, GetPackageRequest, Package
from ..services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/package", tags=["package"])


def _convert_package_to_schema(package_model) -> Package:
    return Package(
        id=str(package_model.id),
        code=package_model.code,
        name=package_model.name,
        business_type=package_model.business_type,
        price_quad=package_model.price_quad,
        price_triple=package_model.price_triple,
        price_double=package_model.price_double,
        price_single=package_model.price_single,
    )


@router.post("/create", response_model=Package)
async def create_package(
    request: CreatePackageRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    """
    Create a new travel package.

    This operation is idempotent based on the package code: repeating an
    identical request returns the existing package.
    """
    package_service = PackageService(db)

    existing = await package_service.get_package_by_code(request.code)
    if existing and _convert_package_to_schema(existing).model_dump(exclude={"id"}) == request.model_dump():
        logger.info(
            "Package creation - returning existing package (idempotent)",
            extra={"package_id": str(existing.id), "code": request.code}
        )
        return JSONResponse(status_code=200, content=_convert_package_to_schema(existing).model_dump(mode="json"))

    package = await package_service.create_package(request)
    return JSONResponse(status_code=200, content=_convert_package_to_schema(package).model_dump(mode="json"))


@router.post("/get", response_model=Package)
async def get_package(
    request: GetPackageRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    package_service = PackageService(db)
    package = await package_service.get_package_by_id_or_raise(request.package_id)
    return JSONResponse(status_code=200, content=_convert_package_to_schema(package).model_dump(mode="json"))
