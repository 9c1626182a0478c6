"""Travel package Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class CreatePackageRequest(BaseModel):
    """Request schema for creating a travel package."""

    code: str = Field(..., min_length=1, max_length=32, pattern=r"^[A-Z0-9-]+$", description="Package code")
    name: str = Field(..., min_length=1, max_length=255, description="Package name")
    business_type: str = Field("TOUR", max_length=32, description="Line of business (UMROH, HAJJ, TOUR, ...)")
    price_quad: int = Field(..., ge=0, description="Per-person price in a quad room (minor units)")
    price_triple: int = Field(..., ge=0, description="Per-person price in a triple room (minor units)")
    price_double: int = Field(..., ge=0, description="Per-person price in a double/twin room (minor units)")
    price_single: int | None = Field(None, ge=0, description="Per-person price in a single room (minor units)")


class GetPackageRequest(BaseModel):
    """Request schema for getting a travel package."""

    package_id: UUID = Field(..., description="Package to retrieve")


class Package(BaseModel):
    """Travel package response schema."""

    id: str = Field(..., description="Unique package ID")
    code: str = Field(..., description="Package code")
    name: str = Field(..., description="Package name")
    business_type: str = Field(..., description="Line of business")
    price_quad: int = Field(..., description="Per-person quad price")
    price_triple: int = Field(..., description="Per-person triple price")
    price_double: int = Field(..., description="Per-person double/twin price")
    price_single: int | None = Field(None, description="Per-person single price")
