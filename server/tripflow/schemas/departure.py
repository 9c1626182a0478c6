"""Departure-related Pydantic schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ..models.departure import DepartureStatus
from .common import PaginatedResponse


class PriceOverride(BaseModel):
    """Per-departure prices replacing the package prices."""

    price_quad: int | None = Field(None, ge=0)
    price_triple: int | None = Field(None, ge=0)
    price_double: int | None = Field(None, ge=0)
    price_single: int | None = Field(None, ge=0)


class CreateDepartureRequest(BaseModel):
    """Request schema for creating a departure."""

    package_id: UUID = Field(..., description="Associated package ID")
    departure_date: datetime = Field(..., description="Departure time (ISO 8601)")
    return_date: datetime | None = Field(None, description="Return time (ISO 8601)")
    capacity_total: int = Field(..., ge=1, le=1000, description="Total seats")
    price_override: PriceOverride | None = Field(None, description="Optional price override")

    @model_validator(mode="after")
    def check_dates(self) -> "CreateDepartureRequest":
        if self.return_date and self.return_date < self.departure_date:
            raise ValueError("return_date must not be before departure_date")
        return self


class GetDepartureRequest(BaseModel):
    """Request schema for getting a departure."""

    departure_id: UUID = Field(..., description="Departure to retrieve")


class SearchDeparturesRequest(BaseModel):
    """Request schema for searching departures."""

    package_id: UUID | None = Field(None, description="Filter by package ID")
    date_from: date | None = Field(None, description="Start date filter")
    date_to: date | None = Field(None, description="End date filter")
    available_only: bool = Field(False, description="Only show departures with free seats")
    cursor: str | None = Field(None, description="Pagination cursor")
    limit: int = Field(20, ge=1, le=100, description="Results per page")


class Departure(BaseModel):
    """Departure response schema."""

    id: str = Field(..., description="Unique departure ID")
    package_id: str = Field(..., description="Associated package ID")
    departure_date: datetime = Field(..., description="Departure time (ISO 8601)")
    return_date: datetime | None = Field(None, description="Return time (ISO 8601)")
    capacity_total: int = Field(..., ge=0, description="Total seats")
    capacity_available: int = Field(..., ge=0, description="Free seats")
    status: DepartureStatus = Field(..., description="Availability band")
    price_override: dict | None = Field(None, description="Price override")


class SearchDeparturesResponse(PaginatedResponse):
    """Response schema for departure search."""

    items: list[Departure] = Field(..., description="Found departures")
