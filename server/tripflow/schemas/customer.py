"""Customer Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from ..models.party import CustomerTier


class CreateCustomerRequest(BaseModel):
    """Request schema for creating a customer."""

    full_name: str = Field(..., min_length=1, max_length=255, description="Customer full name")
    phone: str | None = Field(None, max_length=32, description="Phone number")
    email: str | None = Field(None, max_length=255, description="Email address")
    gender: str | None = Field(None, max_length=16, description="Gender, used for rooming")


class GetCustomerRequest(BaseModel):
    """Request schema for getting a customer."""

    customer_id: UUID = Field(..., description="Customer to retrieve")


class Customer(BaseModel):
    """Customer response schema."""

    id: str = Field(..., description="Unique customer ID")
    code: str = Field(..., description="Customer code")
    full_name: str = Field(..., description="Customer full name")
    phone: str | None = None
    email: str | None = None
    gender: str | None = None
    tier: CustomerTier = Field(..., description="Tier derived from booking history")
