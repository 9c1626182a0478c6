"""Customer router for CRM operations."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.customer import CreateCustomerRequest, Customer, GetCustomerRequest
from ..services.customer_service import CustomerService

router = APIRouter(prefix="/v1/customer", tags=["customer"])


def _convert_customer_to_schema(customer_model) -> Customer:
    return Customer(
        id=str(customer_model.id),
        code=customer_model.code,
        full_name=customer_model.full_name,
        phone=customer_model.phone,
        email=customer_model.email,
        gender=customer_model.gender,
        tier=customer_model.tier,
    )


@router.post("/create", response_model=Customer)
async def create_customer(
    request: CreateCustomerRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    customer_service = CustomerService(db)
    customer = await customer_service.create_customer(
        full_name=request.full_name,
        phone=request.phone,
        email=request.email,
        gender=request.gender,
    )
    return JSONResponse(status_code=200, content=_convert_customer_to_schema(customer).model_dump(mode="json"))


@router.post("/get", response_model=Customer)
async def get_customer(
    request: GetCustomerRequest,
    db: AsyncSession = Depends(get_db)
) -> JSONResponse:
    customer_service = CustomerService(db)
    customer = await customer_service.get_customer_by_id_or_raise(request.customer_id)
    return JSONResponse(status_code=200, content=_convert_customer_to_schema(customer).model_dump(mode="json"))
