from fastapi import APIRouter, Depends

from luxeledger.api.errors import to_http_exception
from luxeledger.dependencies.services import get_customer_service
from luxeledger.schemas.customer import (
    CustomerDeleteResponse,
    CustomerFields,
    CustomerFilter,
    CustomerListResponse,
    CustomerProfile,
    CustomerUpdate,
    UpdateResult,
)
from luxeledger.services import CustomerService
from luxeledger.services.exceptions import ServiceError

router = APIRouter()


@router.get("", response_model=CustomerListResponse)
async def list_customers(service: CustomerService = Depends(get_customer_service)):
    try:
        customers = await service.get_customers()
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return CustomerListResponse(total=len(customers), items=customers)


@router.get("/search", response_model=CustomerListResponse)
async def search_customers(
    q: str = "",
    criteria: CustomerFilter = CustomerFilter.ALL,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        customers = await service.search_customers(q, criteria)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return CustomerListResponse(total=len(customers), items=customers)


@router.get("/{customer_id:path}", response_model=CustomerProfile)
async def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        return await service.get_customer(customer_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=CustomerProfile, status_code=201)
async def add_customer(
    req: CustomerFields,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        return await service.add_customer(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{customer_id:path}", response_model=UpdateResult)
async def update_customer(
    customer_id: str,
    req: CustomerFields,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        return await service.update_customer(CustomerUpdate(id=customer_id, **req.model_dump()))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{customer_id:path}", response_model=CustomerDeleteResponse)
async def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        return await service.delete_customer(customer_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
