from fastapi import APIRouter, Depends

from luxeledger.api.errors import to_http_exception
from luxeledger.dependencies.services import get_invoice_service
from luxeledger.schemas.billing import (
    Invoice,
    InvoiceListResponse,
    InvoiceQuoteRequest,
    InvoiceRequest,
    InvoiceTotals,
)
from luxeledger.services import InvoiceService
from luxeledger.services.exceptions import ServiceError

router = APIRouter()


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(service: InvoiceService = Depends(get_invoice_service)):
    try:
        return await service.list_response()
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=Invoice, status_code=201)
async def create_invoice(
    req: InvoiceRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/quote", response_model=InvoiceTotals)
def quote_invoice(
    req: InvoiceQuoteRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return service.quote(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
