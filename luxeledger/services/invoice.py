from __future__ import annotations

import logging
from typing import Any, List

from pydantic import ValidationError as SchemaValidationError

from luxeledger.clients.billing import BillingServiceClient
from luxeledger.schemas.billing import (
    Invoice,
    InvoiceListResponse,
    InvoiceQuoteRequest,
    InvoiceRequest,
    InvoiceTotals,
)
from luxeledger.services.calculator import compute_invoice_totals
from luxeledger.services.exceptions import DownstreamServiceError, ServiceError
from luxeledger.services.mock_store import InvoiceRepository, get_mock_store

logger = logging.getLogger(__name__)

INVOICES_PATH = "/api/invoices"
RECENT_INVOICES_PATH = "/api/invoices/recent"


def _parse_invoices(data: Any) -> List[Invoice]:
    if isinstance(data, dict):
        data = data.get("items", data.get("invoices"))
    if not isinstance(data, list):
        raise DownstreamServiceError("Billing service returned an unexpected invoice payload")
    try:
        return [Invoice.model_validate(item) for item in data]
    except SchemaValidationError as exc:
        raise DownstreamServiceError("Billing service returned a malformed invoice", cause=exc) from exc


class InvoiceService:
    """Read side of the billing service plus the invoice calculator."""

    def __init__(
        self,
        client: BillingServiceClient,
        *,
        repository: InvoiceRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().invoices

    async def list(self) -> List[Invoice]:
        """Return every invoice visible to this caller.

        Errors from the billing service are raised unchanged; no partial list
        is ever returned.
        """

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock invoice repository not configured")
            return await self._repository.list()

        try:
            data = await self._client.get(RECENT_INVOICES_PATH)
            invoices = _parse_invoices(data)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing invoices")
            raise ServiceError("Failed to list invoices", cause=exc)
        logger.info("Fetched %d invoice(s) from billing service", len(invoices))
        return invoices

    async def list_response(self) -> InvoiceListResponse:
        invoices = await self.list()
        return InvoiceListResponse(total=len(invoices), items=invoices)

    def quote(self, request: InvoiceQuoteRequest) -> InvoiceTotals:
        return compute_invoice_totals(request.items, request.discount)

    async def create(self, request: InvoiceRequest) -> Invoice:
        logger.info("Creating invoice for %s", request.customer_name)
        totals = compute_invoice_totals(request.items, request.discount)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock invoice repository not configured")
            return await self._repository.create(request)

        try:
            payload = {
                "customer": request.customer_name,
                "mobilenumber": request.mobile_number,
                "address": request.address,
                "items": [
                    {
                        "description": item.description,
                        "type": item.metal_type.value,
                        "weight": float(item.weight_grams),
                        "rate": float(item.rate_per_gram),
                        "makingChargePercent": float(item.making_charge_percent),
                        "gstRatePercent": float(item.gst_percent),
                    }
                    for item in request.items
                ],
                "type": request.metal_type.value,
                "amount": float(totals.net_amount),
                "status": request.status.value,
                "grossAmount": float(totals.gross_amount),
                "netAmount": float(totals.net_amount),
                "discount": float(totals.discount),
                "makingCharge": float(sum(line.making_charge_amount for line in totals.lines)),
                "gstRate": float(request.items[0].gst_percent) if request.items else 0.0,
                "paymentMethod": request.payment_method,
            }
            data = await self._client.post(INVOICES_PATH, payload)
            return Invoice.model_validate(data)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating invoice")
            raise ServiceError("Failed to create invoice", cause=exc)
