from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from luxeledger.schemas.billing import (
    Invoice,
    InvoiceLineItem,
    InvoiceRequest,
    InvoiceStatus,
    MetalType,
)
from luxeledger.services.calculator import compute_invoice_totals
from luxeledger.services.customer_store import InMemoryCustomerBackend


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class InvoiceRepository(_BaseRepository):
    """Stands in for the remote billing service when mock mode is enabled."""

    def __init__(self, *, seed: bool = True) -> None:
        super().__init__("INV")
        self._invoices: Dict[str, Invoice] = {}
        if seed:
            self._seed_defaults()

    def _seed_defaults(self) -> None:
        base_time = _utc_now().replace(hour=11, minute=0, second=0, microsecond=0)
        ring = InvoiceLineItem(
            description="22K bridal ring",
            metal_type=MetalType.GOLD_22K,
            weight_grams="10",
            rate_per_gram="6000",
            making_charge_percent="10",
            gst_percent="3",
        )
        anklet = InvoiceLineItem(
            description="Silver anklet pair",
            metal_type=MetalType.SILVER,
            weight_grams="42.5",
            rate_per_gram="78.40",
            making_charge_percent="12",
            gst_percent="3",
        )
        chain = InvoiceLineItem(
            description="18K chain",
            metal_type=MetalType.GOLD_18K,
            weight_grams="8.215",
            rate_per_gram="4925.50",
            making_charge_percent="8.5",
            gst_percent="3",
        )
        seeds = [
            ("Ravi Shah", "9820012345", "12 MG Road, Pune", [ring], InvoiceStatus.PAID, 20),
            ("Ravi Shah", "9820012345", None, [anklet], InvoiceStatus.PENDING, 6),
            ("Asha Rao", "9845098450", "4 Residency Road, Bengaluru", [chain, anklet], InvoiceStatus.PENDING, 3),
            ("Meera Iyer", None, None, [chain], InvoiceStatus.DRAFT, 1),
        ]
        for name, mobile, address, items, status, days_ago in seeds:
            self._issue(
                InvoiceRequest(
                    customer_name=name,
                    mobile_number=mobile,
                    address=address,
                    items=items,
                    metal_type=items[0].metal_type,
                    status=status,
                ),
                created_at=base_time - timedelta(days=days_ago),
            )

    def _issue(self, request: InvoiceRequest, *, created_at: Optional[datetime] = None) -> Invoice:
        totals = compute_invoice_totals(request.items, request.discount)
        invoice = Invoice(
            invoice_id=self._next_id(),
            customer_name=request.customer_name,
            mobile_number=request.mobile_number,
            address=request.address,
            items=list(request.items),
            metal_type=request.metal_type,
            status=request.status,
            created_at=created_at or _utc_now(),
            gross_amount=totals.gross_amount,
            discount=totals.discount,
            net_amount=totals.net_amount,
            payment_method=request.payment_method,
        )
        self._invoices[invoice.invoice_id] = invoice
        return invoice

    def add(self, invoice: Invoice) -> Invoice:
        self._invoices[invoice.invoice_id] = invoice
        return invoice

    async def create(self, request: InvoiceRequest) -> Invoice:
        return self._issue(request)

    async def list(self) -> List[Invoice]:
        return list(self._invoices.values())

    async def get(self, invoice_id: str) -> Optional[Invoice]:
        return self._invoices.get(invoice_id)


@dataclass
class MockDataStore:
    invoices: InvoiceRepository
    customers: InMemoryCustomerBackend


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        _mock_store = MockDataStore(
            invoices=InvoiceRepository(),
            customers=InMemoryCustomerBackend(),
        )
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
