"""Merge billed invoices and manual customer records into customer profiles.

The merged view is rebuilt from scratch on every call; nothing here keeps
state between calls. Invoices are folded in first and create invoice-only
profiles keyed by the identity strategy. Manual records are then laid over
the top: a record whose key matches an invoice profile enriches it, anything
else becomes a standalone profile with zero balances.
"""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from luxeledger.schemas.billing import Invoice, InvoiceStatus
from luxeledger.schemas.customer import CustomerProfile, ManualCustomerRecord
from luxeledger.services.identity import IdentityStrategy, NameIdentity, display_name
from luxeledger.services.money import ZERO, round_money

logger = logging.getLogger(__name__)

INVOICE_CUSTOMER_PREFIX = "inv-cust-"

_MANUAL_FIELDS = ("email", "city", "state", "pincode", "gst_number", "notes", "credit_limit")


def _normalize_dt(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _sort_key(profile: CustomerProfile) -> tuple:
    decomposed = unicodedata.normalize("NFKD", profile.full_name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (stripped.casefold(), profile.full_name, profile.id)


@dataclass
class _Entry:
    id: str
    full_name: str
    mobile_number: str = ""
    address: str = ""
    is_manual: bool = False
    created_at: Optional[datetime] = None
    total_purchases: Decimal = ZERO
    total_paid: Decimal = ZERO
    outstanding_balance: Decimal = ZERO
    last_purchase_date: Optional[datetime] = None
    invoices: List[Invoice] = field(default_factory=list)
    manual: Dict[str, object] = field(default_factory=dict)

    def add_invoice(self, invoice: Invoice) -> None:
        self.invoices.append(invoice)
        self.total_purchases += invoice.net_amount
        if invoice.status is InvoiceStatus.PAID:
            self.total_paid += invoice.net_amount
        elif invoice.status is InvoiceStatus.PENDING:
            self.outstanding_balance += invoice.net_amount

        if invoice.created_at is not None:
            created = _normalize_dt(invoice.created_at)
            if self.last_purchase_date is None or created > self.last_purchase_date:
                self.last_purchase_date = created
            if self.created_at is None or created < self.created_at:
                self.created_at = created

    def overlay(self, record: ManualCustomerRecord) -> None:
        self.id = record.id
        self.full_name = record.full_name
        self.is_manual = True
        self.created_at = record.created_at
        self.mobile_number = record.mobile_number or self.mobile_number
        self.address = record.address or self.address
        self.manual = {name: getattr(record, name) for name in _MANUAL_FIELDS}

    def to_profile(self) -> CustomerProfile:
        return CustomerProfile(
            id=self.id,
            full_name=self.full_name,
            mobile_number=self.mobile_number,
            address=self.address,
            is_manual=self.is_manual,
            created_at=self.created_at,
            total_purchases=round_money(self.total_purchases),
            total_paid=round_money(self.total_paid),
            outstanding_balance=round_money(self.outstanding_balance),
            last_purchase_date=self.last_purchase_date,
            invoices=list(self.invoices),
            **self.manual,
        )


def merge_customers(
    invoices: Iterable[Invoice],
    records: Iterable[ManualCustomerRecord],
    identity: IdentityStrategy | None = None,
) -> List[CustomerProfile]:
    identity = identity or NameIdentity()
    entries: Dict[str, _Entry] = {}

    invoice_count = 0
    for invoice in invoices:
        key = identity.invoice_key(invoice)
        entry = entries.get(key)
        if entry is None:
            # contact details come from the first invoice seen for the key only
            entry = _Entry(
                id=f"{INVOICE_CUSTOMER_PREFIX}{key}",
                full_name=display_name(invoice.customer_name),
                mobile_number=(invoice.mobile_number or "").strip(),
                address=(invoice.address or "").strip(),
            )
            entries[key] = entry
        entry.add_invoice(invoice)
        invoice_count += 1

    record_count = 0
    for record in records:
        key = identity.record_key(record)
        entry = entries.get(key)
        if entry is None:
            entry = _Entry(id=record.id, full_name=record.full_name)
            entries[key] = entry
        entry.overlay(record)
        record_count += 1

    profiles = sorted((entry.to_profile() for entry in entries.values()), key=_sort_key)
    logger.debug(
        "Merged %d invoice(s) and %d manual record(s) into %d customer(s) using %s identity",
        invoice_count,
        record_count,
        len(profiles),
        identity.name,
    )
    return profiles


def find_profile(profiles: Iterable[CustomerProfile], customer_id: str) -> Optional[CustomerProfile]:
    for profile in profiles:
        if profile.id == customer_id:
            return profile
    return None
