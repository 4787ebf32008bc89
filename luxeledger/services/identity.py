"""Strategies that decide which invoices and manual records are the same customer.

The only key the billing service gives us is the free-text customer name, so
two different people sharing a name are merged and one person recorded with a
typo is split. :class:`NameMobileIdentity` narrows the first problem when
mobile numbers are captured consistently.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol

from luxeledger.schemas.billing import Invoice
from luxeledger.schemas.customer import CustomerFields

UNKNOWN_CUSTOMER = "Unknown Customer"

_NON_DIGITS = re.compile(r"\D+")


def display_name(name: Optional[str]) -> str:
    return (name or "").strip() or UNKNOWN_CUSTOMER


def normalize_name(name: Optional[str]) -> str:
    return display_name(name).casefold()


class IdentityStrategy(Protocol):
    name: str

    def invoice_key(self, invoice: Invoice) -> str:
        ...

    def record_key(self, record: CustomerFields) -> str:
        ...


class NameIdentity:
    name = "name"

    def invoice_key(self, invoice: Invoice) -> str:
        return normalize_name(invoice.customer_name)

    def record_key(self, record: CustomerFields) -> str:
        return normalize_name(record.full_name)


class NameMobileIdentity:
    name = "name_mobile"

    @staticmethod
    def _key(name: Optional[str], mobile: Optional[str]) -> str:
        digits = _NON_DIGITS.sub("", mobile or "")
        base = normalize_name(name)
        return f"{base}|{digits}" if digits else base

    def invoice_key(self, invoice: Invoice) -> str:
        return self._key(invoice.customer_name, invoice.mobile_number)

    def record_key(self, record: CustomerFields) -> str:
        return self._key(record.full_name, record.mobile_number)


_STRATEGIES = {
    NameIdentity.name: NameIdentity,
    NameMobileIdentity.name: NameMobileIdentity,
}


def get_identity_strategy(name: str) -> IdentityStrategy:
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown identity strategy {name!r}") from None
