from __future__ import annotations

import logging
import math
from typing import List, Optional, Protocol

from luxeledger.schemas.billing import Invoice
from luxeledger.schemas.customer import (
    CustomerDeleteResponse,
    CustomerFields,
    CustomerFilter,
    CustomerProfile,
    CustomerUpdate,
    ManualCustomerRecord,
    UpdateOutcome,
    UpdateResult,
)
from luxeledger.services.customer_store import ManualCustomerStore
from luxeledger.services.exceptions import (
    CustomerNotFoundError,
    DuplicateNameError,
    HasDependentInvoicesError,
)
from luxeledger.services.identity import IdentityStrategy, NameIdentity
from luxeledger.services.reconciliation import find_profile, merge_customers

logger = logging.getLogger(__name__)

TOP_CUSTOMERS_MIN = 5
TOP_CUSTOMERS_SHARE = 0.2


class InvoiceSource(Protocol):
    async def list(self) -> List[Invoice]:
        ...


class CustomerService:
    """Customer directory built from billed invoices and manual records.

    Reads always merge the current invoices with the current manual records.
    Writes only touch the manual store. Invoices are fetched before the store's
    writer lock is taken, so a failing billing service aborts the call before
    anything is checked or written.
    """

    def __init__(
        self,
        invoices: InvoiceSource,
        store: ManualCustomerStore,
        *,
        identity: IdentityStrategy | None = None,
    ) -> None:
        self._invoices = invoices
        self._store = store
        self._identity = identity or NameIdentity()

    def _merge(self, invoices: List[Invoice], records: List[ManualCustomerRecord]) -> List[CustomerProfile]:
        return merge_customers(invoices, records, self._identity)

    def _find_collision(
        self, records: List[ManualCustomerRecord], fields: CustomerFields, *, exclude_id: Optional[str] = None
    ) -> Optional[ManualCustomerRecord]:
        key = self._identity.record_key(fields)
        for record in records:
            if record.id != exclude_id and self._identity.record_key(record) == key:
                return record
        return None

    def _merged_profile(self, invoices: List[Invoice], customer_id: str) -> CustomerProfile:
        profile = find_profile(self._merge(invoices, self._store.snapshot()), customer_id)
        if profile is None:  # pragma: no cover - the record was just written
            raise CustomerNotFoundError(customer_id)
        return profile

    async def get_customers(self) -> List[CustomerProfile]:
        invoices = await self._invoices.list()
        return self._merge(invoices, self._store.snapshot())

    async def get_customer(self, customer_id: str) -> CustomerProfile:
        profile = find_profile(await self.get_customers(), customer_id)
        if profile is None:
            raise CustomerNotFoundError(customer_id)
        return profile

    async def search_customers(
        self, query: str = "", criteria: CustomerFilter = CustomerFilter.ALL
    ) -> List[CustomerProfile]:
        result = await self.get_customers()

        needle = query.strip().casefold()
        if needle:
            result = [
                profile
                for profile in result
                if needle in profile.full_name.casefold()
                or needle in profile.mobile_number
                or needle in profile.gst_number.casefold()
            ]

        if criteria is CustomerFilter.OUTSTANDING:
            result = [profile for profile in result if profile.outstanding_balance > 0]
        elif criteria is CustomerFilter.TOP:
            limit = max(TOP_CUSTOMERS_MIN, math.floor(len(result) * TOP_CUSTOMERS_SHARE))
            result = sorted(result, key=lambda profile: profile.total_purchases, reverse=True)[:limit]
        return result

    async def add_customer(self, fields: CustomerFields) -> CustomerProfile:
        invoices = await self._invoices.list()
        with self._store.writer() as writer:
            if self._find_collision(writer.records, fields) is not None:
                logger.warning("Rejected duplicate customer %s", fields.full_name)
                raise DuplicateNameError(fields.full_name)
            record = ManualCustomerRecord(
                id=self._store.new_id(),
                created_at=self._store.now(),
                **fields.model_dump(),
            )
            writer.append(record)
        logger.info("Added customer %s (%s)", record.full_name, record.id)
        return self._merged_profile(invoices, record.id)

    async def update_customer(self, update: CustomerUpdate) -> UpdateResult:
        invoices = await self._invoices.list()
        fields = CustomerFields.model_validate(update.model_dump(exclude={"id"}))

        with self._store.writer() as writer:
            records = writer.records
            existing = next((record for record in records if record.id == update.id), None)

            if existing is not None:
                if self._find_collision(records, fields, exclude_id=existing.id) is not None:
                    logger.warning("Rejected rename of %s to %s", existing.id, fields.full_name)
                    raise DuplicateNameError(fields.full_name)
                record = ManualCustomerRecord(
                    id=existing.id,
                    created_at=existing.created_at,
                    **fields.model_dump(),
                )
                writer.replace(record)
                outcome = UpdateOutcome.UPDATED
            else:
                profile = find_profile(self._merge(invoices, records), update.id)
                if profile is None:
                    raise CustomerNotFoundError(update.id)
                fields = self._carry_identity(profile, fields)
                if self._find_collision(records, fields) is not None:
                    raise DuplicateNameError(fields.full_name)
                record = ManualCustomerRecord(
                    id=self._store.new_id(),
                    created_at=self._store.now(),
                    **fields.model_dump(),
                )
                writer.append(record)
                outcome = UpdateOutcome.PROMOTED

        logger.info("Customer %s %s as %s", update.id, outcome.value, record.id)
        return UpdateResult(outcome=outcome, customer=self._merged_profile(invoices, record.id))

    def _carry_identity(self, profile: CustomerProfile, fields: CustomerFields) -> CustomerFields:
        # A promoted record must keep matching the invoices it came from.
        profile_key = self._identity.record_key(profile)
        if self._identity.record_key(fields) == profile_key:
            return fields
        logger.warning(
            "Keeping billed identity %r for promoted customer (submitted %r)",
            profile.full_name,
            fields.full_name,
        )
        carried = fields.model_copy(update={"full_name": profile.full_name})
        if self._identity.record_key(carried) != profile_key:
            carried = carried.model_copy(update={"mobile_number": profile.mobile_number})
        return carried

    async def delete_customer(self, customer_id: str) -> CustomerDeleteResponse:
        invoices = await self._invoices.list()
        with self._store.writer() as writer:
            profile = find_profile(self._merge(invoices, writer.records), customer_id)
            if profile is None:
                raise CustomerNotFoundError(customer_id)
            if profile.invoices:
                logger.warning(
                    "Refused to delete %s: %d invoice(s) attached", profile.full_name, len(profile.invoices)
                )
                raise HasDependentInvoicesError(profile.full_name, len(profile.invoices))
            deleted = writer.remove(customer_id)
        logger.info("Deleted customer %s", customer_id)
        return CustomerDeleteResponse(customer_id=customer_id, deleted=deleted)
