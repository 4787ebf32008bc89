from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends

from luxeledger.clients.billing import BillingServiceClient
from luxeledger.config import Settings, get_settings
from luxeledger.services import CustomerService, InvoiceService
from luxeledger.services.customer_store import (
    CustomerStoreBackend,
    JsonFileCustomerBackend,
    ManualCustomerStore,
)
from luxeledger.services.identity import get_identity_strategy
from luxeledger.services.mock_store import get_mock_store

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_billing_client_cached() -> BillingServiceClient:
    settings = get_settings()
    return BillingServiceClient(
        settings.billing_service_base_url,
        timeout=settings.billing_service_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.billing_service_token,
    )


@lru_cache(maxsize=1)
def get_customer_store_cached() -> ManualCustomerStore:
    settings = get_settings()
    backend: CustomerStoreBackend
    if settings.customer_store_path is not None:
        logger.info("Persisting manual customers to %s", settings.customer_store_path)
        backend = JsonFileCustomerBackend(settings.customer_store_path)
    else:
        backend = get_mock_store().customers
    return ManualCustomerStore(backend)


def get_billing_client(settings: Settings = Depends(get_settings)) -> BillingServiceClient:
    return get_billing_client_cached()


def get_customer_store() -> ManualCustomerStore:
    return get_customer_store_cached()


def get_invoice_service(
    client: BillingServiceClient = Depends(get_billing_client),
) -> InvoiceService:
    return InvoiceService(client)


def get_customer_service(
    invoices: InvoiceService = Depends(get_invoice_service),
    store: ManualCustomerStore = Depends(get_customer_store),
    settings: Settings = Depends(get_settings),
) -> CustomerService:
    return CustomerService(
        invoices,
        store,
        identity=get_identity_strategy(settings.identity_strategy),
    )
