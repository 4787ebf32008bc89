"""Service package public API definitions.

The service implementations are imported lazily so that low level modules
such as ``luxeledger.services.exceptions`` can be imported by the HTTP client
without pulling the services (and therefore the client) back in.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "CustomerService",
    "InvoiceService",
]

_SERVICE_MODULES = {
    "CustomerService": "customers",
    "InvoiceService": "invoice",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .customers import CustomerService as CustomerService
    from .invoice import InvoiceService as InvoiceService
