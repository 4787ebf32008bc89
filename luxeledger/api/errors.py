from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException

from luxeledger.services.exceptions import (
    CustomerNotFoundError,
    DownstreamServiceError,
    DuplicateNameError,
    HasDependentInvoicesError,
    PersistenceError,
    ServiceError,
    ValidationError,
)


def to_http_exception(exc: ServiceError) -> HTTPException:
    """Translate a service failure into the response the dashboard expects."""

    detail: Dict[str, Any] = {"error": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, ValidationError):
        detail.update(field=exc.field, index=exc.index, reason=exc.reason)
        return HTTPException(status_code=422, detail=detail)
    if isinstance(exc, DuplicateNameError):
        detail.update(name=exc.name)
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, HasDependentInvoicesError):
        detail.update(count=exc.count)
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, CustomerNotFoundError):
        detail.update(customer_id=exc.customer_id)
        return HTTPException(status_code=404, detail=detail)
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=503, detail=detail)
    if isinstance(exc, DownstreamServiceError):
        detail.update(status_code=exc.status_code)
    return HTTPException(status_code=502, detail=detail)
