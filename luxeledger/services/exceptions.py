from __future__ import annotations


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when the remote billing service returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class ValidationError(ServiceError):
    """Raised when a calculator input is negative, non-finite or unparsable."""

    def __init__(self, field: str, reason: str, *, index: int | None = None):
        location = field if index is None else f"items[{index}].{field}"
        super().__init__(f"Invalid value for {location}: {reason}")
        self.field = field
        self.index = index
        self.reason = reason


class DuplicateNameError(ServiceError):
    """Raised when a manual customer would collide with an existing name."""

    def __init__(self, name: str):
        super().__init__(
            f"A customer named '{name}' already exists. "
            "Use a different name or edit the existing customer."
        )
        self.name = name


class HasDependentInvoicesError(ServiceError):
    """Raised when deleting a customer that still has invoices attached."""

    def __init__(self, name: str, count: int):
        super().__init__(f"Cannot delete {name}. They have {count} existing invoices attached.")
        self.name = name
        self.count = count


class CustomerNotFoundError(ServiceError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class PersistenceError(ServiceError):
    """Raised when the manual customer store cannot be read or written."""
