from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from luxeledger.schemas.billing import Invoice


class CustomerFields(BaseModel):
    """Operator-editable customer details."""

    full_name: str
    mobile_number: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    gst_number: str = ""
    notes: str = ""
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full_name must not be blank")
        return value

    @field_validator(
        "mobile_number", "email", "address", "city", "state", "pincode", "gst_number", "notes",
        mode="before",
    )
    @classmethod
    def _none_is_blank(cls, value):
        return "" if value is None else value


class ManualCustomerRecord(CustomerFields):
    id: str
    created_at: datetime


class CustomerUpdate(CustomerFields):
    id: str


class CustomerProfile(CustomerFields):
    id: str
    is_manual: bool
    created_at: Optional[datetime] = None
    total_purchases: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    outstanding_balance: Decimal = Decimal("0.00")
    last_purchase_date: Optional[datetime] = None
    invoices: List[Invoice] = Field(default_factory=list)


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    PROMOTED = "promoted"  # invoice-only customer became a manual record


class UpdateResult(BaseModel):
    outcome: UpdateOutcome
    customer: CustomerProfile


class CustomerFilter(str, Enum):
    ALL = "all"
    OUTSTANDING = "outstanding"
    TOP = "top"


class CustomerListResponse(BaseModel):
    total: int
    items: List[CustomerProfile]


class CustomerDeleteResponse(BaseModel):
    customer_id: str
    deleted: bool
