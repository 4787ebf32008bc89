from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class MetalType(str, Enum):
    GOLD_18K = "GOLD_18K"
    GOLD_22K = "GOLD_22K"
    GOLD_24K = "GOLD_24K"
    SILVER = "SILVER"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
    OTHER = "OTHER"


class InvoiceStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    DRAFT = "Draft"


def _lookup_enum(enum_cls, value: Any, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    normalized = str(value).strip().lower()
    for member in enum_cls:
        if member.value.lower() == normalized:
            return member
    return value  # let pydantic report the bad value


class InvoiceLineItem(BaseModel):
    # Numbers are kept unconstrained here; the calculator rejects negatives
    # with the offending line index.
    model_config = ConfigDict(frozen=True)

    description: str = ""
    metal_type: MetalType = Field(
        default=MetalType.OTHER,
        validation_alias=AliasChoices("metal_type", "metalType", "type"),
    )
    weight_grams: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("weight_grams", "weightGrams", "weight"),
    )
    rate_per_gram: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("rate_per_gram", "ratePerGram", "rate"),
    )
    making_charge_percent: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("making_charge_percent", "makingChargePercent"),
    )
    gst_percent: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("gst_percent", "gstPercent", "gstRatePercent"),
    )

    @field_validator("weight_grams", "rate_per_gram", "making_charge_percent", "gst_percent", mode="before")
    @classmethod
    def _null_is_zero(cls, value):
        if value is None:
            return Decimal("0")
        if isinstance(value, float):
            return str(value)
        return value

    @field_validator("metal_type", mode="before")
    @classmethod
    def _metal_type(cls, value):
        return _lookup_enum(MetalType, value, MetalType.OTHER)


class Invoice(BaseModel):
    """An issued invoice as reported by the remote billing service."""

    model_config = ConfigDict(frozen=True)

    invoice_id: str = Field(validation_alias=AliasChoices("invoice_id", "invoiceId"))
    customer_name: str = Field(
        default="",
        validation_alias=AliasChoices("customer_name", "customerName", "customer"),
    )
    mobile_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mobile_number", "mobileNumber", "mobilenumber"),
    )
    address: Optional[str] = None
    items: List[InvoiceLineItem] = Field(default_factory=list)
    metal_type: MetalType = Field(
        default=MetalType.OTHER,
        validation_alias=AliasChoices("metal_type", "metalType", "type"),
    )
    status: InvoiceStatus = InvoiceStatus.DRAFT
    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("created_at", "createdAt", "issueDate"),
    )
    gross_amount: Decimal = Field(
        default=Decimal("0.00"),
        validation_alias=AliasChoices("gross_amount", "grossAmount"),
    )
    discount: Decimal = Decimal("0.00")
    net_amount: Decimal = Field(
        default=Decimal("0.00"),
        validation_alias=AliasChoices("net_amount", "netAmount"),
    )
    payment_method: str = Field(
        default="CASH",
        validation_alias=AliasChoices("payment_method", "paymentMethod"),
    )

    @model_validator(mode="before")
    @classmethod
    def _legacy_amount(cls, data):
        # Older invoices only carry ``amount``; it is the net payable.
        if isinstance(data, dict):
            has_net = any(data.get(key) is not None for key in ("net_amount", "netAmount"))
            if not has_net and data.get("amount") is not None:
                data = {**data, "net_amount": data["amount"]}
        return data

    @field_validator("gross_amount", "discount", "net_amount", mode="before")
    @classmethod
    def _amounts(cls, value):
        if value is None:
            return Decimal("0.00")
        if isinstance(value, float):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return _lookup_enum(InvoiceStatus, value, InvoiceStatus.DRAFT)

    @field_validator("metal_type", mode="before")
    @classmethod
    def _metal_type(cls, value):
        return _lookup_enum(MetalType, value, MetalType.OTHER)

    @field_validator("payment_method", mode="before")
    @classmethod
    def _payment_method(cls, value):
        return value or "CASH"


class LineItemBreakdown(BaseModel):
    base_amount: Decimal
    making_charge_amount: Decimal
    taxable_amount: Decimal
    gst_amount: Decimal
    line_total: Decimal


class InvoiceTotals(BaseModel):
    lines: List[LineItemBreakdown]
    gross_amount: Decimal
    total_gst: Decimal
    discount: Decimal
    net_amount: Decimal


class InvoiceQuoteRequest(BaseModel):
    items: List[InvoiceLineItem]
    discount: Decimal = Decimal("0")


class InvoiceRequest(BaseModel):
    customer_name: str
    mobile_number: Optional[str] = None
    address: Optional[str] = None
    items: List[InvoiceLineItem]
    metal_type: MetalType = MetalType.OTHER
    status: InvoiceStatus = InvoiceStatus.PENDING
    discount: Decimal = Decimal("0")
    payment_method: str = "CASH"


class InvoiceListResponse(BaseModel):
    total: int
    items: List[Invoice]
