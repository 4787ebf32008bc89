"""Line-item and invoice totals for jewellery invoices.

For a line item::

    base        = weight x rate
    making      = base x making% / 100
    taxable     = base + making
    gst         = taxable x gst% / 100
    line total  = taxable + gst

Every derived amount is rounded to paise (half-up) before it is added to
anything else, so the invoice totals are always the sum of the amounts printed
on the individual rows.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Union

from luxeledger.schemas.billing import InvoiceLineItem, InvoiceTotals, LineItemBreakdown
from luxeledger.services.exceptions import ValidationError
from luxeledger.services.money import (
    percent_of,
    round_money,
    sum_money,
    to_non_negative,
)

logger = logging.getLogger(__name__)

LineItemInput = Union[InvoiceLineItem, Mapping[str, object]]

_FIELDS = ("weight_grams", "rate_per_gram", "making_charge_percent", "gst_percent")


def _raw_value(item: LineItemInput, field: str) -> object:
    if isinstance(item, InvoiceLineItem):
        return getattr(item, field)
    return item.get(field)


def compute_line_item(item: LineItemInput, *, index: int = 0) -> LineItemBreakdown:
    """Return the monetary breakdown for a single line item.

    ``item`` may be an :class:`InvoiceLineItem` or a plain mapping using the
    same field names. Negative or non-finite numbers raise
    :class:`ValidationError` naming the field and ``index``.
    """

    weight, rate, making_percent, gst_percent = (
        to_non_negative(_raw_value(item, field), field, index) for field in _FIELDS
    )

    base_amount = round_money(weight * rate)
    making_charge_amount = percent_of(base_amount, making_percent)
    taxable_amount = base_amount + making_charge_amount
    gst_amount = percent_of(taxable_amount, gst_percent)

    return LineItemBreakdown(
        base_amount=base_amount,
        making_charge_amount=making_charge_amount,
        taxable_amount=taxable_amount,
        gst_amount=gst_amount,
        line_total=taxable_amount + gst_amount,
    )


def compute_invoice_totals(items: Iterable[LineItemInput], discount: object = 0) -> InvoiceTotals:
    discount_amount = round_money(to_non_negative(discount, "discount"))
    lines = [compute_line_item(item, index=index) for index, item in enumerate(items)]

    gross_amount = sum_money(line.taxable_amount for line in lines)
    total_gst = sum_money(line.gst_amount for line in lines)
    if discount_amount > gross_amount + total_gst:
        raise ValidationError("discount", "exceeds invoice total")

    net_amount = gross_amount + total_gst - discount_amount
    logger.debug(
        "Computed totals for %d line(s): gross=%s gst=%s net=%s",
        len(lines),
        gross_amount,
        total_gst,
        net_amount,
    )
    return InvoiceTotals(
        lines=lines,
        gross_amount=gross_amount,
        total_gst=total_gst,
        discount=discount_amount,
        net_amount=net_amount,
    )
