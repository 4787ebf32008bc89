"""Decimal helpers for currency and weight values.

Money is carried as :class:`~decimal.Decimal` quantized to two places (paise)
everywhere inside the package. Floats are only accepted at the edges and are
converted through ``str`` so that ``0.1`` stays ``0.1``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from luxeledger.services.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: object, field: str, index: int | None = None) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(field, "expected a number", index=index)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(field, f"not a number: {value!r}", index=index) from exc
    elif value is None:
        result = Decimal(0)
    else:
        raise ValidationError(field, f"unsupported type {type(value).__name__}", index=index)

    if not result.is_finite():
        raise ValidationError(field, "must be finite", index=index)
    return result


def to_non_negative(value: object, field: str, index: int | None = None) -> Decimal:
    result = to_decimal(value, field, index)
    if result < 0:
        raise ValidationError(field, "must not be negative", index=index)
    return result


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return round_money(amount * percent / HUNDRED)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    total = ZERO
    for value in values:
        total += value
    return round_money(total)
