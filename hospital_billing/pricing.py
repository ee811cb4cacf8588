"""
Invoice arithmetic: line totals and invoice rollups.

All accumulation happens on unrounded ``Decimal`` values; rounding (half-up,
two places) is applied once, when a value leaves this module.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


class InvoiceTotals(BaseModel):
    """Derived invoice amounts, each rounded to the cent."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total_amount: Decimal = ZERO


def to_decimal(value: Any) -> Decimal:
    """Coerce int/float/str/Decimal to Decimal; floats go through ``str``."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric amount: {value!r}") from exc


def money(value: Any) -> Decimal:
    """Round to 2 decimal places for currency"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name)


def line_total(quantity: Any, unit_price: Any, tax_rate: Any) -> Decimal:
    """quantity * unit_price * (1 + tax_rate/100), rounded at the final step."""
    base = to_decimal(quantity) * to_decimal(unit_price)
    return money(base + base * to_decimal(tax_rate) / HUNDRED)


def invoice_totals(items: Iterable[Any], discount_percentage: Any = 0) -> InvoiceTotals:
    """Roll up subtotal, tax, discount and total for a sequence of lines.

    ``items`` may hold mappings or objects exposing ``quantity``,
    ``unit_price`` and ``tax_rate``. The discount is taken from the subtotal
    only; tax is never discounted.
    """
    subtotal = ZERO
    tax_amount = ZERO

    for item in items:
        item_subtotal = to_decimal(_field(item, "quantity")) * to_decimal(_field(item, "unit_price"))
        subtotal += item_subtotal
        tax_amount += item_subtotal * to_decimal(_field(item, "tax_rate")) / HUNDRED

    discount_amount = subtotal * to_decimal(discount_percentage) / HUNDRED

    # Each field is rounded on its own from the full-precision sums.
    return InvoiceTotals(
        subtotal=money(subtotal),
        tax_amount=money(tax_amount),
        discount_amount=money(discount_amount),
        total_amount=money(subtotal + tax_amount - discount_amount),
    )
