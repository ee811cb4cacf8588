from decimal import Decimal

import pytest
from pydantic import ValidationError

from hospital_billing.pricing import InvoiceTotals, invoice_totals, line_total, money, to_decimal
from hospital_billing.schemas import LineItem


# --- line_total ---

def test_line_total_applies_tax_and_rounds_once():
    assert line_total(3, Decimal("100.00"), Decimal("7.5")) == Decimal("322.50")


def test_line_total_accepts_floats_without_binary_drift():
    # 0.1 * 3 in binary floating point is 0.30000000000000004
    assert line_total(3, 0.1, 0) == Decimal("0.30")


def test_line_total_rounds_half_up():
    # 1 * 0.005 * 1.0 = 0.005 -> 0.01 (banker's rounding would give 0.00)
    assert line_total(1, "0.005", 0) == Decimal("0.01")


def test_line_total_rounds_at_final_step_only():
    # 3 * 3.335 = 10.005, plus 10% = 11.0055
    assert line_total(3, "3.335", 10) == Decimal("11.01")
    assert line_total(7, "0.145", "12.5") == money(Decimal("7") * Decimal("0.145") * Decimal("1.125"))


@pytest.mark.parametrize(
    "quantity,unit_price,tax_rate",
    [(1, "0", "0"), (2, "19.99", "5"), (10, "3.3333", "17.5"), (250, "1234.567", "100")],
)
def test_line_total_matches_rounded_exact_product(quantity, unit_price, tax_rate):
    exact = Decimal(quantity) * Decimal(unit_price) * (1 + Decimal(tax_rate) / 100)
    assert line_total(quantity, unit_price, tax_rate) == exact.quantize(Decimal("0.01"), rounding="ROUND_HALF_UP")


def test_to_decimal_rejects_garbage():
    with pytest.raises(ValueError):
        to_decimal("twelve")


# --- invoice_totals ---

def test_empty_invoice_is_all_zero():
    totals = invoice_totals([], 25)
    assert totals == InvoiceTotals()
    assert totals.total_amount == 0


def test_invoice_totals_reference_example():
    items = [
        {"quantity": 2, "unit_price": 50, "tax_rate": 10},
        {"quantity": 1, "unit_price": 30, "tax_rate": 0},
    ]
    totals = invoice_totals(items, 5)
    assert totals.subtotal == Decimal("130.00")
    assert totals.tax_amount == Decimal("10.00")
    assert totals.discount_amount == Decimal("6.50")
    assert totals.total_amount == Decimal("133.50")


def test_discount_never_applies_to_tax():
    items = [{"quantity": 1, "unit_price": 200, "tax_rate": 20}]
    totals = invoice_totals(items, 10)
    # 10% of the 200 subtotal, not of the 240 gross
    assert totals.discount_amount == Decimal("20.00")
    assert totals.tax_amount == Decimal("40.00")
    assert totals.total_amount == Decimal("220.00")


def test_invoice_totals_is_deterministic():
    items = [
        {"quantity": 3, "unit_price": "33.33", "tax_rate": "7.5"},
        {"quantity": 1, "unit_price": "0.01", "tax_rate": "12.5"},
    ]
    assert invoice_totals(items, "2.5") == invoice_totals(items, "2.5")


def test_many_small_lines_do_not_accumulate_rounding_error():
    # Each line carries 0.004 of tax; rounding per line would report 0.00.
    items = [{"quantity": 1, "unit_price": "0.10", "tax_rate": 4}] * 100
    totals = invoice_totals(items)
    assert totals.subtotal == Decimal("10.00")
    assert totals.tax_amount == Decimal("0.40")


def test_single_line_total_matches_line_total():
    line = {"quantity": 1, "unit_price": "0.005", "tax_rate": 100}
    totals = invoice_totals([line])
    # 0.005 + 0.005 is rounded once, not as 0.01 + 0.01
    assert totals.total_amount == line_total(1, "0.005", 100) == Decimal("0.01")
    assert totals.subtotal == Decimal("0.01")
    assert totals.tax_amount == Decimal("0.01")


@pytest.mark.parametrize(
    "line",
    [
        {"quantity": 3, "unit_price": "3.335", "tax_rate": 10},
        {"quantity": 7, "unit_price": "0.145", "tax_rate": "12.5"},
        {"quantity": 2, "unit_price": "19.995", "tax_rate": "7.5"},
    ],
)
def test_total_is_rounded_from_unrounded_sums(line):
    assert invoice_totals([line]).total_amount == line_total(line["quantity"], line["unit_price"], line["tax_rate"])


def test_invoice_totals_accepts_line_item_models():
    items = [
        LineItem(description="Consultation", quantity=2, unit_price=Decimal("50"), tax_rate=Decimal("10")),
        LineItem(description="Dressing", quantity=1, unit_price=Decimal("30")),
    ]
    assert invoice_totals(items, 5).total_amount == Decimal("133.50")


def test_invoice_totals_is_frozen():
    totals = invoice_totals([{"quantity": 1, "unit_price": 1, "tax_rate": 0}])
    with pytest.raises(ValidationError):
        totals.subtotal = Decimal("5")
