from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Union

from hospital_billing import pricing
from hospital_billing.exceptions import DiscountNotAllowed, InvalidStatusTransition
from hospital_billing.schemas import (
    BillableItem,
    DiscountReason,
    InvoiceCreate,
    InvoiceStatus,
    ItemType,
    LineItem,
    Package,
    PricingType,
)

# Forward moves only; cancellation is allowed until the invoice is paid.
ALLOWED_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.FINALIZED, InvoiceStatus.CANCELLED}),
    InvoiceStatus.FINALIZED: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(current: Union[InvoiceStatus, str], target: Union[InvoiceStatus, str]) -> bool:
    return InvoiceStatus(target) in ALLOWED_TRANSITIONS[InvoiceStatus(current)]


def ensure_transition(current: Union[InvoiceStatus, str], target: Union[InvoiceStatus, str]) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransition(InvoiceStatus(current).value, InvoiceStatus(target).value)


class InvoiceDraft:
    """An invoice being composed; totals are always derived from the lines."""

    def __init__(
        self,
        patient_id: str,
        doctor_id: Optional[str] = None,
        discount_percentage: Any = 0,
        discount_reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        self.patient_id = patient_id
        self.doctor_id = doctor_id
        self.discount_percentage = pricing.to_decimal(discount_percentage)
        self.discount_reason = discount_reason
        self.notes = notes
        self._lines: List[LineItem] = []

    @property
    def lines(self) -> List[LineItem]:
        return list(self._lines)

    def add_line(self, line: LineItem) -> LineItem:
        self._lines.append(line)
        return line

    def add_billable(self, item: BillableItem, quantity: int = 1) -> LineItem:
        return self.add_line(
            LineItem(
                item_type=ItemType.BILLABLE,
                billable_item_id=item.id,
                description=item.name,
                quantity=quantity,
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
                category=item.category,
            )
        )

    def add_package(self, package: Package, quantity: int = 1) -> List[LineItem]:
        """Fixed packages bill as one line; itemized ones expand per item."""
        if package.pricing_type is PricingType.FIXED or not package.items:
            line = LineItem(
                item_type=ItemType.PACKAGE,
                package_id=package.id,
                description=package.name,
                quantity=quantity,
                unit_price=package.fixed_price,
                tax_rate=Decimal("0"),
                category="Package",
            )
            return [self.add_line(line)]

        added = []
        for pkg_item in package.items:
            billable = pkg_item.billable_item
            unit_price = pkg_item.unit_price if pkg_item.unit_price is not None else (billable.unit_price if billable else Decimal("0"))
            tax_rate = pkg_item.tax_rate if pkg_item.tax_rate is not None else (billable.tax_rate if billable else Decimal("0"))
            description = pkg_item.billable_name or (billable.name if billable else package.name)
            category = pkg_item.category or (billable.category if billable else "")
            added.append(
                self.add_line(
                    LineItem(
                        item_type=ItemType.BILLABLE,
                        billable_item_id=pkg_item.billable_item_id,
                        description=description,
                        quantity=pkg_item.quantity * quantity,
                        unit_price=unit_price,
                        tax_rate=tax_rate,
                        category=category,
                        parent_package_id=package.id,
                    )
                )
            )
        return added

    def remove_line(self, index: int) -> LineItem:
        return self._lines.pop(index)

    def apply_discount_reason(self, reason: DiscountReason, percentage: Any) -> None:
        percentage = pricing.to_decimal(percentage)
        if percentage < 0:
            raise DiscountNotAllowed("Discount percentage cannot be negative.")
        if not reason.is_active:
            raise DiscountNotAllowed(f"Discount reason '{reason.reason}' is inactive.")
        if percentage > reason.max_percentage:
            raise DiscountNotAllowed(
                f"'{reason.reason}' allows at most {reason.max_percentage}% (requested {percentage}%)."
            )
        self.discount_percentage = percentage
        self.discount_reason = reason.reason

    def totals(self) -> pricing.InvoiceTotals:
        return pricing.invoice_totals(self._lines, self.discount_percentage)

    def to_request(self, status: Union[InvoiceStatus, str] = InvoiceStatus.DRAFT) -> InvoiceCreate:
        return InvoiceCreate(
            patient_id=self.patient_id,
            doctor_id=self.doctor_id,
            items=self.lines,
            discount_percentage=self.discount_percentage or None,
            discount_reason=self.discount_reason,
            notes=self.notes,
            status=InvoiceStatus(status),
        )
