from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from medicore.models import parse_amount
from medicore.models.line_item import LineItem
from medicore.models.patient import Patient


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    INSURANCE = "Insurance"


class BillItem(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    service_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    sort_order: int = 0


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    bill_number: str = ""
    patient_id: int
    patient: Patient | None = None
    items: list[BillItem] = []
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""
    created_by: int | None = None
    created_at: datetime | None = None


class BillList(BaseModel):
    bills: list[Bill] = []
    total: int = 0


def _loose_decimal(value: Any) -> Decimal:
    """Coerce a form value the way an empty or garbled input box reads: as zero."""
    if isinstance(value, Decimal):
        return value
    parsed = parse_amount(str(value)) if value is not None else None
    return parsed if parsed is not None else Decimal("0")


class BillDraft(BaseModel):
    """An in-progress, unpersisted bill.

    Immutable: every transition returns a new draft and leaves the original
    untouched, so a failed submission can be retried from the same value.
    """

    model_config = ConfigDict(frozen=True)

    patient_id: int | None = None
    items: tuple[LineItem, ...] = (LineItem(),)
    discount: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""

    @classmethod
    def empty(cls) -> BillDraft:
        return cls()

    def complete_items(self) -> list[LineItem]:
        return [item for item in self.items if item.is_complete()]

    def select_patient(self, patient_id: int | None) -> BillDraft:
        return self.model_copy(update={"patient_id": patient_id})

    def add_item(self, item: LineItem | None = None) -> BillDraft:
        return self.model_copy(update={"items": (*self.items, item or LineItem())})

    def update_item(self, index: int, field: str, value: Any) -> BillDraft:
        if not 0 <= index < len(self.items):
            raise IndexError(f"No line item at index {index}")
        items = list(self.items)
        items[index] = items[index].update(field, value)
        return self.model_copy(update={"items": tuple(items)})

    def remove_item(self, index: int) -> BillDraft:
        if not 0 <= index < len(self.items):
            raise IndexError(f"No line item at index {index}")
        # The form always keeps at least one row to type into.
        if len(self.items) == 1:
            return self
        items = self.items[:index] + self.items[index + 1 :]
        return self.model_copy(update={"items": items})

    def set_discount(self, value: Any) -> BillDraft:
        return self.model_copy(update={"discount": _loose_decimal(value)})

    def set_tax(self, value: Any) -> BillDraft:
        return self.model_copy(update={"tax_rate": _loose_decimal(value)})

    def set_payment_status(self, status: PaymentStatus | str) -> BillDraft:
        return self.model_copy(update={"payment_status": PaymentStatus(status)})

    def set_payment_method(self, method: PaymentMethod | str) -> BillDraft:
        return self.model_copy(update={"payment_method": PaymentMethod(method)})

    def set_notes(self, notes: str) -> BillDraft:
        return self.model_copy(update={"notes": notes or ""})

    def with_complete_items(self) -> BillDraft:
        """The submission payload: the same draft with incomplete rows dropped."""
        return self.model_copy(update={"items": tuple(self.complete_items())})
