from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel

from medicore.models.line_item import LineItem


class BillComputation(BaseModel):
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    filtered_items: list[LineItem]

    @property
    def is_negative(self) -> bool:
        return self.total_amount < 0


def compute_bill(
    items: Iterable[LineItem],
    discount: Decimal | int = 0,
    tax_rate: Decimal | int = 0,
) -> BillComputation:
    """Aggregate complete line items into subtotal, tax and grand total.

    Incomplete rows are dropped before summing. Nothing is rounded here and a
    discount larger than the subtotal yields a negative total.
    """
    discount = Decimal(discount)
    tax_rate = Decimal(tax_rate)

    filtered = [item for item in items if item.is_complete()]
    subtotal = sum((item.line_total for item in filtered), Decimal("0"))
    tax_amount = subtotal * tax_rate / 100
    total_amount = subtotal - discount + tax_amount

    return BillComputation(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=total_amount,
        filtered_items=filtered,
    )
