from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from medicore.models import parse_amount

EDITABLE_FIELDS = ("service_name", "quantity", "unit_price")


class LineItem(BaseModel):
    """One billable service row of a draft bill.

    ``line_total`` is derived from ``quantity`` and ``unit_price`` and cannot be
    set directly. A row without a price is kept as an incomplete draft row.
    """

    model_config = ConfigDict(frozen=True)

    service_name: str = ""
    quantity: int = 1
    unit_price: Decimal | None = None

    @field_validator("service_name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> int:
        if isinstance(value, int):
            return value
        parsed = parse_amount(str(value)) if value is not None else None
        return int(parsed) if parsed is not None else 0

    @field_validator("unit_price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Decimal | None:
        if value is None or isinstance(value, Decimal):
            return value
        return parse_amount(str(value))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * (self.unit_price if self.unit_price is not None else Decimal("0"))

    def update(self, field: str, value: Any) -> LineItem:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown line item field: {field}")
        data = self.model_dump(exclude={"line_total"})
        data[field] = value
        return LineItem.model_validate(data)

    def is_complete(self) -> bool:
        return bool(self.service_name.strip()) and self.unit_price is not None
