from decimal import Decimal

from medicore.models.line_item import LineItem
from medicore.services.bill_computer import compute_bill


def _item(name: str, quantity: int, price: str | None) -> LineItem:
    return LineItem(service_name=name, quantity=quantity, unit_price=price)


class TestComputeBill:
    def test_consultation_and_xray(self):
        items = [_item("Consultation Fee", 1, "500"), _item("X-Ray", 2, "300")]
        result = compute_bill(items, discount=Decimal("100"), tax_rate=Decimal("5"))

        assert result.subtotal == Decimal("1100")
        assert result.tax_amount == Decimal("55")
        assert result.total_amount == Decimal("1055")
        assert not result.is_negative

    def test_discount_larger_than_subtotal(self):
        items = [_item("Surgery", 1, "10000")]
        result = compute_bill(items, discount=Decimal("12000"), tax_rate=Decimal("0"))

        assert result.total_amount == Decimal("-2000")
        assert result.is_negative

    def test_tax_on_pre_discount_subtotal(self):
        items = [_item("MRI Scan", 1, "1000")]
        result = compute_bill(items, discount=Decimal("500"), tax_rate=Decimal("10"))

        assert result.tax_amount == Decimal("100")
        assert result.total_amount == Decimal("600")

    def test_incomplete_items_excluded(self):
        items = [
            _item("Consultation Fee", 1, "500"),
            _item("", 3, "300"),
            _item("X-Ray", 2, None),
        ]
        result = compute_bill(items)

        assert result.subtotal == Decimal("500")
        assert [item.service_name for item in result.filtered_items] == ["Consultation Fee"]

    def test_no_items(self):
        result = compute_bill([], discount=Decimal("0"), tax_rate=Decimal("18"))

        assert result.subtotal == Decimal("0")
        assert result.tax_amount == Decimal("0")
        assert result.total_amount == Decimal("0")
        assert result.filtered_items == []

    def test_fractional_tax_not_rounded(self):
        items = [_item("Medicine", 3, "33.33")]
        result = compute_bill(items, tax_rate=Decimal("12.5"))

        assert result.subtotal == Decimal("99.99")
        assert result.tax_amount == Decimal("12.49875")
        assert result.total_amount == Decimal("112.48875")

    def test_repeatable(self):
        items = [_item("Consultation Fee", 1, "500"), _item("X-Ray", 2, "300")]
        first = compute_bill(items, Decimal("100"), Decimal("5"))
        second = compute_bill(items, Decimal("100"), Decimal("5"))

        assert first == second

    def test_integer_arguments(self):
        result = compute_bill([_item("ECG", 2, "250")], discount=0, tax_rate=0)
        assert result.total_amount == Decimal("500")
