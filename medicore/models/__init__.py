from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places for display. Never used mid-computation."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_inr(amount: Decimal, symbol: str = "₹") -> str:
    """Format an amount for display: Decimal('1055') -> '₹1,055.00'"""
    rounded = round_money(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"


def parse_amount(text: str) -> Decimal | None:
    """Parse a user-typed amount into a Decimal. Returns None on invalid input.

    Accepts formats like '500', '1,250.50', '₹ 300'.
    """
    text = text.strip().lstrip("₹").strip().replace(",", "")
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value
