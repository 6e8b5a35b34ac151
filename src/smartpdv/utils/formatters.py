from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def format_brl(value: Decimal | str | int) -> str:
    """Format a value as R$ X.XXX,XX."""
    d = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    formatted = f"{d:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {formatted}"
