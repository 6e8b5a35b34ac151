from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

CENTS = Decimal("0.01")


@dataclass
class CartItem:
    """A line in the cart. Owned by the cart; mutated through Cart methods."""

    id: str | int
    name: str
    unit_price: Decimal
    quantity: int = 1
    fixed_discount: Decimal = Decimal(0)
    percent_discount: Decimal = Decimal(0)  # 0-100
    stock: int | None = None  # None: no stock tracking
    notes: str = ""

    @property
    def line_subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_discount(self) -> Decimal:
        """Fixed + percentage discount, never more than the line subtotal."""
        subtotal = self.line_subtotal
        combined = self.fixed_discount + self.percent_discount / 100 * subtotal
        return min(combined, subtotal)


@dataclass(frozen=True)
class Coupon:
    code: str
    kind: Literal["fixed", "percentage"]
    value: Decimal
    min_purchase: Decimal | None = None
    max_discount: Decimal | None = None  # cap for percentage coupons
    active: bool = True

    @classmethod
    def from_dict(cls, d: dict) -> Coupon:
        """Create a Coupon from a YAML-loaded dict (coupons.yaml)."""
        kind = d.get("type", d.get("kind", "percentage"))
        if kind not in ("fixed", "percentage"):
            raise ValueError(f"Tipo de cupom invalido: '{kind}'")
        min_purchase = d.get("min_purchase")
        max_discount = d.get("max_discount")
        return cls(
            code=str(d["code"]).upper(),
            kind=kind,
            value=Decimal(str(d["value"])),
            min_purchase=Decimal(str(min_purchase)) if min_purchase is not None else None,
            max_discount=Decimal(str(max_discount)) if max_discount is not None else None,
            active=bool(d.get("active", True)),
        )


@dataclass(frozen=True)
class CartTotals:
    """Every intermediate value of a pricing run, as shown to the cashier.

    Money fields are exact; use rounded() for display.
    """

    subtotal: Decimal
    line_discounts: tuple[Decimal, ...]
    item_discount: Decimal
    cart_discount: Decimal
    coupon_discount: Decimal
    loyalty_discount: Decimal
    loyalty_points_used: int
    total_discount: Decimal
    total: Decimal
    loyalty_points_earned: int

    def rounded(self) -> CartTotals:
        """Return a copy quantized to centavos, as shown to the cashier.

        The total is rounded once (it is the amount charged) and the total
        discount is derived from it, so subtotal - total_discount == total
        holds on the rounded values. Any centavo left over from rounding the
        individual discounts is absorbed by the last stage that applied one.
        """

        def q(d: Decimal) -> Decimal:
            return d.quantize(CENTS, rounding=ROUND_HALF_UP)

        subtotal = q(self.subtotal)
        total = q(self.total)
        total_discount = subtotal - total

        names = ("item_discount", "cart_discount", "coupon_discount", "loyalty_discount")
        parts = {name: q(getattr(self, name)) for name in names}
        residue = total_discount - sum(parts.values(), Decimal(0))
        for name in reversed(names):
            if residue == 0:
                break
            if getattr(self, name) <= 0:
                continue
            adjusted = max(Decimal(0), parts[name] + residue)
            residue -= adjusted - parts[name]
            parts[name] = adjusted

        return replace(
            self,
            subtotal=subtotal,
            line_discounts=tuple(q(d) for d in self.line_discounts),
            total_discount=total_discount,
            total=total,
            **parts,
        )
