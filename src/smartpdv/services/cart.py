"""Point-of-sale cart and its pricing pipeline.

Discounts are applied as an ordered chain of clamped subtractions:
item discounts, cart discount, coupon, loyalty redemption. Each stage sees
only what is still payable after the previous ones, so the final total can
never drop below zero.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from decimal import Decimal

from smartpdv.config import LOYALTY_POINT_VALUE, LOYALTY_SPEND_PER_POINT
from smartpdv.models.cart import CartItem, CartTotals, Coupon
from smartpdv.services.coupons import CouponResolver, resolve_coupon
from smartpdv.services.exceptions import (
    CouponMinimumNotMet,
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    UnknownCoupon,
)
from smartpdv.utils.formatters import format_brl
from smartpdv.utils.validators import clamp_percent, to_decimal, validate_monetary

ZERO = Decimal(0)

Stage = Callable[["Cart", Decimal], tuple[Decimal, Decimal]]


def _take(discount: Decimal, remaining: Decimal) -> tuple[Decimal, Decimal]:
    """Clamp *discount* to [0, remaining] and return (discount, new remaining)."""
    discount = max(ZERO, min(discount, remaining))
    return discount, remaining - discount


def item_discount_stage(cart: Cart, remaining: Decimal) -> tuple[Decimal, Decimal]:
    return _take(sum((item.line_discount for item in cart.items), ZERO), remaining)


def cart_discount_stage(cart: Cart, remaining: Decimal) -> tuple[Decimal, Decimal]:
    return _take(cart.fixed_discount + cart.percent_discount / 100 * remaining, remaining)


def coupon_stage(cart: Cart, remaining: Decimal) -> tuple[Decimal, Decimal]:
    coupon = cart.applied_coupon
    if coupon is None:
        return ZERO, remaining
    if coupon.min_purchase is not None and remaining < coupon.min_purchase:
        return ZERO, remaining
    if coupon.kind == "percentage":
        discount = coupon.value / 100 * remaining
        if coupon.max_discount is not None:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.value
    return _take(discount, remaining)


def loyalty_stage(cart: Cart, remaining: Decimal) -> tuple[Decimal, Decimal]:
    points = min(cart.loyalty_points_redeemed, cart.available_points)
    return _take(points * cart.point_value, remaining)


DISCOUNT_PIPELINE: tuple[Stage, ...] = (
    item_discount_stage,
    cart_discount_stage,
    coupon_stage,
    loyalty_stage,
)


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantity(f"Quantidade invalida: {quantity!r}")


class Cart:
    """A single checkout cart (one per terminal session)."""

    def __init__(
        self,
        resolve_coupon: CouponResolver = resolve_coupon,
        point_value: Decimal = LOYALTY_POINT_VALUE,
        spend_per_point: Decimal = LOYALTY_SPEND_PER_POINT,
    ) -> None:
        self._resolve_coupon = resolve_coupon
        self.point_value = point_value
        self.spend_per_point = spend_per_point
        self._items: dict[str | int, CartItem] = {}
        self.fixed_discount = ZERO
        self.percent_discount = ZERO
        self.applied_coupon: Coupon | None = None
        self.loyalty_points_redeemed = 0
        self.available_points = 0

    # --- Items ---

    @property
    def items(self) -> list[CartItem]:
        """Items in insertion order."""
        return list(self._items.values())

    def get_item(self, item_id: str | int) -> CartItem | None:
        return self._items.get(item_id)

    def _require(self, item_id: str | int) -> CartItem:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFound(f"Item nao encontrado no carrinho: {item_id!r}")
        return item

    def add_item(
        self,
        item_id: str | int,
        name: str,
        unit_price: Decimal | int | float | str,
        quantity: int = 1,
        stock: int | None = None,
    ) -> CartItem:
        """Add *quantity* units, merging with an existing line for the same id.

        With a stock ceiling the resulting quantity is clamped to it; if
        nothing more fits, InsufficientStock is raised.
        """
        _check_quantity(quantity)
        price = validate_monetary(unit_price)

        item = self._items.get(item_id)
        if item is None:
            item = CartItem(id=item_id, name=name, unit_price=price, quantity=0, stock=stock)
        ceiling = stock if stock is not None else item.stock

        wanted = item.quantity + quantity
        if ceiling is not None and wanted > ceiling:
            if item.quantity >= ceiling:
                raise InsufficientStock(
                    f"Estoque insuficiente! Maximo disponivel: {ceiling}",
                    available=ceiling,
                )
            wanted = ceiling

        item.stock = ceiling
        item.quantity = wanted
        self._items.setdefault(item_id, item)
        return item

    def remove_item(self, item_id: str | int) -> bool:
        """Remove a line. Returns False (and changes nothing) if it is absent."""
        return self._items.pop(item_id, None) is not None

    def set_quantity(self, item_id: str | int, quantity: int, max_quantity: int | None = None) -> None:
        item = self._require(item_id)
        _check_quantity(quantity)
        ceiling = max_quantity if max_quantity is not None else item.stock
        if ceiling is not None and quantity > ceiling:
            raise InsufficientStock(
                f"Estoque insuficiente! Maximo disponivel: {ceiling}",
                available=ceiling,
            )
        item.quantity = quantity

    def set_item_discount(
        self,
        item_id: str | int,
        fixed: Decimal | int | float | str = 0,
        percent: Decimal | int | float | str = 0,
    ) -> None:
        """Store a line discount. Fixed is floored at 0, percent clamped to 0-100."""
        item = self._require(item_id)
        item.fixed_discount = max(ZERO, to_decimal(fixed))
        item.percent_discount = clamp_percent(percent)

    def set_item_notes(self, item_id: str | int, notes: str) -> None:
        self._require(item_id).notes = notes

    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    # --- Cart-level discounts ---

    def set_cart_discount(
        self,
        fixed: Decimal | int | float | str = 0,
        percent: Decimal | int | float | str = 0,
    ) -> None:
        self.fixed_discount = max(ZERO, to_decimal(fixed))
        self.percent_discount = clamp_percent(percent)

    def apply_coupon(self, code: str) -> Coupon:
        """Apply *code*, replacing any coupon already applied."""
        coupon = self._resolve_coupon(code)
        if coupon is None:
            raise UnknownCoupon(f"Cupom invalido ou inativo: '{code}'")
        if coupon.min_purchase is not None:
            eligible = self.subtotal() - sum((i.line_discount for i in self.items), ZERO)
            if eligible < coupon.min_purchase:
                raise CouponMinimumNotMet(
                    f"Valor minimo para este cupom: {format_brl(coupon.min_purchase)}",
                    minimum=coupon.min_purchase,
                )
        self.applied_coupon = coupon
        return coupon

    def remove_coupon(self) -> None:
        self.applied_coupon = None

    def redeem_loyalty_points(self, points: int, available_points: int) -> None:
        """Redeem up to *points*, never more than the customer's balance."""
        if not isinstance(points, int) or points < 0:
            raise InvalidQuantity(f"Quantidade de pontos invalida: {points!r}")
        self.available_points = max(0, available_points)
        self.loyalty_points_redeemed = min(points, self.available_points)

    def clear(self) -> None:
        self._items.clear()
        self.fixed_discount = ZERO
        self.percent_discount = ZERO
        self.applied_coupon = None
        self.loyalty_points_redeemed = 0
        self.available_points = 0

    # --- Pricing ---

    def subtotal(self) -> Decimal:
        """Sum of line subtotals, before any discount."""
        return sum((item.line_subtotal for item in self._items.values()), ZERO)

    def totals(self) -> CartTotals:
        subtotal = self.subtotal()
        remaining = subtotal
        discounts = []
        for stage in DISCOUNT_PIPELINE:
            discount, remaining = stage(self, remaining)
            discounts.append(discount)
        item_discount, cart_discount, coupon_discount, loyalty_discount = discounts

        total_discount = item_discount + cart_discount + coupon_discount + loyalty_discount
        total = max(ZERO, subtotal - total_discount)
        points_used = 0
        if loyalty_discount > 0:
            points_used = math.ceil(loyalty_discount / self.point_value)

        return CartTotals(
            subtotal=subtotal,
            line_discounts=tuple(item.line_discount for item in self._items.values()),
            item_discount=item_discount,
            cart_discount=cart_discount,
            coupon_discount=coupon_discount,
            loyalty_discount=loyalty_discount,
            loyalty_points_used=points_used,
            total_discount=total_discount,
            total=total,
            loyalty_points_earned=self._points_for(total),
        )

    def _points_for(self, total: Decimal) -> int:
        return int(total // self.spend_per_point)

    def final_total(self) -> Decimal:
        return self.totals().total

    def loyalty_points_earned(self) -> int:
        """Points the customer earns on this sale: 1 per full R$10 of the final total."""
        return self.totals().loyalty_points_earned
