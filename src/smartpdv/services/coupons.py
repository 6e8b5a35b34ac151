from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from decimal import Decimal

from smartpdv.config import load_coupons
from smartpdv.models.cart import Coupon

logger = logging.getLogger(__name__)

CouponResolver = Callable[[str], "Coupon | None"]

DEFAULT_COUPONS: tuple[Coupon, ...] = (
    Coupon(code="DESCONTO10", kind="percentage", value=Decimal("10")),
    Coupon(code="FIXO5", kind="fixed", value=Decimal("5")),
    Coupon(code="MEGA20", kind="percentage", value=Decimal("20")),
)


def catalog_resolver(coupons: Iterable[Coupon]) -> CouponResolver:
    """Build a case-insensitive lookup over *coupons*; inactive ones don't resolve."""
    by_code = {c.code.upper(): c for c in coupons}

    def resolve(code: str) -> Coupon | None:
        coupon = by_code.get(code.strip().upper())
        if coupon is None or not coupon.active:
            return None
        return coupon

    return resolve


resolve_coupon = catalog_resolver(DEFAULT_COUPONS)


def load_catalog() -> tuple[Coupon, ...]:
    """Coupons from config/coupons.yaml, or the built-in catalog when absent."""
    configured = load_coupons()
    if configured is None:
        logger.debug("coupons.yaml nao encontrado, usando catalogo padrao")
        return DEFAULT_COUPONS
    return tuple(configured)


def resolver_from_config() -> CouponResolver:
    return catalog_resolver(load_catalog())
