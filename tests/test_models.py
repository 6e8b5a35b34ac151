from __future__ import annotations

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest
from conftest import VALID_CPF

from smartpdv.models.cart import CartItem, CartTotals, Coupon
from smartpdv.models.pix import PaymentStatus, PixKeyType, PixMerchant
from smartpdv.services.exceptions import InvalidKeyFormat


class TestPixMerchant:
    def test_from_dict(self, merchant_dict):
        merchant = PixMerchant.from_dict(merchant_dict)
        assert merchant.key == "teste@exemplo.com"
        assert merchant.key_type is PixKeyType.EMAIL
        assert merchant.name == "SmartPDV"
        assert merchant.city == "SAO PAULO"

    def test_key_type_defaults_to_email(self, merchant_dict):
        del merchant_dict["tipo_chave"]
        assert PixMerchant.from_dict(merchant_dict).key_type is PixKeyType.EMAIL

    def test_key_stripped(self, merchant_dict):
        merchant_dict["chave"] = "  teste@exemplo.com "
        assert PixMerchant.from_dict(merchant_dict).key == "teste@exemplo.com"

    def test_cpf_key(self, merchant_dict):
        merchant_dict.update(chave=VALID_CPF, tipo_chave="cpf")
        assert PixMerchant.from_dict(merchant_dict).key_type is PixKeyType.CPF

    def test_invalid_key_raises(self, merchant_dict):
        merchant_dict.update(chave="12345678901", tipo_chave="cpf")
        with pytest.raises(InvalidKeyFormat):
            PixMerchant.from_dict(merchant_dict)

    def test_unknown_key_type_raises(self, merchant_dict):
        merchant_dict["tipo_chave"] = "boleto"
        with pytest.raises(InvalidKeyFormat):
            PixMerchant.from_dict(merchant_dict)

    def test_missing_field(self, merchant_dict):
        del merchant_dict["cidade"]
        with pytest.raises(KeyError):
            PixMerchant.from_dict(merchant_dict)

    def test_to_dict_roundtrip(self, merchant_dict):
        assert PixMerchant.from_dict(merchant_dict).to_dict() == merchant_dict

    def test_frozen(self, merchant):
        with pytest.raises(FrozenInstanceError):
            merchant.key = "outro@exemplo.com"


class TestPaymentStatus:
    @pytest.mark.parametrize(("status", "settled"), [("completed", True), ("pending", False), ("failed", False)])
    def test_is_settled(self, status, settled):
        assert PaymentStatus(status).is_settled is settled


class TestCartItem:
    def test_line_subtotal(self):
        assert CartItem("A", "Cafe", Decimal("10"), quantity=3).line_subtotal == Decimal("30")

    def test_line_discount_combines(self):
        item = CartItem("A", "Cafe", Decimal("10"), quantity=2, fixed_discount=Decimal("1"), percent_discount=Decimal("10"))
        assert item.line_discount == Decimal("3")

    def test_line_discount_capped(self):
        item = CartItem("A", "Cafe", Decimal("10"), fixed_discount=Decimal("50"))
        assert item.line_discount == Decimal("10")


class TestCoupon:
    def test_from_dict(self):
        coupon = Coupon.from_dict({"code": "mega20", "type": "percentage", "value": 20, "max_discount": 50})
        assert coupon == Coupon("MEGA20", "percentage", Decimal("20"), max_discount=Decimal("50"))

    def test_from_dict_kind_key(self):
        coupon = Coupon.from_dict({"code": "FIXO5", "kind": "fixed", "value": "5", "min_purchase": 20})
        assert coupon.kind == "fixed"
        assert coupon.min_purchase == Decimal("20")

    def test_from_dict_inactive(self):
        assert Coupon.from_dict({"code": "X", "value": 1, "active": False}).active is False

    def test_from_dict_float_value_exact(self):
        assert Coupon.from_dict({"code": "X", "value": 0.1}).value == Decimal("0.1")

    def test_from_dict_bad_type(self):
        with pytest.raises(ValueError, match="cupom"):
            Coupon.from_dict({"code": "X", "type": "bogo", "value": 1})


class TestCartTotals:
    def test_rounded(self):
        totals = CartTotals(
            subtotal=Decimal("35.75"),
            line_discounts=(Decimal("0.333"), Decimal("0")),
            item_discount=Decimal("0.333"),
            cart_discount=Decimal("3.5417"),
            coupon_discount=Decimal("0"),
            loyalty_discount=Decimal("0"),
            loyalty_points_used=0,
            total_discount=Decimal("3.8747"),
            total=Decimal("31.8753"),
            loyalty_points_earned=3,
        )
        rounded = totals.rounded()
        assert rounded.line_discounts == (Decimal("0.33"), Decimal("0.00"))
        assert rounded.cart_discount == Decimal("3.54")
        assert rounded.total == Decimal("31.88")
        assert rounded.loyalty_points_earned == 3
        assert totals.total == Decimal("31.8753")
