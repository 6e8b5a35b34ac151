from __future__ import annotations

from decimal import Decimal

import pytest

from smartpdv.models.pix import PaymentStatus, PixKeyType, PixMerchant, PixPaymentRequest
from smartpdv.services.cart import Cart

VALID_CPF = "12345678909"
VALID_CNPJ = "11222333000181"


def cpf_with_check_digits(base: str) -> str:
    """Append both CPF check digits to a 9-digit base."""
    digits = base
    for weight in (10, 11):
        total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
        remainder = (total * 10) % 11
        digits += str(0 if remainder >= 10 else remainder)
    return digits


def cnpj_with_check_digits(base: str) -> str:
    """Append both CNPJ check digits to a 12-digit base."""
    digits = base
    for weights in ((5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2), (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)):
        remainder = sum(int(d) * w for d, w in zip(digits, weights)) % 11
        digits += str(0 if remainder < 2 else 11 - remainder)
    return digits


# --- PIX fixtures ---


@pytest.fixture
def merchant_dict() -> dict:
    return {
        "chave": "teste@exemplo.com",
        "tipo_chave": "email",
        "beneficiario": "SmartPDV",
        "cidade": "SAO PAULO",
    }


@pytest.fixture
def merchant(merchant_dict: dict) -> PixMerchant:
    return PixMerchant.from_dict(merchant_dict)


@pytest.fixture
def pix_request() -> PixPaymentRequest:
    return PixPaymentRequest(
        key="teste@exemplo.com",
        key_type=PixKeyType.EMAIL,
        merchant_name="SmartPDV",
        merchant_city="SAO PAULO",
        amount=Decimal("100.50"),
        description="Teste de pagamento",
    )


class FakeEncoder:
    """QR encoder double that records what it was asked to encode."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[str] = []

    def encode(self, text: str) -> bytes:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("encoder exploded")
        return b"PNG:" + text.encode()


class FixedStatusProvider:
    def __init__(self, status: PaymentStatus) -> None:
        self.status = status
        self.calls: list[str] = []

    def check_status(self, transaction_id: str) -> PaymentStatus:
        self.calls.append(transaction_id)
        return self.status


@pytest.fixture
def fake_encoder() -> FakeEncoder:
    return FakeEncoder()


# --- Cart fixtures ---


@pytest.fixture
def cart() -> Cart:
    return Cart()


@pytest.fixture
def cart_ab(cart: Cart) -> Cart:
    """Item A (10.00 x 2) and item B (15.75 x 1): subtotal 35.75."""
    cart.add_item("A", "Cafe", Decimal("10"), quantity=2)
    cart.add_item("B", "Bolo", Decimal("15.75"))
    return cart
