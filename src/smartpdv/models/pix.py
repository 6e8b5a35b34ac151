from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Literal


class PixKeyType(StrEnum):
    EMAIL = "email"
    CPF = "cpf"
    CNPJ = "cnpj"
    PHONE = "phone"
    RANDOM = "random"


@dataclass(frozen=True)
class PixPaymentRequest:
    """Data serialized into a BR Code.

    The key is expected to have passed validate_pix_key() already; the
    codec does not re-check it.
    """

    key: str
    key_type: PixKeyType
    merchant_name: str
    merchant_city: str
    amount: Decimal | None = None  # None: payer types the amount
    description: str | None = None
    transaction_id: str | None = None


@dataclass(frozen=True)
class PixCode:
    payload: str
    copy_and_paste: str
    image: bytes | None = None


@dataclass(frozen=True)
class PixMerchant:
    """Merchant PIX settings (config/pix.yaml)."""

    key: str
    key_type: PixKeyType
    name: str
    city: str

    @classmethod
    def from_dict(cls, d: dict) -> PixMerchant:
        """Create a PixMerchant from a YAML-loaded dict, validating the key."""
        from smartpdv.utils.validators import require_valid_pix_key

        key = str(d["chave"]).strip()
        key_type = str(d.get("tipo_chave", "email"))
        require_valid_pix_key(key, key_type)
        return cls(
            key=key,
            key_type=PixKeyType(key_type),
            name=d["beneficiario"],
            city=d["cidade"],
        )

    def to_dict(self) -> dict:
        return {
            "chave": self.key,
            "tipo_chave": self.key_type.value,
            "beneficiario": self.name,
            "cidade": self.city,
        }


@dataclass(frozen=True)
class PixCodecOptions:
    """Fixed BR Code fields and layout switches passed to the codec."""

    gui: str
    merchant_category_code: str
    currency: str
    country: str
    initiation_method: str
    account_layout: Literal["extended", "bacen"] = "extended"
    append_crc: bool = True


PaymentState = Literal["pending", "completed", "failed"]


@dataclass(frozen=True)
class PaymentStatus:
    status: PaymentState
    amount: Decimal | None = None
    settled_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.status == "completed"
