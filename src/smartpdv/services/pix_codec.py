from __future__ import annotations

import secrets
import string
import unicodedata
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from smartpdv.config import (
    COUNTRY_CODE,
    CURRENCY_CODE,
    MERCHANT_CATEGORY_CODE,
    MERCHANT_CITY_MAX,
    MERCHANT_NAME_MAX,
    PAYLOAD_FORMAT_INDICATOR,
    PIX_GUI,
    POINT_OF_INITIATION,
    TXID_LENGTH,
)
from smartpdv.models.pix import (
    PixCode,
    PixCodecOptions,
    PixKeyType,
    PixMerchant,
    PixPaymentRequest,
)
from smartpdv.services.exceptions import EncodingFailure, InvalidAmount
from smartpdv.services.qr_encoder import PngQrEncoder, QrEncoder
from smartpdv.services.tlv import block, field, optional_field, with_crc
from smartpdv.utils.formatters import format_brl
from smartpdv.utils.validators import to_decimal

DEFAULT_OPTIONS = PixCodecOptions(
    gui=PIX_GUI,
    merchant_category_code=MERCHANT_CATEGORY_CODE,
    currency=CURRENCY_CODE,
    country=COUNTRY_CODE,
    initiation_method=POINT_OF_INITIATION,
)

# Payload as earlier SmartPDV releases emitted it: short account block, no CRC
LEGACY_OPTIONS = PixCodecOptions(
    gui=PIX_GUI,
    merchant_category_code=MERCHANT_CATEGORY_CODE,
    currency=CURRENCY_CODE,
    country=COUNTRY_CODE,
    initiation_method=POINT_OF_INITIATION,
    account_layout="bacen",
    append_crc=False,
)

_KEY_ALPHABET = string.ascii_uppercase + string.digits
_CENTS = Decimal("0.01")


def _ascii(text: str) -> str:
    """Strip accents: 'São Paulo' -> 'Sao Paulo'."""
    normalized = unicodedata.normalize("NFKD", text)
    return normalized.encode("ascii", "ignore").decode("ascii").strip()


def _cents(amount: Decimal | int | float | str) -> Decimal:
    """Non-negative amount quantized half-up to centavos."""
    d = to_decimal(amount)
    if d < 0:
        raise InvalidAmount(f"Valor PIX nao pode ser negativo: '{amount}'")
    try:
        return d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"Valor PIX fora do limite: '{amount}'") from None


def _amount_value(amount: Decimal | int | float | str | None) -> str | None:
    """Amount as '100.50', or None when absent or zero after rounding."""
    if amount is None:
        return None
    d = _cents(amount)
    if d == 0:
        return None
    return f"{d:f}"


def _merchant_account(request: PixPaymentRequest, city: str, options: PixCodecOptions) -> str:
    if options.account_layout == "bacen":
        return block(
            field("00", options.gui),
            field("01", request.key),
        )
    return block(
        field("00", options.gui),
        field("01", city),
        field("02", PixKeyType(request.key_type).value),
        field("03", request.key),
        field("04", options.merchant_category_code),
    )


def build_payload(request: PixPaymentRequest, options: PixCodecOptions = DEFAULT_OPTIONS) -> str:
    """Serialize *request* into the BR Code TLV text.

    Tag order is fixed. Optional fields (54, 62, 80) are left out entirely
    when their data is missing.
    """
    name = _ascii(request.merchant_name)[:MERCHANT_NAME_MAX]
    city = _ascii(request.merchant_city)[:MERCHANT_CITY_MAX]

    additional = None
    if request.transaction_id:
        additional = field("05", request.transaction_id)

    payload = block(
        field("00", PAYLOAD_FORMAT_INDICATOR),
        field("01", options.initiation_method),
        field("26", _merchant_account(request, city, options)),
        field("52", options.merchant_category_code),
        field("53", options.currency),
        optional_field("54", _amount_value(request.amount)),
        field("58", options.country),
        field("59", name),
        field("60", city),
        optional_field("62", additional),
        optional_field("80", request.description),
    )
    if options.append_crc:
        payload = with_crc(payload)
    return payload


def generate_qr_image(payload: str, encoder: QrEncoder | None = None) -> bytes:
    """Render *payload* as an image through *encoder* (PNG by default).

    Encoder errors surface as EncodingFailure; nothing is retried.
    """
    encoder = encoder or PngQrEncoder()
    try:
        return encoder.encode(payload)
    except Exception as exc:
        raise EncodingFailure(f"Falha ao gerar QR Code PIX: {exc}") from exc


def build_pix_code(
    request: PixPaymentRequest,
    encoder: QrEncoder | None = None,
    options: PixCodecOptions = DEFAULT_OPTIONS,
) -> PixCode:
    """Build the payload and, when an encoder is given, its QR image."""
    payload = build_payload(request, options)
    image = generate_qr_image(payload, encoder) if encoder is not None else None
    return PixCode(payload=payload, copy_and_paste=payload, image=image)


def format_pix_amount(amount: Decimal | int | float | str) -> str:
    """Amount in centavos without separator: 100.50 -> '10050', 0.99 -> '099'."""
    return f"{_cents(amount):f}".replace(".", "")


def generate_random_pix_key() -> str:
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(32))


def generate_transaction_id() -> str:
    """New txid: uppercase alphanumerics, BR Code length limit."""
    return uuid.uuid4().hex.upper()[:TXID_LENGTH]


def request_for_sale(
    merchant: PixMerchant,
    amount: Decimal | int | float | str,
    description: str | None = None,
    transaction_id: str | None = None,
) -> PixPaymentRequest:
    """Payment request for a finalized sale, using the stored merchant settings."""
    value = _cents(amount)
    if description is None:
        description = f"Pagamento SmartPDV - {format_brl(value)}"
    return PixPaymentRequest(
        key=merchant.key,
        key_type=merchant.key_type,
        merchant_name=merchant.name,
        merchant_city=merchant.city,
        amount=value,
        description=description,
        transaction_id=transaction_id or generate_transaction_id(),
    )
