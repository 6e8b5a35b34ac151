from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from smartpdv.models.pix import PixKeyType
from smartpdv.services.exceptions import InvalidAmount, InvalidKeyFormat

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_RANDOM_KEY_RE = re.compile(r"[A-Za-z0-9]{32}")

_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def only_digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def _cpf_check_digit(digits: str) -> int:
    """Modulo-11 check digit over *digits* with weights len+1 .. 2."""
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder >= 10 else remainder


def _cnpj_check_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_email(value: str) -> bool:
    return _EMAIL_RE.fullmatch(value) is not None


def is_valid_cpf(value: str) -> bool:
    """Validate a CPF (punctuation allowed): 11 digits and both check digits."""
    cpf = only_digits(value)
    if len(cpf) != 11 or len(set(cpf)) == 1:
        return False
    if _cpf_check_digit(cpf[:9]) != int(cpf[9]):
        return False
    return _cpf_check_digit(cpf[:10]) == int(cpf[10])


def is_valid_cnpj(value: str) -> bool:
    """Validate a CNPJ (punctuation allowed): 14 digits and both check digits."""
    cnpj = only_digits(value)
    if len(cnpj) != 14 or len(set(cnpj)) == 1:
        return False
    if _cnpj_check_digit(cnpj[:12], _CNPJ_WEIGHTS_1) != int(cnpj[12]):
        return False
    return _cnpj_check_digit(cnpj[:13], _CNPJ_WEIGHTS_2) == int(cnpj[13])


def is_valid_phone(value: str) -> bool:
    """Phone keys: DDD + number, 10 or 11 digits once punctuation is stripped."""
    return len(only_digits(value)) in (10, 11)


def is_valid_random_key(value: str) -> bool:
    return _RANDOM_KEY_RE.fullmatch(value) is not None


_VALIDATORS = {
    PixKeyType.EMAIL: is_valid_email,
    PixKeyType.CPF: is_valid_cpf,
    PixKeyType.CNPJ: is_valid_cnpj,
    PixKeyType.PHONE: is_valid_phone,
    PixKeyType.RANDOM: is_valid_random_key,
}


def validate_pix_key(key: str, key_type: PixKeyType | str) -> bool:
    """Return True if *key* is well formed for *key_type*.

    An unknown key type is not an error, it just doesn't validate.
    """
    try:
        kind = PixKeyType(key_type)
    except ValueError:
        return False
    if not isinstance(key, str):
        return False
    return _VALIDATORS[kind](key)


def require_valid_pix_key(key: str, key_type: PixKeyType | str) -> str:
    """Return *key* unchanged, or raise InvalidKeyFormat."""
    if not validate_pix_key(key, key_type):
        label = key_type.value if isinstance(key_type, PixKeyType) else str(key_type)
        raise InvalidKeyFormat(f"Chave PIX invalida para o tipo '{label}': '{key}'", key_type=label)
    return key


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a money-like value to Decimal.

    Floats go through str() so 100.5 becomes Decimal('100.5'), not its
    binary expansion.
    """
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            raise InvalidAmount(f"Valor numerico invalido: '{value}'") from None
    if not d.is_finite():
        raise InvalidAmount(f"Valor numerico invalido: '{value}'")
    return d


def validate_monetary(value: Decimal | int | float | str) -> Decimal:
    """Validate a non-negative monetary value.

    Raises InvalidAmount for invalid or negative values.
    """
    d = to_decimal(value)
    if d < 0:
        raise InvalidAmount(f"Valor nao pode ser negativo: '{value}'")
    return d


def clamp_percent(value: Decimal | int | float | str) -> Decimal:
    """Clamp a percentage to 0-100."""
    d = to_decimal(value)
    return max(Decimal(0), min(Decimal(100), d))
