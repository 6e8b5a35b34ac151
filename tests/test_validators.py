from __future__ import annotations

from decimal import Decimal

import pytest
from conftest import VALID_CNPJ, VALID_CPF, cnpj_with_check_digits, cpf_with_check_digits
from hypothesis import given
from hypothesis import strategies as st

from smartpdv.models.pix import PixKeyType
from smartpdv.services.exceptions import InvalidAmount, InvalidKeyFormat
from smartpdv.utils.validators import (
    clamp_percent,
    is_valid_cnpj,
    is_valid_cpf,
    require_valid_pix_key,
    to_decimal,
    validate_monetary,
    validate_pix_key,
)


class TestEmail:
    def test_valid(self):
        assert validate_pix_key("teste@exemplo.com", "email") is True

    def test_missing_at(self):
        assert validate_pix_key("email-invalido", "email") is False

    def test_missing_tld_dot(self):
        assert validate_pix_key("user@localhost", "email") is False

    def test_whitespace_rejected(self):
        assert validate_pix_key("us er@exemplo.com", "email") is False

    def test_double_at_rejected(self):
        assert validate_pix_key("a@b@c.com", "email") is False


class TestCpf:
    def test_valid(self):
        assert validate_pix_key(VALID_CPF, "cpf") is True

    def test_wrong_check_digit(self):
        assert validate_pix_key("12345678901", "cpf") is False

    def test_punctuation_ignored(self):
        assert validate_pix_key("123.456.789-09", "cpf") is True

    def test_too_short(self):
        assert validate_pix_key("1234567890", "cpf") is False

    def test_too_long(self):
        assert validate_pix_key("123456789090", "cpf") is False

    @pytest.mark.parametrize("digit", "0123456789")
    def test_repeated_digits_rejected(self, digit):
        assert is_valid_cpf(digit * 11) is False

    def test_first_check_digit_ten_maps_to_zero(self):
        # 123456789 -> first check digit remainder is 10
        assert cpf_with_check_digits("123456789")[9] == "0"
        assert is_valid_cpf(cpf_with_check_digits("123456789"))

    @given(st.text(alphabet="0123456789", min_size=9, max_size=9))
    def test_generated_cpfs_validate(self, base):
        cpf = cpf_with_check_digits(base)
        assert is_valid_cpf(cpf) is (len(set(cpf)) > 1)

    @given(
        st.text(alphabet="0123456789", min_size=9, max_size=9),
        st.integers(min_value=0, max_value=10),
        st.integers(min_value=1, max_value=9),
    )
    def test_single_digit_mutation_detected(self, base, position, delta):
        cpf = cpf_with_check_digits(base)
        mutated = cpf[:position] + str((int(cpf[position]) + delta) % 10) + cpf[position + 1 :]
        if mutated == cpf_with_check_digits(mutated[:9]):
            return  # mutation still satisfies both check digits
        assert is_valid_cpf(mutated) is False


class TestCnpj:
    def test_valid(self):
        assert validate_pix_key(VALID_CNPJ, "cnpj") is True

    def test_punctuation_ignored(self):
        assert validate_pix_key("11.222.333/0001-81", "cnpj") is True

    def test_wrong_first_digit(self):
        assert validate_pix_key("11222333000191", "cnpj") is False

    def test_wrong_second_digit(self):
        assert validate_pix_key("11222333000182", "cnpj") is False

    def test_wrong_length(self):
        assert validate_pix_key("1122233300018", "cnpj") is False

    def test_repeated_digits_rejected(self):
        assert is_valid_cnpj("00000000000000") is False

    @given(st.text(alphabet="0123456789", min_size=12, max_size=12))
    def test_generated_cnpjs_validate(self, base):
        cnpj = cnpj_with_check_digits(base)
        assert is_valid_cnpj(cnpj) is (len(set(cnpj)) > 1)


class TestPhone:
    def test_mobile(self):
        assert validate_pix_key("11999999999", "phone") is True

    def test_landline(self):
        assert validate_pix_key("1133334444", "phone") is True

    def test_formatted(self):
        assert validate_pix_key("(11) 99999-9999", "phone") is True

    def test_too_short(self):
        assert validate_pix_key("123", "phone") is False

    def test_too_long(self):
        assert validate_pix_key("5511999999999", "phone") is False


class TestRandom:
    def test_valid(self):
        assert validate_pix_key("ABCDEFGHIJKLMNOPQRSTUVWXYZ123456", "random") is True

    def test_lowercase_accepted(self):
        assert validate_pix_key("abcdefghijklmnopqrstuvwxyz123456", "random") is True

    def test_wrong_length(self):
        assert validate_pix_key("ABC123", "random") is False

    def test_symbols_rejected(self):
        assert validate_pix_key("ABCDEFGHIJKLMNOPQRSTUVWXYZ12345-", "random") is False


class TestDispatch:
    def test_unknown_type_is_false(self):
        assert validate_pix_key("teste@exemplo.com", "boleto") is False

    def test_none_type_is_false(self):
        assert validate_pix_key("teste@exemplo.com", None) is False

    def test_enum_accepted(self):
        assert validate_pix_key(VALID_CPF, PixKeyType.CPF) is True

    def test_type_mismatch(self):
        assert validate_pix_key(VALID_CPF, "email") is False


class TestRequireValidPixKey:
    def test_returns_key(self):
        assert require_valid_pix_key(VALID_CPF, "cpf") == VALID_CPF

    def test_raises_with_key_type(self):
        with pytest.raises(InvalidKeyFormat, match="cpf") as exc_info:
            require_valid_pix_key("12345678901", "cpf")
        assert exc_info.value.key_type == "cpf"

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            require_valid_pix_key("x", PixKeyType.EMAIL)


class TestMoney:
    def test_float_goes_through_str(self):
        assert to_decimal(100.50) == Decimal("100.5")
        assert str(to_decimal(0.1)) == "0.1"

    def test_non_numeric(self):
        with pytest.raises(InvalidAmount, match="invalido"):
            to_decimal("abc")

    def test_nan(self):
        with pytest.raises(InvalidAmount):
            to_decimal("NaN")

    def test_negative_rejected(self):
        with pytest.raises(InvalidAmount, match="negativo"):
            validate_monetary("-1")

    def test_zero_allowed(self):
        assert validate_monetary(0) == Decimal(0)

    @pytest.mark.parametrize(("raw", "expected"), [(-5, "0"), (50, "50"), (150, "100"), ("12.5", "12.5")])
    def test_clamp_percent(self, raw, expected):
        assert clamp_percent(raw) == Decimal(expected)
