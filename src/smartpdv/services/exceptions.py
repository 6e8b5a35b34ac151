from __future__ import annotations

from decimal import Decimal


class PdvError(Exception):
    """Base class for failures reported by the PIX codec and the cart engine."""


class InvalidKeyFormat(PdvError, ValueError):
    """PIX key fails format or check-digit validation for its key type."""

    def __init__(self, message: str, key_type: str | None = None) -> None:
        super().__init__(message)
        self.key_type = key_type


class InvalidAmount(PdvError, ValueError):
    pass


class FieldTooLong(PdvError, ValueError):
    """A TLV value does not fit the 2-digit length prefix."""


class MalformedPayload(PdvError, ValueError):
    pass


class InvalidQuantity(PdvError, ValueError):
    pass


class InsufficientStock(InvalidQuantity):
    """Requested quantity exceeds the stock ceiling supplied by the caller."""

    def __init__(self, message: str, available: int) -> None:
        super().__init__(message)
        self.available = available


class ItemNotFound(PdvError, LookupError):
    pass


class UnknownCoupon(PdvError, LookupError):
    pass


class CouponMinimumNotMet(PdvError, ValueError):
    def __init__(self, message: str, minimum: Decimal) -> None:
        super().__init__(message)
        self.minimum = minimum


class EncodingFailure(PdvError):
    """The QR encoder could not render the payload."""


class PaymentStatusError(PdvError):
    """The payment-status source answered with an error or an unreadable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
