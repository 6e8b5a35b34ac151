from __future__ import annotations

import base64
import io
import logging
from typing import Protocol

import qrcode
from qrcode.constants import ERROR_CORRECT_M

logger = logging.getLogger(__name__)


class QrEncoder(Protocol):
    def encode(self, text: str) -> bytes: ...


class PngQrEncoder:
    """Renders text as a black-on-white PNG QR code."""

    def __init__(self, box_size: int = 10, border: int = 2) -> None:
        self.box_size = box_size
        self.border = border

    def encode(self, text: str) -> bytes:
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        try:
            qr.add_data(text)
            qr.make(fit=True)
            img = qr.make_image(fill_color="black", back_color="white")
            buffered = io.BytesIO()
            img.save(buffered, format="PNG")
        except Exception:
            logger.warning("QR encoding failed for %d-char payload", len(text), exc_info=True)
            raise
        return buffered.getvalue()


def to_data_url(png: bytes) -> str:
    """Embed PNG bytes as a data URL (HTML receipts, web views)."""
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
