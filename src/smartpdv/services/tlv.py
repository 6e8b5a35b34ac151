"""EMV tag-length-value helpers for BR Code payloads.

Each field is ID (2 digits) + LENGTH (2 digits, zero padded) + VALUE, where
LENGTH counts the UTF-8 bytes of VALUE. Nested templates (26, 62) are fields
whose value is another run of fields.
"""

from __future__ import annotations

import binascii
import re

from smartpdv.services.exceptions import FieldTooLong, MalformedPayload

CRC_TAG = "63"

_ID_RE = re.compile(r"\d{2}")


def field(tag: str, value: str) -> str:
    """Render one TLV field."""
    if not _ID_RE.fullmatch(tag):
        raise ValueError(f"ID de campo invalido: '{tag}'")
    size = len(value.encode("utf-8"))
    if size > 99:
        raise FieldTooLong(f"Campo {tag}: valor com {size} bytes excede o limite de 99")
    return f"{tag}{size:02d}{value}"


def optional_field(tag: str, value: str | None) -> str:
    """Render a field, or nothing when *value* is empty or None."""
    if not value:
        return ""
    return field(tag, value)


def block(*parts: str) -> str:
    return "".join(parts)


def parse_tlv(text: str) -> list[tuple[str, str]]:
    """Split a TLV string into (tag, value) pairs, in order.

    Raises MalformedPayload when a header is garbled or a value is cut short.
    """
    data = text.encode("utf-8")
    pos = 0
    out: list[tuple[str, str]] = []
    while pos < len(data):
        header = data[pos : pos + 4]
        if len(header) < 4 or not header.isdigit():
            raise MalformedPayload(f"Cabecalho TLV invalido na posicao {pos}")
        tag = header[:2].decode()
        size = int(header[2:])
        value = data[pos + 4 : pos + 4 + size]
        if len(value) != size:
            raise MalformedPayload(f"Campo {tag}: esperado {size} bytes, encontrado {len(value)}")
        try:
            out.append((tag, value.decode("utf-8")))
        except UnicodeDecodeError:
            raise MalformedPayload(f"Campo {tag}: tamanho corta um caractere UTF-8") from None
        pos += 4 + size
    return out


def crc16(text: str) -> str:
    """CRC-16/CCITT-FALSE (poly 0x1021, init 0xFFFF) as 4 uppercase hex digits."""
    return f"{binascii.crc_hqx(text.encode('utf-8'), 0xFFFF):04X}"


def with_crc(payload: str) -> str:
    """Append the CRC field; the checksum covers the payload plus '6304'."""
    head = f"{CRC_TAG}04"
    return payload + head + crc16(payload + head)


def verify_crc(payload: str) -> bool:
    """Check the trailing CRC field of a BR Code payload."""
    if len(payload) < 8 or payload[-8:-4] != f"{CRC_TAG}04":
        return False
    return crc16(payload[:-4]) == payload[-4:].upper()
