from __future__ import annotations

import base64

from .errors import InputValidationError


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except ValueError as exc:
        raise InputValidationError(f"Invalid base64 payload: {exc}") from exc


def encode_length(length: int) -> bytes:
    """Encode a length as compact-u16 (7 bits per byte, high bit = continue)."""
    if length < 0 or length > 0xFFFF:
        raise InputValidationError(f"Length out of compact-u16 range: {length}")
    out = bytearray()
    while True:
        byte = length & 0x7F
        length >>= 7
        if length:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_length(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a compact-u16 at ``offset``.

    Returns:
        Tuple of (value, new_offset)
    """
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise InputValidationError("Truncated compact-u16 length")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            if i > 0 and byte == 0:
                raise InputValidationError("Non-canonical compact-u16 length")
            if value > 0xFFFF:
                raise InputValidationError(f"compact-u16 length out of range: {value}")
            return value, offset + i + 1
    raise InputValidationError("compact-u16 length longer than 3 bytes")
