"""
codec.py
========
Light obfuscation for stored puzzle records, so solutions are not readable at
a glance. Not encryption.

`cards`, `dice` and `solution` are each serialised to compact JSON, UTF-8
encoded, XOR-ed byte by byte with the 4-byte key (little-endian, byte i uses
key byte i % 4) and base64 encoded. Every other field passes through.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, Mapping

try:
    from .type import RecordFormatError
except ImportError:  # direct execution fallback
    from type import RecordFormatError

XOR_KEY = 0x52533221
_KEY_BYTES = XOR_KEY.to_bytes(4, "little")
ENCODED_FIELDS = ("cards", "dice", "solution")


def _xor(data: bytes) -> bytes:
    return bytes(b ^ _KEY_BYTES[i % 4] for i, b in enumerate(data))


def encode_value(value: Any) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(_xor(text.encode("utf-8"))).decode("ascii")


def decode_value(text: str) -> Any:
    try:
        raw = _xor(base64.b64decode(text, validate=True))
        return json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise RecordFormatError(f"Cannot decode field payload: {e}") from e


def encode_puzzle(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of `record` with the sensitive fields encoded."""
    encoded = dict(record)
    for field in ENCODED_FIELDS:
        if record.get(field) is not None:
            encoded[field] = encode_value(record[field])
    return encoded


def decode_puzzle(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of `record` with encoded fields restored; non-string fields are left alone."""
    decoded = dict(record)
    for field in ENCODED_FIELDS:
        if isinstance(record.get(field), str):
            decoded[field] = decode_value(record[field])
    return decoded
