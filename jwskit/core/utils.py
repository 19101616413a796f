"""Base64URL and JSON helpers shared by the codecs."""

import base64
import binascii
import json
import re
from typing import Any

from jwskit.core.errors import FormatError

_B64URL_ALPHABET = re.compile(r"^[A-Za-z0-9_-]*$")


def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """Base64url decode with padding restoration.

    Raises:
        FormatError: If the input has padding, characters outside the
            url-safe alphabet, or an impossible length.
    """
    if not isinstance(data, str) or not _B64URL_ALPHABET.match(data):
        raise FormatError("Invalid Base64URL value")
    if len(data) % 4 == 1:
        raise FormatError("Invalid Base64URL length")
    padding = 4 - len(data) % 4
    if padding != 4:
        data += "=" * padding
    try:
        return base64.urlsafe_b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"Invalid Base64URL value: {e}") from e


def to_bytes(data: bytes | str) -> bytes:
    """UTF-8 encode text, pass bytes through."""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def json_dumps(value: Any) -> str:
    """Compact JSON, insertion ordered, non-ASCII kept as is."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def json_loads_object(text: str | bytes, what: str = "JSON") -> dict:
    """Parse text that must hold a JSON object."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FormatError(f"Invalid {what}: {e}") from e
    if not isinstance(value, dict):
        raise FormatError(f"Invalid {what}: expected a JSON object")
    return value
