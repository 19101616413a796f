"""JWS Signing Input (RFC 7515 section 5.1).

    ASCII(BASE64URL(UTF8(JWS Protected Header)) || '.' || BASE64URL(JWS Payload))

The protected segment is taken as the Base64URL text that is transmitted, never
re-serialized from a header object, so verification hashes exactly the bytes
the signer hashed. A signer without a protected header contributes an empty
segment; the dot is always present.
"""

from jwskit.core.headers import JoseHeaders
from jwskit.core.utils import b64url_encode, to_bytes


def encode_payload(payload: bytes | str) -> str:
    """Base64URL of the payload bytes (text is UTF-8 encoded first)."""
    return b64url_encode(to_bytes(payload))


def encode_protected(headers: JoseHeaders | None) -> str:
    """Encoded protected segment, empty when there is no protected header."""
    if not headers:
        return ""
    return headers.encode()


def build_signing_input(encoded_protected: str | None, encoded_payload: str) -> bytes:
    """Join the encoded protected header and encoded payload.

    Args:
        encoded_protected: Base64URL protected header as transmitted, or
            None/"" when the signer has no protected header
        encoded_payload: Base64URL payload

    Returns:
        ASCII bytes to be signed
    """
    return f"{encoded_protected or ''}.{encoded_payload}".encode("ascii")
