"""JWS Compact Serialization (RFC 7515 section 7.1).

    BASE64URL(protected) '.' BASE64URL(payload) '.' BASE64URL(signature)

One signer only. In detached mode (RFC 7515 appendix F) the middle segment is
empty and the payload travels out of band; the signature still covers it.
"""

import logging
from collections.abc import Mapping
from typing import Any

from jwskit.core.algorithms import ProviderTable, default_provider_table, resolve_algorithm
from jwskit.core.entry import JwsSignatureEntry
from jwskit.core.errors import FormatError
from jwskit.core.headers import JoseHeaders
from jwskit.core.signing_input import build_signing_input, encode_payload
from jwskit.core.utils import b64url_decode, b64url_encode, to_bytes
from jwskit.core.verifier import VerificationEngine

logger = logging.getLogger(__name__)


class JwsCompactProducer:
    """Builds and signs a compact JWS."""

    def __init__(
        self,
        payload: bytes | str,
        headers: Mapping[str, Any] | None = None,
        providers: ProviderTable | None = None,
    ):
        self.payload = to_bytes(payload)
        self.headers = JoseHeaders(headers)
        self.providers = providers or default_provider_table()
        self._encoded_protected: str | None = None
        self._signature: bytes | None = None

    @property
    def encoded_payload(self) -> str:
        return encode_payload(self.payload)

    @property
    def encoded_protected(self) -> str:
        """Protected header segment, frozen once signed."""
        if self._encoded_protected is not None:
            return self._encoded_protected
        return self.headers.encode()

    def unsigned_encoded_jws(self) -> str:
        """The signing input as text: protected '.' payload."""
        return f"{self.encoded_protected}.{self.encoded_payload}"

    def sign_with(self, key: Any, algorithm: Any = None) -> str:
        """Sign and return the compact serialization.

        Args:
            key: Signing key (bytes for HMAC, private key otherwise)
            algorithm: Algorithm to use; written into the header when the
                header has no ``alg``

        Raises:
            FormatError: If already signed, or ``alg`` is missing or differs
                from ``algorithm``
            UnsupportedAlgorithmError: If the algorithm is not supported
            KeyAlgorithmMismatchError: If the key does not fit the algorithm
        """
        if self._signature is not None:
            raise FormatError("JWS already signed")

        header_alg = self.headers.algorithm
        if algorithm is not None:
            requested = resolve_algorithm(algorithm)
            if header_alg is None:
                self.headers.algorithm = requested.value
            elif header_alg != requested.value:
                raise FormatError(f"Header 'alg' {header_alg!r} does not match requested {requested.value}")
        elif header_alg is None:
            raise FormatError("Missing 'alg' header")

        provider = self.providers.get_provider(self.headers.algorithm)
        encoded_protected = self.headers.encode()
        signing_input = build_signing_input(encoded_protected, self.encoded_payload)
        signature = provider.sign(signing_input, key)

        self._encoded_protected = encoded_protected
        self._signature = signature
        logger.debug("Signed compact JWS (alg=%s, kid=%s)", provider.algorithm.value, self.headers.key_id)
        return self.signed_encoded_jws()

    @property
    def is_signed(self) -> bool:
        return self._signature is not None

    def encoded_signature(self) -> str:
        if self._signature is None:
            raise FormatError("JWS not signed")
        return b64url_encode(self._signature)

    def signed_encoded_jws(self, detached: bool = False) -> str:
        """Compact serialization; ``detached`` leaves the payload segment empty."""
        payload_segment = "" if detached else self.encoded_payload
        return f"{self.encoded_protected}.{payload_segment}.{self.encoded_signature()}"


class JwsCompactConsumer:
    """Parses a compact JWS and verifies its signature."""

    def __init__(
        self,
        jws: str,
        detached_payload: bytes | str | None = None,
        providers: ProviderTable | None = None,
    ):
        if not isinstance(jws, str):
            raise FormatError("Compact JWS must be a string")
        parts = jws.strip().split(".")
        if len(parts) != 3:
            raise FormatError(f"Invalid JWS format: expected 3 segments, got {len(parts)}")

        encoded_protected, encoded_payload, encoded_signature = parts
        if not encoded_protected:
            raise FormatError("Compact JWS requires a protected header")

        self.encoded_protected = encoded_protected
        self.headers = JoseHeaders.decode(encoded_protected)
        self.signature = b64url_decode(encoded_signature)

        if encoded_payload:
            if detached_payload is not None:
                raise FormatError("Payload is attached; a detached payload must not be supplied")
            self.payload = b64url_decode(encoded_payload)
            self.encoded_payload = encoded_payload
            self.is_detached = False
        else:
            if detached_payload is None:
                raise FormatError("Detached JWS requires the payload to be supplied")
            self.payload = to_bytes(detached_payload)
            self.encoded_payload = encode_payload(self.payload)
            self.is_detached = True

        self.providers = providers or default_provider_table()

    @property
    def signature_entries(self) -> tuple[JwsSignatureEntry, ...]:
        return (JwsSignatureEntry(self.encoded_protected, self.headers, None, self.signature),)

    @property
    def algorithm(self) -> str | None:
        return self.headers.algorithm

    def verify_signature_with(self, key: Any, algorithm: Any) -> bool:
        """True if the signature verifies with ``key`` under ``algorithm``.

        A header ``alg`` other than ``algorithm`` gives False.
        """
        results = VerificationEngine(self.providers).verify(self, key, algorithm)
        return any(r.verified for r in results)
