"""Signature entries shared by the Compact and JSON codecs."""

from dataclasses import dataclass
from typing import Any

from jwskit.core.headers import JoseHeaders, merge_headers
from jwskit.core.utils import b64url_encode, json_dumps


@dataclass(frozen=True)
class JwsSignatureEntry:
    """One signer's headers and signature.

    ``encoded_protected`` is the protected header exactly as transmitted. It is
    the only header input to signature verification.
    """

    encoded_protected: str | None
    protected: JoseHeaders | None
    unprotected: JoseHeaders | None
    signature: bytes
    error: str | None = None  # set when the entry could not be decoded

    @classmethod
    def malformed(cls, reason: str, encoded_protected: Any = None) -> "JwsSignatureEntry":
        """Placeholder for an entry that failed to decode."""
        if not isinstance(encoded_protected, str):
            encoded_protected = None
        return cls(encoded_protected, None, None, b"", error=reason)

    @property
    def is_malformed(self) -> bool:
        return self.error is not None

    @property
    def algorithm(self) -> str | None:
        """``alg`` from the protected header, else the unprotected header."""
        for headers in (self.protected, self.unprotected):
            if headers and headers.algorithm is not None:
                return headers.algorithm
        return None

    @property
    def key_id(self) -> str | None:
        for headers in (self.protected, self.unprotected):
            if headers and headers.key_id is not None:
                return headers.key_id
        return None

    @property
    def encoded_signature(self) -> str:
        return b64url_encode(self.signature)

    def combined_headers(self) -> JoseHeaders:
        """Protected and unprotected parameters in one view."""
        return merge_headers(self.protected, self.unprotected)

    def to_dict(self) -> dict[str, Any]:
        """JSON members of this entry: protected, header, signature."""
        data: dict[str, Any] = {}
        if self.encoded_protected:
            data["protected"] = self.encoded_protected
        if self.unprotected:
            data["header"] = self.unprotected.as_dict()
        data["signature"] = self.encoded_signature
        return data

    def to_json(self) -> str:
        return json_dumps(self.to_dict())
