"""JOSE header model.

Headers are ordered: the protected header is signed over its exact serialized
bytes, so parameters are written out in the order they were set.
"""

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

from jwskit.core.errors import FormatError, HeaderConflictError
from jwskit.core.utils import b64url_decode, b64url_encode, json_dumps, json_loads_object

# Registered header parameter names (RFC 7515 section 4.1)
ALGORITHM = "alg"
KEY_ID = "kid"
TYPE = "typ"
CONTENT_TYPE = "cty"
CRITICAL = "crit"


class JoseHeaders(MutableMapping):
    """Ordered JOSE header parameters."""

    def __init__(self, mapping: Mapping[str, Any] | None = None, **fields: Any):
        self._values: dict[str, Any] = {}
        if mapping:
            self.update(mapping)
        if fields:
            self.update(fields)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise FormatError(f"Header parameter names must be strings, got {type(key).__name__}")
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JoseHeaders):
            return list(self._values.items()) == list(other._values.items())
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"JoseHeaders({self._values!r})"

    @property
    def algorithm(self) -> str | None:
        return self._values.get(ALGORITHM)

    @algorithm.setter
    def algorithm(self, value: str) -> None:
        self[ALGORITHM] = str(value)

    @property
    def key_id(self) -> str | None:
        return self._values.get(KEY_ID)

    @key_id.setter
    def key_id(self, value: str) -> None:
        self[KEY_ID] = value

    @property
    def type(self) -> str | None:
        return self._values.get(TYPE)

    @property
    def content_type(self) -> str | None:
        return self._values.get(CONTENT_TYPE)

    @property
    def critical(self) -> list[str]:
        return list(self._values.get(CRITICAL) or [])

    def as_dict(self) -> dict[str, Any]:
        """Copy of the parameters in insertion order."""
        return dict(self._values)

    def to_json(self) -> str:
        """Serialize as compact JSON in insertion order."""
        return json_dumps(self._values)

    def encode(self) -> str:
        """Base64URL(UTF8(JSON)) of the header."""
        return b64url_encode(self.to_json().encode("utf-8"))

    @classmethod
    def decode(cls, encoded: str) -> "JoseHeaders":
        """Parse a Base64URL-encoded header.

        Raises:
            FormatError: If the value is not Base64URL or not a JSON object.
        """
        return cls(json_loads_object(b64url_decode(encoded), "JOSE header"))


def check_disjoint(protected: Mapping[str, Any] | None, unprotected: Mapping[str, Any] | None) -> None:
    """Raise HeaderConflictError if any parameter appears in both headers."""
    if not protected or not unprotected:
        return
    overlap = [key for key in protected if key in unprotected]
    if overlap:
        raise HeaderConflictError(overlap)


def merge_headers(
    protected: Mapping[str, Any] | None,
    unprotected: Mapping[str, Any] | None,
) -> JoseHeaders:
    """Combined view of a signer's protected and unprotected headers.

    For presentation only; the signing input is always rebuilt from the
    transmitted protected bytes.

    Raises:
        HeaderConflictError: If the headers share a parameter name.
    """
    check_disjoint(protected, unprotected)
    merged = JoseHeaders(protected)
    if unprotected:
        merged.update(unprotected)
    return merged
