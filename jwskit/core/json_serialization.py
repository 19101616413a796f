"""JWS JSON Serialization (RFC 7515 section 7.2).

General:
    {"payload": ..., "signatures": [{"protected": ..., "header": {...}, "signature": ...}, ...]}

Flattened (exactly one signer):
    {"payload": ..., "protected": ..., "header": {...}, "signature": ...}

``payload`` is omitted for a detached payload. Each signer may carry a
protected header, an unprotected header or both; the two must not share a
parameter name. Only the protected header and the payload are signed.
"""

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from jwskit.core.algorithms import ProviderTable, default_provider_table, resolve_algorithm
from jwskit.core.entry import JwsSignatureEntry
from jwskit.core.errors import FormatError, JOSEError
from jwskit.core.headers import JoseHeaders, check_disjoint
from jwskit.core.signing_input import build_signing_input, encode_payload, encode_protected
from jwskit.core.utils import b64url_decode, json_dumps, json_loads_object, to_bytes
from jwskit.core.verifier import VerificationEngine, VerificationResult
from jwskit.schemas.jws import JwsFlattenedModel, JwsGeneralModel, JwsSignatureModel

logger = logging.getLogger(__name__)


@dataclass
class JwsSigner:
    """Inputs for one signature of a JSON JWS."""

    key: Any
    algorithm: Any = None
    protected: Mapping[str, Any] | None = None
    unprotected: Mapping[str, Any] | None = None


class JwsJsonProducer:
    """Builds a General or Flattened JSON JWS with one or more signers."""

    def __init__(
        self,
        payload: bytes | str,
        flattened: bool = False,
        providers: ProviderTable | None = None,
    ):
        self.payload = to_bytes(payload)
        self.flattened = flattened
        self.providers = providers or default_provider_table()
        self._entries: list[JwsSignatureEntry] = []

    @property
    def encoded_payload(self) -> str:
        return encode_payload(self.payload)

    @property
    def signature_entries(self) -> tuple[JwsSignatureEntry, ...]:
        return tuple(self._entries)

    def sign_with(
        self,
        key: Any,
        algorithm: Any = None,
        protected: Mapping[str, Any] | None = None,
        unprotected: Mapping[str, Any] | None = None,
    ) -> JwsSignatureEntry:
        """Add one signature.

        ``alg`` comes from the protected header, else the unprotected header.
        When neither has it, ``algorithm`` is written into the protected
        header (or the unprotected one if that is the only header given).

        Raises:
            HeaderConflictError: If the headers share a parameter name
            FormatError: If flattened and already signed, or ``alg`` is
                missing or differs from ``algorithm``
            UnsupportedAlgorithmError: If the algorithm is not supported
            KeyAlgorithmMismatchError: If the key does not fit the algorithm
        """
        if self.flattened and self._entries:
            raise FormatError("Flattened JWS JSON supports a single signature")
        entry = self._create_entry(JwsSigner(key, algorithm, protected, unprotected))
        self._entries.append(entry)
        return entry

    def sign_all(self, signers: Iterable[JwsSigner], max_workers: int | None = None) -> list[JwsSignatureEntry]:
        """Add several signatures, computed in parallel, kept in the given order."""
        signers = list(signers)
        if self.flattened and len(self._entries) + len(signers) > 1:
            raise FormatError("Flattened JWS JSON supports a single signature")
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            entries = list(executor.map(self._create_entry, signers))
        self._entries.extend(entries)
        return entries

    def _create_entry(self, signer: JwsSigner) -> JwsSignatureEntry:
        protected = JoseHeaders(signer.protected) if signer.protected else None
        unprotected = JoseHeaders(signer.unprotected) if signer.unprotected else None
        check_disjoint(protected, unprotected)

        header_alg = None
        for headers in (protected, unprotected):
            if headers and headers.algorithm is not None:
                header_alg = headers.algorithm
                break

        if signer.algorithm is not None:
            requested = resolve_algorithm(signer.algorithm).value
            if header_alg is None:
                if protected is None and unprotected is not None:
                    unprotected.algorithm = requested
                else:
                    protected = protected or JoseHeaders()
                    protected.algorithm = requested
            elif header_alg != requested:
                raise FormatError(f"Header 'alg' {header_alg!r} does not match requested {requested}")
            header_alg = requested
        elif header_alg is None:
            raise FormatError("Missing 'alg' header")

        provider = self.providers.get_provider(header_alg)
        encoded_protected = encode_protected(protected)
        signing_input = build_signing_input(encoded_protected, self.encoded_payload)
        signature = provider.sign(signing_input, signer.key)
        logger.debug(
            "Signed JWS JSON entry (alg=%s, protected=%s)", provider.algorithm.value, bool(encoded_protected)
        )
        return JwsSignatureEntry(encoded_protected or None, protected, unprotected, signature)

    def to_dict(self, detached: bool = False) -> dict[str, Any]:
        """The document as an ordered dict.

        Raises:
            FormatError: If nothing is signed, or flattened with several signers
        """
        if not self._entries:
            raise FormatError("JWS JSON has no signatures")
        document: dict[str, Any] = {}
        if not detached:
            document["payload"] = self.encoded_payload
        if self.flattened:
            if len(self._entries) != 1:
                raise FormatError("Flattened JWS JSON supports a single signature")
            document.update(self._entries[0].to_dict())
        else:
            document["signatures"] = [entry.to_dict() for entry in self._entries]
        return document

    def signed_document(self, detached: bool = False) -> str:
        """Serialized JSON text."""
        return json_dumps(self.to_dict(detached))


def flatten(document: str | Mapping[str, Any]) -> str:
    """Convert a single-signer General document to the Flattened form.

    Raises:
        FormatError: If the input is not General or has several signatures
    """
    data = _load(document)
    if "signatures" not in data:
        raise FormatError("Not a General JWS JSON document")
    general = _validate(JwsGeneralModel, data)
    if len(general.signatures) != 1:
        raise FormatError("Only a single-signature document can be flattened")
    if not isinstance(general.signatures[0], dict):
        raise FormatError("Signature entry must be a JSON object")
    flattened: dict[str, Any] = {}
    if general.payload is not None:
        flattened["payload"] = general.payload
    flattened.update(general.signatures[0])
    return json_dumps(flattened)


class JwsJsonConsumer:
    """Parses a General or Flattened JSON JWS."""

    def __init__(
        self,
        document: str | bytes | Mapping[str, Any],
        detached_payload: bytes | str | None = None,
        providers: ProviderTable | None = None,
    ):
        data = _load(document)
        if "signatures" in data:
            if "signature" in data:
                raise FormatError("JWS JSON mixes General and Flattened members")
            model = _validate(JwsGeneralModel, data)
            raw_entries = model.signatures
            self.is_flattened = False
        else:
            model = _validate(JwsFlattenedModel, data)
            raw_entries = [{k: v for k, v in data.items() if k != "payload"}]
            self.is_flattened = True

        if model.payload is not None:
            if detached_payload is not None:
                raise FormatError("Payload is attached; a detached payload must not be supplied")
            self.payload = b64url_decode(model.payload)
            self.encoded_payload = model.payload
            self.is_detached = False
        else:
            if detached_payload is None:
                raise FormatError("Detached JWS requires the payload to be supplied")
            self.payload = to_bytes(detached_payload)
            self.encoded_payload = encode_payload(self.payload)
            self.is_detached = True

        self.signature_entries = tuple(
            _decode_entry(raw, index) for index, raw in enumerate(raw_entries)
        )
        self.providers = providers or default_provider_table()

    def verify_signature_with(self, key: Any, algorithm: Any) -> bool:
        """True if an entry using ``algorithm`` verifies with ``key``.

        False when no entry uses ``algorithm``.
        """
        results = VerificationEngine(self.providers).verify(self, key, algorithm)
        return any(r.verified for r in results)

    def verify_all(self, keys: Mapping[Any, Any], max_workers: int | None = None) -> list[VerificationResult]:
        """Verify every entry for which ``keys`` holds a key, by algorithm."""
        return VerificationEngine(self.providers).verify_all(self, keys, max_workers)


def _load(document: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(document, Mapping):
        return dict(document)
    return json_loads_object(document, "JWS JSON")


def _validate(model: type, data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise FormatError(f"Invalid JWS JSON: {e}") from e


def _decode_entry(raw: Any, index: int) -> JwsSignatureEntry:
    """Decode one entry; failures yield a malformed entry instead of raising."""
    raw_protected = raw.get("protected") if isinstance(raw, dict) else None
    try:
        model = JwsSignatureModel.model_validate(raw)
        protected = JoseHeaders.decode(model.protected) if model.protected else None
        unprotected = JoseHeaders(model.header) if model.header else None
        check_disjoint(protected, unprotected)
        signature = b64url_decode(model.signature)
    except (ValidationError, JOSEError) as e:
        logger.warning("Malformed JWS JSON signature entry %d: %s", index, e)
        return JwsSignatureEntry.malformed(str(e), raw_protected)
    return JwsSignatureEntry(model.protected or None, protected, unprotected, signature)
