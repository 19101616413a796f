"""JWS verification engine.

Each signature entry is verified on its own:

    Decoded -> InputReconstructed -> Verified | Rejected

The signing input is rebuilt from the transmitted protected segment and the
shared payload. A rejected entry never affects the others, and a mismatch is
a result, not an exception.
"""

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from jwskit.config import get_settings
from jwskit.core.algorithms import JWSAlgorithm, ProviderTable, default_provider_table, resolve_algorithm
from jwskit.core.entry import JwsSignatureEntry
from jwskit.core.errors import KeyAlgorithmMismatchError, UnsupportedAlgorithmError
from jwskit.core.signing_input import build_signing_input

logger = logging.getLogger(__name__)


class VerificationStatus(str, Enum):
    """Terminal state of one entry's verification."""

    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one signature entry with one key."""

    index: int
    algorithm: str | None
    kid: str | None
    status: VerificationStatus
    reason: str | None = None

    @property
    def verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED


class SignedDocument(Protocol):
    """What the engine needs from a decoded JWS."""

    @property
    def signature_entries(self) -> Sequence[JwsSignatureEntry]: ...

    @property
    def encoded_payload(self) -> str: ...


class VerificationEngine:
    """Verifies signature entries against caller-supplied keys."""

    def __init__(self, providers: ProviderTable | None = None):
        self.providers = providers or default_provider_table()

    def verify_entry(
        self,
        entry: JwsSignatureEntry,
        encoded_payload: str,
        key: Any,
        index: int = 0,
    ) -> VerificationResult:
        """Verify one entry.

        Raises:
            KeyAlgorithmMismatchError: If the key does not fit the entry's
                algorithm family.
        """
        alg = entry.algorithm
        kid = entry.key_id
        if entry.is_malformed:
            return self._reject(index, alg, kid, entry.error)
        if alg is None:
            return self._reject(index, alg, kid, "Missing 'alg' header")
        try:
            provider = self.providers.get_provider(alg)
        except UnsupportedAlgorithmError as e:
            return self._reject(index, alg, kid, str(e))

        signing_input = build_signing_input(entry.encoded_protected, encoded_payload)
        logger.debug("Verifying signature entry %d (alg=%s, kid=%s)", index, alg, kid)

        if not provider.verify(signing_input, entry.signature, key):
            return self._reject(index, alg, kid, "Signature mismatch")
        return VerificationResult(index, alg, kid, VerificationStatus.VERIFIED)

    def verify(self, document: SignedDocument, key: Any, algorithm: Any) -> list[VerificationResult]:
        """Verify every entry that uses ``algorithm`` with ``key``.

        Entries using another algorithm produce no result.

        Raises:
            UnsupportedAlgorithmError: If ``algorithm`` is unknown or not in
                the provider table.
        """
        target = self.providers.get_provider(algorithm).algorithm
        return [
            self.verify_entry(entry, document.encoded_payload, key, index)
            for index, entry in enumerate(document.signature_entries)
            if _entry_algorithm(entry) == target
        ]

    def verify_all(
        self,
        document: SignedDocument,
        keys: Mapping[Any, Any],
        max_workers: int | None = None,
    ) -> list[VerificationResult]:
        """Verify all entries for which a key is supplied, in parallel.

        Args:
            document: Decoded compact or JSON JWS
            keys: Algorithm identifier -> verification key
            max_workers: Thread pool size (None = settings.verify_max_workers)

        Returns:
            Results in document order. Malformed entries are included as
            rejected, as is an entry whose key does not fit its algorithm;
            entries without a matching key are left out.
        """
        key_map = {resolve_algorithm(alg): key for alg, key in keys.items()}
        jobs = []
        results: dict[int, VerificationResult] = {}
        for index, entry in enumerate(document.signature_entries):
            if entry.is_malformed:
                results[index] = self._reject(index, entry.algorithm, entry.key_id, entry.error)
                continue
            alg = _entry_algorithm(entry)
            if alg in key_map:
                jobs.append((index, entry, key_map[alg]))

        if max_workers is None:
            max_workers = get_settings().verify_max_workers
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                index: executor.submit(self._verify_keyed, entry, document.encoded_payload, key, index)
                for index, entry, key in jobs
            }
            for index, future in futures.items():
                results[index] = future.result()

        return [results[index] for index in sorted(results)]

    def _verify_keyed(self, entry: JwsSignatureEntry, encoded_payload: str, key: Any, index: int) -> VerificationResult:
        try:
            return self.verify_entry(entry, encoded_payload, key, index)
        except KeyAlgorithmMismatchError as e:
            return self._reject(index, entry.algorithm, entry.key_id, str(e))

    def _reject(self, index: int, alg: str | None, kid: str | None, reason: str | None) -> VerificationResult:
        logger.warning("Signature entry %d rejected: %s", index, reason)
        return VerificationResult(index, alg, kid, VerificationStatus.REJECTED, reason)


def _entry_algorithm(entry: JwsSignatureEntry) -> JWSAlgorithm | None:
    try:
        return resolve_algorithm(entry.algorithm)
    except UnsupportedAlgorithmError:
        return None
