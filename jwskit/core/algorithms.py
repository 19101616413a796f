"""JWS signature algorithms (RFC 7518 section 3).

Supported JWS Algorithms:
- HS256, HS384, HS512 (HMAC with SHA-2)
- RS256, RS384, RS512 (RSASSA-PKCS1-v1_5 with SHA-2)
- PS256, PS384, PS512 (RSASSA-PSS with SHA-2 and MGF1 with SHA-2)
- ES256, ES384, ES512 (ECDSA P-256, P-384, P-521)

Each algorithm family has one provider class. Providers are collected in an
immutable ProviderTable built once and passed to the codecs and the
verification engine.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac as crypto_hmac
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from jwskit.config import Settings, get_settings
from jwskit.core.errors import KeyAlgorithmMismatchError, UnsupportedAlgorithmError

logger = logging.getLogger(__name__)


class AlgorithmFamily(str, Enum):
    """Signature algorithm families."""

    HMAC = "HMAC"
    RSA_PKCS1 = "RSASSA-PKCS1-v1_5"
    RSA_PSS = "RSASSA-PSS"
    ECDSA = "ECDSA"


class JWSAlgorithm(str, Enum):
    """Supported JWS signature algorithms."""

    HS256 = "HS256"  # HMAC SHA-256
    HS384 = "HS384"  # HMAC SHA-384
    HS512 = "HS512"  # HMAC SHA-512
    RS256 = "RS256"  # RSASSA-PKCS1-v1_5 SHA-256
    RS384 = "RS384"  # RSASSA-PKCS1-v1_5 SHA-384
    RS512 = "RS512"  # RSASSA-PKCS1-v1_5 SHA-512
    PS256 = "PS256"  # RSASSA-PSS SHA-256
    PS384 = "PS384"  # RSASSA-PSS SHA-384
    PS512 = "PS512"  # RSASSA-PSS SHA-512
    ES256 = "ES256"  # ECDSA P-256 with SHA-256
    ES384 = "ES384"  # ECDSA P-384 with SHA-384
    ES512 = "ES512"  # ECDSA P-521 with SHA-512


@dataclass(frozen=True)
class AlgorithmSpec:
    """Static properties of one algorithm identifier."""

    algorithm: JWSAlgorithm
    family: AlgorithmFamily
    hash_algorithm: type[hashes.HashAlgorithm]
    key_type: str  # JWK "kty" of matching keys
    curve: str | None = None  # cryptography curve name, ECDSA only
    coordinate_size: int | None = None  # bytes per R and S, ECDSA only

    @property
    def digest_size(self) -> int:
        return self.hash_algorithm.digest_size

    @property
    def signature_size(self) -> int | None:
        """Fixed signature length, or None when it depends on the key."""
        if self.family == AlgorithmFamily.HMAC:
            return self.digest_size
        if self.family == AlgorithmFamily.ECDSA:
            return 2 * self.coordinate_size
        return None

    def new_hash(self) -> hashes.HashAlgorithm:
        return self.hash_algorithm()


ALGORITHM_SPECS: Mapping[JWSAlgorithm, AlgorithmSpec] = MappingProxyType(
    {
        JWSAlgorithm.HS256: AlgorithmSpec(JWSAlgorithm.HS256, AlgorithmFamily.HMAC, hashes.SHA256, "oct"),
        JWSAlgorithm.HS384: AlgorithmSpec(JWSAlgorithm.HS384, AlgorithmFamily.HMAC, hashes.SHA384, "oct"),
        JWSAlgorithm.HS512: AlgorithmSpec(JWSAlgorithm.HS512, AlgorithmFamily.HMAC, hashes.SHA512, "oct"),
        JWSAlgorithm.RS256: AlgorithmSpec(JWSAlgorithm.RS256, AlgorithmFamily.RSA_PKCS1, hashes.SHA256, "RSA"),
        JWSAlgorithm.RS384: AlgorithmSpec(JWSAlgorithm.RS384, AlgorithmFamily.RSA_PKCS1, hashes.SHA384, "RSA"),
        JWSAlgorithm.RS512: AlgorithmSpec(JWSAlgorithm.RS512, AlgorithmFamily.RSA_PKCS1, hashes.SHA512, "RSA"),
        JWSAlgorithm.PS256: AlgorithmSpec(JWSAlgorithm.PS256, AlgorithmFamily.RSA_PSS, hashes.SHA256, "RSA"),
        JWSAlgorithm.PS384: AlgorithmSpec(JWSAlgorithm.PS384, AlgorithmFamily.RSA_PSS, hashes.SHA384, "RSA"),
        JWSAlgorithm.PS512: AlgorithmSpec(JWSAlgorithm.PS512, AlgorithmFamily.RSA_PSS, hashes.SHA512, "RSA"),
        JWSAlgorithm.ES256: AlgorithmSpec(
            JWSAlgorithm.ES256, AlgorithmFamily.ECDSA, hashes.SHA256, "EC", "secp256r1", 32
        ),
        JWSAlgorithm.ES384: AlgorithmSpec(
            JWSAlgorithm.ES384, AlgorithmFamily.ECDSA, hashes.SHA384, "EC", "secp384r1", 48
        ),
        JWSAlgorithm.ES512: AlgorithmSpec(
            JWSAlgorithm.ES512, AlgorithmFamily.ECDSA, hashes.SHA512, "EC", "secp521r1", 66
        ),
    }
)


def resolve_algorithm(value: Any) -> JWSAlgorithm:
    """Map an ``alg`` value to a JWSAlgorithm.

    Raises:
        UnsupportedAlgorithmError: If the value is not a supported identifier.
    """
    if isinstance(value, JWSAlgorithm):
        return value
    try:
        return JWSAlgorithm(value)
    except ValueError:
        raise UnsupportedAlgorithmError(f"Unsupported JWS algorithm: {value!r}") from None


class JwsSignatureProvider(ABC):
    """Signs and verifies JWS signing input for one algorithm."""

    family: AlgorithmFamily

    def __init__(self, spec: AlgorithmSpec, settings: Settings | None = None):
        if spec.family != self.family:
            raise UnsupportedAlgorithmError(
                f"{type(self).__name__} cannot handle {spec.algorithm.value} ({spec.family.value})"
            )
        self.spec = spec
        self.settings = settings or get_settings()

    @property
    def algorithm(self) -> JWSAlgorithm:
        return self.spec.algorithm

    @abstractmethod
    def sign(self, signing_input: bytes, key: Any) -> bytes:
        """Return the raw JWS signature over the signing input."""

    @abstractmethod
    def verify(self, signing_input: bytes, signature: bytes, key: Any) -> bool:
        """Return True if the signature is valid for the signing input."""

    def _mismatch(self, expected: str, key: Any) -> KeyAlgorithmMismatchError:
        return KeyAlgorithmMismatchError(
            f"{self.algorithm.value} requires {expected}, got {type(key).__name__}"
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.algorithm.value})"


class HmacProvider(JwsSignatureProvider):
    """HS256/HS384/HS512."""

    family = AlgorithmFamily.HMAC

    def _check_key(self, key: Any) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise self._mismatch("a symmetric key", key)
        min_bytes = self.settings.hmac_min_key_bytes
        if min_bytes and len(key) < min_bytes:
            raise KeyAlgorithmMismatchError(
                f"{self.algorithm.value} key must be at least {min_bytes} bytes, got {len(key)}"
            )
        return bytes(key)

    def _mac(self, key: bytes) -> crypto_hmac.HMAC:
        return crypto_hmac.HMAC(key, self.spec.new_hash())

    def sign(self, signing_input: bytes, key: Any) -> bytes:
        h = self._mac(self._check_key(key))
        h.update(signing_input)
        return h.finalize()

    def verify(self, signing_input: bytes, signature: bytes, key: Any) -> bool:
        h = self._mac(self._check_key(key))
        h.update(signing_input)
        try:
            # HMAC.verify compares in constant time
            h.verify(signature)
        except InvalidSignature:
            return False
        return True


class _RsaProvider(JwsSignatureProvider):
    """Shared key handling for the RSA families."""

    @abstractmethod
    def _padding(self) -> padding.AsymmetricPadding:
        ...

    def _check_size(self, key_size: int) -> None:
        min_bits = self.settings.rsa_min_key_bits
        if key_size < min_bits:
            raise KeyAlgorithmMismatchError(
                f"{self.algorithm.value} requires an RSA key of at least {min_bits} bits, got {key_size}"
            )

    def sign(self, signing_input: bytes, key: Any) -> bytes:
        if not isinstance(key, rsa.RSAPrivateKey):
            raise self._mismatch("an RSA private key", key)
        self._check_size(key.key_size)
        return key.sign(signing_input, self._padding(), self.spec.new_hash())

    def verify(self, signing_input: bytes, signature: bytes, key: Any) -> bool:
        if isinstance(key, rsa.RSAPrivateKey):
            key = key.public_key()
        if not isinstance(key, rsa.RSAPublicKey):
            raise self._mismatch("an RSA public key", key)
        self._check_size(key.key_size)
        # Signatures are exactly as long as the modulus
        if len(signature) != (key.key_size + 7) // 8:
            return False
        try:
            key.verify(signature, signing_input, self._padding(), self.spec.new_hash())
        except InvalidSignature:
            return False
        return True


class RsaPkcs1Provider(_RsaProvider):
    """RS256/RS384/RS512."""

    family = AlgorithmFamily.RSA_PKCS1

    def _padding(self) -> padding.AsymmetricPadding:
        return padding.PKCS1v15()


class RsaPssProvider(_RsaProvider):
    """PS256/PS384/PS512, salt length equal to the digest size."""

    family = AlgorithmFamily.RSA_PSS

    def _padding(self) -> padding.AsymmetricPadding:
        return padding.PSS(
            mgf=padding.MGF1(self.spec.new_hash()),
            salt_length=self.spec.digest_size,
        )


class EcdsaProvider(JwsSignatureProvider):
    """ES256/ES384/ES512.

    JWS carries ECDSA signatures as the fixed-length concatenation R || S,
    while cryptography produces and expects DER. The conversion lives here.
    """

    family = AlgorithmFamily.ECDSA

    def _check_curve(self, key: ec.EllipticCurvePrivateKey | ec.EllipticCurvePublicKey) -> None:
        if key.curve.name != self.spec.curve:
            raise KeyAlgorithmMismatchError(
                f"{self.algorithm.value} requires curve {self.spec.curve}, got {key.curve.name}"
            )

    def sign(self, signing_input: bytes, key: Any) -> bytes:
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise self._mismatch("an EC private key", key)
        self._check_curve(key)
        der_sig = key.sign(signing_input, ec.ECDSA(self.spec.new_hash()))
        return self.der_to_raw(der_sig)

    def verify(self, signing_input: bytes, signature: bytes, key: Any) -> bool:
        if isinstance(key, ec.EllipticCurvePrivateKey):
            key = key.public_key()
        if not isinstance(key, ec.EllipticCurvePublicKey):
            raise self._mismatch("an EC public key", key)
        self._check_curve(key)
        if len(signature) != 2 * self.spec.coordinate_size:
            return False
        try:
            key.verify(self.raw_to_der(signature), signing_input, ec.ECDSA(self.spec.new_hash()))
        except InvalidSignature:
            return False
        return True

    def der_to_raw(self, der_sig: bytes) -> bytes:
        """Convert a DER ECDSA signature to R || S."""
        size = self.spec.coordinate_size
        r, s = decode_dss_signature(der_sig)
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")

    def raw_to_der(self, signature: bytes) -> bytes:
        """Convert R || S to a DER ECDSA signature."""
        size = self.spec.coordinate_size
        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        return encode_dss_signature(r, s)


PROVIDER_CLASSES: Mapping[AlgorithmFamily, type[JwsSignatureProvider]] = MappingProxyType(
    {
        AlgorithmFamily.HMAC: HmacProvider,
        AlgorithmFamily.RSA_PKCS1: RsaPkcs1Provider,
        AlgorithmFamily.RSA_PSS: RsaPssProvider,
        AlgorithmFamily.ECDSA: EcdsaProvider,
    }
)


class ProviderTable(Mapping):
    """Read-only mapping of algorithm identifiers to providers."""

    def __init__(self, providers: Mapping[JWSAlgorithm, JwsSignatureProvider]):
        self._providers = MappingProxyType(dict(providers))

    def __getitem__(self, algorithm: JWSAlgorithm) -> JwsSignatureProvider:
        return self._providers[algorithm]

    def __iter__(self) -> Iterator[JWSAlgorithm]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get_provider(self, algorithm: Any) -> JwsSignatureProvider:
        """Look up the provider for an ``alg`` value.

        Raises:
            UnsupportedAlgorithmError: If the identifier is unknown or not
                registered in this table.
        """
        resolved = resolve_algorithm(algorithm)
        provider = self._providers.get(resolved)
        if provider is None:
            raise UnsupportedAlgorithmError(f"Algorithm {resolved.value} not allowed")
        return provider

    def __repr__(self) -> str:
        return f"ProviderTable({[a.value for a in self._providers]})"


def create_provider(algorithm: Any, settings: Settings | None = None) -> JwsSignatureProvider:
    """Instantiate the provider for one algorithm."""
    spec = ALGORITHM_SPECS[resolve_algorithm(algorithm)]
    return PROVIDER_CLASSES[spec.family](spec, settings)


def default_provider_table(
    algorithms: Iterable[Any] | None = None,
    settings: Settings | None = None,
) -> ProviderTable:
    """Build a provider table.

    Args:
        algorithms: Identifiers to register (None = settings.allowed_algorithms)
        settings: Settings passed to each provider

    Returns:
        ProviderTable with one provider per algorithm
    """
    settings = settings or get_settings()
    if algorithms is None:
        algorithms = settings.allowed_algorithms
    table = {}
    for alg in algorithms:
        resolved = resolve_algorithm(alg)
        table[resolved] = create_provider(resolved, settings)
    logger.debug("Provider table built for %s", ", ".join(a.value for a in table))
    return ProviderTable(table)
