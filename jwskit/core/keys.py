"""JWK (RFC 7517) to cryptography key conversion.

Supports ``oct`` (HMAC secrets), ``RSA`` and ``EC`` (P-256, P-384, P-521)
keys. Key storage and trust decisions are left to the caller.
"""

from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from jwskit.core.errors import FormatError, KeyImportError
from jwskit.core.utils import b64url_decode, json_loads_object

EC_CURVES = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}

RSA_PRIVATE_MEMBERS = ("d", "p", "q", "dp", "dq", "qi")


def _b64url_uint(jwk: dict, name: str) -> int:
    try:
        return int.from_bytes(b64url_decode(jwk[name]), "big")
    except KeyError:
        raise KeyImportError(f"JWK is missing '{name}'") from None
    except FormatError as e:
        raise KeyImportError(f"JWK member '{name}' is not Base64URL") from e


def jwk_to_key(jwk: dict[str, Any]) -> Any:
    """Convert a JWK to a key usable by the signature providers.

    Returns:
        bytes for ``oct``, an RSA or EC private key when private members are
        present, otherwise the public key

    Raises:
        KeyImportError: If the JWK is incomplete or of an unsupported type
    """
    if not isinstance(jwk, dict):
        raise KeyImportError("JWK must be a JSON object")
    kty = jwk.get("kty")

    if kty == "oct":
        try:
            return b64url_decode(jwk["k"])
        except KeyError:
            raise KeyImportError("JWK is missing 'k'") from None
        except FormatError as e:
            raise KeyImportError("JWK member 'k' is not Base64URL") from e

    elif kty == "RSA":
        public_numbers = rsa.RSAPublicNumbers(_b64url_uint(jwk, "e"), _b64url_uint(jwk, "n"))
        if "d" not in jwk:
            return public_numbers.public_key()
        missing = [name for name in RSA_PRIVATE_MEMBERS if name not in jwk]
        if missing:
            # Only d given: recover the primes
            if set(missing) != set(RSA_PRIVATE_MEMBERS[1:]):
                raise KeyImportError(f"JWK is missing {', '.join(missing)}")
            d = _b64url_uint(jwk, "d")
            p, q = rsa.rsa_recover_prime_factors(public_numbers.n, public_numbers.e, d)
            private_numbers = rsa.RSAPrivateNumbers(
                p=p,
                q=q,
                d=d,
                dmp1=rsa.rsa_crt_dmp1(d, p),
                dmq1=rsa.rsa_crt_dmq1(d, q),
                iqmp=rsa.rsa_crt_iqmp(p, q),
                public_numbers=public_numbers,
            )
        else:
            private_numbers = rsa.RSAPrivateNumbers(
                p=_b64url_uint(jwk, "p"),
                q=_b64url_uint(jwk, "q"),
                d=_b64url_uint(jwk, "d"),
                dmp1=_b64url_uint(jwk, "dp"),
                dmq1=_b64url_uint(jwk, "dq"),
                iqmp=_b64url_uint(jwk, "qi"),
                public_numbers=public_numbers,
            )
        try:
            return private_numbers.private_key()
        except ValueError as e:
            raise KeyImportError(f"Invalid RSA key: {e}") from e

    elif kty == "EC":
        crv = jwk.get("crv")
        if crv not in EC_CURVES:
            raise KeyImportError(f"Unsupported EC curve: {crv}")
        public_numbers = ec.EllipticCurvePublicNumbers(
            _b64url_uint(jwk, "x"), _b64url_uint(jwk, "y"), EC_CURVES[crv]()
        )
        try:
            if "d" in jwk:
                private_numbers = ec.EllipticCurvePrivateNumbers(_b64url_uint(jwk, "d"), public_numbers)
                return private_numbers.private_key()
            return public_numbers.public_key()
        except ValueError as e:
            raise KeyImportError(f"Invalid EC key: {e}") from e

    else:
        raise KeyImportError(f"Unsupported key type: {kty}")


def load_jwk_set(data: str | bytes | dict[str, Any]) -> list[Any]:
    """Convert every key of a JWK Set (``{"keys": [...]}``) in order."""
    if not isinstance(data, dict):
        try:
            data = json_loads_object(data, "JWK Set")
        except FormatError as e:
            raise KeyImportError(str(e)) from e
    keys = data.get("keys")
    if not isinstance(keys, list):
        raise KeyImportError("JWK Set must have a 'keys' array")
    return [jwk_to_key(jwk) for jwk in keys]


def public_key_of(key: Any) -> Any:
    """Verification key for a signing key (HMAC secrets are returned as is)."""
    if isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        return key.public_key()
    return key
