"""jwskit - JSON Web Signature (RFC 7515) engine.

Usage:
    from jwskit import JwsCompactProducer, JwsCompactConsumer

    producer = JwsCompactProducer(b"payload", {"alg": "HS256", "kid": "k1"})
    jws = producer.sign_with(secret)

    consumer = JwsCompactConsumer(jws)
    assert consumer.verify_signature_with(secret, "HS256")
"""

from jwskit.core import (
    AlgorithmFamily,
    JWSAlgorithm,
    JoseHeaders,
    JwsCompactConsumer,
    JwsCompactProducer,
    JwsJsonConsumer,
    JwsJsonProducer,
    JwsSignatureEntry,
    JwsSigner,
    ProviderTable,
    VerificationEngine,
    VerificationResult,
    VerificationStatus,
    default_provider_table,
    flatten,
    merge_headers,
)
from jwskit.core.errors import (
    FormatError,
    HeaderConflictError,
    JOSEError,
    KeyAlgorithmMismatchError,
    KeyImportError,
    UnsupportedAlgorithmError,
)

__version__ = "0.1.0"

__all__ = [
    "AlgorithmFamily",
    "JWSAlgorithm",
    "JoseHeaders",
    "JwsCompactConsumer",
    "JwsCompactProducer",
    "JwsJsonConsumer",
    "JwsJsonProducer",
    "JwsSignatureEntry",
    "JwsSigner",
    "ProviderTable",
    "VerificationEngine",
    "VerificationResult",
    "VerificationStatus",
    "default_provider_table",
    "flatten",
    "merge_headers",
    "FormatError",
    "HeaderConflictError",
    "JOSEError",
    "KeyAlgorithmMismatchError",
    "KeyImportError",
    "UnsupportedAlgorithmError",
]
