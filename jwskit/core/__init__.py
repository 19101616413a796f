"""JWS signing and verification core."""

from jwskit.core.algorithms import (
    AlgorithmFamily,
    JWSAlgorithm,
    ProviderTable,
    default_provider_table,
)
from jwskit.core.compact import JwsCompactConsumer, JwsCompactProducer
from jwskit.core.entry import JwsSignatureEntry
from jwskit.core.headers import JoseHeaders, merge_headers
from jwskit.core.json_serialization import JwsJsonConsumer, JwsJsonProducer, JwsSigner, flatten
from jwskit.core.verifier import VerificationEngine, VerificationResult, VerificationStatus

__all__ = [
    "AlgorithmFamily",
    "JWSAlgorithm",
    "ProviderTable",
    "default_provider_table",
    "JwsCompactConsumer",
    "JwsCompactProducer",
    "JwsSignatureEntry",
    "JoseHeaders",
    "merge_headers",
    "JwsJsonConsumer",
    "JwsJsonProducer",
    "JwsSigner",
    "flatten",
    "VerificationEngine",
    "VerificationResult",
    "VerificationStatus",
]
