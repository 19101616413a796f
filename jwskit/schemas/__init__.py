"""Pydantic schemas for jwskit."""

from jwskit.schemas.jws import (
    JwsFlattenedModel,
    JwsGeneralModel,
    JwsSignatureModel,
)

__all__ = [
    "JwsFlattenedModel",
    "JwsGeneralModel",
    "JwsSignatureModel",
]
