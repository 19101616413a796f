"""Wire shapes of the JWS JSON Serialization (RFC 7515 section 7.2)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JwsSignatureModel(BaseModel):
    """One member of the General ``signatures`` array."""

    model_config = ConfigDict(extra="forbid")

    protected: str | None = Field(default=None, description="Base64URL protected header")
    header: dict[str, Any] | None = Field(default=None, description="Unprotected header")
    signature: str = Field(description="Base64URL signature")


class JwsGeneralModel(BaseModel):
    """General JWS JSON Serialization.

    Entries stay as raw JSON values here so that one malformed entry can be
    rejected on its own without failing the whole document.
    """

    payload: str | None = Field(default=None, description="Base64URL payload, absent when detached")
    signatures: list[Any] = Field(min_length=1)


class JwsFlattenedModel(JwsSignatureModel):
    """Flattened JWS JSON Serialization: one signature inlined."""

    payload: str | None = Field(default=None, description="Base64URL payload, absent when detached")
