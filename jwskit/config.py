"""Library configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings

ALL_ALGORITHMS = [
    "HS256",
    "HS384",
    "HS512",
    "RS256",
    "RS384",
    "RS512",
    "PS256",
    "PS384",
    "PS512",
    "ES256",
    "ES384",
    "ES512",
]


class Settings(BaseSettings):
    """Settings loaded from JWSKIT_* environment variables."""

    # Algorithms registered in the default provider table
    allowed_algorithms: list[str] = list(ALL_ALGORITHMS)

    # Key strength floors (0 disables the HMAC check)
    hmac_min_key_bytes: int = 0
    rsa_min_key_bits: int = 2048

    # Thread pool size for multi-signer verification (None = executor default)
    verify_max_workers: int | None = None

    # CLI logging
    log_level: str = "WARNING"

    class Config:
        env_prefix = "JWSKIT_"
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
