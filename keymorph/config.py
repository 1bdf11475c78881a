"""Package configuration."""

import logging

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """keymorph settings loaded from KEYMORPH_* environment variables."""

    # Provider backend built by keymorph.provider.get_provider()
    provider_backend: str = "local"

    # Import default when the caller passes no extractable flag
    default_extractable: bool = False

    # Local provider exports X25519 private keys as JWK.
    # False forces the PKCS#8 fallback used by export_key().
    x25519_jwk_export: bool = True

    # IV length prepended to AES-GCM helper payloads
    aes_gcm_iv_length: int = 12

    # Logging
    log_level: str = "WARNING"  # DEBUG, INFO, WARNING, ERROR
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="KEYMORPH_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _check_values(self) -> "Settings":
        """Reject values the helpers cannot honour."""
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.aes_gcm_iv_length not in (12, 16):
            raise ValueError(
                f"aes_gcm_iv_length must be 12 or 16, got {self.aes_gcm_iv_length}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
