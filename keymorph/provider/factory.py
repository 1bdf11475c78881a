"""Crypto provider factory.

Creates the provider selected by configuration.
"""

from functools import lru_cache

from keymorph.config import get_settings
from keymorph.logging import get_logger

from .base import CryptoProvider, NotSupportedError, ProviderBackend, ProviderConfig
from .local import LocalCryptoProvider

logger = get_logger(__name__)

# Registry of crypto providers
_providers: dict[ProviderBackend, type[CryptoProvider]] = {
    ProviderBackend.LOCAL: LocalCryptoProvider,
}


def register_provider(backend: ProviderBackend, provider_class: type[CryptoProvider]) -> None:
    """Register a crypto provider class.

    Allows adding new providers without modifying this module.

    Args:
        backend: Backend identifier
        provider_class: Provider class implementing CryptoProvider
    """
    _providers[backend] = provider_class
    get_provider.cache_clear()
    logger.info(f"Registered crypto provider: {backend.value}")


def _get_config_from_settings() -> ProviderConfig:
    """Build provider configuration from KEYMORPH_* settings."""
    settings = get_settings()
    backend_str = settings.provider_backend.lower()

    try:
        backend = ProviderBackend(backend_str)
    except ValueError:
        raise NotSupportedError(
            f"Unknown provider backend: {backend_str}. "
            f"Supported: {', '.join(b.value for b in ProviderBackend)}"
        ) from None

    return ProviderConfig(
        backend=backend,
        x25519_jwk_export=settings.x25519_jwk_export,
    )


@lru_cache(maxsize=1)
def get_provider() -> CryptoProvider:
    """Get the configured crypto provider.

    Returns a cached singleton instance.

    Raises:
        NotSupportedError: If the backend is unknown or not registered
    """
    config = _get_config_from_settings()

    provider_class = _providers.get(config.backend)
    if provider_class is None:
        raise NotSupportedError(
            f"Provider backend '{config.backend.value}' is not registered. "
            f"Available backends: {', '.join(p.value for p in _providers.keys())}"
        )

    provider = provider_class(config)
    logger.info(f"Created crypto provider: {config.backend.value}")
    return provider


def reset_provider() -> None:
    """Reset the cached provider.

    Useful for testing or reconfiguration.
    """
    get_provider.cache_clear()
