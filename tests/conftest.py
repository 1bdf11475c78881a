"""Test configuration and fixtures."""

import os
import pytest

# Set up test environment variables BEFORE importing keymorph modules
os.environ.setdefault("KEYMORPH_PROVIDER_BACKEND", "local")
os.environ.setdefault("KEYMORPH_LOG_LEVEL", "DEBUG")

from keymorph.config import get_settings
from keymorph.provider import LocalCryptoProvider, ProviderConfig, reset_provider


@pytest.fixture(autouse=True)
def reset_keymorph_state():
    """Reset cached settings and provider between tests to ensure clean state."""
    get_settings.cache_clear()
    reset_provider()
    yield
    get_settings.cache_clear()
    reset_provider()


@pytest.fixture
def provider():
    """Local provider with default configuration."""
    return LocalCryptoProvider(ProviderConfig())


@pytest.fixture
def pkcs8_provider():
    """Local provider that declines X25519 private JWK export."""
    return LocalCryptoProvider(ProviderConfig(x25519_jwk_export=False))
