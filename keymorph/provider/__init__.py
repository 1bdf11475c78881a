"""Crypto provider abstraction layer.

The translation layer only ever talks to a CryptoProvider:
- Local: pyca/cryptography in-process, WebCrypto key semantics

This abstraction enables:
1. Swapping the key backend without touching the core
2. Enforcing usages and extractability in one place
3. Testing the core against a configured provider
"""

from .base import (
    CipherParams,
    CryptoProvider,
    DataError,
    InvalidAccessError,
    KeyUsageError,
    NotSupportedError,
    OperationError,
    ProviderBackend,
    ProviderConfig,
    ProviderError,
    ProviderFormat,
)
from .local import LocalCryptoProvider
from .factory import get_provider, register_provider, reset_provider

__all__ = [
    "CipherParams",
    "CryptoProvider",
    "DataError",
    "InvalidAccessError",
    "KeyUsageError",
    "LocalCryptoProvider",
    "NotSupportedError",
    "OperationError",
    "ProviderBackend",
    "ProviderConfig",
    "ProviderError",
    "ProviderFormat",
    "get_provider",
    "register_provider",
    "reset_provider",
]
