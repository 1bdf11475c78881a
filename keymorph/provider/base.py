"""Base crypto provider interface.

The translation layer never touches key bytes itself except through a
provider. All provider implementations must implement this interface so
the core behaves the same whichever backend is registered.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from keymorph.types import AlgorithmDescriptor, CryptoKey, CryptoKeyPair, KeyType, KeyUsage


class ProviderBackend(str, Enum):
    """Supported provider backends."""
    LOCAL = "local"  # pyca/cryptography in-process


class ProviderFormat(str, Enum):
    """Formats understood by provider import/export."""
    RAW = "raw"      # Secret bytes, or public point/coordinate
    PKCS8 = "pkcs8"  # DER PrivateKeyInfo
    SPKI = "spki"    # DER SubjectPublicKeyInfo
    JWK = "jwk"      # RFC 7517 dict


@dataclass
class ProviderConfig:
    """Configuration for a crypto provider.

    Attributes:
        backend: Which provider backend to use
        x25519_jwk_export: Whether X25519 private keys export as JWK
    """
    backend: ProviderBackend = ProviderBackend.LOCAL
    x25519_jwk_export: bool = True


@dataclass(frozen=True)
class CipherParams:
    """Parameters of a single encrypt/decrypt call.

    Attributes:
        name: AES-GCM, AES-CBC or AES-CTR
        iv: IV (GCM, CBC) or initial counter block (CTR)
        additional_data: GCM associated data
        tag_length: GCM tag length in bits
        counter_length: CTR counter width in bits
    """
    name: str
    iv: bytes
    additional_data: bytes | None = None
    tag_length: int = 128
    counter_length: int = 64


class CryptoProvider(ABC):
    """Abstract base class for crypto providers.

    Providers own the native key objects behind CryptoKey.handle and
    enforce key usages and extractability, the way a platform WebCrypto
    implementation does.
    """

    def __init__(self, config: ProviderConfig):
        """Initialize the provider.

        Args:
            config: Provider configuration
        """
        self.config = config

    @property
    def backend(self) -> ProviderBackend:
        return self.config.backend

    @abstractmethod
    async def generate_key(
        self,
        algorithm: AlgorithmDescriptor,
        extractable: bool,
        usages: tuple[KeyUsage, ...],
    ) -> CryptoKey | CryptoKeyPair:
        """Generate a secret key or an asymmetric key pair.

        Args:
            algorithm: Algorithm descriptor
            extractable: Whether the private/secret key may be exported
            usages: Requested usages, split between private and public

        Returns:
            CryptoKey for AES, CryptoKeyPair otherwise

        Raises:
            NotSupportedError: Unknown algorithm
            KeyUsageError: Usages invalid for the algorithm
        """
        pass

    @abstractmethod
    async def import_key(
        self,
        format: ProviderFormat | str,
        key_data: Any,
        algorithm: AlgorithmDescriptor,
        extractable: bool,
        usages: tuple[KeyUsage, ...],
    ) -> CryptoKey:
        """Import key material.

        Args:
            format: raw, pkcs8, spki or jwk
            key_data: bytes, or a dict for jwk
            algorithm: Algorithm descriptor
            extractable: Whether the key may be exported
            usages: Key usages

        Returns:
            Imported key handle

        Raises:
            DataError: Key data inconsistent with format or algorithm
            KeyUsageError: Usages invalid for the key type
        """
        pass

    @abstractmethod
    async def export_key(self, format: ProviderFormat | str, key: CryptoKey) -> bytes | dict:
        """Export a key.

        Raises:
            InvalidAccessError: Key is not extractable or format does not fit the key type
            NotSupportedError: Format not available for this algorithm
        """
        pass

    @abstractmethod
    async def digest(self, algorithm: str, data: bytes) -> bytes:
        """Hash data with SHA-1/256/384/512."""
        pass

    @abstractmethod
    async def encrypt(self, params: CipherParams, key: CryptoKey, data: bytes) -> bytes:
        """Encrypt with an AES secret key."""
        pass

    @abstractmethod
    async def decrypt(self, params: CipherParams, key: CryptoKey, data: bytes) -> bytes:
        """Decrypt with an AES secret key.

        Raises:
            OperationError: Authentication or padding failure
        """
        pass

    def supports_jwk_export(self, algorithm_name: str, key_type: KeyType) -> bool:
        """Whether export_key('jwk') works for this kind of key."""
        return True


class ProviderError(Exception):
    """Base exception for provider operations."""
    pass


class DataError(ProviderError):
    """Key data is malformed or does not match the algorithm."""
    pass


class InvalidAccessError(ProviderError):
    """Operation not permitted on this key (extractability, key type)."""
    pass


class KeyUsageError(ProviderError):
    """Requested usages are invalid or not granted to the key."""
    pass


class OperationError(ProviderError):
    """The cryptographic operation itself failed."""
    pass


class NotSupportedError(ProviderError):
    """Algorithm, format or backend not supported."""
    pass
