"""Key export facade.

Turns provider key handles into raw bytes, hex, base64url or JWK:

    ECDSA      private -> d          public -> x ‖ y
    Ed25519    private -> d          public -> x
    X25519     private -> d          public -> x
    RSA, AES   jwk only

The provider is always asked for a JWK first and the bytes are taken
from it through the raw codec. X25519 private keys on providers without
JWK export for them go through PKCS#8 instead.
"""

from dataclasses import dataclass
from typing import Any

from keymorph.core import raw_codec
from keymorph.core.pkcs8 import extract_x25519_private_key
from keymorph.core.registry import AlgorithmFamily, family_of, tag_for
from keymorph.encoding import b64url_encode, hex_encode
from keymorph.errors import (
    NotImplementedKeyExport,
    UnsupportedAlgorithm,
    UnsupportedFormatForAlgorithm,
)
from keymorph.logging import get_logger, log_operation
from keymorph.provider import CryptoProvider, ProviderFormat, get_provider
from keymorph.types import CryptoKey, CryptoKeyPair, KeyFormat, KeyType

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportedKeyPair:
    """Both halves of a pair in the same format."""
    private_key: Any
    public_key: Any


@dataclass(frozen=True)
class ExportKeyResult:
    """Hex public and private X25519 keys."""
    public: str
    private: str


def render(format: KeyFormat, data: bytes) -> bytes | str:
    """Raw bytes in the requested byte format."""
    if format is KeyFormat.HEX:
        return hex_encode(data)
    if format is KeyFormat.BASE64URL:
        return b64url_encode(data)
    return bytes(data)


async def _export_x25519_private_pkcs8(provider: CryptoProvider, key: CryptoKey) -> bytes:
    der = await provider.export_key(ProviderFormat.PKCS8, key)
    return extract_x25519_private_key(der)


@log_operation("export_key")
async def export_key(
    format: KeyFormat | str,
    key: CryptoKey,
    provider: CryptoProvider | None = None,
) -> bytes | str | dict:
    """Export a single key.

    Args:
        format: raw, hex, base64url or jwk
        key: Extractable key handle
        provider: Provider that owns the key (defaults to get_provider())

    Returns:
        bytes for raw, str for hex/base64url, dict for jwk

    Raises:
        UnsupportedFormatForAlgorithm: Byte format requested for RSA/AES
        NotImplementedKeyExport: X25519 private jwk on a provider without it
        UnsupportedAlgorithm: Key algorithm outside the registry
    """
    format = KeyFormat.parse(format)
    provider = provider or get_provider()
    family = family_of(key.algorithm_name)

    if family in (AlgorithmFamily.RSA, AlgorithmFamily.AES):
        if format is not KeyFormat.JWK:
            raise UnsupportedFormatForAlgorithm(
                f"{key.algorithm_name} keys can only be exported as jwk, not {format.value}",
                format=format.value,
                algorithm=key.algorithm_name,
            )
        return await provider.export_key(ProviderFormat.JWK, key)

    if (
        family is AlgorithmFamily.X25519
        and key.type is KeyType.PRIVATE
        and not provider.supports_jwk_export(key.algorithm_name, key.type)
    ):
        if format is KeyFormat.JWK:
            raise NotImplementedKeyExport("jwk export not implemented for X25519 private keys")
        logger.debug("Exporting X25519 private key through PKCS8", format=format.value)
        return render(format, await _export_x25519_private_pkcs8(provider, key))

    jwk = await provider.export_key(ProviderFormat.JWK, key)
    if format is KeyFormat.JWK:
        return jwk

    material = raw_codec.decode(tag_for(key.algorithm), jwk)
    if key.type is KeyType.PRIVATE:
        return render(format, material.private)
    return render(format, material.public)


@log_operation("export_key_pair")
async def export_key_pair(
    format: KeyFormat | str,
    pair: CryptoKeyPair,
    provider: CryptoProvider | None = None,
) -> ExportedKeyPair:
    """Export both keys of a pair in one format."""
    return ExportedKeyPair(
        private_key=await export_key(format, pair.private_key, provider=provider),
        public_key=await export_key(format, pair.public_key, provider=provider),
    )


@log_operation("export_key_raw_x25519")
async def export_key_raw_x25519(
    pair: CryptoKeyPair,
    provider: CryptoProvider | None = None,
) -> ExportKeyResult:
    """Hex-encode an X25519 pair, always reading the private scalar from PKCS#8.

    Raises:
        UnsupportedAlgorithm: The pair is not X25519
    """
    if pair.private_key.algorithm_name != "X25519":
        raise UnsupportedAlgorithm(
            f"The key algorithm must be 'X25519', got '{pair.private_key.algorithm_name}'"
        )

    provider = provider or get_provider()
    public = await provider.export_key(ProviderFormat.RAW, pair.public_key)
    private = await _export_x25519_private_pkcs8(provider, pair.private_key)
    return ExportKeyResult(public=hex_encode(public), private=hex_encode(private))
