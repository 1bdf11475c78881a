"""Key import facade.

Builds provider key handles from raw bytes, hex, base64url or JWK.
Byte formats are wrapped into a JWK by the raw codec, then every path
goes through JWK inference and the provider's JWK import.
"""

from dataclasses import dataclass, replace
from typing import Any, Mapping

from keymorph.config import get_settings
from keymorph.core import raw_codec
from keymorph.core.jwk import infer
from keymorph.core.registry import KeyAlgorithm, resolve
from keymorph.encoding import b64url_decode, hex_decode
from keymorph.errors import (
    MalformedEncoding,
    MissingPrivateKey,
    UnsupportedFormatForAlgorithm,
)
from keymorph.logging import log_operation
from keymorph.provider import CryptoProvider, ProviderFormat, get_provider
from keymorph.types import CryptoKey, CryptoKeyPair, KeyFormat


@dataclass(frozen=True)
class ImportKeyOptions:
    """Key bytes for import_key/import_key_pair.

    Attributes:
        alg: Key algorithm (ES* aliases accepted)
        public_key: x‖y for EC, x for OKP; bytes for raw, text otherwise
        private_key: Optional private scalar d in the same format
        extractable: Overrides the configured default
    """
    alg: KeyAlgorithm | str
    public_key: bytes | str
    private_key: bytes | str | None = None
    extractable: bool | None = None


def decode_text(format: KeyFormat, data: Any, component: str = "key") -> bytes:
    """Bytes from a raw/hex/base64url input.

    Raises:
        MalformedEncoding: Wrong input type or undecodable text
    """
    if format is KeyFormat.RAW:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise MalformedEncoding(
                f"raw {component} must be bytes, got {type(data).__name__}",
                encoding="raw",
            )
        return bytes(data)

    if not isinstance(data, str):
        raise MalformedEncoding(
            f"{format.value} {component} must be a string, got {type(data).__name__}",
            encoding=format.value,
        )
    if format is KeyFormat.HEX:
        return hex_decode(data)
    return b64url_decode(data)


def _resolve_extractable(*candidates: bool | None) -> bool:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return get_settings().default_extractable


@log_operation("import_key")
async def import_key(
    format: KeyFormat | str,
    options: ImportKeyOptions | Mapping[str, Any],
    extractable: bool | None = None,
    provider: CryptoProvider | None = None,
) -> CryptoKey:
    """Import a single key.

    Args:
        format: raw, hex, base64url or jwk
        options: ImportKeyOptions, or the JWK itself for jwk
        extractable: Overrides options.extractable and the configured default
        provider: Provider to import into (defaults to get_provider())

    Returns:
        Private handle when a private scalar is present, else public

    Raises:
        InvalidKeyLength: Key bytes have the wrong width for the algorithm
        UnsupportedAlgorithm: Unknown alg
        MalformedEncoding: hex/base64url text does not decode
    """
    format = KeyFormat.parse(format)
    provider = provider or get_provider()

    if format is KeyFormat.JWK:
        if not isinstance(options, Mapping):
            raise UnsupportedFormatForAlgorithm(
                "jwk import expects the JWK mapping as options",
                format=format.value,
            )
        jwk = dict(options)
        extractable = _resolve_extractable(extractable)
    else:
        if not isinstance(options, ImportKeyOptions):
            raise UnsupportedFormatForAlgorithm(
                f"{format.value} import expects ImportKeyOptions",
                format=format.value,
            )
        alg = resolve(options.alg)
        public = decode_text(format, options.public_key, "public key")
        private = None
        if options.private_key is not None:
            private = decode_text(format, options.private_key, "private key")
        jwk = raw_codec.encode(alg, public, private)
        extractable = _resolve_extractable(extractable, options.extractable)

    inferred = infer(jwk)
    return await provider.import_key(
        ProviderFormat.JWK,
        jwk,
        inferred.descriptor,
        extractable,
        inferred.key_usages,
    )


@log_operation("import_key_pair")
async def import_key_pair(
    format: KeyFormat | str,
    options: ImportKeyOptions,
    provider: CryptoProvider | None = None,
) -> CryptoKeyPair:
    """Import a private/public pair from raw, hex or base64url bytes.

    Raises:
        MissingPrivateKey: options.private_key is not set
        UnsupportedFormatForAlgorithm: jwk requested (import each key on its own)
    """
    format = KeyFormat.parse(format)
    if format is KeyFormat.JWK:
        raise UnsupportedFormatForAlgorithm(
            "jwk pairs cannot be imported together; import each JWK with import_key",
            format=format.value,
        )
    if options.private_key is None:
        raise MissingPrivateKey(f"import_key_pair requires a private key for {options.alg}")

    return CryptoKeyPair(
        private_key=await import_key(format, options, provider=provider),
        public_key=await import_key(format, replace(options, private_key=None), provider=provider),
    )
