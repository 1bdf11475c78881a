"""AES secret helpers.

Generation, export and import of AES secret keys, a deterministic
password-to-key derivation, and a small encryptor that prefixes every
payload with its IV:

    payload = iv ‖ ciphertext

IV widths: AES-GCM uses KEYMORPH_AES_GCM_IV_LENGTH (12 by default),
AES-CBC uses 16, AES-CTR uses a 16-byte initial counter block.

Usage:
    key = await derive_key("secret")
    aes = aes_encrypt(key, AesCodec.BASE64URL)
    token = await aes.encrypt_json({"user": "admin"})
    data = await aes.decrypt_json(token)
"""

import json
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any

from keymorph.config import get_settings
from keymorph.core.export import render
from keymorph.core.importer import decode_text
from keymorph.core.jwk import infer
from keymorph.core.registry import AES_LENGTHS, aes_usages
from keymorph.encoding import b64_decode, b64_encode, b64url_decode, b64url_encode, hex_decode, hex_encode
from keymorph.errors import (
    InvalidKeyLength,
    MalformedEncoding,
    UnsupportedAlgorithm,
    UnsupportedKeyType,
)
from keymorph.logging import log_operation
from keymorph.provider import CipherParams, CryptoProvider, ProviderFormat, get_provider
from keymorph.types import AlgorithmDescriptor, CryptoKey, KeyFormat, KeyType

AES_NAMES = ("AES-GCM", "AES-CBC", "AES-CTR", "AES-KW")
CIPHER_NAMES = ("AES-GCM", "AES-CBC", "AES-CTR")


class AesCodec(str, Enum):
    """How AesEncryptor renders payloads."""
    BYTES = "bytes"
    HEX = "hex"
    BASE64 = "base64"
    BASE64URL = "base64url"


@dataclass(frozen=True)
class SecretOptions:
    """Algorithm parameters for import_secret."""
    name: str = "AES-GCM"
    length: int | None = None
    extractable: bool = True


def _check_name(name: str) -> None:
    if name not in AES_NAMES:
        raise UnsupportedAlgorithm(
            f"Unsupported AES algorithm: {name}. Supported: {', '.join(AES_NAMES)}"
        )


@log_operation("generate_aes_secret")
async def generate_aes_secret(
    name: str = "AES-GCM",
    length: int = 256,
    extractable: bool = True,
    provider: CryptoProvider | None = None,
) -> CryptoKey:
    """Generate a random AES secret key.

    Raises:
        UnsupportedAlgorithm: name is not an AES mode
        InvalidKeyLength: length is not 128, 192 or 256
    """
    _check_name(name)
    if length not in AES_LENGTHS:
        raise InvalidKeyLength(
            f"AES key length must be 128, 192 or 256 bits, got {length}",
            component="secret",
            expected=256,
            actual=length,
        )

    provider = provider or get_provider()
    return await provider.generate_key(
        AlgorithmDescriptor(name=name, length=length),
        extractable,
        aes_usages(name),
    )


@log_operation("export_secret")
async def export_secret(
    format: KeyFormat | str,
    key: CryptoKey,
    provider: CryptoProvider | None = None,
) -> bytes | str | dict:
    """Export a secret key as raw, hex, base64url or jwk."""
    format = KeyFormat.parse(format)
    if key.type is not KeyType.SECRET:
        raise UnsupportedKeyType(f"export_secret requires a secret key, got {key.type.value}")

    provider = provider or get_provider()
    if format is KeyFormat.JWK:
        return await provider.export_key(ProviderFormat.JWK, key)
    return render(format, await provider.export_key(ProviderFormat.RAW, key))


@log_operation("import_secret")
async def import_secret(
    format: KeyFormat | str,
    options: SecretOptions,
    data: Any,
    provider: CryptoProvider | None = None,
) -> CryptoKey:
    """Import a secret key.

    Args:
        format: raw, hex, base64url or jwk
        options: AES mode, expected length and extractability
        data: Key bytes/text, or the JWK for jwk
        provider: Provider to import into (defaults to get_provider())

    Raises:
        InvalidKeyLength: Key is not 16/24/32 bytes or not options.length
        MalformedEncoding: hex/base64url text does not decode
    """
    format = KeyFormat.parse(format)
    _check_name(options.name)
    provider = provider or get_provider()

    if format is KeyFormat.JWK:
        inferred = infer(data)
        if inferred.descriptor.name != options.name:
            raise UnsupportedAlgorithm(
                f"JWK describes {inferred.descriptor.name}, expected {options.name}"
            )
        if options.length is not None and inferred.descriptor.length != options.length:
            raise InvalidKeyLength(
                f"JWK key length is {inferred.descriptor.length} bits, expected {options.length}",
                component="secret",
                expected=options.length // 8,
                actual=inferred.descriptor.length // 8,
            )
        return await provider.import_key(
            ProviderFormat.JWK,
            dict(data),
            inferred.descriptor,
            options.extractable,
            inferred.key_usages or aes_usages(inferred.descriptor.name),
        )

    raw = decode_text(format, data, "secret")
    length = len(raw) * 8
    if length not in AES_LENGTHS or (options.length is not None and options.length != length):
        expected = options.length or 256
        raise InvalidKeyLength(
            f"secret key length must be {expected // 8} bytes for {options.name}, got {len(raw)}",
            component="secret",
            expected=expected // 8,
            actual=len(raw),
        )

    return await provider.import_key(
        ProviderFormat.RAW,
        raw,
        AlgorithmDescriptor(name=options.name, length=length),
        options.extractable,
        aes_usages(options.name),
    )


@log_operation("derive_key")
async def derive_key(
    secret: str,
    name: str = "AES-GCM",
    extractable: bool = True,
    provider: CryptoProvider | None = None,
) -> CryptoKey:
    """Deterministic AES-256 key from SHA-256 of the UTF-8 secret.

    This is a plain digest, not a password KDF.
    """
    _check_name(name)
    provider = provider or get_provider()
    material = await provider.digest("SHA-256", secret.encode("utf-8"))
    return await provider.import_key(
        ProviderFormat.RAW,
        material,
        AlgorithmDescriptor(name=name, length=256),
        extractable,
        aes_usages(name),
    )


class AesEncryptor:
    """Encrypt and decrypt bytes, text and JSON with one AES key."""

    def __init__(
        self,
        key: CryptoKey,
        codec: AesCodec = AesCodec.BYTES,
        provider: CryptoProvider | None = None,
    ):
        if key.type is not KeyType.SECRET or key.algorithm_name not in CIPHER_NAMES:
            raise UnsupportedAlgorithm(
                f"aes_encrypt requires an AES-GCM, AES-CBC or AES-CTR secret key, "
                f"got {key.type.value} {key.algorithm_name}"
            )
        self.key = key
        self.codec = AesCodec(codec)
        self.provider = provider or get_provider()

        if key.algorithm_name == "AES-GCM":
            self.iv_length = get_settings().aes_gcm_iv_length
        else:
            self.iv_length = 16

    def _params(self, iv: bytes) -> CipherParams:
        return CipherParams(name=self.key.algorithm_name, iv=iv)

    def _encode(self, payload: bytes) -> bytes | str:
        if self.codec is AesCodec.HEX:
            return hex_encode(payload)
        if self.codec is AesCodec.BASE64:
            return b64_encode(payload)
        if self.codec is AesCodec.BASE64URL:
            return b64url_encode(payload)
        return payload

    def _decode(self, payload: bytes | str) -> bytes:
        if self.codec is AesCodec.BYTES:
            if not isinstance(payload, (bytes, bytearray, memoryview)):
                raise MalformedEncoding("bytes codec expects a bytes payload", encoding="bytes")
            return bytes(payload)
        if not isinstance(payload, str):
            raise MalformedEncoding(
                f"{self.codec.value} codec expects a string payload",
                encoding=self.codec.value,
            )
        if self.codec is AesCodec.HEX:
            return hex_decode(payload)
        if self.codec is AesCodec.BASE64:
            return b64_decode(payload)
        return b64url_decode(payload)

    async def encrypt(self, data: bytes) -> bytes | str:
        iv = secrets.token_bytes(self.iv_length)
        ciphertext = await self.provider.encrypt(self._params(iv), self.key, data)
        return self._encode(iv + ciphertext)

    async def decrypt(self, payload: bytes | str) -> bytes:
        raw = self._decode(payload)
        if len(raw) < self.iv_length:
            raise MalformedEncoding(
                f"Payload is {len(raw)} bytes, shorter than the {self.iv_length}-byte iv",
                encoding=self.codec.value,
            )
        iv, ciphertext = raw[:self.iv_length], raw[self.iv_length:]
        return await self.provider.decrypt(self._params(iv), self.key, ciphertext)

    async def encrypt_text(self, text: str) -> bytes | str:
        return await self.encrypt(text.encode("utf-8"))

    async def decrypt_text(self, payload: bytes | str) -> str:
        return (await self.decrypt(payload)).decode("utf-8")

    async def encrypt_json(self, value: Any) -> bytes | str:
        return await self.encrypt_text(json.dumps(value))

    async def decrypt_json(self, payload: bytes | str) -> Any:
        return json.loads(await self.decrypt_text(payload))


def aes_encrypt(
    key: CryptoKey,
    codec: AesCodec | str = AesCodec.BYTES,
    provider: CryptoProvider | None = None,
) -> AesEncryptor:
    """Bind an AES key and payload codec into an AesEncryptor."""
    return AesEncryptor(key, codec, provider)
