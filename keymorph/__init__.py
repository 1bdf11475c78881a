"""
keymorph - Key material translation for Ed25519, X25519, ECDSA, RSA and AES.

Converts keys between JWK, raw bytes, hex and base64url on top of a
crypto provider.

Example:
    from keymorph import generate_key_pair, export_key_pair, import_key_pair, ImportKeyOptions

    pair = await generate_key_pair("Ed25519")
    exported = await export_key_pair("hex", pair)

    restored = await import_key_pair("hex", ImportKeyOptions(
        alg="Ed25519",
        public_key=exported.public_key,
        private_key=exported.private_key,
    ))
"""

from keymorph.core import (
    ExportedKeyPair,
    ExportKeyResult,
    ImportKeyOptions,
    JwkAlgorithm,
    KeyAlgorithm,
    describe,
    export_key,
    export_key_pair,
    export_key_raw_x25519,
    extract_x25519_private_key,
    generate_key_pair,
    import_key,
    import_key_pair,
    infer,
    is_key_alg,
    is_pair,
)
from keymorph.core.aes import (
    AesCodec,
    AesEncryptor,
    SecretOptions,
    aes_encrypt,
    derive_key,
    export_secret,
    generate_aes_secret,
    import_secret,
)
from keymorph.errors import (
    InvalidKeyLength,
    KeyMorphError,
    MalformedEncoding,
    MalformedPkcs8,
    MissingAlgorithmHint,
    MissingPrivateKey,
    NotImplementedKeyExport,
    UnsupportedAlgorithm,
    UnsupportedCurve,
    UnsupportedFormatForAlgorithm,
    UnsupportedKeyType,
)
from keymorph.types import (
    AlgorithmDescriptor,
    CryptoKey,
    CryptoKeyPair,
    KeyFormat,
    KeyType,
    KeyUsage,
)

__version__ = "0.1.0"

__all__ = [
    # Keys
    "generate_key_pair",
    "is_pair",
    "is_key_alg",
    "describe",
    # Export / import
    "export_key",
    "export_key_pair",
    "export_key_raw_x25519",
    "import_key",
    "import_key_pair",
    "ImportKeyOptions",
    "ExportedKeyPair",
    "ExportKeyResult",
    # JWK
    "infer",
    "JwkAlgorithm",
    "extract_x25519_private_key",
    # AES
    "generate_aes_secret",
    "export_secret",
    "import_secret",
    "derive_key",
    "aes_encrypt",
    "AesCodec",
    "AesEncryptor",
    "SecretOptions",
    # Types
    "AlgorithmDescriptor",
    "CryptoKey",
    "CryptoKeyPair",
    "KeyAlgorithm",
    "KeyFormat",
    "KeyType",
    "KeyUsage",
    # Errors
    "KeyMorphError",
    "UnsupportedAlgorithm",
    "UnsupportedCurve",
    "UnsupportedKeyType",
    "MissingAlgorithmHint",
    "MissingPrivateKey",
    "InvalidKeyLength",
    "MalformedEncoding",
    "MalformedPkcs8",
    "UnsupportedFormatForAlgorithm",
    "NotImplementedKeyExport",
]
