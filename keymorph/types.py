"""Value types shared by the translation layer and providers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from keymorph.errors import UnsupportedFormatForAlgorithm


class KeyFormat(str, Enum):
    """Formats accepted and produced by export_key/import_key."""
    RAW = "raw"              # Fixed-width bytes
    HEX = "hex"              # Lowercase hex of the raw bytes
    BASE64URL = "base64url"  # Unpadded base64url of the raw bytes
    JWK = "jwk"              # RFC 7517 JSON Web Key

    @classmethod
    def parse(cls, value: "KeyFormat | str") -> "KeyFormat":
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedFormatForAlgorithm(
                f"Unknown key format: {value!r}. "
                f"Supported: {', '.join(f.value for f in cls)}",
                format=str(value),
            ) from None


class KeyUsage(str, Enum):
    """Operations a key may be used for (WebCrypto names)."""
    SIGN = "sign"
    VERIFY = "verify"
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"
    WRAP_KEY = "wrapKey"
    UNWRAP_KEY = "unwrapKey"
    DERIVE_KEY = "deriveKey"
    DERIVE_BITS = "deriveBits"


class KeyType(str, Enum):
    """Handle type reported by the provider."""
    SECRET = "secret"
    PRIVATE = "private"
    PUBLIC = "public"


def usage_tuple(usages) -> tuple[KeyUsage, ...]:
    """Normalize usages to an ordered, de-duplicated tuple."""
    result: list[KeyUsage] = []
    for usage in usages:
        usage = KeyUsage(usage)
        if usage not in result:
            result.append(usage)
    return tuple(result)


@dataclass(frozen=True)
class AlgorithmDescriptor:
    """Provider algorithm parameters (WebCrypto-style descriptor)."""
    name: str
    named_curve: str | None = None
    hash: str | None = None
    length: int | None = None
    modulus_length: int | None = None
    public_exponent: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render with WebCrypto member names, omitting unset fields."""
        data: dict[str, Any] = {"name": self.name}
        if self.named_curve is not None:
            data["namedCurve"] = self.named_curve
        if self.hash is not None:
            data["hash"] = {"name": self.hash}
        if self.length is not None:
            data["length"] = self.length
        if self.modulus_length is not None:
            data["modulusLength"] = self.modulus_length
        if self.public_exponent is not None:
            data["publicExponent"] = self.public_exponent
        return data


@dataclass(eq=False)
class CryptoKey:
    """Opaque provider key handle.

    The native key object belongs to the provider that created it; the
    translation layer only reads the metadata fields.
    """
    type: KeyType
    algorithm: AlgorithmDescriptor
    extractable: bool
    usages: tuple[KeyUsage, ...]
    handle: Any = field(default=None, repr=False)

    @property
    def algorithm_name(self) -> str:
        return self.algorithm.name


@dataclass
class CryptoKeyPair:
    """Private/public handle pair."""
    private_key: CryptoKey
    public_key: CryptoKey
