"""Algorithm Registry.

Single source of per-algorithm facts for the translation layer:
- Provider algorithm descriptor
- Default key usages for generated pairs
- Fixed raw coordinate widths
- JWK kty/crv used when wrapping raw coordinates

ES256/ES384/ES512 are aliases of P-256/P-384/P-521 and share one entry.
"""

from dataclasses import dataclass
from enum import Enum

from keymorph.errors import UnsupportedAlgorithm
from keymorph.types import AlgorithmDescriptor, KeyUsage


class KeyAlgorithm(str, Enum):
    """Signing/agreement algorithms with a raw key layout."""
    ED25519 = "Ed25519"
    X25519 = "X25519"
    P256 = "P-256"
    ES256 = "ES256"  # alias of P-256
    P384 = "P-384"
    ES384 = "ES384"  # alias of P-384
    P521 = "P-521"
    ES512 = "ES512"  # alias of P-521

    @property
    def canonical(self) -> "KeyAlgorithm":
        """The P-* member for ES* aliases, otherwise self."""
        return _ALIASES.get(self, self)


_ALIASES = {
    KeyAlgorithm.ES256: KeyAlgorithm.P256,
    KeyAlgorithm.ES384: KeyAlgorithm.P384,
    KeyAlgorithm.ES512: KeyAlgorithm.P521,
}


class AlgorithmFamily(str, Enum):
    """Provider algorithm families the export facade dispatches on."""
    ECDSA = "ECDSA"
    ED25519 = "Ed25519"
    X25519 = "X25519"
    RSA = "RSA"
    AES = "AES"


@dataclass(frozen=True)
class CoordinateLengths:
    """Raw byte widths: public is x (OKP) or x‖y (EC)."""
    public: int
    private: int

    @property
    def coordinate(self) -> int:
        """Width of a single coordinate."""
        return self.private


@dataclass(frozen=True)
class AlgorithmDescription:
    descriptor: AlgorithmDescriptor
    default_usages: tuple[KeyUsage, ...]


@dataclass(frozen=True)
class AlgorithmSpec:
    """Everything the registry knows about one canonical algorithm."""
    family: AlgorithmFamily
    kty: str
    crv: str
    descriptor: AlgorithmDescriptor
    default_usages: tuple[KeyUsage, ...]
    lengths: CoordinateLengths
    has_y: bool
    private_usage: KeyUsage
    public_usages: tuple[KeyUsage, ...]


_SIGN_VERIFY = (KeyUsage.SIGN, KeyUsage.VERIFY)

_SPECS: dict[KeyAlgorithm, AlgorithmSpec] = {
    KeyAlgorithm.ED25519: AlgorithmSpec(
        family=AlgorithmFamily.ED25519,
        kty="OKP",
        crv="Ed25519",
        descriptor=AlgorithmDescriptor(name="Ed25519"),
        default_usages=_SIGN_VERIFY,
        lengths=CoordinateLengths(public=32, private=32),
        has_y=False,
        private_usage=KeyUsage.SIGN,
        public_usages=(KeyUsage.VERIFY,),
    ),
    KeyAlgorithm.X25519: AlgorithmSpec(
        family=AlgorithmFamily.X25519,
        kty="OKP",
        crv="X25519",
        descriptor=AlgorithmDescriptor(name="X25519"),
        # Agreement only: private keys derive, public keys carry no usage
        default_usages=(KeyUsage.DERIVE_KEY,),
        lengths=CoordinateLengths(public=32, private=32),
        has_y=False,
        private_usage=KeyUsage.DERIVE_KEY,
        public_usages=(),
    ),
    KeyAlgorithm.P256: AlgorithmSpec(
        family=AlgorithmFamily.ECDSA,
        kty="EC",
        crv="P-256",
        descriptor=AlgorithmDescriptor(name="ECDSA", named_curve="P-256"),
        default_usages=_SIGN_VERIFY,
        lengths=CoordinateLengths(public=64, private=32),
        has_y=True,
        private_usage=KeyUsage.SIGN,
        public_usages=(KeyUsage.VERIFY,),
    ),
    KeyAlgorithm.P384: AlgorithmSpec(
        family=AlgorithmFamily.ECDSA,
        kty="EC",
        crv="P-384",
        descriptor=AlgorithmDescriptor(name="ECDSA", named_curve="P-384"),
        default_usages=_SIGN_VERIFY,
        lengths=CoordinateLengths(public=96, private=48),
        has_y=True,
        private_usage=KeyUsage.SIGN,
        public_usages=(KeyUsage.VERIFY,),
    ),
    KeyAlgorithm.P521: AlgorithmSpec(
        family=AlgorithmFamily.ECDSA,
        kty="EC",
        crv="P-521",
        descriptor=AlgorithmDescriptor(name="ECDSA", named_curve="P-521"),
        default_usages=_SIGN_VERIFY,
        lengths=CoordinateLengths(public=132, private=66),
        has_y=True,
        private_usage=KeyUsage.SIGN,
        public_usages=(KeyUsage.VERIFY,),
    ),
}

# Provider algorithm names -> family
_FAMILIES: dict[str, AlgorithmFamily] = {
    "ECDSA": AlgorithmFamily.ECDSA,
    "Ed25519": AlgorithmFamily.ED25519,
    "X25519": AlgorithmFamily.X25519,
    "RSASSA-PKCS1-v1_5": AlgorithmFamily.RSA,
    "RSA-PSS": AlgorithmFamily.RSA,
    "AES-GCM": AlgorithmFamily.AES,
    "AES-CBC": AlgorithmFamily.AES,
    "AES-CTR": AlgorithmFamily.AES,
    "AES-KW": AlgorithmFamily.AES,
}

AES_MODES = ("GCM", "CBC", "CTR", "KW")
AES_LENGTHS = (128, 192, 256)


def resolve(tag: KeyAlgorithm | str) -> KeyAlgorithm:
    """Coerce a tag to KeyAlgorithm.

    Raises:
        UnsupportedAlgorithm: If the tag is not in the closed set
    """
    try:
        return KeyAlgorithm(tag)
    except ValueError:
        raise UnsupportedAlgorithm(
            f"Key algorithm not supported: {tag!r}. "
            f"Supported: {', '.join(a.value for a in KeyAlgorithm)}"
        ) from None


def is_key_alg(value: object) -> bool:
    """Check if a value names a supported key algorithm."""
    return isinstance(value, str) and any(value == a.value for a in KeyAlgorithm)


def spec_for(tag: KeyAlgorithm | str) -> AlgorithmSpec:
    return _SPECS[resolve(tag).canonical]


def describe(tag: KeyAlgorithm | str) -> AlgorithmDescription:
    """Descriptor and default usages for generating a key pair."""
    spec = spec_for(tag)
    return AlgorithmDescription(
        descriptor=spec.descriptor,
        default_usages=spec.default_usages,
    )


def coordinate_lengths(tag: KeyAlgorithm | str) -> CoordinateLengths:
    """Raw public/private widths in bytes."""
    return spec_for(tag).lengths


def family_of(algorithm_name: str) -> AlgorithmFamily:
    """Map a provider-reported algorithm name to its family.

    Raises:
        UnsupportedAlgorithm: For names outside the registry
    """
    family = _FAMILIES.get(algorithm_name)
    if family is None:
        raise UnsupportedAlgorithm(f"Key algorithm not supported: {algorithm_name!r}")
    return family


def tag_for(descriptor: AlgorithmDescriptor) -> KeyAlgorithm:
    """Canonical tag of an EC/OKP descriptor."""
    if descriptor.name == "ECDSA":
        for tag, spec in _SPECS.items():
            if spec.family is AlgorithmFamily.ECDSA and spec.crv == descriptor.named_curve:
                return tag
        raise UnsupportedAlgorithm(f"Unsupported ECDSA curve: {descriptor.named_curve!r}")
    if descriptor.name == "Ed25519":
        return KeyAlgorithm.ED25519
    if descriptor.name == "X25519":
        return KeyAlgorithm.X25519
    raise UnsupportedAlgorithm(f"No raw key layout for algorithm: {descriptor.name!r}")


def aes_usages(name: str) -> tuple[KeyUsage, ...]:
    """Usages for an AES secret of the given mode."""
    if name == "AES-KW":
        return (KeyUsage.WRAP_KEY, KeyUsage.UNWRAP_KEY)
    if name in ("AES-GCM", "AES-CBC", "AES-CTR"):
        return (KeyUsage.ENCRYPT, KeyUsage.DECRYPT)
    raise UnsupportedAlgorithm(f"Unsupported AES algorithm: {name!r}")
