"""Raw key codec.

Converts between fixed-width raw key bytes and JWK objects for the
EC and OKP algorithms in the registry.

Layout:
    private = d                 (fixed width per curve)
    public  = x ‖ y   (EC)      (two coordinates, big-endian, fixed width)
    public  = x       (OKP)

EC public bytes are always x followed by y.
"""

from dataclasses import dataclass
from typing import Any, Mapping

from keymorph.core.registry import KeyAlgorithm, resolve, spec_for
from keymorph.encoding import b64url_decode, b64url_encode
from keymorph.errors import InvalidKeyLength, UnsupportedCurve


@dataclass(frozen=True)
class Coordinates:
    """Curve coordinates split out of the public bytes."""
    x: bytes
    y: bytes | None = None


@dataclass(frozen=True)
class KeyMaterial:
    """Raw key bytes for one algorithm."""
    algorithm: KeyAlgorithm
    public: bytes

    def coordinates(self) -> Coordinates:
        spec = spec_for(self.algorithm)
        if not spec.has_y:
            return Coordinates(x=self.public)
        half = spec.lengths.coordinate
        return Coordinates(x=self.public[:half], y=self.public[half:])


@dataclass(frozen=True)
class PublicKeyMaterial(KeyMaterial):
    """Public coordinates only."""


@dataclass(frozen=True, kw_only=True)
class PrivateKeyMaterial(KeyMaterial):
    """Public coordinates plus the private scalar."""
    private: bytes


def _check_length(alg: KeyAlgorithm, component: str, data: bytes, expected: int) -> None:
    if len(data) != expected:
        raise InvalidKeyLength(
            f"{component} key length must be {expected} bytes for {alg.value}, "
            f"got {len(data)}",
            component=component,
            expected=expected,
            actual=len(data),
        )


def encode(
    tag: KeyAlgorithm | str,
    public: bytes,
    private: bytes | None = None,
) -> dict[str, Any]:
    """Build a JWK from raw key bytes.

    Args:
        tag: Key algorithm (ES* aliases accepted)
        public: x‖y for EC, x for OKP
        private: Optional private scalar d

    Returns:
        JWK dict with kty, crv, x, [y], [d] and key_ops

    Raises:
        UnsupportedAlgorithm: Unknown tag
        InvalidKeyLength: Public or private width mismatch
    """
    alg = resolve(tag)
    spec = spec_for(alg)
    public = bytes(public)

    _check_length(alg, "public", public, spec.lengths.public)
    if private is not None:
        private = bytes(private)
        _check_length(alg, "private", private, spec.lengths.private)

    jwk: dict[str, Any] = {"kty": spec.kty, "crv": spec.crv}
    if spec.has_y:
        half = spec.lengths.coordinate
        jwk["x"] = b64url_encode(public[:half])
        jwk["y"] = b64url_encode(public[half:])
    else:
        jwk["x"] = b64url_encode(public)

    if private is not None:
        jwk["d"] = b64url_encode(private)
        jwk["key_ops"] = [spec.private_usage.value]
    else:
        jwk["key_ops"] = [u.value for u in spec.public_usages]

    return jwk


def from_material(material: KeyMaterial) -> dict[str, Any]:
    """encode() over a material object."""
    private = material.private if isinstance(material, PrivateKeyMaterial) else None
    return encode(material.algorithm, material.public, private)


def decode(
    tag: KeyAlgorithm | str,
    jwk: Mapping[str, Any],
) -> PublicKeyMaterial | PrivateKeyMaterial:
    """Rebuild raw key bytes from a JWK.

    Args:
        tag: Key algorithm the JWK must belong to
        jwk: EC or OKP JWK (private when it carries d)

    Returns:
        PrivateKeyMaterial when d is present, else PublicKeyMaterial

    Raises:
        UnsupportedCurve: kty/crv do not belong to the tag
        InvalidKeyLength: A decoded coordinate has the wrong width
        MalformedEncoding: A member is not valid base64url
    """
    alg = resolve(tag)
    spec = spec_for(alg)

    if jwk.get("kty") != spec.kty or jwk.get("crv") != spec.crv:
        raise UnsupportedCurve(
            f"Expected kty={spec.kty} crv={spec.crv} for {alg.value}, "
            f"got kty={jwk.get('kty')} crv={jwk.get('crv')}"
        )

    x = b64url_decode(jwk.get("x", ""))
    if spec.has_y:
        y = b64url_decode(jwk.get("y", ""))
        _check_length(alg, "x", x, spec.lengths.coordinate)
        _check_length(alg, "y", y, spec.lengths.coordinate)
        public = x + y
    else:
        public = x
        _check_length(alg, "public", public, spec.lengths.public)

    if "d" in jwk:
        d = b64url_decode(jwk["d"])
        _check_length(alg, "private", d, spec.lengths.private)
        return PrivateKeyMaterial(algorithm=alg, public=public, private=d)

    return PublicKeyMaterial(algorithm=alg, public=public)
