"""JWK inference.

Derives the provider algorithm descriptor and key usages needed to import
an arbitrary JSON Web Key. The JWK itself is never modified.

Supported:
- EC:  P-256, P-384, P-521 (ECDSA)
- OKP: Ed25519, X25519
- RSA: RS1/RS256/RS384/RS512 (RSASSA-PKCS1-v1_5), PS1/PS256/PS384/PS512 (RSA-PSS)
- oct: A128/A192/A256 with GCM, CBC, CTR or KW
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping

from keymorph.errors import (
    MissingAlgorithmHint,
    UnsupportedAlgorithm,
    UnsupportedCurve,
    UnsupportedKeyType,
)
from keymorph.types import AlgorithmDescriptor, KeyUsage

EC_CURVES = ("P-256", "P-384", "P-521")
OKP_CURVES = ("Ed25519", "X25519")

_RSA_ALG = re.compile(r"^(RS|PS)(1|256|384|512)$")
_AES_ALG = re.compile(r"^A(128|192|256)(GCM|CBC|CTR|KW)$")

_USE_USAGES = {
    "sig": (KeyUsage.SIGN, KeyUsage.VERIFY),
    "enc": (KeyUsage.ENCRYPT, KeyUsage.DECRYPT, KeyUsage.WRAP_KEY, KeyUsage.UNWRAP_KEY),
}

_RECOGNIZED_OPS = {usage.value: usage for usage in KeyUsage}


@dataclass(frozen=True)
class JwkAlgorithm:
    """Inference result: what to hand to the provider's JWK import."""
    descriptor: AlgorithmDescriptor
    key_usages: tuple[KeyUsage, ...]


def key_usages(jwk: Mapping[str, Any]) -> tuple[KeyUsage, ...]:
    """Usages from key_ops when present (even empty), else from use.

    Unrecognized key_ops entries are dropped.
    """
    key_ops = jwk.get("key_ops")
    if key_ops is not None:
        usages: list[KeyUsage] = []
        for op in key_ops:
            usage = _RECOGNIZED_OPS.get(op) if isinstance(op, str) else None
            if usage is not None and usage not in usages:
                usages.append(usage)
        return tuple(usages)

    use = jwk.get("use")
    if use:
        return _USE_USAGES.get(use, ())

    return ()


def infer(jwk: Mapping[str, Any]) -> JwkAlgorithm:
    """Infer descriptor and usages from a JWK.

    Args:
        jwk: JSON Web Key (public or private)

    Returns:
        JwkAlgorithm with the descriptor and usages

    Raises:
        UnsupportedCurve: EC/OKP with missing or unknown crv
        MissingAlgorithmHint: RSA/oct without alg
        UnsupportedAlgorithm: RSA/oct alg outside the supported set
        UnsupportedKeyType: Any other kty
    """
    usages = key_usages(jwk)
    kty = jwk.get("kty")

    if kty == "EC":
        crv = jwk.get("crv")
        if not crv:
            raise UnsupportedCurve("Missing curve (crv) in EC key")
        if crv not in EC_CURVES:
            raise UnsupportedCurve(f"Unsupported EC curve: {crv}")
        return JwkAlgorithm(
            descriptor=AlgorithmDescriptor(name="ECDSA", named_curve=crv),
            key_usages=usages,
        )

    elif kty == "OKP":
        crv = jwk.get("crv")
        if not crv:
            raise UnsupportedCurve("Missing curve (crv) in OKP key")
        if crv not in OKP_CURVES:
            raise UnsupportedCurve(f"Unsupported OKP curve: {crv}")
        return JwkAlgorithm(
            descriptor=AlgorithmDescriptor(name=crv),
            key_usages=usages,
        )

    elif kty == "RSA":
        alg = jwk.get("alg")
        if not alg:
            raise MissingAlgorithmHint('Cannot determine RSA algorithm without "alg" field')
        match = _RSA_ALG.match(alg) if isinstance(alg, str) else None
        if match is None:
            raise UnsupportedAlgorithm(f"Unsupported RSA algorithm: {alg}")

        scheme, bits = match.groups()
        name = "RSASSA-PKCS1-v1_5" if scheme == "RS" else "RSA-PSS"
        return JwkAlgorithm(
            descriptor=AlgorithmDescriptor(name=name, hash=f"SHA-{bits}"),
            key_usages=usages,
        )

    elif kty == "oct":
        alg = jwk.get("alg")
        if not alg:
            raise MissingAlgorithmHint('Cannot determine AES algorithm without "alg" field')
        match = _AES_ALG.match(alg) if isinstance(alg, str) else None
        if match is None:
            raise UnsupportedAlgorithm(f"Unsupported AES algorithm: {alg}")

        bits, mode = match.groups()
        return JwkAlgorithm(
            descriptor=AlgorithmDescriptor(name=f"AES-{mode}", length=int(bits)),
            key_usages=usages,
        )

    else:
        raise UnsupportedKeyType(f"Unsupported key type: {kty}")
