"""Key pair generation."""

from typing import Any

from keymorph.core.registry import KeyAlgorithm, describe
from keymorph.logging import log_operation
from keymorph.provider import CryptoProvider, get_provider
from keymorph.types import CryptoKeyPair


@log_operation("generate_key_pair")
async def generate_key_pair(
    alg: KeyAlgorithm | str,
    extractable: bool = True,
    provider: CryptoProvider | None = None,
) -> CryptoKeyPair:
    """Generate a key pair with the algorithm's default usages.

    X25519 pairs come out with deriveKey on the private key and no usages
    on the public key; every other algorithm gets sign/verify.

    Raises:
        UnsupportedAlgorithm: Unknown alg
    """
    description = describe(alg)
    provider = provider or get_provider()
    return await provider.generate_key(
        description.descriptor,
        extractable,
        description.default_usages,
    )


def is_pair(value: Any) -> bool:
    """Check if a value is a key pair rather than a single key."""
    return isinstance(value, CryptoKeyPair)
