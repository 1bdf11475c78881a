"""
Exception classes for keymorph.

Every condition the translation layer can detect has its own class so
callers can catch exactly what they expect. Provider failures are not
wrapped here; see keymorph.provider.base for those.
"""


class KeyMorphError(Exception):
    """Base exception for keymorph errors."""
    pass


class UnsupportedAlgorithm(KeyMorphError, ValueError):
    """Algorithm tag, name or JWK alg hint outside the supported set."""
    pass


class UnsupportedCurve(KeyMorphError, ValueError):
    """Recognized kty with a missing or unknown crv."""
    pass


class UnsupportedKeyType(KeyMorphError, ValueError):
    """JWK kty is not one of EC, OKP, RSA or oct."""
    pass


class MissingAlgorithmHint(KeyMorphError, ValueError):
    """RSA or oct JWK without an alg member."""
    pass


class InvalidKeyLength(KeyMorphError, ValueError):
    """Raw key bytes do not match the algorithm's fixed width."""

    def __init__(self, message: str, component: str | None = None,
                 expected: int | None = None, actual: int | None = None):
        super().__init__(message)
        self.component = component
        self.expected = expected
        self.actual = actual


class MalformedEncoding(KeyMorphError, ValueError):
    """Hex or base64url text failed to decode."""

    def __init__(self, message: str, encoding: str | None = None):
        super().__init__(message)
        self.encoding = encoding


class MalformedPkcs8(KeyMorphError, ValueError):
    """Unexpected byte while walking an X25519 PKCS#8 blob."""

    def __init__(self, message: str, offset: int,
                 expected: int | None = None, actual: int | None = None):
        detail = f"{message} at offset {offset}"
        if expected is not None:
            found = "end of data" if actual is None else f"0x{actual:02x}"
            detail += f" (expected 0x{expected:02x}, got {found})"
        super().__init__(detail)
        self.offset = offset
        self.expected = expected
        self.actual = actual


class UnsupportedFormatForAlgorithm(KeyMorphError, ValueError):
    """Requested format is not available for this key's algorithm."""

    def __init__(self, message: str, format: str | None = None,
                 algorithm: str | None = None):
        super().__init__(message)
        self.format = format
        self.algorithm = algorithm


class NotImplementedKeyExport(KeyMorphError, NotImplementedError):
    """The provider cannot produce this export (X25519 private JWK)."""
    pass


class MissingPrivateKey(KeyMorphError, ValueError):
    """A key pair import was requested without private key material."""
    pass
