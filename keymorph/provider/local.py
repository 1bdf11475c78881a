"""Local crypto provider backed by pyca/cryptography.

Follows WebCrypto key semantics so the translation layer behaves the
same as on a platform implementation:
- Generated public keys are always extractable and carry only the
  public-side usages
- Private and secret keys must be given at least one usage
- Non-extractable keys refuse every export
- JWK export emits key_ops and ext (and alg for RSA and AES)
- Raw export of an EC public key is the uncompressed point

X25519 private JWK export can be switched off (x25519_jwk_export=False)
to mimic platforms that only export those keys as PKCS#8.
"""

import secrets
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa, x25519
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from keymorph.encoding import b64url_decode, b64url_encode
from keymorph.logging import get_logger
from keymorph.types import (
    AlgorithmDescriptor,
    CryptoKey,
    CryptoKeyPair,
    KeyType,
    KeyUsage,
    usage_tuple,
)

from .base import (
    CipherParams,
    CryptoProvider,
    DataError,
    InvalidAccessError,
    KeyUsageError,
    NotSupportedError,
    OperationError,
    ProviderConfig,
    ProviderFormat,
)

logger = get_logger(__name__)

_CURVES: dict[str, tuple[type[ec.EllipticCurve], int]] = {
    "P-256": (ec.SECP256R1, 32),
    "P-384": (ec.SECP384R1, 48),
    "P-521": (ec.SECP521R1, 66),
}

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "SHA-1": hashes.SHA1,
    "SHA-256": hashes.SHA256,
    "SHA-384": hashes.SHA384,
    "SHA-512": hashes.SHA512,
}

_SIGNING = (
    {KeyUsage.SIGN},
    {KeyUsage.VERIFY},
)
_AES_CIPHER = (
    {KeyUsage.ENCRYPT, KeyUsage.DECRYPT, KeyUsage.WRAP_KEY, KeyUsage.UNWRAP_KEY},
    set(),
)

# Algorithm name -> (private/secret usages, public usages)
_USAGES: dict[str, tuple[set[KeyUsage], set[KeyUsage]]] = {
    "ECDSA": _SIGNING,
    "Ed25519": _SIGNING,
    "RSASSA-PKCS1-v1_5": _SIGNING,
    "RSA-PSS": _SIGNING,
    "X25519": ({KeyUsage.DERIVE_KEY, KeyUsage.DERIVE_BITS}, set()),
    "AES-GCM": _AES_CIPHER,
    "AES-CBC": _AES_CIPHER,
    "AES-CTR": _AES_CIPHER,
    "AES-KW": ({KeyUsage.WRAP_KEY, KeyUsage.UNWRAP_KEY}, set()),
}

_OKP_CLASSES = {
    "Ed25519": (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey),
    "X25519": (x25519.X25519PrivateKey, x25519.X25519PublicKey),
}

_RSA_NAMES = ("RSASSA-PKCS1-v1_5", "RSA-PSS")
_AES_NAMES = ("AES-GCM", "AES-CBC", "AES-CTR", "AES-KW")
_AES_KEY_SIZES = (16, 24, 32)


def _int_to_b64url(value: int, length: int | None = None) -> str:
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return b64url_encode(value.to_bytes(length, "big"))


def _b64url_to_int(value: str) -> int:
    return int.from_bytes(b64url_decode(value), "big")


def _rsa_jwk_alg(algorithm: AlgorithmDescriptor) -> str:
    """RS256, PS384, ... for an RSA descriptor."""
    prefix = "RS" if algorithm.name == "RSASSA-PKCS1-v1_5" else "PS"
    return prefix + algorithm.hash.split("-")[1]


def _aes_jwk_alg(algorithm: AlgorithmDescriptor) -> str:
    """A128GCM, A256KW, ... for an AES descriptor."""
    return f"A{algorithm.length}{algorithm.name[4:]}"


class LocalCryptoProvider(CryptoProvider):
    """In-process provider using pyca/cryptography."""

    def __init__(self, config: ProviderConfig | None = None):
        super().__init__(config or ProviderConfig())

    # Usage rules

    def _allowed_usages(self, name: str) -> tuple[set[KeyUsage], set[KeyUsage]]:
        allowed = _USAGES.get(name)
        if allowed is None:
            raise NotSupportedError(f"Algorithm not supported: {name}")
        return allowed

    def _split_usages(
        self,
        name: str,
        usages: tuple[KeyUsage, ...],
    ) -> tuple[tuple[KeyUsage, ...], tuple[KeyUsage, ...]]:
        """Divide requested usages between the private and public key."""
        private_allowed, public_allowed = self._allowed_usages(name)
        for usage in usages:
            if usage not in private_allowed and usage not in public_allowed:
                raise KeyUsageError(f"Usage '{usage.value}' is not valid for {name}")

        private_usages = tuple(u for u in usages if u in private_allowed)
        public_usages = tuple(u for u in usages if u in public_allowed)
        if not private_usages:
            raise KeyUsageError(f"Usages cannot be empty when creating a {name} key")
        return private_usages, public_usages

    def _check_usages(self, name: str, key_type: KeyType, usages: tuple[KeyUsage, ...]) -> None:
        private_allowed, public_allowed = self._allowed_usages(name)
        allowed = public_allowed if key_type is KeyType.PUBLIC else private_allowed
        for usage in usages:
            if usage not in allowed:
                raise KeyUsageError(
                    f"Usage '{usage.value}' is not valid for a {key_type.value} {name} key"
                )
        if key_type is not KeyType.PUBLIC and not usages:
            raise KeyUsageError(f"Usages cannot be empty for a {key_type.value} {name} key")

    def _format(self, format: ProviderFormat | str) -> ProviderFormat:
        try:
            return ProviderFormat(format)
        except ValueError:
            raise NotSupportedError(f"Unsupported key format: {format}") from None

    def _curve(self, named_curve: str | None) -> tuple[ec.EllipticCurve, int]:
        entry = _CURVES.get(named_curve)
        if entry is None:
            raise NotSupportedError(f"Unsupported named curve: {named_curve}")
        curve_class, size = entry
        return curve_class(), size

    def _hash(self, name: str | None) -> hashes.HashAlgorithm:
        hash_class = _HASHES.get(name)
        if hash_class is None:
            raise NotSupportedError(f"Unsupported hash: {name}")
        return hash_class()

    def _rsa_descriptor(self, algorithm: AlgorithmDescriptor, native: Any) -> AlgorithmDescriptor:
        self._hash(algorithm.hash)
        public_numbers = native.public_numbers() if isinstance(native, rsa.RSAPublicKey) \
            else native.public_key().public_numbers()
        return AlgorithmDescriptor(
            name=algorithm.name,
            hash=algorithm.hash,
            modulus_length=public_numbers.n.bit_length(),
            public_exponent=public_numbers.e,
        )

    # Generation

    async def generate_key(
        self,
        algorithm: AlgorithmDescriptor,
        extractable: bool,
        usages: tuple[KeyUsage, ...],
    ) -> CryptoKey | CryptoKeyPair:
        """Generate a secret key or a key pair."""
        usages = usage_tuple(usages)
        name = algorithm.name

        if name in _AES_NAMES:
            if algorithm.length not in (128, 192, 256):
                raise OperationError(f"AES key length must be 128, 192 or 256, got {algorithm.length}")
            self._check_usages(name, KeyType.SECRET, usages)
            logger.debug("Generated secret key", algorithm=name, length=algorithm.length)
            return CryptoKey(
                type=KeyType.SECRET,
                algorithm=AlgorithmDescriptor(name=name, length=algorithm.length),
                extractable=extractable,
                usages=usages,
                handle=secrets.token_bytes(algorithm.length // 8),
            )

        private_usages, public_usages = self._split_usages(name, usages)

        if name == "Ed25519":
            native = ed25519.Ed25519PrivateKey.generate()
            descriptor = AlgorithmDescriptor(name=name)
        elif name == "X25519":
            native = x25519.X25519PrivateKey.generate()
            descriptor = AlgorithmDescriptor(name=name)
        elif name == "ECDSA":
            curve, _ = self._curve(algorithm.named_curve)
            native = ec.generate_private_key(curve)
            descriptor = AlgorithmDescriptor(name=name, named_curve=algorithm.named_curve)
        elif name in _RSA_NAMES:
            native = rsa.generate_private_key(
                public_exponent=algorithm.public_exponent or 65537,
                key_size=algorithm.modulus_length or 2048,
            )
            descriptor = self._rsa_descriptor(algorithm, native)
        else:
            raise NotSupportedError(f"Algorithm not supported: {name}")

        logger.debug("Generated key pair", algorithm=name, curve=algorithm.named_curve)
        return CryptoKeyPair(
            private_key=CryptoKey(
                type=KeyType.PRIVATE,
                algorithm=descriptor,
                extractable=extractable,
                usages=private_usages,
                handle=native,
            ),
            public_key=CryptoKey(
                type=KeyType.PUBLIC,
                algorithm=descriptor,
                extractable=True,
                usages=public_usages,
                handle=native.public_key(),
            ),
        )

    # Import

    async def import_key(
        self,
        format: ProviderFormat | str,
        key_data: Any,
        algorithm: AlgorithmDescriptor,
        extractable: bool,
        usages: tuple[KeyUsage, ...],
    ) -> CryptoKey:
        """Import key material in raw, pkcs8, spki or jwk format."""
        format = self._format(format)
        usages = usage_tuple(usages)
        name = algorithm.name
        self._allowed_usages(name)

        if format is ProviderFormat.JWK:
            key_type, native, descriptor = self._import_jwk(key_data, algorithm, extractable, usages)
        elif format is ProviderFormat.RAW:
            key_type, native, descriptor = self._import_raw(bytes(key_data), algorithm)
        elif format is ProviderFormat.PKCS8:
            key_type, native, descriptor = self._import_der(bytes(key_data), algorithm, private=True)
        else:
            key_type, native, descriptor = self._import_der(bytes(key_data), algorithm, private=False)

        self._check_usages(name, key_type, usages)
        return CryptoKey(
            type=key_type,
            algorithm=descriptor,
            extractable=extractable,
            usages=usages,
            handle=native,
        )

    def _import_jwk(
        self,
        jwk: Any,
        algorithm: AlgorithmDescriptor,
        extractable: bool,
        usages: tuple[KeyUsage, ...],
    ) -> tuple[KeyType, Any, AlgorithmDescriptor]:
        if not isinstance(jwk, dict):
            raise DataError("JWK import requires a dict")

        key_ops = jwk.get("key_ops")
        if key_ops is not None:
            missing = [u.value for u in usages if u.value not in key_ops]
            if missing:
                raise DataError(f"Usages {missing} not permitted by key_ops {key_ops}")

        if jwk.get("ext") is False and extractable:
            raise DataError("JWK ext is false but an extractable key was requested")

        name = algorithm.name
        expected_use = "enc" if name in _AES_NAMES or name == "X25519" else "sig"
        if usages and "use" in jwk and jwk["use"] != expected_use:
            raise DataError(f"JWK use must be '{expected_use}' for {name}, got '{jwk['use']}'")

        try:
            if name in _AES_NAMES:
                return self._jwk_to_secret(jwk, algorithm)
            elif name == "ECDSA":
                return self._jwk_to_ec(jwk, algorithm)
            elif name in ("Ed25519", "X25519"):
                return self._jwk_to_okp(jwk, algorithm)
            else:
                return self._jwk_to_rsa(jwk, algorithm)
        except (KeyError, TypeError, ValueError) as e:
            raise DataError(f"Invalid {name} JWK: {e}") from e

    def _jwk_to_secret(self, jwk: dict, algorithm: AlgorithmDescriptor):
        if jwk.get("kty") != "oct":
            raise DataError(f"Expected kty 'oct' for {algorithm.name}, got {jwk.get('kty')!r}")
        data = b64url_decode(jwk["k"])
        length = len(data) * 8
        if len(data) not in _AES_KEY_SIZES:
            raise DataError(f"Invalid AES key length: {length} bits")
        if algorithm.length is not None and algorithm.length != length:
            raise DataError(f"Key length {length} does not match requested {algorithm.length}")

        descriptor = AlgorithmDescriptor(name=algorithm.name, length=length)
        if "alg" in jwk and jwk["alg"] != _aes_jwk_alg(descriptor):
            raise DataError(f"JWK alg {jwk['alg']!r} does not match {_aes_jwk_alg(descriptor)}")
        return KeyType.SECRET, data, descriptor

    def _jwk_to_ec(self, jwk: dict, algorithm: AlgorithmDescriptor):
        if jwk.get("kty") != "EC":
            raise DataError(f"Expected kty 'EC', got {jwk.get('kty')!r}")
        if jwk.get("crv") != algorithm.named_curve:
            raise DataError(
                f"JWK crv {jwk.get('crv')!r} does not match {algorithm.named_curve}"
            )
        curve, size = self._curve(algorithm.named_curve)
        descriptor = AlgorithmDescriptor(name="ECDSA", named_curve=algorithm.named_curve)

        x = b64url_decode(jwk["x"])
        y = b64url_decode(jwk["y"])
        if len(x) != size or len(y) != size:
            raise DataError(f"EC coordinates must be {size} bytes for {algorithm.named_curve}")
        public_numbers = ec.EllipticCurvePublicNumbers(
            int.from_bytes(x, "big"), int.from_bytes(y, "big"), curve
        )

        if "d" in jwk:
            d = b64url_decode(jwk["d"])
            if len(d) != size:
                raise DataError(f"EC private scalar must be {size} bytes for {algorithm.named_curve}")
            private_numbers = ec.EllipticCurvePrivateNumbers(int.from_bytes(d, "big"), public_numbers)
            return KeyType.PRIVATE, private_numbers.private_key(), descriptor

        return KeyType.PUBLIC, public_numbers.public_key(), descriptor

    def _jwk_to_okp(self, jwk: dict, algorithm: AlgorithmDescriptor):
        name = algorithm.name
        if jwk.get("kty") != "OKP":
            raise DataError(f"Expected kty 'OKP', got {jwk.get('kty')!r}")
        if jwk.get("crv") != name:
            raise DataError(f"JWK crv {jwk.get('crv')!r} does not match {name}")
        private_class, public_class = _OKP_CLASSES[name]
        descriptor = AlgorithmDescriptor(name=name)

        x = b64url_decode(jwk["x"])
        if "d" in jwk:
            native = private_class.from_private_bytes(b64url_decode(jwk["d"]))
            derived = native.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
            if derived != x:
                raise DataError(f"{name} public key does not match the private key")
            return KeyType.PRIVATE, native, descriptor

        return KeyType.PUBLIC, public_class.from_public_bytes(x), descriptor

    def _jwk_to_rsa(self, jwk: dict, algorithm: AlgorithmDescriptor):
        if jwk.get("kty") != "RSA":
            raise DataError(f"Expected kty 'RSA', got {jwk.get('kty')!r}")
        self._hash(algorithm.hash)
        expected_alg = _rsa_jwk_alg(algorithm)
        if "alg" in jwk and jwk["alg"] != expected_alg:
            raise DataError(f"JWK alg {jwk['alg']!r} does not match {expected_alg}")

        n = _b64url_to_int(jwk["n"])
        e = _b64url_to_int(jwk["e"])
        public_numbers = rsa.RSAPublicNumbers(e, n)

        if "d" in jwk:
            d = _b64url_to_int(jwk["d"])
            if "p" in jwk and "q" in jwk:
                p = _b64url_to_int(jwk["p"])
                q = _b64url_to_int(jwk["q"])
            else:
                p, q = rsa.rsa_recover_prime_factors(n, e, d)
            dp = _b64url_to_int(jwk["dp"]) if "dp" in jwk else rsa.rsa_crt_dmp1(d, p)
            dq = _b64url_to_int(jwk["dq"]) if "dq" in jwk else rsa.rsa_crt_dmq1(d, q)
            qi = _b64url_to_int(jwk["qi"]) if "qi" in jwk else rsa.rsa_crt_iqmp(p, q)
            native = rsa.RSAPrivateNumbers(p, q, d, dp, dq, qi, public_numbers).private_key()
            return KeyType.PRIVATE, native, self._rsa_descriptor(algorithm, native)

        native = public_numbers.public_key()
        return KeyType.PUBLIC, native, self._rsa_descriptor(algorithm, native)

    def _import_raw(self, data: bytes, algorithm: AlgorithmDescriptor):
        name = algorithm.name
        try:
            if name in _AES_NAMES:
                if len(data) not in _AES_KEY_SIZES:
                    raise DataError(f"Invalid AES key length: {len(data) * 8} bits")
                if algorithm.length is not None and algorithm.length != len(data) * 8:
                    raise DataError(
                        f"Key length {len(data) * 8} does not match requested {algorithm.length}"
                    )
                return KeyType.SECRET, data, AlgorithmDescriptor(name=name, length=len(data) * 8)
            elif name == "Ed25519":
                return KeyType.PUBLIC, ed25519.Ed25519PublicKey.from_public_bytes(data), \
                    AlgorithmDescriptor(name=name)
            elif name == "X25519":
                return KeyType.PUBLIC, x25519.X25519PublicKey.from_public_bytes(data), \
                    AlgorithmDescriptor(name=name)
            elif name == "ECDSA":
                curve, _ = self._curve(algorithm.named_curve)
                native = ec.EllipticCurvePublicKey.from_encoded_point(curve, data)
                return KeyType.PUBLIC, native, \
                    AlgorithmDescriptor(name=name, named_curve=algorithm.named_curve)
        except ValueError as e:
            raise DataError(f"Invalid raw {name} key: {e}") from e

        raise NotSupportedError(f"Raw import not supported for {name}")

    def _import_der(self, data: bytes, algorithm: AlgorithmDescriptor, private: bool):
        name = algorithm.name
        if name in _AES_NAMES:
            raise NotSupportedError(f"{'PKCS8' if private else 'SPKI'} import not supported for {name}")
        try:
            if private:
                native = serialization.load_der_private_key(data, password=None)
            else:
                native = serialization.load_der_public_key(data)
        except ValueError as e:
            raise DataError(f"Invalid DER key data: {e}") from e

        expected = {
            "Ed25519": (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey),
            "X25519": (x25519.X25519PrivateKey, x25519.X25519PublicKey),
            "ECDSA": (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey),
            "RSASSA-PKCS1-v1_5": (rsa.RSAPrivateKey, rsa.RSAPublicKey),
            "RSA-PSS": (rsa.RSAPrivateKey, rsa.RSAPublicKey),
        }[name]
        if not isinstance(native, expected[0 if private else 1]):
            raise DataError(f"DER key is not a {name} key")

        key_type = KeyType.PRIVATE if private else KeyType.PUBLIC
        if name == "ECDSA":
            curve, _ = self._curve(algorithm.named_curve)
            if native.curve.name != curve.name:
                raise DataError(f"DER key curve {native.curve.name} does not match {algorithm.named_curve}")
            return key_type, native, AlgorithmDescriptor(name=name, named_curve=algorithm.named_curve)
        if name in _RSA_NAMES:
            return key_type, native, self._rsa_descriptor(algorithm, native)
        return key_type, native, AlgorithmDescriptor(name=name)

    # Export

    def supports_jwk_export(self, algorithm_name: str, key_type: KeyType) -> bool:
        if algorithm_name == "X25519" and key_type is KeyType.PRIVATE:
            return self.config.x25519_jwk_export
        return True

    async def export_key(self, format: ProviderFormat | str, key: CryptoKey) -> bytes | dict:
        """Export an extractable key."""
        format = self._format(format)
        if not key.extractable:
            raise InvalidAccessError("Key is not extractable")

        name = key.algorithm.name
        native = key.handle

        if format is ProviderFormat.JWK:
            if not self.supports_jwk_export(name, key.type):
                raise NotSupportedError(f"JWK export of {key.type.value} {name} keys is not supported")
            jwk = self._to_jwk(key)
            jwk["key_ops"] = [u.value for u in key.usages]
            jwk["ext"] = key.extractable
            return jwk

        if format is ProviderFormat.RAW:
            if key.type is KeyType.SECRET:
                return bytes(native)
            if key.type is KeyType.PRIVATE:
                raise InvalidAccessError(f"Raw export requires a public key, got {key.type.value}")
            if name in ("Ed25519", "X25519"):
                return native.public_bytes(
                    encoding=serialization.Encoding.Raw,
                    format=serialization.PublicFormat.Raw,
                )
            if name == "ECDSA":
                return native.public_bytes(
                    encoding=serialization.Encoding.X962,
                    format=serialization.PublicFormat.UncompressedPoint,
                )
            raise NotSupportedError(f"Raw export not supported for {name}")

        if key.type is KeyType.SECRET:
            raise NotSupportedError(f"{format.value} export not supported for {name}")

        if format is ProviderFormat.PKCS8:
            if key.type is not KeyType.PRIVATE:
                raise InvalidAccessError("PKCS8 export requires a private key")
            return native.private_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )

        if key.type is not KeyType.PUBLIC:
            raise InvalidAccessError("SPKI export requires a public key")
        return native.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def _to_jwk(self, key: CryptoKey) -> dict[str, Any]:
        """Convert a handle to JWK members (without key_ops/ext)."""
        name = key.algorithm.name
        native = key.handle
        private = key.type is KeyType.PRIVATE

        if key.type is KeyType.SECRET:
            return {"kty": "oct", "k": b64url_encode(native), "alg": _aes_jwk_alg(key.algorithm)}

        if name in ("Ed25519", "X25519"):
            public = native.public_key() if private else native
            jwk = {
                "kty": "OKP",
                "crv": name,
                "x": b64url_encode(public.public_bytes(
                    encoding=serialization.Encoding.Raw,
                    format=serialization.PublicFormat.Raw,
                )),
            }
            if private:
                jwk["d"] = b64url_encode(native.private_bytes(
                    encoding=serialization.Encoding.Raw,
                    format=serialization.PrivateFormat.Raw,
                    encryption_algorithm=serialization.NoEncryption(),
                ))
            return jwk

        if name == "ECDSA":
            _, size = self._curve(key.algorithm.named_curve)
            numbers = (native.public_key() if private else native).public_numbers()
            jwk = {
                "kty": "EC",
                "crv": key.algorithm.named_curve,
                "x": _int_to_b64url(numbers.x, size),
                "y": _int_to_b64url(numbers.y, size),
            }
            if private:
                jwk["d"] = _int_to_b64url(native.private_numbers().private_value, size)
            return jwk

        if name in _RSA_NAMES:
            public_numbers = (native.public_key() if private else native).public_numbers()
            jwk = {
                "kty": "RSA",
                "alg": _rsa_jwk_alg(key.algorithm),
                "n": _int_to_b64url(public_numbers.n),
                "e": _int_to_b64url(public_numbers.e),
            }
            if private:
                numbers = native.private_numbers()
                jwk.update({
                    "d": _int_to_b64url(numbers.d),
                    "p": _int_to_b64url(numbers.p),
                    "q": _int_to_b64url(numbers.q),
                    "dp": _int_to_b64url(numbers.dmp1),
                    "dq": _int_to_b64url(numbers.dmq1),
                    "qi": _int_to_b64url(numbers.iqmp),
                })
            return jwk

        raise NotSupportedError(f"JWK export not supported for {name}")

    # Digest and ciphers

    async def digest(self, algorithm: str, data: bytes) -> bytes:
        h = hashes.Hash(self._hash(algorithm))
        h.update(bytes(data))
        return h.finalize()

    def _cipher_key(self, params: CipherParams, key: CryptoKey, usage: KeyUsage) -> bytes:
        if key.type is not KeyType.SECRET or key.algorithm.name != params.name:
            raise InvalidAccessError(
                f"{params.name} requires a matching secret key, got {key.type.value} "
                f"{key.algorithm.name}"
            )
        if usage not in key.usages:
            raise InvalidAccessError(f"Key usages do not permit '{usage.value}'")
        if params.name not in ("AES-GCM", "AES-CBC", "AES-CTR"):
            raise NotSupportedError(f"{usage.value} not supported for {params.name}")
        return key.handle

    def _cipher(self, params: CipherParams, secret: bytes) -> Cipher:
        if params.name == "AES-CBC":
            if len(params.iv) != 16:
                raise OperationError(f"AES-CBC iv must be 16 bytes, got {len(params.iv)}")
            return Cipher(algorithms.AES(secret), modes.CBC(params.iv))
        if len(params.iv) != 16:
            raise OperationError(f"AES-CTR counter must be 16 bytes, got {len(params.iv)}")
        if not 0 < params.counter_length <= 128:
            raise OperationError(f"AES-CTR counter length must be 1-128 bits, got {params.counter_length}")
        return Cipher(algorithms.AES(secret), modes.CTR(params.iv))

    def _check_gcm(self, params: CipherParams) -> None:
        if params.tag_length != 128:
            raise NotSupportedError(f"AES-GCM tag length {params.tag_length} not supported")
        if not params.iv:
            raise OperationError("AES-GCM iv cannot be empty")

    async def encrypt(self, params: CipherParams, key: CryptoKey, data: bytes) -> bytes:
        secret = self._cipher_key(params, key, KeyUsage.ENCRYPT)
        data = bytes(data)

        if params.name == "AES-GCM":
            self._check_gcm(params)
            return AESGCM(secret).encrypt(params.iv, data, params.additional_data)

        if params.name == "AES-CBC":
            padder = padding.PKCS7(128).padder()
            data = padder.update(data) + padder.finalize()

        encryptor = self._cipher(params, secret).encryptor()
        return encryptor.update(data) + encryptor.finalize()

    async def decrypt(self, params: CipherParams, key: CryptoKey, data: bytes) -> bytes:
        secret = self._cipher_key(params, key, KeyUsage.DECRYPT)
        data = bytes(data)

        if params.name == "AES-GCM":
            self._check_gcm(params)
            try:
                return AESGCM(secret).decrypt(params.iv, data, params.additional_data)
            except InvalidTag as e:
                raise OperationError("AES-GCM authentication failed") from e

        decryptor = self._cipher(params, secret).decryptor()
        try:
            plaintext = decryptor.update(data) + decryptor.finalize()
        except ValueError as e:
            raise OperationError(f"{params.name} decryption failed: {e}") from e

        if params.name == "AES-CBC":
            unpadder = padding.PKCS7(128).unpadder()
            try:
                plaintext = unpadder.update(plaintext) + unpadder.finalize()
            except ValueError as e:
                raise OperationError("AES-CBC padding is invalid") from e

        return plaintext
