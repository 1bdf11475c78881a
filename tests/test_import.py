"""Tests for the import facade."""

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from keymorph import (
    ImportKeyOptions,
    export_key,
    export_key_pair,
    generate_aes_secret,
    generate_key_pair,
    import_key,
    import_key_pair,
)
from keymorph.config import get_settings
from keymorph.errors import (
    InvalidKeyLength,
    MalformedEncoding,
    MissingAlgorithmHint,
    MissingPrivateKey,
    UnsupportedAlgorithm,
    UnsupportedFormatForAlgorithm,
)
from keymorph.provider import DataError, InvalidAccessError
from keymorph.types import AlgorithmDescriptor, KeyType, KeyUsage

TAGS = ["Ed25519", "X25519", "P-256", "ES256", "P-384", "ES384", "P-521", "ES512"]

# Ed25519 test key
ED25519_PRIVATE = "e6cc65db53dcdce37d095c5bd792a5114e8ca575190979dfaea1afa6da1daef9"


class TestImportKey:
    """Tests for single key import from bytes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fmt", ["raw", "hex", "base64url"])
    @pytest.mark.parametrize("tag", TAGS)
    async def test_round_trip(self, tag, fmt):
        """Test export -> import -> export reproduces the bytes."""
        pair = await generate_key_pair(tag)
        exported = await export_key_pair(fmt, pair)

        key = await import_key(fmt, ImportKeyOptions(
            alg=tag,
            public_key=exported.public_key,
            private_key=exported.private_key,
            extractable=True,
        ))

        assert key.type is KeyType.PRIVATE
        assert await export_key(fmt, key) == exported.private_key

    @pytest.mark.asyncio
    async def test_public_only(self):
        pair = await generate_key_pair("P-256")
        public = await export_key("hex", pair.public_key)

        key = await import_key("hex", ImportKeyOptions(alg="P-256", public_key=public))

        assert key.type is KeyType.PUBLIC
        assert key.usages == (KeyUsage.VERIFY,)
        assert await export_key("hex", key) == public

    @pytest.mark.asyncio
    async def test_alias_layout(self):
        """Test P-256 bytes import under ES256 and vice versa."""
        pair = await generate_key_pair("ES256")
        public = await export_key("raw", pair.public_key)

        key = await import_key("raw", ImportKeyOptions(alg="P-256", public_key=public))
        assert key.algorithm == AlgorithmDescriptor(name="ECDSA", named_curve="P-256")
        assert await export_key("raw", key) == public

    @pytest.mark.asyncio
    async def test_x25519_usages(self):
        pair = await generate_key_pair("X25519")
        exported = await export_key_pair("hex", pair)

        private = await import_key("hex", ImportKeyOptions(
            alg="X25519", public_key=exported.public_key, private_key=exported.private_key,
        ))
        public = await import_key("hex", ImportKeyOptions(alg="X25519", public_key=exported.public_key))

        assert private.usages == (KeyUsage.DERIVE_KEY,)
        assert public.usages == ()

    @pytest.mark.asyncio
    async def test_default_not_extractable(self):
        pair = await generate_key_pair("Ed25519")
        exported = await export_key_pair("hex", pair)

        key = await import_key("hex", ImportKeyOptions(
            alg="Ed25519", public_key=exported.public_key, private_key=exported.private_key,
        ))

        assert key.extractable is False
        with pytest.raises(InvalidAccessError):
            await export_key("hex", key)

    @pytest.mark.asyncio
    async def test_default_extractable_from_settings(self, monkeypatch):
        monkeypatch.setenv("KEYMORPH_DEFAULT_EXTRACTABLE", "true")
        get_settings.cache_clear()

        pair = await generate_key_pair("Ed25519")
        public = await export_key("hex", pair.public_key)
        key = await import_key("hex", ImportKeyOptions(alg="Ed25519", public_key=public))
        assert key.extractable is True

    @pytest.mark.asyncio
    async def test_argument_overrides_options(self):
        pair = await generate_key_pair("Ed25519")
        public = await export_key("hex", pair.public_key)
        key = await import_key(
            "hex",
            ImportKeyOptions(alg="Ed25519", public_key=public, extractable=True),
            extractable=False,
        )
        assert key.extractable is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [31, 33])
    async def test_wrong_length(self, size):
        with pytest.raises(InvalidKeyLength):
            await import_key("raw", ImportKeyOptions(alg="Ed25519", public_key=bytes(size)))

    @pytest.mark.asyncio
    async def test_wrong_private_length(self):
        with pytest.raises(InvalidKeyLength):
            await import_key("hex", ImportKeyOptions(
                alg="P-256", public_key="00" * 64, private_key="00" * 33,
            ))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fmt,text", [
        ("hex", "zz" * 32),
        ("hex", "0" * 63),
        ("base64url", "@@@@"),
        ("base64url", "A" * 41),
        ("hex", "ab" * 32 + "\n"),
        ("base64url", "A" * 43 + "\n"),
    ])
    async def test_malformed_text(self, fmt, text):
        with pytest.raises(MalformedEncoding):
            await import_key(fmt, ImportKeyOptions(alg="Ed25519", public_key=text))

    @pytest.mark.asyncio
    async def test_raw_requires_bytes(self):
        with pytest.raises(MalformedEncoding):
            await import_key("raw", ImportKeyOptions(alg="Ed25519", public_key="00" * 32))

    @pytest.mark.asyncio
    async def test_padded_base64url_accepted(self):
        pair = await generate_key_pair("Ed25519")
        public = await export_key("base64url", pair.public_key)

        key = await import_key("base64url", ImportKeyOptions(alg="Ed25519", public_key=public + "="))
        assert key.type is KeyType.PUBLIC

    @pytest.mark.asyncio
    async def test_unknown_alg(self):
        with pytest.raises(UnsupportedAlgorithm):
            await import_key("hex", ImportKeyOptions(alg="Ed448", public_key="00" * 57))

    @pytest.mark.asyncio
    async def test_options_type_checked(self):
        with pytest.raises(UnsupportedFormatForAlgorithm):
            await import_key("hex", {"alg": "Ed25519", "public_key": "00" * 32})


class TestImportJwk:
    """Tests for JWK import through inference."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", TAGS)
    async def test_round_trip(self, tag):
        """Test inferred import preserves type and usages."""
        pair = await generate_key_pair(tag)
        private_jwk = await export_key("jwk", pair.private_key)
        public_jwk = await export_key("jwk", pair.public_key)

        private = await import_key("jwk", private_jwk, extractable=True)
        public = await import_key("jwk", public_jwk, extractable=True)

        assert private.type is KeyType.PRIVATE
        assert public.type is KeyType.PUBLIC
        assert [u.value for u in private.usages] == private_jwk["key_ops"]
        assert [u.value for u in public.usages] == public_jwk["key_ops"]
        assert await export_key("jwk", private) == private_jwk

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,hash_name", [
        ("RSASSA-PKCS1-v1_5", "SHA-256"),
        ("RSA-PSS", "SHA-512"),
    ])
    async def test_rsa(self, provider, name, hash_name):
        pair = await provider.generate_key(
            AlgorithmDescriptor(name=name, hash=hash_name), True, (KeyUsage.SIGN, KeyUsage.VERIFY),
        )
        jwk = await export_key("jwk", pair.private_key, provider=provider)

        key = await import_key("jwk", jwk, extractable=True, provider=provider)

        assert key.type is KeyType.PRIVATE
        assert key.algorithm.name == name
        assert key.algorithm.hash == hash_name
        assert key.usages == (KeyUsage.SIGN,)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["AES-GCM", "AES-CBC", "AES-CTR", "AES-KW"])
    @pytest.mark.parametrize("length", [128, 192, 256])
    async def test_aes(self, name, length):
        secret = await generate_aes_secret(name, length)
        jwk = await export_key("jwk", secret)

        imported = await import_key("jwk", jwk, extractable=True)

        assert imported.type is KeyType.SECRET
        assert imported.algorithm == secret.algorithm
        assert imported.usages == secret.usages
        assert await export_key("jwk", imported) == jwk

    @pytest.mark.asyncio
    async def test_rsa_without_alg(self):
        with pytest.raises(MissingAlgorithmHint):
            await import_key("jwk", {"kty": "RSA", "n": "AQAB", "e": "AQAB"})

    @pytest.mark.asyncio
    async def test_options_must_be_mapping(self):
        with pytest.raises(UnsupportedFormatForAlgorithm):
            await import_key("jwk", ImportKeyOptions(alg="Ed25519", public_key="00" * 32))

    @pytest.mark.asyncio
    async def test_empty_key_ops_with_use(self):
        """Test an empty key_ops wins over use on import."""
        pair = await generate_key_pair("Ed25519")
        jwk = await export_key("jwk", pair.public_key)
        jwk["key_ops"] = []
        jwk["use"] = "sig"

        key = await import_key("jwk", jwk)

        assert key.type is KeyType.PUBLIC
        assert key.usages == ()


class TestImportKeyPair:
    """Tests for pair import."""

    @pytest.mark.asyncio
    async def test_ed25519_hex_scenario(self):
        """Test generate -> hex export -> hex import for Ed25519."""
        pair = await generate_key_pair("Ed25519")
        exported = await export_key_pair("hex", pair)

        assert len(exported.private_key) == 64
        assert len(exported.public_key) == 64

        restored = await import_key_pair("hex", ImportKeyOptions(
            alg="Ed25519",
            public_key=exported.public_key,
            private_key=exported.private_key,
        ))

        assert restored.private_key.type is KeyType.PRIVATE
        assert restored.public_key.type is KeyType.PUBLIC
        assert restored.private_key.usages == (KeyUsage.SIGN,)
        assert restored.public_key.usages == (KeyUsage.VERIFY,)

    @pytest.mark.asyncio
    async def test_known_key(self):
        """Test a fixed Ed25519 scalar imports with its derived public key."""
        public = Ed25519PrivateKey.from_private_bytes(bytes.fromhex(ED25519_PRIVATE)).public_key()
        pair = await import_key_pair("hex", ImportKeyOptions(
            alg="Ed25519",
            public_key=public.public_bytes(Encoding.Raw, PublicFormat.Raw).hex(),
            private_key=ED25519_PRIVATE,
            extractable=True,
        ))
        assert await export_key("hex", pair.private_key) == ED25519_PRIVATE

    @pytest.mark.asyncio
    async def test_mismatched_public(self):
        """Test a public key that does not belong to the scalar is rejected."""
        with pytest.raises(DataError):
            await import_key_pair("hex", ImportKeyOptions(
                alg="Ed25519", public_key="11" * 32, private_key=ED25519_PRIVATE,
            ))

    @pytest.mark.asyncio
    async def test_missing_private(self):
        with pytest.raises(MissingPrivateKey):
            await import_key_pair("hex", ImportKeyOptions(alg="Ed25519", public_key="00" * 32))

    @pytest.mark.asyncio
    async def test_jwk_rejected(self):
        with pytest.raises(UnsupportedFormatForAlgorithm):
            await import_key_pair("jwk", ImportKeyOptions(alg="Ed25519", public_key="", private_key=""))
