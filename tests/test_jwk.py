"""Tests for JWK inference."""

import pytest

from keymorph.core.jwk import JwkAlgorithm, infer, key_usages
from keymorph.errors import (
    MissingAlgorithmHint,
    UnsupportedAlgorithm,
    UnsupportedCurve,
    UnsupportedKeyType,
)
from keymorph.types import AlgorithmDescriptor, KeyUsage


class TestKeyUsages:
    """Tests for usage extraction."""

    def test_key_ops(self):
        assert key_usages({"key_ops": ["sign", "verify"]}) == (KeyUsage.SIGN, KeyUsage.VERIFY)

    def test_unknown_key_ops_dropped(self):
        """Test unrecognized operation names are dropped silently."""
        jwk = {"key_ops": ["sign", "frobnicate", "deriveBits"]}
        assert key_usages(jwk) == (KeyUsage.SIGN, KeyUsage.DERIVE_BITS)

    def test_duplicate_key_ops(self):
        assert key_usages({"key_ops": ["verify", "verify"]}) == (KeyUsage.VERIFY,)

    def test_key_ops_win_over_use(self):
        assert key_usages({"key_ops": ["verify"], "use": "enc"}) == (KeyUsage.VERIFY,)

    def test_use_sig(self):
        assert key_usages({"use": "sig"}) == (KeyUsage.SIGN, KeyUsage.VERIFY)

    def test_use_enc(self):
        assert key_usages({"use": "enc"}) == (
            KeyUsage.ENCRYPT, KeyUsage.DECRYPT, KeyUsage.WRAP_KEY, KeyUsage.UNWRAP_KEY,
        )

    def test_unknown_use(self):
        assert key_usages({"use": "other"}) == ()

    def test_empty_key_ops_overrides_use(self):
        """Test an empty key_ops list is authoritative over use."""
        assert key_usages({"key_ops": [], "use": "sig"}) == ()

    def test_nothing(self):
        assert key_usages({}) == ()


class TestInferEC:
    """Tests for kty EC."""

    @pytest.mark.parametrize("crv", ["P-256", "P-384", "P-521"])
    def test_curves(self, crv):
        result = infer({"kty": "EC", "crv": crv, "key_ops": ["verify"]})
        assert result == JwkAlgorithm(
            descriptor=AlgorithmDescriptor(name="ECDSA", named_curve=crv),
            key_usages=(KeyUsage.VERIFY,),
        )

    def test_missing_crv(self):
        with pytest.raises(UnsupportedCurve, match="Missing curve"):
            infer({"kty": "EC"})

    def test_unknown_crv(self):
        with pytest.raises(UnsupportedCurve, match="secp256k1"):
            infer({"kty": "EC", "crv": "secp256k1"})


class TestInferOKP:
    """Tests for kty OKP."""

    @pytest.mark.parametrize("crv", ["Ed25519", "X25519"])
    def test_curves(self, crv):
        assert infer({"kty": "OKP", "crv": crv}).descriptor == AlgorithmDescriptor(name=crv)

    def test_ed448_unsupported(self):
        with pytest.raises(UnsupportedCurve):
            infer({"kty": "OKP", "crv": "Ed448"})

    def test_missing_crv(self):
        with pytest.raises(UnsupportedCurve):
            infer({"kty": "OKP", "x": "AAAA"})


class TestInferRSA:
    """Tests for kty RSA."""

    @pytest.mark.parametrize("alg,name,hash_name", [
        ("RS1", "RSASSA-PKCS1-v1_5", "SHA-1"),
        ("RS256", "RSASSA-PKCS1-v1_5", "SHA-256"),
        ("RS384", "RSASSA-PKCS1-v1_5", "SHA-384"),
        ("RS512", "RSASSA-PKCS1-v1_5", "SHA-512"),
        ("PS1", "RSA-PSS", "SHA-1"),
        ("PS256", "RSA-PSS", "SHA-256"),
        ("PS384", "RSA-PSS", "SHA-384"),
        ("PS512", "RSA-PSS", "SHA-512"),
    ])
    def test_algorithms(self, alg, name, hash_name):
        result = infer({"kty": "RSA", "alg": alg, "use": "sig"})
        assert result.descriptor == AlgorithmDescriptor(name=name, hash=hash_name)
        assert result.key_usages == (KeyUsage.SIGN, KeyUsage.VERIFY)

    def test_pss_descriptor_has_no_salt(self):
        """Test the PSS descriptor only carries name and hash."""
        assert infer({"kty": "RSA", "alg": "PS256"}).descriptor.to_dict() == {
            "name": "RSA-PSS",
            "hash": {"name": "SHA-256"},
        }

    def test_missing_alg(self):
        with pytest.raises(MissingAlgorithmHint):
            infer({"kty": "RSA", "n": "AQAB", "e": "AQAB"})

    @pytest.mark.parametrize("alg", ["RSA-OAEP", "RS224", "ES256", "rs256"])
    def test_unsupported_alg(self, alg):
        with pytest.raises(UnsupportedAlgorithm):
            infer({"kty": "RSA", "alg": alg})


class TestInferOct:
    """Tests for kty oct."""

    def test_a256gcm(self):
        """Test {kty: oct, alg: A256GCM} -> AES-GCM 256 with no usages."""
        result = infer({"kty": "oct", "alg": "A256GCM"})
        assert result.descriptor == AlgorithmDescriptor(name="AES-GCM", length=256)
        assert result.key_usages == ()

    @pytest.mark.parametrize("bits", [128, 192, 256])
    @pytest.mark.parametrize("mode", ["GCM", "CBC", "CTR", "KW"])
    def test_modes(self, bits, mode):
        result = infer({"kty": "oct", "alg": f"A{bits}{mode}", "use": "enc"})
        assert result.descriptor == AlgorithmDescriptor(name=f"AES-{mode}", length=bits)

    def test_missing_alg(self):
        with pytest.raises(MissingAlgorithmHint):
            infer({"kty": "oct", "k": "AAAA"})

    @pytest.mark.parametrize("alg", ["HS256", "A512GCM", "A128OCB", "dir"])
    def test_unsupported_alg(self, alg):
        with pytest.raises(UnsupportedAlgorithm):
            infer({"kty": "oct", "alg": alg})


class TestInferKty:
    """Tests for unknown key types."""

    @pytest.mark.parametrize("jwk", [{"kty": "AKP"}, {"kty": "ec"}, {}])
    def test_unsupported(self, jwk):
        with pytest.raises(UnsupportedKeyType):
            infer(jwk)

    def test_does_not_modify_input(self):
        jwk = {"kty": "EC", "crv": "P-256", "key_ops": ["sign", "bogus"]}
        infer(jwk)
        assert jwk == {"kty": "EC", "crv": "P-256", "key_ops": ["sign", "bogus"]}
