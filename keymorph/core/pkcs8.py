"""X25519 PKCS#8 private scalar extraction.

Some providers cannot export X25519 private keys as JWK. Their PKCS#8
export is the fixed 48-byte DER structure below, and the raw scalar is
its last 32 bytes:

    30 2e                 SEQUENCE, 46 bytes
       02 01 00           INTEGER 0 (version)
       30 05              SEQUENCE, 5 bytes (AlgorithmIdentifier)
          06 03 2b 65 6e  OID 1.3.101.110 (X25519)
       04 22              OCTET STRING, 34 bytes (privateKey)
          04 20 <32>      OCTET STRING, 32 bytes (CurvePrivateKey)

This is not a DER parser. Every checked byte must match exactly.
"""

from keymorph.errors import MalformedPkcs8

X25519_OID = bytes([0x06, 0x03, 0x2B, 0x65, 0x6E])
PRIVATE_KEY_LENGTH = 32


class _Reader:
    """Byte cursor that reports offsets in MalformedPkcs8."""

    def __init__(self, data: bytes):
        self.data = data
        self.index = 0

    def peek(self) -> int | None:
        if self.index >= len(self.data):
            return None
        return self.data[self.index]

    def expect(self, value: int, message: str) -> None:
        actual = self.peek()
        if actual != value:
            raise MalformedPkcs8(message, self.index, expected=value, actual=actual)
        self.index += 1

    def skip(self, count: int, message: str) -> None:
        if self.index + count > len(self.data):
            raise MalformedPkcs8(message, len(self.data))
        self.index += count

    def take(self, count: int, message: str) -> bytes:
        if self.index + count > len(self.data):
            raise MalformedPkcs8(message, len(self.data))
        chunk = self.data[self.index:self.index + count]
        self.index += count
        return chunk


def extract_x25519_private_key(pkcs8: bytes) -> bytes:
    """Return the raw 32-byte X25519 scalar from a PKCS#8 DER blob.

    Args:
        pkcs8: DER bytes as produced by the provider's pkcs8 export

    Returns:
        32-byte private scalar

    Raises:
        MalformedPkcs8: On any deviation, with offset and expected/actual byte
    """
    reader = _Reader(bytes(pkcs8))

    reader.expect(0x30, "Invalid format: expected SEQUENCE")
    reader.expect(len(reader.data) - 2, "Invalid sequence length")

    reader.expect(0x02, "Invalid version format")
    reader.expect(0x01, "Invalid version format")
    reader.expect(0x00, "Invalid version format")

    reader.expect(0x30, "Invalid format: expected SEQUENCE for algorithm identifier")
    reader.expect(len(X25519_OID), "Invalid algorithm identifier length")
    for byte in X25519_OID:
        reader.expect(byte, "Invalid OID for X25519")

    # Outer privateKey OCTET STRING header
    reader.skip(2, "Truncated privateKey wrapper")

    reader.expect(0x04, "Invalid format: expected OCTET STRING for private key")
    reader.expect(PRIVATE_KEY_LENGTH, "Invalid private key length")

    return reader.take(PRIVATE_KEY_LENGTH, "Truncated private key")
