"""
Text encodings for key material.

hex output is lowercase; base64url output is unpadded (RFC 7515 §2).
Decoders raise MalformedEncoding instead of binascii/ValueError.
"""

import base64
import binascii
import re

from keymorph.errors import MalformedEncoding

_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")
_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    """Base64url decode with padding restoration."""
    if not isinstance(data, str) or not _B64URL_RE.fullmatch(data):
        raise MalformedEncoding("Invalid base64url text", encoding="base64url")

    stripped = data.rstrip("=")
    if len(stripped) % 4 == 1:
        raise MalformedEncoding("Invalid base64url length", encoding="base64url")

    padding = 4 - len(stripped) % 4
    if padding != 4:
        stripped += "=" * padding
    try:
        return base64.urlsafe_b64decode(stripped)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncoding(f"Invalid base64url text: {e}", encoding="base64url") from e


def hex_encode(data: bytes) -> str:
    """Encode bytes as lowercase hex."""
    return bytes(data).hex()


def hex_decode(data: str) -> bytes:
    """Decode an even-length hex string."""
    if not isinstance(data, str) or not _HEX_RE.fullmatch(data):
        raise MalformedEncoding("Invalid hex text", encoding="hex")
    return bytes.fromhex(data)


def b64_encode(data: bytes) -> str:
    """Standard base64 with padding."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(data: str) -> bytes:
    """Decode standard padded base64."""
    try:
        return base64.b64decode(data.encode("ascii"), validate=True)
    except (binascii.Error, ValueError, UnicodeEncodeError, AttributeError) as e:
        raise MalformedEncoding(f"Invalid base64 text: {e}", encoding="base64") from e
