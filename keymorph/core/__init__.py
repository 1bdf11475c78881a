"""Key translation core: registry, codecs, inference and facades."""

from .registry import KeyAlgorithm, describe, is_key_alg
from .jwk import JwkAlgorithm, infer
from .pkcs8 import extract_x25519_private_key
from .export import ExportedKeyPair, ExportKeyResult, export_key, export_key_pair, export_key_raw_x25519
from .importer import ImportKeyOptions, import_key, import_key_pair
from .keys import generate_key_pair, is_pair

__all__ = [
    "ExportKeyResult",
    "ExportedKeyPair",
    "ImportKeyOptions",
    "JwkAlgorithm",
    "KeyAlgorithm",
    "describe",
    "export_key",
    "export_key_pair",
    "export_key_raw_x25519",
    "extract_x25519_private_key",
    "generate_key_pair",
    "import_key",
    "import_key_pair",
    "infer",
    "is_key_alg",
    "is_pair",
]
