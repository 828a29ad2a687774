"""
Cryptographic helpers for digest verification
"""

from .hashing import (
    HEX_DIGEST_LENGTH,
    md5_hex,
    constant_time_equals,
    generate_secret,
)
from .storage import (
    KeyringSecretStore,
    load_secret_from_keyring,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SECRET_NAME,
)

__all__ = [
    'HEX_DIGEST_LENGTH',
    'md5_hex',
    'constant_time_equals',
    'generate_secret',
    'KeyringSecretStore',
    'load_secret_from_keyring',
    'DEFAULT_SERVICE_NAME',
    'DEFAULT_SECRET_NAME',
]
