"""
Hash primitives shared by the nonce codec and the digest engine

Both the nonce signature and the RFC 2617 response use the same 128-bit
digest rendered as lowercase hex.
"""

import secrets
from typing import Union

from cryptography.hazmat.primitives import constant_time, hashes

from ..exceptions import ValidationError

# Length of an MD5 digest in hex characters
HEX_DIGEST_LENGTH = 32

DEFAULT_SECRET_BYTES = 32


def md5_hex(value: Union[str, bytes]) -> str:
    """
    Compute the MD5 digest of a value as lowercase hex.
    
    Args:
        value: Text (encoded as UTF-8) or raw bytes
        
    Returns:
        str: 32 character lowercase hex digest
    """
    if isinstance(value, str):
        value = value.encode('utf-8')
    
    digest = hashes.Hash(hashes.MD5())
    digest.update(value)
    return digest.finalize().hex()


def constant_time_equals(expected: str, received: str) -> bool:
    """
    Compare two strings without leaking the position of the first difference.
    
    Args:
        expected: Value computed by the server
        received: Value supplied by the client
        
    Returns:
        bool: True if both strings are identical
    """
    return constant_time.bytes_eq(expected.encode('utf-8'), received.encode('utf-8'))


def generate_secret(num_bytes: int = DEFAULT_SECRET_BYTES) -> str:
    """
    Generate a random nonce signing secret.
    
    Args:
        num_bytes: Amount of entropy in bytes
        
    Returns:
        str: URL-safe text secret
        
    Raises:
        ValidationError: If fewer than 16 bytes are requested
    """
    if num_bytes < 16:
        raise ValidationError("Secret must contain at least 16 bytes of entropy", "INVALID_SECRET_LENGTH")
    return secrets.token_urlsafe(num_bytes)
