"""
Self-certifying nonce codec

A nonce is base64("<expiry>:<signature>") where expiry is in milliseconds
since the epoch and signature = md5_hex("<expiry>:<secret>"). Any holder of
the secret can validate a nonce without keeping server-side state.
"""

import base64
import binascii
import re
import time
from enum import Enum
from typing import Optional

from ..crypto.hashing import constant_time_equals, md5_hex
from ..exceptions import NonceDecodingError, ValidationError
from .types import DecodedNonce, NonceErrorCodes

_BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/=]+$')
_NUMERIC_PATTERN = re.compile(r'^[+-]?[0-9]+$')

# Expiry must fit a signed 64-bit integer
MIN_EXPIRY = -2 ** 63
MAX_EXPIRY = 2 ** 63 - 1
_MAX_EXPIRY_LENGTH = 64


class NonceStatus(str, Enum):
    """Result of checking a nonce against the signing secret"""
    VALID = "valid"
    SIGNATURE_MISMATCH = "signature_mismatch"
    EXPIRED = "expired"


def current_time_millis() -> int:
    """Current time in milliseconds since the epoch"""
    return int(time.time() * 1000)


def compute_nonce_signature(expiry: int, secret: str) -> str:
    """Signature binding an expiry time to the secret"""
    return md5_hex(f"{expiry}:{secret}")


def encode_nonce(expiry: int, secret: str) -> str:
    """
    Encode a nonce token.
    
    Args:
        expiry: Expiration time in milliseconds since the epoch
        secret: Signing secret shared with the verifier
        
    Returns:
        str: Base64 token
    """
    if not isinstance(expiry, int) or isinstance(expiry, bool):
        raise ValidationError("Nonce expiry must be an integer", "INVALID_EXPIRY")
    if not secret:
        raise ValidationError("Nonce secret cannot be empty", "INVALID_SECRET")
    
    plaintext = f"{expiry}:{compute_nonce_signature(expiry, secret)}"
    return base64.b64encode(plaintext.encode('utf-8')).decode('ascii')


def is_base64(token: str) -> bool:
    """True if the token only uses the base64 alphabet and decodes strictly"""
    if not token or not _BASE64_PATTERN.match(token):
        return False
    try:
        base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _parse_expiry(text: str) -> Optional[int]:
    """Signed decimal expiry within the 64-bit range, or None"""
    if len(text) > _MAX_EXPIRY_LENGTH or not _NUMERIC_PATTERN.match(text):
        return None
    try:
        expiry = int(text)
    except ValueError:
        return None
    if not MIN_EXPIRY <= expiry <= MAX_EXPIRY:
        return None
    return expiry


def decode_nonce(token: str) -> DecodedNonce:
    """
    Decode a nonce token into its expiry and signature.
    
    Args:
        token: Base64 nonce as echoed by the client
        
    Returns:
        DecodedNonce: Parsed nonce
        
    Raises:
        NonceDecodingError: With error_code NONCE_NOT_BASE64, NONCE_MALFORMED
            or NONCE_NOT_NUMERIC
    """
    if not is_base64(token):
        raise NonceDecodingError(
            f"Nonce is not encoded in Base64; received nonce {token}",
            NonceErrorCodes.NOT_BASE64,
            {'nonce': token}
        )
    
    try:
        plaintext = base64.b64decode(token, validate=True).decode('utf-8')
    except UnicodeDecodeError:
        raise NonceDecodingError(
            "Nonce did not decode to text",
            NonceErrorCodes.MALFORMED,
            {'nonce': token}
        )
    
    tokens = plaintext.split(':')
    if len(tokens) != 2:
        raise NonceDecodingError(
            f"Nonce should have yielded two tokens but was {plaintext}",
            NonceErrorCodes.MALFORMED,
            {'plaintext': plaintext}
        )
    
    expiry = _parse_expiry(tokens[0])
    if expiry is None:
        raise NonceDecodingError(
            f"Nonce token should have yielded a numeric first token, but was {plaintext}",
            NonceErrorCodes.NOT_NUMERIC,
            {'plaintext': plaintext}
        )
    
    return DecodedNonce(expiry=expiry, signature=tokens[1], plaintext=plaintext)


def is_signature_valid(decoded: DecodedNonce, secret: str) -> bool:
    """True if the nonce signature matches its expiry under the secret"""
    return constant_time_equals(compute_nonce_signature(decoded.expiry, secret), decoded.signature)


def is_expired(decoded: DecodedNonce, now: Optional[int] = None) -> bool:
    """True if the nonce expired strictly before now (milliseconds)"""
    if now is None:
        now = current_time_millis()
    return decoded.expiry < now


def verify_nonce(token: str, secret: str, now: Optional[int] = None) -> NonceStatus:
    """
    Check a nonce token against the secret and the current time.
    
    A signature mismatch is reported before expiry: a tampered nonce is
    never reported as merely stale.
    
    Raises:
        NonceDecodingError: If the token cannot be decoded
    """
    decoded = decode_nonce(token)
    
    if not is_signature_valid(decoded, secret):
        return NonceStatus.SIGNATURE_MISMATCH
    
    if is_expired(decoded, now):
        return NonceStatus.EXPIRED
    
    return NonceStatus.VALID
