"""
Digest protocol primitives: header parsing, nonce codec and response digests
"""

from .types import (
    DIGEST_SCHEME_PREFIX,
    QOP_AUTH,
    MANDATORY_DIRECTIVES,
    AUTH_QOP_DIRECTIVES,
    DigestChallenge,
    DecodedNonce,
    NonceErrorCodes,
    DigestErrorCodes,
)
from .engine import (
    compute_ha1,
    compute_ha2,
    compute_digest,
)
from .nonce import (
    NonceStatus,
    current_time_millis,
    compute_nonce_signature,
    encode_nonce,
    decode_nonce,
    is_base64,
    is_signature_valid,
    is_expired,
    verify_nonce,
)
from .parser import (
    split_ignoring_quotes,
    split_each_element_to_map,
    parse_directives,
    strip_digest_prefix,
    parse_authorization_header,
    build_authorization_header,
)

__all__ = [
    # Types
    'DIGEST_SCHEME_PREFIX',
    'QOP_AUTH',
    'MANDATORY_DIRECTIVES',
    'AUTH_QOP_DIRECTIVES',
    'DigestChallenge',
    'DecodedNonce',
    'NonceErrorCodes',
    'DigestErrorCodes',
    
    # Digest engine
    'compute_ha1',
    'compute_ha2',
    'compute_digest',
    
    # Nonce codec
    'NonceStatus',
    'current_time_millis',
    'compute_nonce_signature',
    'encode_nonce',
    'decode_nonce',
    'is_base64',
    'is_signature_valid',
    'is_expired',
    'verify_nonce',
    
    # Header parser
    'split_ignoring_quotes',
    'split_each_element_to_map',
    'parse_directives',
    'strip_digest_prefix',
    'parse_authorization_header',
    'build_authorization_header',
]
