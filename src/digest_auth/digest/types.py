"""
Type definitions for Digest challenge responses

This module provides the parsed form of an RFC 2617 / RFC 2069
Authorization header and the constants shared by the parser, the nonce
codec and the digest engine.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..exceptions import ValidationError

DIGEST_SCHEME_PREFIX = "Digest "

QOP_AUTH = "auth"

# Directives every RFC 2069 response carries
MANDATORY_DIRECTIVES = ('username', 'realm', 'nonce', 'uri', 'response')

# Additional directives required when qop="auth"
AUTH_QOP_DIRECTIVES = ('nc', 'cnonce')


@dataclass(frozen=True)
class DigestChallenge:
    """
    Client response to a Digest challenge
    
    Attributes:
        username: User name presented by the client
        realm: Protection space the client answered for
        nonce: Opaque server nonce echoed back
        uri: Request URI the digest was computed over
        response: Hex response digest
        qop: Quality of protection (RFC 2617), None for RFC 2069 clients
        nc: Nonce count, required when qop="auth"
        cnonce: Client nonce, required when qop="auth"
        opaque: Opaque value echoed back, if any
        algorithm: Algorithm name sent by the client, if any
    """
    username: str
    realm: str
    nonce: str
    uri: str
    response: str
    qop: Optional[str] = None
    nc: Optional[str] = None
    cnonce: Optional[str] = None
    opaque: Optional[str] = None
    algorithm: Optional[str] = None
    
    @staticmethod
    def missing_mandatory(directives: Dict[str, str]) -> List[str]:
        """Names of RFC 2069 directives absent from a parsed header"""
        return [name for name in MANDATORY_DIRECTIVES if directives.get(name) is None]
    
    @staticmethod
    def missing_for_qop(directives: Dict[str, str]) -> List[str]:
        """Names of directives qop="auth" needs but the header lacks"""
        if directives.get('qop') != QOP_AUTH:
            return []
        return [name for name in AUTH_QOP_DIRECTIVES if directives.get(name) is None]
    
    @classmethod
    def from_directives(cls, directives: Dict[str, str]) -> 'DigestChallenge':
        """
        Build a challenge from parsed directives
        
        Raises:
            ValidationError: If a mandatory directive is missing
        """
        missing = cls.missing_mandatory(directives)
        if missing:
            raise ValidationError(
                f"Missing mandatory digest directives: {', '.join(missing)}",
                DigestErrorCodes.MISSING_MANDATORY_FIELD,
                {'missing': missing}
            )
        
        return cls(
            username=directives['username'],
            realm=directives['realm'],
            nonce=directives['nonce'],
            uri=directives['uri'],
            response=directives['response'],
            qop=directives.get('qop'),
            nc=directives.get('nc'),
            cnonce=directives.get('cnonce'),
            opaque=directives.get('opaque'),
            algorithm=directives.get('algorithm'),
        )


@dataclass(frozen=True)
class DecodedNonce:
    """
    Plaintext content of a nonce token
    
    Attributes:
        expiry: Expiration time in milliseconds since the epoch
        signature: Hex signature over "expiry:secret"
        plaintext: Decoded "expiry:signature" text
    """
    expiry: int
    signature: str
    plaintext: str


class NonceErrorCodes:
    """Error codes raised while decoding nonce tokens"""
    
    NOT_BASE64 = "NONCE_NOT_BASE64"
    MALFORMED = "NONCE_MALFORMED"
    NOT_NUMERIC = "NONCE_NOT_NUMERIC"


class DigestErrorCodes:
    """Error codes raised while reading challenges and computing digests"""
    
    MISSING_MANDATORY_FIELD = "MISSING_MANDATORY_FIELD"
    MISSING_AUTH_FIELD = "MISSING_AUTH_FIELD"
    UNSUPPORTED_QOP = "UNSUPPORTED_QOP"
