"""
Response digest computation (RFC 2617 with RFC 2069 fallback)
"""

from typing import Optional

from ..crypto.hashing import md5_hex
from ..exceptions import DigestInputError
from .types import QOP_AUTH, DigestErrorCodes


def compute_ha1(username: str, realm: str, secret: str, secret_already_hashed: bool = False) -> str:
    """HA1 = md5(username:realm:secret), or the stored value if it is already HA1"""
    if secret_already_hashed:
        return secret
    return md5_hex(f"{username}:{realm}:{secret}")


def compute_ha2(method: str, uri: str) -> str:
    """HA2 = md5(method:uri)"""
    return md5_hex(f"{method}:{uri}")


def compute_digest(
    secret_already_hashed: bool,
    username: str,
    realm: str,
    secret: str,
    method: str,
    uri: str,
    qop: Optional[str],
    nonce: str,
    nc: Optional[str],
    cnonce: Optional[str]
) -> str:
    """
    Compute the expected response digest.
    
    With qop="auth" the RFC 2617 form md5(HA1:nonce:nc:cnonce:qop:HA2) is
    used, without qop the RFC 2069 form md5(HA1:nonce:HA2).
    
    Args:
        secret_already_hashed: Whether secret is already HA1
        username: User name
        realm: Realm name
        secret: Clear text password or HA1
        method: HTTP method
        uri: Request URI as sent in the header
        qop: Quality of protection or None
        nonce: Server nonce
        nc: Nonce count
        cnonce: Client nonce
        
    Returns:
        str: Lowercase hex response digest
        
    Raises:
        DigestInputError: If qop is unsupported, or qop="auth" lacks nc/cnonce
    """
    ha1 = compute_ha1(username, realm, secret, secret_already_hashed)
    ha2 = compute_ha2(method, uri)
    
    if qop is None:
        return md5_hex(f"{ha1}:{nonce}:{ha2}")
    
    if qop != QOP_AUTH:
        raise DigestInputError(
            f"Unsupported qop: '{qop}'",
            DigestErrorCodes.UNSUPPORTED_QOP,
            {'qop': qop}
        )
    
    if nc is None or cnonce is None:
        raise DigestInputError(
            "qop=auth requires both nc and cnonce",
            DigestErrorCodes.MISSING_AUTH_FIELD,
            {'nc': nc, 'cnonce': cnonce}
        )
    
    return md5_hex(f"{ha1}:{nonce}:{nc}:{cnonce}:{qop}:{ha2}")
