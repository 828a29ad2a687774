"""
Authorization header parsing for Digest authentication

Splits the comma separated directive list of a Digest Authorization header
into a mapping, honouring quoted strings that contain commas or equals
signs.
"""

from typing import Dict, Iterable, List, Optional

from .engine import compute_digest
from .types import DIGEST_SCHEME_PREFIX, QOP_AUTH


def split_ignoring_quotes(text: str, delimiter: str = ',') -> List[str]:
    """
    Split text on a delimiter, ignoring delimiters inside double quotes.
    
    Args:
        text: Text to split
        delimiter: Single character delimiter
        
    Returns:
        List[str]: The pieces, unstripped, in order
    """
    if len(delimiter) != 1:
        raise ValueError("Delimiter must be a single character")
    
    pieces = []
    current = []
    in_quotes = False
    escaped = False
    
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == '\\' and in_quotes:
            current.append(char)
            escaped = True
        elif char == '"':
            current.append(char)
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            pieces.append(''.join(current))
            current = []
        else:
            current.append(char)
    
    pieces.append(''.join(current))
    return pieces


def _unquote(value: str, quote: str) -> str:
    if len(value) >= 2 and value.startswith(quote) and value.endswith(quote):
        value = value[1:-1]
    return value.replace('\\' + quote, quote)


def split_each_element_to_map(
    entries: Iterable[str],
    delimiter: str = '=',
    quote: str = '"'
) -> Dict[str, str]:
    """
    Turn "key=value" entries into a dictionary.
    
    Each entry is split on its first delimiter. Keys are stripped and
    lower-cased, values are stripped and lose their surrounding quotes.
    Entries without a delimiter or with an empty key are skipped, and the
    last occurrence of a key wins.
    
    Args:
        entries: Entries produced by split_ignoring_quotes
        delimiter: Key/value separator
        quote: Quote character to remove from values
        
    Returns:
        Dict[str, str]: Directive name to value
    """
    result: Dict[str, str] = {}
    
    for entry in entries:
        if delimiter not in entry:
            continue
        key, value = entry.split(delimiter, 1)
        key = key.strip().lower()
        if not key:
            continue
        result[key] = _unquote(value.strip(), quote)
    
    return result


def parse_directives(section: str) -> Dict[str, str]:
    """Parse the part of a Digest header that follows the scheme prefix"""
    return split_each_element_to_map(split_ignoring_quotes(section, ','))


def strip_digest_prefix(header: Optional[str]) -> Optional[str]:
    """Return the header without its "Digest " prefix, or None if it has none"""
    if header is None or not header.startswith(DIGEST_SCHEME_PREFIX):
        return None
    return header[len(DIGEST_SCHEME_PREFIX):]


def parse_authorization_header(header: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Parse a Digest Authorization header.
    
    Args:
        header: Raw Authorization header value, possibly None
        
    Returns:
        Dict[str, str] or None: Directives, or None when the header is
        absent or uses another scheme
    """
    section = strip_digest_prefix(header)
    if section is None:
        return None
    return parse_directives(section)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '\\"') + '"'


def build_authorization_header(
    username: str,
    realm: str,
    password: str,
    method: str,
    uri: str,
    nonce: str,
    qop: Optional[str] = None,
    nc: Optional[str] = None,
    cnonce: Optional[str] = None,
    opaque: Optional[str] = None,
    secret_already_hashed: bool = False
) -> str:
    """
    Build the Authorization header a client would send.
    
    Args:
        username: User name
        realm: Realm from the challenge
        password: Clear text password, or HA1 if secret_already_hashed
        method: HTTP method
        uri: Request URI
        nonce: Nonce from the challenge
        qop: "auth" for RFC 2617, None for RFC 2069
        nc: Nonce count (defaults to 00000001 when qop is set)
        cnonce: Client nonce (required when qop is set)
        opaque: Opaque value from the challenge
        secret_already_hashed: Whether password is already HA1
        
    Returns:
        str: Complete header value including the "Digest " prefix
    """
    if qop == QOP_AUTH and nc is None:
        nc = "00000001"
    
    response = compute_digest(
        secret_already_hashed, username, realm, password,
        method, uri, qop, nonce, nc, cnonce
    )
    
    parts = [
        f'username={_quote(username)}',
        f'realm={_quote(realm)}',
        f'nonce={_quote(nonce)}',
        f'uri={_quote(uri)}',
        f'response={_quote(response)}',
    ]
    if opaque is not None:
        parts.append(f'opaque={_quote(opaque)}')
    if qop is not None:
        parts.extend([f'qop={qop}', f'nc={nc}', f'cnonce={_quote(cnonce)}'])
    
    return DIGEST_SCHEME_PREFIX + ", ".join(parts)
