"""
Type definitions for Digest verification

This module provides the outcome, reason and collaborator types used by the
verification orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from ..exceptions import ValidationError


class VerificationStatus(str, Enum):
    """Terminal state of a verification"""
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"
    UNAUTHENTICATED = "unauthenticated"  # no Digest header, request passes through
    ERROR = "error"  # a collaborator broke its contract


class RejectReason(str, Enum):
    """Why a Digest response was not accepted"""
    MISSING_MANDATORY_FIELD = "MISSING_MANDATORY_FIELD"
    MISSING_AUTH_FIELD = "MISSING_AUTH_FIELD"
    UNSUPPORTED_QOP = "UNSUPPORTED_QOP"
    REALM_MISMATCH = "REALM_MISMATCH"
    NONCE_NOT_BASE64 = "NONCE_NOT_BASE64"
    NONCE_MALFORMED = "NONCE_MALFORMED"
    NONCE_NOT_NUMERIC = "NONCE_NOT_NUMERIC"
    NONCE_SIGNATURE_INVALID = "NONCE_SIGNATURE_INVALID"
    USERNAME_NOT_FOUND = "USERNAME_NOT_FOUND"
    DIGEST_MISMATCH = "DIGEST_MISMATCH"
    NONCE_EXPIRED = "NONCE_EXPIRED"
    
    # Internal errors, reported with VerificationStatus.ERROR
    SERVICE_MISCONFIGURED = "SERVICE_MISCONFIGURED"
    CREDENTIAL_STORE_ERROR = "CREDENTIAL_STORE_ERROR"


DEFAULT_MESSAGES: Dict[RejectReason, str] = {
    RejectReason.MISSING_MANDATORY_FIELD: "Missing mandatory digest value; received header {header}",
    RejectReason.MISSING_AUTH_FIELD: "Missing mandatory digest value; received header {header}",
    RejectReason.UNSUPPORTED_QOP: "Unsupported quality of protection '{qop}'",
    RejectReason.REALM_MISMATCH: "Response realm name '{realm}' does not match system realm name of '{expected_realm}'",
    RejectReason.NONCE_NOT_BASE64: "Nonce is not encoded in Base64; received nonce {nonce}",
    RejectReason.NONCE_MALFORMED: "Nonce should have yielded two tokens but was {plaintext}",
    RejectReason.NONCE_NOT_NUMERIC: "Nonce token should have yielded a numeric first token, but was {plaintext}",
    RejectReason.NONCE_SIGNATURE_INVALID: "Nonce token compromised {plaintext}",
    RejectReason.USERNAME_NOT_FOUND: "Username {username} not found",
    RejectReason.DIGEST_MISMATCH: "Incorrect response",
    RejectReason.NONCE_EXPIRED: "Nonce has expired/timed out",
    RejectReason.SERVICE_MISCONFIGURED: "Credential store returned no credential, which is an interface contract violation",
    RejectReason.CREDENTIAL_STORE_ERROR: "Credential store lookup failed",
}


def format_reason(reason: RejectReason, **values: Any) -> str:
    """Render the default message for a reason, leaving unknown fields empty"""
    template = DEFAULT_MESSAGES[reason]
    
    class _Defaults(dict):
        def __missing__(self, key):
            return ''
    
    return template.format_map(_Defaults(values))


@dataclass(frozen=True)
class Credential:
    """
    Stored credential for a user
    
    Attributes:
        username: User name
        secret: Clear text password, or HA1 when secrets are stored pre-hashed
        identity: Arbitrary identity data handed to the application on success
    """
    username: str
    secret: str
    identity: Dict[str, Any] = field(default_factory=dict)
    
    def __post_init__(self):
        if not self.username:
            raise ValidationError("Credential username cannot be empty")
        if self.secret is None:
            raise ValidationError("Credential secret cannot be None")
    
    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, identity={self.identity!r})"


@runtime_checkable
class CredentialStore(Protocol):
    """
    Looks up credentials by username.
    
    Implementations raise UsernameNotFoundError for unknown users and
    CredentialStoreError when the backend cannot answer.
    """
    
    def lookup(self, username: str) -> Optional[Credential]:
        ...


@runtime_checkable
class CredentialCache(Protocol):
    """Read-through cache in front of a credential store"""
    
    def get(self, username: str) -> Optional[Credential]:
        ...
    
    def put(self, username: str, credential: Credential) -> None:
        ...


@dataclass(frozen=True)
class VerificationConfig:
    """
    Immutable verifier configuration
    
    Attributes:
        realm_name: Realm the challenge was issued for
        secret: Nonce signing secret shared with the issuer
        secret_already_hashed: Whether stored secrets are HA1 values
    """
    realm_name: str
    secret: str
    secret_already_hashed: bool = False
    
    def __post_init__(self):
        if not self.realm_name:
            raise ValidationError("Realm name cannot be empty", "INVALID_CONFIG")
        if not self.secret:
            raise ValidationError("Nonce signing secret cannot be empty", "INVALID_CONFIG")
    
    def __repr__(self) -> str:
        return (f"VerificationConfig(realm_name={self.realm_name!r}, "
                f"secret_already_hashed={self.secret_already_hashed})")


@dataclass(frozen=True)
class Outcome:
    """
    Result of verifying one request
    
    Attributes:
        status: Terminal verification state
        credential: Resolved credential when authenticated
        reason: Why the request was rejected, or the internal error kind
        message: Human readable explanation
        header: Header text following the "Digest " prefix
        username: Username presented by the client, if parsed
    """
    status: VerificationStatus
    credential: Optional[Credential] = None
    reason: Optional[RejectReason] = None
    message: Optional[str] = None
    header: Optional[str] = None
    username: Optional[str] = None
    
    @property
    def authenticated(self) -> bool:
        return self.status == VerificationStatus.AUTHENTICATED
    
    @property
    def rejected(self) -> bool:
        return self.status == VerificationStatus.REJECTED
    
    @property
    def stale(self) -> bool:
        """True if only the nonce freshness failed"""
        return self.reason == RejectReason.NONCE_EXPIRED
    
    @classmethod
    def accepted(cls, credential: Credential, header: Optional[str] = None) -> 'Outcome':
        return cls(
            status=VerificationStatus.AUTHENTICATED,
            credential=credential,
            header=header,
            username=credential.username
        )
    
    @classmethod
    def rejection(
        cls,
        reason: RejectReason,
        header: Optional[str] = None,
        username: Optional[str] = None,
        **values: Any
    ) -> 'Outcome':
        return cls(
            status=VerificationStatus.REJECTED,
            reason=reason,
            message=format_reason(reason, header=header, username=username, **values),
            header=header,
            username=username
        )
    
    @classmethod
    def error(
        cls,
        reason: RejectReason,
        header: Optional[str] = None,
        username: Optional[str] = None,
        message: Optional[str] = None
    ) -> 'Outcome':
        return cls(
            status=VerificationStatus.ERROR,
            reason=reason,
            message=message or format_reason(reason),
            header=header,
            username=username
        )
    
    @classmethod
    def unauthenticated(cls) -> 'Outcome':
        return cls(status=VerificationStatus.UNAUTHENTICATED)
    
    def to_dict(self) -> Dict[str, Any]:
        """Serializable summary, without the credential secret"""
        return {
            'status': self.status.value,
            'reason': self.reason.value if self.reason else None,
            'message': self.message,
            'username': self.username,
            'stale': self.stale,
            'identity': dict(self.credential.identity) if self.credential else None,
        }


# Type aliases for convenience
Clock = Callable[[], int]
NonceSupplier = Callable[[], str]
