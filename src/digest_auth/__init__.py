"""
Digest Auth Verifier
Stateless HTTP Digest Authentication (RFC 2617 / RFC 2069) verification
"""

from .version import __version__
from .exceptions import (
    DigestAuthError,
    ValidationError,
    ConfigurationError,
    NonceDecodingError,
    DigestInputError,
    UsernameNotFoundError,
    CredentialStoreError,
    ServiceMisconfiguredError,
    SecretStorageError,
)
from .digest import (
    DigestChallenge,
    DecodedNonce,
    NonceStatus,
    compute_digest,
    encode_nonce,
    decode_nonce,
    verify_nonce,
    current_time_millis,
    parse_authorization_header,
    build_authorization_header,
)
from .verification import (
    VerificationStatus,
    RejectReason,
    Credential,
    CredentialStore,
    CredentialCache,
    VerificationConfig,
    Outcome,
    NullCredentialCache,
    InMemoryCredentialCache,
    InMemoryCredentialStore,
    RemoteStoreConfig,
    RemoteCredentialStore,
    DigestVerifier,
    create_verifier,
    verify_authorization,
    ChallengeResponse,
    DigestEntryPoint,
    DigestAuthMiddleware,
    create_flask_digest_middleware,
    create_fastapi_digest_middleware,
    create_django_digest_middleware,
)
from .config import (
    DigestAuthSettings,
    LoggingConfig,
    load_settings_from_json,
    load_settings_from_file,
    load_settings_from_env,
    configure_logging,
)
from .crypto import (
    KeyringSecretStore,
    load_secret_from_keyring,
    generate_secret,
)

__all__ = [
    # Version
    '__version__',
    
    # Exceptions
    'DigestAuthError',
    'ValidationError',
    'ConfigurationError',
    'NonceDecodingError',
    'DigestInputError',
    'UsernameNotFoundError',
    'CredentialStoreError',
    'ServiceMisconfiguredError',
    'SecretStorageError',
    
    # Digest primitives
    'DigestChallenge',
    'DecodedNonce',
    'NonceStatus',
    'compute_digest',
    'encode_nonce',
    'decode_nonce',
    'verify_nonce',
    'current_time_millis',
    'parse_authorization_header',
    'build_authorization_header',
    
    # Verification
    'VerificationStatus',
    'RejectReason',
    'Credential',
    'CredentialStore',
    'CredentialCache',
    'VerificationConfig',
    'Outcome',
    'NullCredentialCache',
    'InMemoryCredentialCache',
    'InMemoryCredentialStore',
    'RemoteStoreConfig',
    'RemoteCredentialStore',
    'DigestVerifier',
    'create_verifier',
    'verify_authorization',
    'ChallengeResponse',
    'DigestEntryPoint',
    'DigestAuthMiddleware',
    'create_flask_digest_middleware',
    'create_fastapi_digest_middleware',
    'create_django_digest_middleware',
    
    # Configuration
    'DigestAuthSettings',
    'LoggingConfig',
    'load_settings_from_json',
    'load_settings_from_file',
    'load_settings_from_env',
    'configure_logging',
    
    # Secrets
    'KeyringSecretStore',
    'load_secret_from_keyring',
    'generate_secret',
]
