"""
Digest verification module

This module provides the verification orchestrator and its collaborators:
- Outcome and reject reason types
- Credential caches and stores
- Challenge entry point
- Framework middleware
"""

# Export types
from .types import (
    VerificationStatus,
    RejectReason,
    DEFAULT_MESSAGES,
    format_reason,
    Credential,
    CredentialStore,
    CredentialCache,
    VerificationConfig,
    Outcome,
)

# Export caches and stores
from .cache import (
    NullCredentialCache,
    InMemoryCredentialCache,
)
from .stores import (
    InMemoryCredentialStore,
    RemoteStoreConfig,
    RemoteCredentialStore,
)

# Export core verifier
from .verifier import (
    DigestVerifier,
    create_verifier,
    verify_authorization,
)

# Export challenge entry point
from .entry_point import (
    ChallengeResponse,
    DigestEntryPoint,
)

# Export middleware
from .middleware import (
    MiddlewareResult,
    DigestAuthMiddleware,
    create_digest_middleware,
    create_flask_digest_middleware,
    create_fastapi_digest_middleware,
    create_django_digest_middleware,
)

__all__ = [
    # Types
    'VerificationStatus',
    'RejectReason',
    'DEFAULT_MESSAGES',
    'format_reason',
    'Credential',
    'CredentialStore',
    'CredentialCache',
    'VerificationConfig',
    'Outcome',
    
    # Caches and stores
    'NullCredentialCache',
    'InMemoryCredentialCache',
    'InMemoryCredentialStore',
    'RemoteStoreConfig',
    'RemoteCredentialStore',
    
    # Core verifier
    'DigestVerifier',
    'create_verifier',
    'verify_authorization',
    
    # Entry point
    'ChallengeResponse',
    'DigestEntryPoint',
    
    # Middleware
    'MiddlewareResult',
    'DigestAuthMiddleware',
    'create_digest_middleware',
    'create_flask_digest_middleware',
    'create_fastapi_digest_middleware',
    'create_django_digest_middleware',
]
