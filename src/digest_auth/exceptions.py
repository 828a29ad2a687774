"""
Exception classes for Digest Auth Verifier
"""

from typing import Optional, Dict, Any


class DigestAuthError(Exception):
    """Base exception for all digest authentication errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.error_code}, details: {self.details})"
        return f"{self.message} (code: {self.error_code})"


class ValidationError(DigestAuthError):
    """Exception raised for invalid arguments"""
    pass


class ConfigurationError(DigestAuthError):
    """Exception raised when settings cannot be loaded or are incomplete"""
    pass


class NonceDecodingError(DigestAuthError):
    """Exception raised when a nonce token cannot be decoded"""
    pass


class DigestInputError(DigestAuthError):
    """Exception raised when digest parameters are inconsistent"""
    pass


class UsernameNotFoundError(DigestAuthError):
    """Raised by credential stores when the username is unknown"""
    
    def __init__(self, username: str, message: Optional[str] = None):
        super().__init__(message or f"Username {username} not found", "USERNAME_NOT_FOUND", {'username': username})
        self.username = username


class CredentialStoreError(DigestAuthError):
    """Exception raised when a credential store cannot answer a lookup"""
    
    def __init__(self, message: str, error_code: str = "CREDENTIAL_STORE_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class ServiceMisconfiguredError(DigestAuthError):
    """Exception raised when a collaborator violates its contract"""
    pass


class SecretStorageError(DigestAuthError):
    """Exception raised for keyring secret storage errors"""
    pass
