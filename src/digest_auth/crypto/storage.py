"""
OS keyring storage for the nonce signing secret

The issuance collaborator and every verifier must share the same secret.
Keeping it in the platform keychain avoids writing it into configuration
files.
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..exceptions import SecretStorageError, ValidationError

logger = logging.getLogger(__name__)

# Constants
DEFAULT_SERVICE_NAME = "digest-auth"
DEFAULT_SECRET_NAME = "nonce-signing-secret"


class KeyringSecretStore:
    """Stores and retrieves the signing secret through the OS keyring"""
    
    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        if not service_name:
            raise ValidationError("Keyring service name cannot be empty")
        self.service_name = service_name
    
    def store_secret(self, name: str, secret: str) -> None:
        """
        Store a secret under the given name
        
        Raises:
            SecretStorageError: If the keyring backend fails
        """
        if not name:
            raise ValidationError("Secret name cannot be empty")
        if not secret:
            raise ValidationError("Secret cannot be empty")
        
        try:
            keyring.set_password(self.service_name, name, secret)
        except KeyringError as e:
            raise SecretStorageError(
                f"Keyring storage failed: {e}",
                "KEYRING_STORAGE_FAILED"
            )
        logger.info(f"Stored secret '{name}' in keyring service '{self.service_name}'")
    
    def retrieve_secret(self, name: str) -> Optional[str]:
        """
        Retrieve a secret, or None if it was never stored
        
        Raises:
            SecretStorageError: If the keyring backend fails
        """
        try:
            return keyring.get_password(self.service_name, name)
        except KeyringError as e:
            raise SecretStorageError(
                f"Keyring retrieval failed: {e}",
                "KEYRING_RETRIEVAL_FAILED"
            )
    
    def delete_secret(self, name: str) -> bool:
        """Delete a secret; returns False if nothing was stored"""
        try:
            keyring.delete_password(self.service_name, name)
            return True
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise SecretStorageError(
                f"Keyring deletion failed: {e}",
                "KEYRING_DELETE_FAILED"
            )


def load_secret_from_keyring(service_name: str = DEFAULT_SERVICE_NAME,
                             name: str = DEFAULT_SECRET_NAME) -> str:
    """
    Load the signing secret from the keyring.
    
    Raises:
        SecretStorageError: If no secret is stored under the given name
    """
    secret = KeyringSecretStore(service_name).retrieve_secret(name)
    if not secret:
        raise SecretStorageError(
            f"No secret '{name}' found in keyring service '{service_name}'",
            "SECRET_NOT_FOUND",
            {'service': service_name, 'name': name}
        )
    return secret
