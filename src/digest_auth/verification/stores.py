"""
Credential store implementations

The verifier only depends on the CredentialStore protocol; these are the
stores shipped with the package: a static in-memory directory and a client
for a remote user directory served over HTTP.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote, urljoin, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import CredentialStoreError, UsernameNotFoundError, ValidationError
from .types import Credential

logger = logging.getLogger(__name__)


class InMemoryCredentialStore:
    """Credential store backed by a dictionary"""
    
    def __init__(self, credentials: Optional[Iterable[Credential]] = None):
        self._credentials: Dict[str, Credential] = {}
        self._lock = threading.Lock()
        for credential in credentials or []:
            self.add(credential)
    
    def add(self, credential: Credential) -> None:
        """Add or replace a credential"""
        with self._lock:
            self._credentials[credential.username] = credential
    
    def remove(self, username: str) -> None:
        with self._lock:
            self._credentials.pop(username, None)
    
    def lookup(self, username: str) -> Optional[Credential]:
        with self._lock:
            credential = self._credentials.get(username)
        if credential is None:
            raise UsernameNotFoundError(username)
        return credential


@dataclass
class RemoteStoreConfig:
    """Configuration for a remote user directory"""
    base_url: str
    users_endpoint: str = "api/users"
    timeout: float = 5.0
    verify_ssl: bool = True
    retry_attempts: int = 2
    retry_backoff_factor: float = 0.3
    api_token: Optional[str] = None
    
    def __post_init__(self):
        """Validate remote store configuration."""
        if not self.base_url:
            raise ValidationError("Credential store base_url cannot be empty")
        
        # Ensure base_url ends with /
        if not self.base_url.endswith('/'):
            self.base_url += '/'
        
        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid credential store URL format: {self.base_url}")
        
        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")
        
        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


class RemoteCredentialStore:
    """
    Credential store that queries an HTTP user directory.
    
    GET {base_url}/{users_endpoint}/{username} is expected to answer 404 for
    unknown users and otherwise a JSON object of the form
    {"data": {"username": ..., "secret": ..., "identity": {...}}}.
    A successful answer without data is passed to the verifier as None,
    which it treats as a contract violation.
    """
    
    def __init__(self, config: RemoteStoreConfig):
        self.config = config
        self.session = self._create_session()
        logger.info(f"Initialized remote credential store: {config.base_url}")
    
    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry logic."""
        session = requests.Session()
        
        retry_strategy = Retry(
            total=self.config.retry_attempts,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            backoff_factor=self.config.retry_backoff_factor,
        )
        
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        
        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'digest-auth-verifier/0.1.0'
        })
        if self.config.api_token:
            session.headers['Authorization'] = f"Bearer {self.config.api_token}"
        
        return session
    
    def _user_url(self, username: str) -> str:
        endpoint = self.config.users_endpoint.strip('/')
        return urljoin(self.config.base_url, f"{endpoint}/{quote(username, safe='')}")
    
    def lookup(self, username: str) -> Optional[Credential]:
        """
        Look up a user in the remote directory.
        
        Raises:
            UsernameNotFoundError: If the directory answers 404
            CredentialStoreError: On network errors or unexpected answers
        """
        url = self._user_url(username)
        
        try:
            logger.debug(f"Looking up credential for user {username} at {url}")
            response = self.session.get(
                url,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl
            )
        except requests.exceptions.Timeout:
            raise CredentialStoreError(f"Credential lookup timed out after {self.config.timeout} seconds")
        except requests.exceptions.ConnectionError as e:
            raise CredentialStoreError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            raise CredentialStoreError(f"Credential lookup failed: {e}")
        
        if response.status_code == 404:
            raise UsernameNotFoundError(username)
        
        if not response.ok:
            raise CredentialStoreError(
                f"Credential lookup failed: HTTP {response.status_code}: {response.reason}",
                "HTTP_ERROR",
                http_status=response.status_code
            )
        
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise CredentialStoreError(f"Invalid JSON response: {e}", "INVALID_RESPONSE")
        
        return self._parse_credential(username, payload)
    
    @staticmethod
    def _parse_credential(username: str, payload: Any) -> Optional[Credential]:
        if not isinstance(payload, dict):
            raise CredentialStoreError("Credential response must be a JSON object", "INVALID_RESPONSE")
        
        data = payload.get('data')
        if not data:
            return None
        
        secret = data.get('secret')
        if secret is None:
            raise CredentialStoreError(
                f"Credential response for {username} has no secret",
                "INVALID_RESPONSE"
            )
        
        return Credential(
            username=data.get('username', username),
            secret=secret,
            identity=data.get('identity') or {}
        )
    
    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("Credential store session closed")
