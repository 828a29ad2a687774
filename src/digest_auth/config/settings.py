"""
Settings management for Digest Auth Verifier

Settings can be loaded from a JSON document, a JSON file or environment
variables. The nonce signing secret may be given inline or resolved from
the OS keyring.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..crypto.storage import DEFAULT_SECRET_NAME, DEFAULT_SERVICE_NAME, load_secret_from_keyring
from ..exceptions import ConfigurationError, SecretStorageError, ValidationError
from ..verification.cache import InMemoryCredentialCache, NullCredentialCache
from ..verification.types import CredentialCache, VerificationConfig

ENV_PREFIX = "DIGEST_AUTH_"

STRUCTURED_FORMAT = 'time=%(asctime)s level=%(levelname)s logger=%(name)s message="%(message)s"'
PLAIN_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off', '')


def _parse_bool(value: Any, name: str) -> bool:
    """Accept JSON booleans and the usual true/false spellings"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}", "INVALID_FORMAT")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    structured: bool = False
    format: Optional[str] = None
    
    def __post_init__(self):
        if not isinstance(self.level, str):
            raise ConfigurationError(f"Invalid log level: {self.level!r}", "INVALID_FORMAT")
        self.level = self.level.upper()
        self.structured = _parse_bool(self.structured, 'logging.structured')
        if self.level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigurationError(f"Invalid log level: {self.level}", "INVALID_FORMAT")


@dataclass
class KeyringReference:
    """Location of the signing secret in the OS keyring"""
    service: str = DEFAULT_SERVICE_NAME
    name: str = DEFAULT_SECRET_NAME


@dataclass
class DigestAuthSettings:
    """Verifier settings"""
    realm_name: str
    secret: Optional[str] = None
    secret_keyring: Optional[KeyringReference] = None
    secret_already_hashed: bool = False
    nonce_validity_seconds: int = 300
    cache_enabled: bool = True
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    
    def __post_init__(self):
        if not self.realm_name:
            raise ConfigurationError("Realm name is required", "MISSING_REALM")
        if self.nonce_validity_seconds <= 0:
            raise ConfigurationError("Nonce validity must be positive", "INVALID_FORMAT")
    
    def resolve_secret(self) -> str:
        """
        Return the inline secret, or load it from the keyring.
        
        Raises:
            ConfigurationError: If neither source yields a secret
        """
        if self.secret:
            return self.secret
        
        if self.secret_keyring is not None:
            try:
                return load_secret_from_keyring(self.secret_keyring.service, self.secret_keyring.name)
            except SecretStorageError as e:
                raise ConfigurationError(f"Failed to load secret from keyring: {e.message}", "MISSING_SECRET")
        
        raise ConfigurationError("No nonce signing secret configured", "MISSING_SECRET")
    
    def to_verification_config(self) -> VerificationConfig:
        """Build the immutable verifier configuration"""
        try:
            return VerificationConfig(
                realm_name=self.realm_name,
                secret=self.resolve_secret(),
                secret_already_hashed=self.secret_already_hashed
            )
        except ValidationError as e:
            raise ConfigurationError(e.message, "INVALID_FORMAT")
    
    def create_cache(self) -> CredentialCache:
        """Credential cache matching cache_enabled"""
        return InMemoryCredentialCache() if self.cache_enabled else NullCredentialCache()
    
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'DigestAuthSettings':
        """
        Parse settings from a dictionary
        
        Raises:
            ConfigurationError: If required keys are missing or malformed
        """
        try:
            keyring_data = data.get('secret_keyring')
            return cls(
                realm_name=data['realm_name'],
                secret=data.get('secret'),
                secret_keyring=KeyringReference(**keyring_data) if keyring_data else None,
                secret_already_hashed=_parse_bool(data.get('secret_already_hashed', False), 'secret_already_hashed'),
                nonce_validity_seconds=int(data.get('nonce_validity_seconds', 300)),
                cache_enabled=_parse_bool(data.get('cache_enabled', True), 'cache_enabled'),
                logging=LoggingConfig(**data.get('logging', {}))
            )
        except KeyError as e:
            raise ConfigurationError(f"Missing configuration key: {e}", "MISSING_REALM")
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration format: {e}", "INVALID_FORMAT")


def load_settings_from_json(json_string: str) -> DigestAuthSettings:
    """Load settings from a JSON string"""
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
    
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object", "INVALID_FORMAT")
    return DigestAuthSettings.from_dict(data)


def load_settings_from_file(file_path: Union[str, Path]) -> DigestAuthSettings:
    """Load settings from a JSON file"""
    try:
        with open(Path(file_path), 'r', encoding='utf-8') as f:
            json_string = f.read()
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}", "FILE_ERROR")
    return load_settings_from_json(json_string)


def load_settings_from_env(environ: Optional[Mapping[str, str]] = None) -> DigestAuthSettings:
    """
    Load settings from DIGEST_AUTH_* environment variables
    
    Args:
        environ: Mapping to read instead of os.environ
    """
    env = os.environ if environ is None else environ
    
    data: Dict[str, Any] = {
        'realm_name': env.get(f'{ENV_PREFIX}REALM', ''),
        'secret': env.get(f'{ENV_PREFIX}SECRET'),
        'secret_already_hashed': env.get(f'{ENV_PREFIX}SECRET_ALREADY_HASHED', 'false'),
        'cache_enabled': env.get(f'{ENV_PREFIX}CACHE_ENABLED', 'true'),
        'logging': {'level': env.get(f'{ENV_PREFIX}LOG_LEVEL', 'WARNING')},
    }
    
    if f'{ENV_PREFIX}NONCE_VALIDITY' in env:
        data['nonce_validity_seconds'] = env[f'{ENV_PREFIX}NONCE_VALIDITY']
    
    service = env.get(f'{ENV_PREFIX}KEYRING_SERVICE')
    name = env.get(f'{ENV_PREFIX}KEYRING_NAME')
    if service or name:
        data['secret_keyring'] = {
            'service': service or DEFAULT_SERVICE_NAME,
            'name': name or DEFAULT_SECRET_NAME,
        }
    
    return DigestAuthSettings.from_dict(data)


def configure_logging(config: LoggingConfig, logger_name: str = 'digest_auth') -> logging.Logger:
    """
    Configure the package logger hierarchy.
    
    Repeated calls replace the handler installed by a previous call.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level)
    
    for handler in list(logger.handlers):
        if getattr(handler, '_digest_auth_handler', False):
            logger.removeHandler(handler)
    
    handler = logging.StreamHandler()
    handler._digest_auth_handler = True
    fmt = config.format or (STRUCTURED_FORMAT if config.structured else PLAIN_FORMAT)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    
    return logger
