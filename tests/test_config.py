"""
Tests for settings loading, keyring secrets and logging configuration
"""

import json
import logging

import pytest
from unittest.mock import patch
from keyring.errors import KeyringError, PasswordDeleteError

from digest_auth.config import (
    DigestAuthSettings,
    KeyringReference,
    LoggingConfig,
    configure_logging,
    load_settings_from_env,
    load_settings_from_file,
    load_settings_from_json,
)
from digest_auth.crypto.storage import KeyringSecretStore, load_secret_from_keyring
from digest_auth.exceptions import ConfigurationError, SecretStorageError, ValidationError
from digest_auth.verification import InMemoryCredentialCache, NullCredentialCache, VerificationConfig


class TestDigestAuthSettings:
    """Test settings dataclass"""
    
    def test_inline_secret(self):
        """Test conversion to a verification config"""
        settings = DigestAuthSettings(realm_name="example", secret="s3cret", secret_already_hashed=True)
        config = settings.to_verification_config()
        
        assert isinstance(config, VerificationConfig)
        assert config.realm_name == "example"
        assert config.secret == "s3cret"
        assert config.secret_already_hashed
    
    def test_missing_realm(self):
        """Test that a realm is required"""
        with pytest.raises(ConfigurationError) as exc_info:
            DigestAuthSettings(realm_name="")
        assert exc_info.value.error_code == "MISSING_REALM"
    
    def test_missing_secret(self):
        """Test that a secret source is required"""
        with pytest.raises(ConfigurationError) as exc_info:
            DigestAuthSettings(realm_name="example").resolve_secret()
        assert exc_info.value.error_code == "MISSING_SECRET"
    
    def test_invalid_validity(self):
        """Test nonce validity validation"""
        with pytest.raises(ConfigurationError):
            DigestAuthSettings(realm_name="example", nonce_validity_seconds=0)
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_keyring_secret(self, mock_keyring):
        """Test secret resolution from the keyring"""
        mock_keyring.get_password.return_value = "from-keyring"
        settings = DigestAuthSettings(realm_name="example", secret_keyring=KeyringReference("svc", "key"))
        
        assert settings.resolve_secret() == "from-keyring"
        mock_keyring.get_password.assert_called_once_with("svc", "key")
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_keyring_secret_missing(self, mock_keyring):
        """Test that an empty keyring entry is a configuration error"""
        mock_keyring.get_password.return_value = None
        settings = DigestAuthSettings(realm_name="example", secret_keyring=KeyringReference())
        
        with pytest.raises(ConfigurationError) as exc_info:
            settings.resolve_secret()
        assert exc_info.value.error_code == "MISSING_SECRET"
    
    def test_create_cache(self):
        """Test cache selection"""
        assert isinstance(DigestAuthSettings(realm_name="r").create_cache(), InMemoryCredentialCache)
        assert isinstance(DigestAuthSettings(realm_name="r", cache_enabled=False).create_cache(), NullCredentialCache)


class TestSettingsLoaders:
    """Test JSON, file and environment loaders"""
    
    def test_load_from_json(self):
        """Test full JSON document"""
        settings = load_settings_from_json(json.dumps({
            'realm_name': 'example',
            'secret': 's',
            'nonce_validity_seconds': 60,
            'cache_enabled': False,
            'secret_keyring': {'service': 'svc', 'name': 'key'},
            'logging': {'level': 'debug', 'structured': True},
        }))
        
        assert settings.realm_name == 'example'
        assert settings.nonce_validity_seconds == 60
        assert not settings.cache_enabled
        assert settings.secret_keyring == KeyringReference('svc', 'key')
        assert settings.logging.level == 'DEBUG'
        assert settings.logging.structured
    
    def test_invalid_json(self):
        """Test parse errors"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_json("{not json")
        assert exc_info.value.error_code == "PARSE_ERROR"
        
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_json("[]")
        assert exc_info.value.error_code == "INVALID_FORMAT"
    
    def test_missing_key(self):
        """Test missing realm key"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_json('{"secret": "s"}')
        assert exc_info.value.error_code == "MISSING_REALM"
    
    def test_invalid_values(self):
        """Test malformed values"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_json('{"realm_name": "r", "nonce_validity_seconds": "soon"}')
        assert exc_info.value.error_code == "INVALID_FORMAT"
        
        with pytest.raises(ConfigurationError):
            load_settings_from_json('{"realm_name": "r", "logging": {"level": "LOUD"}}')
    
    def test_quoted_booleans(self):
        """Test that quoted booleans keep their meaning"""
        settings = load_settings_from_json(json.dumps({
            'realm_name': 'x',
            'secret': 's',
            'secret_already_hashed': 'false',
            'cache_enabled': 'false',
            'logging': {'structured': 'true'},
        }))
        
        assert settings.secret_already_hashed is False
        assert settings.cache_enabled is False
        assert settings.logging.structured is True
    
    def test_invalid_booleans(self):
        """Test that non-boolean values are refused"""
        for value in ('maybe', 1, None, [True]):
            with pytest.raises(ConfigurationError) as exc_info:
                DigestAuthSettings.from_dict({'realm_name': 'x', 'secret_already_hashed': value})
            assert exc_info.value.error_code == "INVALID_FORMAT"
    
    def test_invalid_log_level_type(self):
        """Test that a numeric log level is a format error"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_json('{"realm_name": "r", "logging": {"level": 5}}')
        assert exc_info.value.error_code == "INVALID_FORMAT"
    
    def test_load_from_file(self, tmp_path):
        """Test file loading"""
        path = tmp_path / "digest.json"
        path.write_text('{"realm_name": "example", "secret": "s"}', encoding='utf-8')
        
        assert load_settings_from_file(path).realm_name == "example"
    
    def test_load_from_missing_file(self, tmp_path):
        """Test unreadable file"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_file(tmp_path / "missing.json")
        assert exc_info.value.error_code == "FILE_ERROR"
    
    def test_load_from_env(self):
        """Test environment variables"""
        settings = load_settings_from_env({
            'DIGEST_AUTH_REALM': 'example',
            'DIGEST_AUTH_SECRET': 's',
            'DIGEST_AUTH_SECRET_ALREADY_HASHED': 'true',
            'DIGEST_AUTH_NONCE_VALIDITY': '120',
            'DIGEST_AUTH_CACHE_ENABLED': 'no',
            'DIGEST_AUTH_LOG_LEVEL': 'info',
        })
        
        assert settings.realm_name == 'example'
        assert settings.secret == 's'
        assert settings.secret_already_hashed
        assert settings.nonce_validity_seconds == 120
        assert not settings.cache_enabled
        assert settings.logging.level == 'INFO'
        assert settings.secret_keyring is None
    
    def test_load_from_env_keyring(self):
        """Test keyring reference from environment"""
        settings = load_settings_from_env({
            'DIGEST_AUTH_REALM': 'example',
            'DIGEST_AUTH_KEYRING_NAME': 'key',
        })
        assert settings.secret_keyring == KeyringReference('digest-auth', 'key')
    
    def test_load_from_env_invalid_boolean(self):
        """Test that unrecognized boolean spellings are refused"""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings_from_env({'DIGEST_AUTH_REALM': 'example', 'DIGEST_AUTH_CACHE_ENABLED': 'sometimes'})
        assert exc_info.value.error_code == "INVALID_FORMAT"
    
    def test_load_from_env_without_realm(self):
        """Test missing realm"""
        with pytest.raises(ConfigurationError):
            load_settings_from_env({})


class TestKeyringSecretStore:
    """Test keyring secret storage"""
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_store_and_retrieve(self, mock_keyring):
        """Test storing and loading a secret"""
        mock_keyring.get_password.return_value = "s"
        store = KeyringSecretStore("svc")
        
        store.store_secret("key", "s")
        
        mock_keyring.set_password.assert_called_once_with("svc", "key", "s")
        assert store.retrieve_secret("key") == "s"
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_backend_failure(self, mock_keyring):
        """Test that keyring failures are wrapped"""
        mock_keyring.set_password.side_effect = KeyringError("locked")
        mock_keyring.get_password.side_effect = KeyringError("locked")
        store = KeyringSecretStore()
        
        with pytest.raises(SecretStorageError):
            store.store_secret("key", "s")
        with pytest.raises(SecretStorageError):
            store.retrieve_secret("key")
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_delete(self, mock_keyring):
        """Test deletion"""
        store = KeyringSecretStore()
        assert store.delete_secret("key")
        
        mock_keyring.delete_password.side_effect = PasswordDeleteError("missing")
        assert not store.delete_secret("key")
    
    def test_validation(self):
        """Test argument validation"""
        with pytest.raises(ValidationError):
            KeyringSecretStore("")
        with pytest.raises(ValidationError):
            KeyringSecretStore().store_secret("", "s")
    
    @patch('digest_auth.crypto.storage.keyring')
    def test_load_missing_secret(self, mock_keyring):
        """Test loading a secret that was never stored"""
        mock_keyring.get_password.return_value = None
        with pytest.raises(SecretStorageError) as exc_info:
            load_secret_from_keyring("svc", "key")
        assert exc_info.value.error_code == "SECRET_NOT_FOUND"


class TestConfigureLogging:
    """Test logging setup"""
    
    def test_configure_logging(self):
        """Test level, format and handler replacement"""
        logger = configure_logging(LoggingConfig(level="debug"), logger_name='digest_auth_test')
        configure_logging(LoggingConfig(level="info", structured=True), logger_name='digest_auth_test')
        
        handlers = [h for h in logger.handlers if getattr(h, '_digest_auth_handler', False)]
        assert len(handlers) == 1
        assert logger.level == logging.INFO
        assert handlers[0].formatter._fmt.startswith('time=')
        
        logger.removeHandler(handlers[0])
