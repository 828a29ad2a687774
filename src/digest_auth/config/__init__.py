"""
Configuration management for Digest Auth Verifier
"""

from .settings import (
    LoggingConfig,
    KeyringReference,
    DigestAuthSettings,
    load_settings_from_json,
    load_settings_from_file,
    load_settings_from_env,
    configure_logging,
)

__all__ = [
    'LoggingConfig',
    'KeyringReference',
    'DigestAuthSettings',
    'load_settings_from_json',
    'load_settings_from_file',
    'load_settings_from_env',
    'configure_logging',
]
