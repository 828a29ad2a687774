"""
Digest response verifier

This module sequences header parsing, nonce validation, credential
resolution and digest comparison. The order of the checks is fixed: nonce
expiry is tested only after the response digest has been confirmed, so a
client holding valid credentials with a stale nonce is told to retry rather
than to re-enter its password.
"""

import logging
from typing import Optional, Tuple

from ..crypto.hashing import constant_time_equals
from ..digest.engine import compute_digest
from ..digest.nonce import current_time_millis, decode_nonce, is_expired, is_signature_valid
from ..digest.parser import parse_directives, strip_digest_prefix
from ..digest.types import QOP_AUTH, DigestChallenge
from ..exceptions import (
    CredentialStoreError,
    NonceDecodingError,
    ServiceMisconfiguredError,
    UsernameNotFoundError,
    ValidationError,
)
from .cache import NullCredentialCache
from .types import (
    Clock,
    Credential,
    CredentialCache,
    CredentialStore,
    Outcome,
    RejectReason,
    VerificationConfig,
)

logger = logging.getLogger(__name__)


class DigestVerifier:
    """
    Stateless verifier for Digest Authorization headers.
    
    One instance serves any number of concurrent requests: the only shared
    mutable state is the credential cache, whose races are benign.
    """
    
    def __init__(
        self,
        config: VerificationConfig,
        credential_store: CredentialStore,
        credential_cache: Optional[CredentialCache] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the verifier.
        
        Args:
            config: Realm name, nonce secret and secret encoding
            credential_store: Authoritative username lookup
            credential_cache: Optional cache consulted before the store
            clock: Returns the current time in milliseconds
            
        Raises:
            ValidationError: If a required collaborator is missing
        """
        if not isinstance(config, VerificationConfig):
            raise ValidationError("A VerificationConfig is required", "INVALID_CONFIG")
        if credential_store is None or not callable(getattr(credential_store, 'lookup', None)):
            raise ValidationError("A credential store is required", "INVALID_CONFIG")
        
        self.config = config
        self.credential_store = credential_store
        self.credential_cache = credential_cache if credential_cache is not None else NullCredentialCache()
        self.clock = clock or current_time_millis
    
    def verify(
        self,
        authorization: Optional[str],
        method: str,
        uri: Optional[str] = None,
        now: Optional[int] = None
    ) -> Outcome:
        """
        Verify the Authorization header of one request.
        
        Args:
            authorization: Raw Authorization header, None if absent
            method: HTTP method of the request
            uri: Request URI as seen by the server (diagnostics only)
            now: Current time in milliseconds, defaults to the clock
            
        Returns:
            Outcome: AUTHENTICATED, REJECTED with a reason, UNAUTHENTICATED
            when no Digest header was sent, or ERROR when the credential
            store misbehaves
        """
        logger.debug(f"Authorization header received from user agent: {authorization}")
        
        section = strip_digest_prefix(authorization)
        if section is None:
            return Outcome.unauthenticated()
        
        directives = parse_directives(section)
        username = directives.get('username')
        
        # RFC 2069 fields
        missing = DigestChallenge.missing_mandatory(directives)
        if missing:
            logger.debug(f"Missing mandatory digest directives: {missing}")
            return self._reject(RejectReason.MISSING_MANDATORY_FIELD, section, username)
        
        # RFC 2617 fields for qop=auth
        missing = DigestChallenge.missing_for_qop(directives)
        if missing:
            logger.debug(f"extracted nc: '{directives.get('nc')}'; cnonce: '{directives.get('cnonce')}'")
            return self._reject(RejectReason.MISSING_AUTH_FIELD, section, username)
        
        challenge = DigestChallenge.from_directives(directives)
        
        if challenge.qop is not None and challenge.qop != QOP_AUTH:
            return self._reject(RejectReason.UNSUPPORTED_QOP, section, username, qop=challenge.qop)
        
        if challenge.realm != self.config.realm_name:
            return self._reject(
                RejectReason.REALM_MISMATCH, section, username,
                realm=challenge.realm, expected_realm=self.config.realm_name
            )
        
        try:
            nonce = decode_nonce(challenge.nonce)
        except NonceDecodingError as e:
            return self._reject(
                RejectReason(e.error_code), section, username,
                nonce=challenge.nonce, plaintext=e.details.get('plaintext', '')
            )
        
        # Expiry is checked last, after the digest
        if not is_signature_valid(nonce, self.config.secret):
            return self._reject(RejectReason.NONCE_SIGNATURE_INVALID, section, username, plaintext=nonce.plaintext)
        
        if uri is not None and uri != challenge.uri:
            logger.debug(f"Digest uri '{challenge.uri}' differs from request uri '{uri}'")
        
        try:
            credential, loaded_from_store = self._resolve_credential(challenge.username)
        except UsernameNotFoundError:
            return self._reject(RejectReason.USERNAME_NOT_FOUND, section, username)
        except ServiceMisconfiguredError as e:
            return self._error(RejectReason.SERVICE_MISCONFIGURED, section, username, e)
        except CredentialStoreError as e:
            return self._error(RejectReason.CREDENTIAL_STORE_ERROR, section, username, e)
        
        expected = self._compute_expected(challenge, credential, method)
        
        if not constant_time_equals(expected, challenge.response) and not loaded_from_store:
            logger.debug("Digest comparison failure; trying to refresh user from store in case password had changed")
            try:
                credential = self._load_from_store(challenge.username)
            except UsernameNotFoundError:
                return self._reject(RejectReason.USERNAME_NOT_FOUND, section, username)
            except ServiceMisconfiguredError as e:
                return self._error(RejectReason.SERVICE_MISCONFIGURED, section, username, e)
            except CredentialStoreError as e:
                return self._error(RejectReason.CREDENTIAL_STORE_ERROR, section, username, e)
            
            expected = self._compute_expected(challenge, credential, method)
        
        if not constant_time_equals(expected, challenge.response):
            logger.debug(
                f"Expected response: '{expected}' but received: '{challenge.response}'; "
                f"does the credential store return clear text secrets?"
            )
            return self._reject(RejectReason.DIGEST_MISMATCH, section, username)
        
        if is_expired(nonce, now if now is not None else self.clock()):
            return self._reject(RejectReason.NONCE_EXPIRED, section, username)
        
        logger.info(f"Authentication success for user: '{challenge.username}'")
        return Outcome.accepted(credential, section)
    
    def _resolve_credential(self, username: str) -> Tuple[Credential, bool]:
        """
        Resolve a credential through the cache, falling back to the store.
        
        Returns:
            Tuple[Credential, bool]: The credential and whether it came
            fresh from the store
        """
        credential = self.credential_cache.get(username)
        if credential is not None:
            return credential, False
        return self._load_from_store(username), True
    
    def _load_from_store(self, username: str) -> Credential:
        """Query the store directly and refresh the cache"""
        credential = self.credential_store.lookup(username)
        
        if credential is None:
            logger.error(f"Credential store returned None for user {username}")
            raise ServiceMisconfiguredError(
                "Credential store returned None, which is an interface contract violation",
                "SERVICE_MISCONFIGURED",
                {'username': username}
            )
        
        self.credential_cache.put(username, credential)
        return credential
    
    def _compute_expected(self, challenge: DigestChallenge, credential: Credential, method: str) -> str:
        return compute_digest(
            self.config.secret_already_hashed,
            challenge.username,
            challenge.realm,
            credential.secret,
            method,
            challenge.uri,
            challenge.qop,
            challenge.nonce,
            challenge.nc,
            challenge.cnonce
        )
    
    def _reject(self, reason: RejectReason, header: str, username: Optional[str], **values) -> Outcome:
        outcome = Outcome.rejection(reason, header=header, username=username, **values)
        logger.debug(f"Digest authentication rejected ({reason.value}): {outcome.message}")
        return outcome
    
    def _error(self, reason: RejectReason, header: str, username: Optional[str], error: Exception) -> Outcome:
        logger.warning(f"Digest authentication could not complete ({reason.value}): {error}")
        return Outcome.error(reason, header=header, username=username)


def create_verifier(
    config: VerificationConfig,
    credential_store: CredentialStore,
    credential_cache: Optional[CredentialCache] = None,
    clock: Optional[Clock] = None
) -> DigestVerifier:
    """
    Create a new Digest verifier
    
    Args:
        config: Verification configuration
        credential_store: Credential store
        credential_cache: Optional credential cache
        clock: Optional millisecond clock
        
    Returns:
        DigestVerifier: Configured verifier instance
    """
    return DigestVerifier(config, credential_store, credential_cache, clock)


def verify_authorization(
    authorization: Optional[str],
    method: str,
    uri: Optional[str],
    config: VerificationConfig,
    credential_store: CredentialStore,
    credential_cache: Optional[CredentialCache] = None,
    now: Optional[int] = None
) -> Outcome:
    """
    Verify a single Authorization header with a throwaway verifier
    
    Returns:
        Outcome: Verification outcome
    """
    verifier = create_verifier(config, credential_store, credential_cache)
    return verifier.verify(authorization, method, uri, now)
