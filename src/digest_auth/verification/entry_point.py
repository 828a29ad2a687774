"""
Challenge entry point

Turns a rejected Outcome into the response that asks the client to
authenticate again. Nonces come from the issuing collaborator through a
nonce supplier; this module never mints them itself.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..digest.types import QOP_AUTH
from ..exceptions import ValidationError
from .types import NonceSupplier, Outcome, VerificationStatus

logger = logging.getLogger(__name__)


@dataclass
class ChallengeResponse:
    """Response artifact produced for a failed verification"""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


class DigestEntryPoint:
    """Builds WWW-Authenticate challenges for rejected requests"""
    
    def __init__(
        self,
        realm_name: str,
        nonce_supplier: NonceSupplier,
        qop: Optional[str] = QOP_AUTH,
        opaque: Optional[str] = None
    ):
        if not realm_name:
            raise ValidationError("Realm name cannot be empty", "INVALID_CONFIG")
        if not callable(nonce_supplier):
            raise ValidationError("A nonce supplier is required", "INVALID_CONFIG")
        
        self.realm_name = realm_name
        self.nonce_supplier = nonce_supplier
        self.qop = qop
        self.opaque = opaque
    
    def build_header(self, stale: bool = False) -> str:
        """Render the WWW-Authenticate header value"""
        parts = [f'realm="{self.realm_name}"']
        if self.qop:
            parts.append(f'qop="{self.qop}"')
        parts.append(f'nonce="{self.nonce_supplier()}"')
        if self.opaque:
            parts.append(f'opaque="{self.opaque}"')
        if stale:
            parts.append('stale=true')
        return "Digest " + ", ".join(parts)
    
    def commence(self, outcome: Outcome) -> ChallengeResponse:
        """
        Produce the response for a rejected or failed verification.
        
        Args:
            outcome: REJECTED or ERROR outcome
            
        Returns:
            ChallengeResponse: 401 with a fresh challenge (stale for expired
            nonces), or 500 for internal errors
        """
        if outcome.status == VerificationStatus.ERROR:
            logger.error(f"Digest verification failed internally: {outcome.message}")
            return ChallengeResponse(status_code=500, body="Internal authentication error")
        
        if outcome.status != VerificationStatus.REJECTED:
            raise ValidationError(
                f"Cannot challenge a request with status {outcome.status.value}",
                "INVALID_OUTCOME"
            )
        
        logger.debug(f"Challenging client ({outcome.reason.value})")
        return self.challenge(outcome.message, stale=outcome.stale)

    def challenge(self, message: Optional[str] = None, stale: bool = False) -> ChallengeResponse:
        """401 response carrying a fresh challenge, also used for anonymous requests"""
        return ChallengeResponse(
            status_code=401,
            headers={'WWW-Authenticate': self.build_header(stale=stale)},
            body=message or "Unauthorized"
        )
