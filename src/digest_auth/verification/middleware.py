"""
Digest verification middleware for Python web frameworks

This module adapts DigestVerifier to request objects from Flask,
Starlette/FastAPI, Django or any object exposing headers, method and path.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .entry_point import ChallengeResponse, DigestEntryPoint
from .types import Credential, Outcome, VerificationStatus
from .verifier import DigestVerifier

logger = logging.getLogger(__name__)

IDENTITY_ATTRIBUTE = 'digest_identity'


@dataclass
class MiddlewareResult:
    """Outcome of verifying a request plus the challenge to send, if any"""
    outcome: Outcome
    challenge: Optional[ChallengeResponse] = None
    
    @property
    def should_reject(self) -> bool:
        return self.challenge is not None


class DigestAuthMiddleware:
    """Framework independent Digest authentication step"""
    
    def __init__(self, verifier: DigestVerifier, entry_point: DigestEntryPoint):
        self.verifier = verifier
        self.entry_point = entry_point
    
    def process(self, request: Any) -> MiddlewareResult:
        """
        Verify a request and attach or clear its identity.
        
        Args:
            request: HTTP request object
            
        Returns:
            MiddlewareResult: Outcome, and a challenge when the request must
            be answered with 401 or 500
        """
        outcome = self.verifier.verify(
            self._get_authorization(request),
            self._get_method(request),
            self._get_request_uri(request)
        )
        
        if outcome.authenticated:
            self._set_identity(request, outcome.credential)
            return MiddlewareResult(outcome)
        
        if outcome.status in (VerificationStatus.REJECTED, VerificationStatus.ERROR):
            self._set_identity(request, None)
            return MiddlewareResult(outcome, self.entry_point.commence(outcome))
        
        # No Digest header: continue unauthenticated
        return MiddlewareResult(outcome)
    
    def _get_authorization(self, request: Any) -> Optional[str]:
        """Extract the Authorization header from a request object"""
        headers = getattr(request, 'headers', None)
        
        if isinstance(headers, dict):
            for key, value in headers.items():
                if key.lower() == 'authorization':
                    return value
            return None
        
        if headers is not None and hasattr(headers, 'get'):
            # Flask, Starlette and Django headers are case-insensitive
            return headers.get('Authorization')
        
        meta = getattr(request, 'META', None)
        if isinstance(meta, dict):
            return meta.get('HTTP_AUTHORIZATION')
        
        return None
    
    def _get_method(self, request: Any) -> str:
        return str(getattr(request, 'method', 'GET')).upper()
    
    def _get_request_uri(self, request: Any) -> str:
        """Path and query string of the request"""
        if hasattr(request, 'get_full_path'):
            # Django request
            return request.get_full_path()
        
        url = getattr(request, 'url', None)
        if url is not None and hasattr(url, 'path') and hasattr(url, 'query'):
            # Starlette URL
            return url.path + (f"?{url.query}" if url.query else '')
        
        path = getattr(request, 'path', None)
        if path is not None:
            query = getattr(request, 'query_string', b'')
            if isinstance(query, bytes):
                query = query.decode('latin-1')
            return path + (f"?{query}" if query else '')
        
        if isinstance(url, str):
            parsed = urlparse(url)
            return parsed.path + (f"?{parsed.query}" if parsed.query else '')
        
        return ''
    
    def _set_identity(self, request: Any, credential: Optional[Credential]) -> None:
        target = getattr(request, 'state', request)
        try:
            setattr(target, IDENTITY_ATTRIBUTE, credential)
        except AttributeError:
            logger.debug(f"Cannot attach identity to request of type {type(request).__name__}")


def create_digest_middleware(verifier: DigestVerifier, entry_point: DigestEntryPoint) -> DigestAuthMiddleware:
    """
    Create framework independent Digest middleware
    
    Args:
        verifier: Configured verifier
        entry_point: Challenge entry point
        
    Returns:
        DigestAuthMiddleware: Middleware instance
    """
    return DigestAuthMiddleware(verifier, entry_point)


def _challenge_headers(challenge: ChallengeResponse) -> Dict[str, str]:
    return dict(challenge.headers)


def create_flask_digest_middleware(verifier: DigestVerifier, entry_point: DigestEntryPoint):
    """
    Create Flask Digest middleware
    
    Args:
        verifier: Configured verifier
        entry_point: Challenge entry point
        
    Returns:
        Flask before_request function
    """
    middleware = create_digest_middleware(verifier, entry_point)
    
    def flask_digest_middleware():
        try:
            from flask import request, g, make_response  # type: ignore
        except ImportError:
            raise ImportError("Flask is required for Flask middleware")
        
        result = middleware.process(request)
        
        # Store the outcome in the request context
        g.digest_outcome = result.outcome
        g.digest_identity = result.outcome.credential if result.outcome.authenticated else None
        
        if result.should_reject:
            response = make_response(result.challenge.body, result.challenge.status_code)
            response.headers.update(_challenge_headers(result.challenge))
            return response
        return None
    
    return flask_digest_middleware


def create_fastapi_digest_middleware(verifier: DigestVerifier, entry_point: DigestEntryPoint):
    """
    Create FastAPI Digest middleware
    
    Args:
        verifier: Configured verifier
        entry_point: Challenge entry point
        
    Returns:
        FastAPI "http" middleware function
    """
    middleware = create_digest_middleware(verifier, entry_point)
    
    async def fastapi_digest_middleware(request, call_next):
        try:
            from starlette.concurrency import run_in_threadpool  # type: ignore
            from starlette.responses import PlainTextResponse  # type: ignore
        except ImportError:
            raise ImportError("FastAPI is required for FastAPI middleware")
        
        # Credential stores may block
        result = await run_in_threadpool(middleware.process, request)
        request.state.digest_outcome = result.outcome
        
        if result.should_reject:
            return PlainTextResponse(
                result.challenge.body,
                status_code=result.challenge.status_code,
                headers=_challenge_headers(result.challenge)
            )
        
        return await call_next(request)
    
    return fastapi_digest_middleware


def create_django_digest_middleware(verifier: DigestVerifier, entry_point: DigestEntryPoint):
    """
    Create Django Digest middleware
    
    Args:
        verifier: Configured verifier
        entry_point: Challenge entry point
        
    Returns:
        Django middleware class
    """
    middleware = create_digest_middleware(verifier, entry_point)
    
    class DjangoDigestMiddleware:
        def __init__(self, get_response):
            self.get_response = get_response
            self.middleware = middleware
        
        def __call__(self, request):
            result = self.middleware.process(request)
            request.digest_outcome = result.outcome
            
            if result.should_reject:
                try:
                    from django.http import HttpResponse  # type: ignore
                except ImportError:
                    raise ImportError("Django is required for Django middleware")
                response = HttpResponse(result.challenge.body, status=result.challenge.status_code)
                for name, value in _challenge_headers(result.challenge).items():
                    response[name] = value
                return response
            
            return self.get_response(request)
    
    return DjangoDigestMiddleware
