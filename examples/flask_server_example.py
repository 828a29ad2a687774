#!/usr/bin/env python3
"""
Digest Auth Verifier Flask Demo

Protects a Flask route with stateless Digest authentication. Nonces are
minted from the same secret the verifier checks them with, so any number of
workers can serve the challenge and the authenticated request.

Run with:
    DIGEST_AUTH_REALM=example DIGEST_AUTH_SECRET=change-me python flask_server_example.py
    curl --digest -u bob:pwd http://127.0.0.1:5000/protected
"""

import logging

from flask import Flask, g

from digest_auth import (
    Credential,
    DigestEntryPoint,
    DigestVerifier,
    InMemoryCredentialStore,
    configure_logging,
    create_flask_digest_middleware,
    current_time_millis,
    encode_nonce,
    load_settings_from_env,
)

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    """Build the demo application from DIGEST_AUTH_* environment variables."""
    settings = load_settings_from_env()
    configure_logging(settings.logging)
    config = settings.to_verification_config()
    
    store = InMemoryCredentialStore([
        Credential(username="bob", secret="pwd", identity={'name': 'Bob', 'role': 'admin'}),
    ])
    verifier = DigestVerifier(config, store, settings.create_cache())
    
    def issue_nonce() -> str:
        expiry = current_time_millis() + settings.nonce_validity_seconds * 1000
        return encode_nonce(expiry, config.secret)
    
    entry_point = DigestEntryPoint(config.realm_name, issue_nonce)
    
    app = Flask(__name__)
    app.before_request(create_flask_digest_middleware(verifier, entry_point))
    
    @app.route('/protected')
    def protected():
        if g.digest_identity is None:
            # No Authorization header: ask for one
            challenge = entry_point.challenge()
            return challenge.body, challenge.status_code, challenge.headers
        return {'user': g.digest_identity.username, 'identity': g.digest_identity.identity}
    
    @app.route('/')
    def public():
        return {'status': 'ok'}
    
    return app


if __name__ == '__main__':
    create_app().run(debug=False)
