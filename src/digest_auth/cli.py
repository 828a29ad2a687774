"""
Command-line interface for Digest Auth Verifier
Provides nonce, response digest, verification and secret management commands
"""

import argparse
import json
import sys
from typing import Optional, List

from . import __version__
from .config import load_settings_from_file
from .crypto.hashing import generate_secret
from .crypto.storage import DEFAULT_SECRET_NAME, DEFAULT_SERVICE_NAME, KeyringSecretStore
from .digest.nonce import current_time_millis, decode_nonce, encode_nonce, verify_nonce
from .digest.engine import compute_digest
from .digest.parser import build_authorization_header
from .exceptions import DigestAuthError
from .verification.stores import InMemoryCredentialStore
from .verification.types import Credential, VerificationConfig
from .verification.verifier import DigestVerifier


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='digest-auth',
        description='HTTP Digest authentication nonce, response and verification tools'
    )
    
    parser.add_argument(
        '--version',
        action='version',
        version=f'Digest Auth Verifier {__version__}'
    )
    
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    
    setup_nonce_parser(subparsers)
    setup_response_parser(subparsers)
    setup_verify_parser(subparsers)
    setup_secret_parser(subparsers)
    
    return parser


def setup_nonce_parser(subparsers):
    """Setup nonce encoding and decoding subcommands."""
    nonce_parser = subparsers.add_parser('nonce', help='Encode a nonce valid for a number of seconds')
    nonce_parser.add_argument('--secret', required=True, help='Nonce signing secret')
    nonce_parser.add_argument('--validity', type=int, default=300, help='Validity in seconds (default: 300)')
    nonce_parser.add_argument('--expiry', type=int, help='Explicit expiry in epoch milliseconds')
    
    decode_parser = subparsers.add_parser('decode-nonce', help='Decode a nonce and optionally check it')
    decode_parser.add_argument('nonce', help='Base64 nonce token')
    decode_parser.add_argument('--secret', help='Secret to check the signature and expiry against')


def setup_response_parser(subparsers):
    """Setup response digest subcommand."""
    response_parser = subparsers.add_parser('response', help='Compute a response digest')
    response_parser.add_argument('--username', required=True, help='User name')
    response_parser.add_argument('--realm', required=True, help='Realm name')
    response_parser.add_argument('--password', required=True, help='Password (or HA1 with --hashed)')
    response_parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    response_parser.add_argument('--uri', required=True, help='Request URI')
    response_parser.add_argument('--nonce', required=True, help='Server nonce')
    response_parser.add_argument('--qop', choices=['auth'], help='Quality of protection')
    response_parser.add_argument('--nc', help='Nonce count')
    response_parser.add_argument('--cnonce', help='Client nonce')
    response_parser.add_argument('--hashed', action='store_true', help='Password is already HA1')
    response_parser.add_argument('--header', action='store_true', help='Print a full Authorization header')


def setup_verify_parser(subparsers):
    """Setup verification subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify an Authorization header')
    verify_parser.add_argument('--config', help='JSON settings file')
    verify_parser.add_argument('--realm', help='Realm name (overrides settings)')
    verify_parser.add_argument('--secret', help='Nonce signing secret (overrides settings)')
    verify_parser.add_argument('--hashed', action='store_true', help='Password is already HA1')
    verify_parser.add_argument('--username', required=True, help='Known user name')
    verify_parser.add_argument('--password', required=True, help='Password of the known user')
    verify_parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    verify_parser.add_argument('--uri', help='Request URI')
    verify_parser.add_argument('--header', required=True, help='Authorization header value')


def setup_secret_parser(subparsers):
    """Setup secret management subcommands."""
    secret_parser = subparsers.add_parser('secret', help='Nonce signing secret management')
    secret_subparsers = secret_parser.add_subparsers(dest='secret_command', help='Secret operations')
    
    generate_parser = secret_subparsers.add_parser('generate', help='Generate a new secret')
    generate_parser.add_argument('--bytes', type=int, default=32, help='Entropy in bytes (default: 32)')
    generate_parser.add_argument('--store', action='store_true', help='Store the secret in the OS keyring')
    generate_parser.add_argument('--service', default=DEFAULT_SERVICE_NAME, help='Keyring service name')
    generate_parser.add_argument('--name', default=DEFAULT_SECRET_NAME, help='Keyring entry name')
    
    delete_parser = secret_subparsers.add_parser('delete', help='Delete a secret from the OS keyring')
    delete_parser.add_argument('--service', default=DEFAULT_SERVICE_NAME, help='Keyring service name')
    delete_parser.add_argument('--name', default=DEFAULT_SECRET_NAME, help='Keyring entry name')


def handle_nonce_command(args) -> int:
    """Handle nonce encoding."""
    if args.expiry is not None:
        expiry = args.expiry
    else:
        if args.validity <= 0:
            print("Error: Validity must be positive", file=sys.stderr)
            return 1
        expiry = current_time_millis() + args.validity * 1000
    
    print(encode_nonce(expiry, args.secret))
    return 0


def handle_decode_nonce_command(args) -> int:
    """Handle nonce decoding."""
    decoded = decode_nonce(args.nonce)
    result = {
        'expiry': decoded.expiry,
        'signature': decoded.signature,
    }
    if args.secret:
        result['status'] = verify_nonce(args.nonce, args.secret).value
    
    print(json.dumps(result, indent=2))
    return 0 if result.get('status', 'valid') == 'valid' else 1


def handle_response_command(args) -> int:
    """Handle response digest computation."""
    if args.header:
        print(build_authorization_header(
            args.username, args.realm, args.password, args.method, args.uri, args.nonce,
            qop=args.qop, nc=args.nc, cnonce=args.cnonce, secret_already_hashed=args.hashed
        ))
    else:
        print(compute_digest(
            args.hashed, args.username, args.realm, args.password,
            args.method, args.uri, args.qop, args.nonce, args.nc, args.cnonce
        ))
    return 0


def _verification_config(args) -> VerificationConfig:
    realm, secret, hashed = args.realm, args.secret, args.hashed
    
    if args.config:
        settings = load_settings_from_file(args.config)
        realm = realm or settings.realm_name
        secret = secret or settings.resolve_secret()
        hashed = hashed or settings.secret_already_hashed
    
    return VerificationConfig(realm_name=realm or '', secret=secret or '', secret_already_hashed=hashed)


def handle_verify_command(args) -> int:
    """Handle Authorization header verification."""
    config = _verification_config(args)
    store = InMemoryCredentialStore([Credential(username=args.username, secret=args.password)])
    verifier = DigestVerifier(config, store)
    
    outcome = verifier.verify(args.header, args.method, args.uri)
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if outcome.authenticated else 1


def handle_secret_command(args) -> int:
    """Handle secret management commands."""
    if args.secret_command == 'generate':
        secret = generate_secret(args.bytes)
        if args.store:
            KeyringSecretStore(args.service).store_secret(args.name, secret)
            print(f"Secret stored in keyring service '{args.service}' as '{args.name}'")
        else:
            print(secret)
        return 0
    elif args.secret_command == 'delete':
        if KeyringSecretStore(args.service).delete_secret(args.name):
            print(f"Secret '{args.name}' deleted")
            return 0
        print(f"Error: No secret '{args.name}' in keyring service '{args.service}'", file=sys.stderr)
        return 1
    else:
        print("Error: No secret subcommand specified", file=sys.stderr)
        return 1


HANDLERS = {
    'nonce': handle_nonce_command,
    'decode-nonce': handle_decode_nonce_command,
    'response': handle_response_command,
    'verify': handle_verify_command,
    'secret': handle_secret_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    
    if not args.command:
        parser.print_help()
        return 1
    
    try:
        return HANDLERS[args.command](args)
    except DigestAuthError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
