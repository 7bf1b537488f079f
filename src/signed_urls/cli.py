"""
Command-line interface for signed URLs
Signs and verifies download URLs and packs download descriptors
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import SignedUrlConfig, configure_logging, load_config_from_env, load_config_from_file
from .exceptions import ConfigurationError, FormatError, SignedUrlError
from .signing.descriptor import decode as decode_descriptor, encode as encode_descriptor
from .signing.providers import RequestContext, SecretProvider, StaticSecretProvider
from .signing.types import CanonicalOrder, DigestAlgorithm, SigningRequest


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='signed-urls',
        description='Sign and verify tamper-evident download URLs'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'signed-urls {__version__}'
    )
    parser.add_argument('--config', help='JSON configuration file')
    parser.add_argument(
        '--algorithm',
        choices=[a.value for a in DigestAlgorithm],
        help='Digest algorithm (overrides configuration)'
    )
    parser.add_argument(
        '--order',
        choices=[o.value for o in CanonicalOrder],
        help='Canonical parameter order (overrides configuration)'
    )
    parser.add_argument('--log-level', help='Logging level (overrides configuration)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_parser(subparsers)
    setup_verify_parser(subparsers)
    setup_descriptor_parser(subparsers)

    return parser


def _add_secret_and_context(subparser) -> None:
    subparser.add_argument('--secret', help='Shared secret (defaults to the configured environment variable)')
    subparser.add_argument('--client-ip', help='Client address for ip bindings')
    subparser.add_argument('--user-agent', help='User agent for ua bindings')


def setup_sign_parser(subparsers):
    """Setup sign subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Sign a URL')
    sign_parser.add_argument('url', help='URL to sign')
    sign_parser.add_argument(
        '--param',
        action='append',
        default=[],
        metavar='NAME=VALUE',
        help='Query parameter to add before signing (repeatable)'
    )
    sign_parser.add_argument(
        '--option',
        action='append',
        default=[],
        metavar='FLAG',
        help='Option flag to bind, e.g. ip or ua (repeatable)'
    )
    sign_parser.add_argument('--token-only', action='store_true', help='Print only the token')
    _add_secret_and_context(sign_parser)


def setup_verify_parser(subparsers):
    """Setup verify subcommand."""
    verify_parser = subparsers.add_parser('verify', help='Verify a signed URL')
    verify_parser.add_argument('url', help='Signed URL')
    _add_secret_and_context(verify_parser)


def setup_descriptor_parser(subparsers):
    """Setup descriptor subcommands."""
    descriptor_parser = subparsers.add_parser('descriptor', help='Pack or unpack download descriptors')
    descriptor_subparsers = descriptor_parser.add_subparsers(dest='descriptor_command', help='Descriptor operations')

    encode_parser = descriptor_subparsers.add_parser('encode', help='Encode payment, download and file key')
    encode_parser.add_argument('payment_id', type=int, help='Payment ID')
    encode_parser.add_argument('download_id', type=int, help='Download ID')
    encode_parser.add_argument('file_key', help='File key')

    decode_parser = descriptor_subparsers.add_parser('decode', help='Decode an eddfile value')
    decode_parser.add_argument('value', help='Encoded descriptor')


def load_cli_config(args) -> SignedUrlConfig:
    """Load configuration and apply command-line overrides."""
    base = load_config_from_file(args.config) if args.config else None
    config = load_config_from_env(base=base)

    if args.algorithm:
        config.digest_algorithm = DigestAlgorithm(args.algorithm)
    if args.order:
        config.canonical_order = CanonicalOrder(args.order)
    if args.log_level:
        config.logging.level = args.log_level

    return config


def _secret_provider(args, config: SignedUrlConfig) -> SecretProvider:
    if args.secret:
        return StaticSecretProvider(args.secret)
    return config.secret_provider()


def _parse_params(values: List[str]) -> dict:
    params = {}
    for item in values:
        if '=' not in item:
            raise ConfigurationError(f"Parameter must be NAME=VALUE: {item!r}", "INVALID_PARAM")
        name, value = item.split('=', 1)
        params[name] = value
    return params


def handle_sign_command(args, config: SignedUrlConfig) -> int:
    """Handle URL signing."""
    context = RequestContext(client_address=args.client_ip, user_agent=args.user_agent)
    signer = config.create_signer(_secret_provider(args, config), context)

    request = SigningRequest(
        base_url=args.url,
        query_params=_parse_params(args.param),
        options=tuple(args.option) or tuple(config.default_options)
    )
    signed = signer.sign(request)

    if args.token_only:
        print(signed.token)
    else:
        print(signed.url)
    return 0


def handle_verify_command(args, config: SignedUrlConfig) -> int:
    """Handle URL verification."""
    context = RequestContext(client_address=args.client_ip, user_agent=args.user_agent)
    verifier = config.create_verifier(_secret_provider(args, config), context)

    if verifier.verify(args.url):
        print("✓ VALID")
        return 0

    print("✗ INVALID")
    return 1


def handle_descriptor_command(args) -> int:
    """Handle descriptor encode/decode."""
    if args.descriptor_command == 'encode':
        print(encode_descriptor(args.payment_id, args.download_id, args.file_key))
        return 0

    if args.descriptor_command == 'decode':
        descriptor = decode_descriptor(args.value)
        print(f"Payment ID: {descriptor.payment_id}")
        print(f"Download ID: {descriptor.download_id}")
        print(f"File Key: {descriptor.file_key}")
        return 0

    print("Error: No descriptor subcommand specified", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'descriptor':
            return handle_descriptor_command(args)

        config = load_cli_config(args)
        configure_logging(config.logging)

        if args.command == 'sign':
            return handle_sign_command(args, config)
        if args.command == 'verify':
            return handle_verify_command(args, config)

        print(f"Error: Unknown command {args.command}", file=sys.stderr)
        return 1

    except FormatError as e:
        print(f"Invalid descriptor: {e}", file=sys.stderr)
        return 1
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except SignedUrlError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
