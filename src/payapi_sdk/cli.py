"""
Command-line interface for Pay API Python SDK
Signs payloads, shows canonical requests and sends signed requests
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Dict, List, Optional, Tuple

from .client import PayApiClient
from .config import load_configuration_from_env, load_configuration_from_file
from .exceptions import PayApiSDKError
from .version import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='payapi-cli',
        description='Pay API SDK command-line interface for request signing'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Pay API Python SDK {__version__}'
    )

    parser.add_argument(
        '--config',
        help='JSON configuration file (default: read PAYAPI_* environment variables)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_sign_payload_parser(subparsers)
    setup_request_parsers(subparsers)

    return parser


def setup_sign_payload_parser(subparsers):
    """Setup button payload signing subcommand."""
    sign_parser = subparsers.add_parser('sign-payload', help='Sign a checkout button payload')
    source = sign_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--payload', help='Payload JSON text')
    source.add_argument('--payload-file', help='File containing the payload JSON')


def _add_request_arguments(parser):
    parser.add_argument('--method', default='GET', help='HTTP method (default: GET)')
    parser.add_argument('--resource', required=True, help='Resource path or absolute URL')
    parser.add_argument('--body', help='Request body (JSON text)')
    parser.add_argument('--header', action='append', default=[], metavar='NAME:VALUE', help='Extra header')
    parser.add_argument('--query', action='append', default=[], metavar='KEY=VALUE', help='Query parameter')


def setup_request_parsers(subparsers):
    """Setup canonical-request and call subcommands."""
    canonical_parser = subparsers.add_parser(
        'canonical-request',
        help='Print the canonical request and string to sign for a request'
    )
    _add_request_arguments(canonical_parser)

    call_parser = subparsers.add_parser('call', help='Send a signed request and print the response')
    _add_request_arguments(call_parser)


def parse_headers(values: List[str]) -> Dict[str, str]:
    headers = {}
    for value in values:
        name, sep, header_value = value.partition(':')
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"Invalid header (expected NAME:VALUE): {value}")
        headers[name.strip()] = header_value.strip()
    return headers


def parse_query(values: List[str]) -> List[Tuple[str, str]]:
    pairs = []
    for value in values:
        key, sep, query_value = value.partition('=')
        if not sep:
            raise argparse.ArgumentTypeError(f"Invalid query parameter (expected KEY=VALUE): {value}")
        pairs.append((key, query_value))
    return pairs


def load_client(args) -> PayApiClient:
    if args.config:
        config = load_configuration_from_file(args.config)
    else:
        config = load_configuration_from_env()
    return PayApiClient(config)


def handle_sign_payload_command(args, client: PayApiClient) -> int:
    """Handle sign-payload command."""
    if args.payload_file:
        with open(args.payload_file, 'r', encoding='utf-8') as fh:
            payload = fh.read().strip()
    else:
        payload = args.payload

    print(client.generate_button_signature(payload))
    return 0


def handle_canonical_request_command(args, client: PayApiClient) -> int:
    """Handle canonical-request command."""
    request = client.dispatcher.prepare(client.build_request(
        args.method, args.resource, args.body, parse_headers(args.header), parse_query(args.query)
    ))
    signed = client.signer.sign_request(request)

    print("Canonical request:")
    print(signed.context.canonical_request)
    print()
    print("String to sign:")
    print(signed.context.string_to_sign)
    print()
    print("Signed headers:")
    for name, value in signed.headers.items():
        print(f"  {name}: {value}")
    return 0


def handle_call_command(args, client: PayApiClient) -> int:
    """Handle call command."""
    envelope = client.call_api(
        args.method, args.resource, args.body, parse_headers(args.header), parse_query(args.query)
    )

    output = asdict(envelope)
    output['method'] = envelope.method.value if envelope.method else None
    print(json.dumps(output, indent=2))
    return 0 if envelope.ok else 2


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, 1 for SDK errors, 2 for non-2xx responses)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    handlers = {
        'sign-payload': handle_sign_payload_command,
        'canonical-request': handle_canonical_request_command,
        'call': handle_call_command,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        with load_client(args) as client:
            return handler(args, client)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except (PayApiSDKError, argparse.ArgumentTypeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
