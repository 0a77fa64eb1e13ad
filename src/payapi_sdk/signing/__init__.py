"""
Pay API Python SDK - Request Signing Module

Canonical request construction and RSA-PSS signing for authenticating with
the Pay API.
"""

from .types import (
    ApiRequest,
    HeaderMap,
    HttpMethod,
    ParsedUrl,
    SignedRequest,
    SigningContext,
    SigningError,
    SigningErrorCodes,
)

from .canonical import (
    CanonicalBuilder,
    canonicalize_headers,
    canonicalize_query,
    canonicalize_uri,
    hash_then_hex_encode,
    signed_header_names,
)

from .signer import (
    RequestSigner,
    create_signer,
    HEADER_AUTHORIZATION,
    HEADER_DATE,
    HEADER_HOST,
    HEADER_IDEMPOTENCY_KEY,
    HEADER_REGION,
    HEADER_REQUEST_ID,
    HEADER_USER_AGENT,
)

from .utils import (
    build_user_agent,
    format_signing_timestamp,
    generate_idempotency_key,
    generate_timestamp,
    load_private_key,
    parse_url,
)

__all__ = [
    # Types
    'ApiRequest',
    'HeaderMap',
    'HttpMethod',
    'ParsedUrl',
    'SignedRequest',
    'SigningContext',
    'SigningError',
    'SigningErrorCodes',
    # Canonicalization
    'CanonicalBuilder',
    'canonicalize_headers',
    'canonicalize_query',
    'canonicalize_uri',
    'hash_then_hex_encode',
    'signed_header_names',
    # Signing
    'RequestSigner',
    'create_signer',
    'HEADER_AUTHORIZATION',
    'HEADER_DATE',
    'HEADER_HOST',
    'HEADER_IDEMPOTENCY_KEY',
    'HEADER_REGION',
    'HEADER_REQUEST_ID',
    'HEADER_USER_AGENT',
    # Utilities
    'build_user_agent',
    'format_signing_timestamp',
    'generate_idempotency_key',
    'generate_timestamp',
    'load_private_key',
    'parse_url',
]
