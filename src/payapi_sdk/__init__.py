"""
Pay API Python SDK
Request signing and dispatch for the Pay API
"""

from .version import __version__
from .exceptions import (
    PayApiSDKError,
    ValidationError,
    ConfigurationError,
    ClientError,
)
from .config import (
    ApiConfiguration,
    ApiUrlBuilder,
    Environment,
    Region,
    RetryPolicy,
    load_configuration_from_env,
    load_configuration_from_file,
)
from .signing import (
    # Types
    ApiRequest,
    HeaderMap,
    HttpMethod,
    SignedRequest,
    SigningContext,
    SigningError,
    # Canonicalization
    canonicalize_headers,
    canonicalize_query,
    canonicalize_uri,
    hash_then_hex_encode,
    signed_header_names,
    # Signing
    RequestSigner,
    create_signer,
)
from .http_client import (
    RequestDispatcher,
    ResponseEnvelope,
)
from .client import (
    PayApiClient,
    create_client,
)

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'PayApiSDKError',
    'ValidationError',
    'ConfigurationError',
    'ClientError',
    'SigningError',
    # Configuration
    'ApiConfiguration',
    'ApiUrlBuilder',
    'Environment',
    'Region',
    'RetryPolicy',
    'load_configuration_from_env',
    'load_configuration_from_file',
    # Request Signing
    'ApiRequest',
    'HeaderMap',
    'HttpMethod',
    'SignedRequest',
    'SigningContext',
    'canonicalize_headers',
    'canonicalize_query',
    'canonicalize_uri',
    'hash_then_hex_encode',
    'signed_header_names',
    'RequestSigner',
    'create_signer',
    # Dispatch
    'RequestDispatcher',
    'ResponseEnvelope',
    'PayApiClient',
    'create_client',
]
