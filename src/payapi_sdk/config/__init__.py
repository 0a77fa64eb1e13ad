"""
Configuration management for Pay API Python SDK

This module provides the immutable client configuration, the retry policy,
configuration loaders and the service URL builder.
"""

from .api_config import (
    ApiConfiguration,
    ApiUrlBuilder,
    Environment,
    Region,
    RetryPolicy,
    API_VERSION,
    DEFAULT_RETRY_STATUS_CODES,
    SIGNATURE_ALGORITHM,
    load_configuration_from_env,
    load_configuration_from_file,
    resolve_private_key,
)

__all__ = [
    'ApiConfiguration',
    'ApiUrlBuilder',
    'Environment',
    'Region',
    'RetryPolicy',
    'API_VERSION',
    'DEFAULT_RETRY_STATUS_CODES',
    'SIGNATURE_ALGORITHM',
    'load_configuration_from_env',
    'load_configuration_from_file',
    'resolve_private_key',
]
