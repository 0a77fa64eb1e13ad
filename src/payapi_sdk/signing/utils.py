"""
Utility functions for request signing

This module provides timestamp formatting, URL parsing, idempotency token
generation, user-agent construction and private key loading.
"""

import time
import uuid
import platform
from typing import Optional, Union
from urllib.parse import urlsplit, parse_qsl

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..exceptions import ValidationError
from ..version import __version__
from .types import ParsedUrl, SigningError, SigningErrorCodes

SIGNING_TIMESTAMP_FORMAT = '%Y%m%dT%H%M%SZ'
SDK_NAME = 'payapi-python-sdk'


def generate_timestamp() -> float:
    """
    Generate current Unix timestamp.

    Returns:
        float: Current Unix timestamp (seconds since epoch)
    """
    return time.time()


def format_signing_timestamp(timestamp: Optional[float] = None) -> str:
    """
    Format a Unix timestamp in the compact ISO-8601 form used by the date header.

    Args:
        timestamp: Unix timestamp (uses current time if None)

    Returns:
        str: Timestamp such as 20240131T235959Z
    """
    if timestamp is None:
        timestamp = generate_timestamp()
    return time.strftime(SIGNING_TIMESTAMP_FORMAT, time.gmtime(timestamp))


def generate_idempotency_key() -> str:
    """
    Generate a random idempotency token.

    Dashes are stripped because the service rejects them in idempotency keys.

    Returns:
        str: 32 lower-case hex characters
    """
    return uuid.uuid4().hex


def parse_url(url: str) -> ParsedUrl:
    """
    Parse URL into the components needed for signing.

    Args:
        url: Absolute http(s) URL

    Returns:
        ParsedUrl: scheme, host, port, raw path and ordered query pairs

    Raises:
        ValidationError: If the URL cannot be decomposed
    """
    if not isinstance(url, str) or not url:
        raise ValidationError(f"Invalid URL: {url!r}", "INVALID_URL", {"url": url})

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise ValidationError(f"Failed to parse URL: {e}", "INVALID_URL", {"url": url}) from e

    if parts.scheme not in ('http', 'https'):
        raise ValidationError(
            f"Unsupported URL scheme: {parts.scheme or '(none)'}",
            "INVALID_URL",
            {"url": url, "scheme": parts.scheme}
        )

    if not parts.hostname:
        raise ValidationError(f"URL has no host: {url}", "INVALID_URL", {"url": url})

    return ParsedUrl(
        scheme=parts.scheme,
        host=parts.hostname,
        port=port,
        path=parts.path,
        query=parse_qsl(parts.query, keep_blank_values=True),
    )


def build_user_agent(suffix: Optional[str] = None) -> str:
    """
    Build the user-agent header value.

    Args:
        suffix: Optional application identifier appended to the value

    Returns:
        str: e.g. payapi-python-sdk/1.0.0 (Python/3.12.1; Linux)
    """
    user_agent = (
        f"{SDK_NAME}/{__version__} "
        f"(Python/{platform.python_version()}; {platform.system() or 'unknown'})"
    )
    if suffix:
        user_agent = f"{user_agent} {suffix}"
    return user_agent


def load_private_key(private_key_pem: Union[str, bytes]) -> RSAPrivateKey:
    """
    Parse an RSA private key from PEM text.

    Args:
        private_key_pem: PKCS#1 or PKCS#8 PEM encoded, unencrypted RSA key

    Returns:
        RSAPrivateKey: Parsed key, to be discarded after use

    Raises:
        SigningError: If the PEM is malformed or does not hold an RSA key
    """
    if isinstance(private_key_pem, str):
        private_key_pem = private_key_pem.encode('utf-8')

    if not private_key_pem or not private_key_pem.strip():
        raise SigningError("Private key is empty", SigningErrorCodes.INVALID_PRIVATE_KEY)

    try:
        key = serialization.load_pem_private_key(private_key_pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(
            f"Could not load private key: {e}",
            SigningErrorCodes.INVALID_PRIVATE_KEY,
            {"original_error": str(e)}
        ) from e

    if not isinstance(key, RSAPrivateKey):
        raise SigningError(
            f"Private key must be RSA, got {type(key).__name__}",
            SigningErrorCodes.UNSUPPORTED_KEY_TYPE,
            {"key_type": type(key).__name__}
        )

    return key
