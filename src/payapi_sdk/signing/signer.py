"""
RSA-PSS request signer

This module builds the canonical request and string-to-sign for a Pay API
request, signs it with RSASSA-PSS over SHA-256 and assembles the headers that
carry the signature.
"""

import base64
import json
import logging
from typing import Any, Mapping, Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from ..config import ApiConfiguration
from .canonical import CanonicalBuilder
from .types import (
    ApiRequest,
    Clock,
    HeaderMap,
    ParsedUrl,
    SignedRequest,
    SigningContext,
    SigningError,
    SigningErrorCodes,
)
from .utils import (
    build_user_agent,
    format_signing_timestamp,
    generate_timestamp,
    load_private_key,
)

logger = logging.getLogger(__name__)

HEADER_ACCEPT = 'accept'
HEADER_CONTENT_TYPE = 'content-type'
HEADER_REGION = 'x-amz-pay-region'
HEADER_DATE = 'x-amz-pay-date'
HEADER_HOST = 'x-amz-pay-host'
HEADER_IDEMPOTENCY_KEY = 'x-amz-pay-idempotency-key'
HEADER_REQUEST_ID = 'x-amz-pay-request-id'
HEADER_AUTHORIZATION = 'authorization'
HEADER_USER_AGENT = 'user-agent'

# Set by the signer after signing; never part of the signed set
UNSIGNED_HEADERS = (HEADER_USER_AGENT, HEADER_AUTHORIZATION)

JSON_CONTENT_TYPE = 'application/json'
SALT_LENGTH = 20
LINE_SEPARATOR = '\n'


class RequestSigner:
    """
    Signs Pay API requests

    The configuration (key id, private key, region) is fixed at construction.
    Every call derives a fresh SigningContext; nothing is cached between calls.
    """

    def __init__(
        self,
        config: ApiConfiguration,
        canonical_builder: Optional[CanonicalBuilder] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the signer.

        Args:
            config: Client configuration holding the key material
            canonical_builder: Canonicalization functions (default CanonicalBuilder)
            clock: Returns the current Unix time; used for the date header
        """
        self.config = config
        self.canonical_builder = canonical_builder or CanonicalBuilder()
        self.clock = clock or generate_timestamp

    def create_default_headers(self, url: ParsedUrl, timestamp: str) -> HeaderMap:
        """
        Create the mandatory signed headers.

        Args:
            url: Parsed request URL
            timestamp: Formatted request date

        Returns:
            HeaderMap: accept, content-type, region, date and host headers
        """
        return HeaderMap([
            (HEADER_ACCEPT, JSON_CONTENT_TYPE),
            (HEADER_CONTENT_TYPE, JSON_CONTENT_TYPE),
            (HEADER_REGION, self.config.region.value),
            (HEADER_DATE, timestamp),
            (HEADER_HOST, url.host),
        ])

    def build_canonical_request(self, request: ApiRequest, presigned_headers: Mapping[str, str]) -> str:
        """
        Build the canonical request.

        Six lines: method, canonical URI, canonical query string, canonical
        header block, signed header names and the hex SHA-256 of the body.

        Args:
            request: Request to canonicalize
            presigned_headers: Headers covered by the signature

        Returns:
            str: Canonical request string
        """
        url = request.parsed_url
        builder = self.canonical_builder

        return LINE_SEPARATOR.join([
            request.method.value,
            builder.canonicalize_uri(url.path),
            builder.canonicalize_query(url.query),
            builder.canonicalize_headers(presigned_headers),
            builder.signed_header_names(presigned_headers),
            builder.hash_then_hex_encode(request.effective_body),
        ])

    def build_string_to_sign(self, canonical_request: str) -> str:
        """
        Build the string to sign: the algorithm id, then the hex hash of the canonical request.
        """
        hashed = self.canonical_builder.hash_then_hex_encode(canonical_request)
        return f"{self.config.algorithm}{LINE_SEPARATOR}{hashed}"

    def sign(self, string_to_sign: str, private_key_pem: Optional[Union[str, bytes]] = None) -> bytes:
        """
        Sign a string with RSASSA-PSS (SHA-256, MGF1-SHA-256, 20 byte salt).

        The salt is random, so signing the same string twice gives different
        signatures that both verify. It is drawn from the operating system
        CSPRNG inside cryptography, which offers no way to inject another
        random source.

        Args:
            string_to_sign: Text to sign, UTF-8 encoded before signing
            private_key_pem: PEM key; defaults to the configured key

        Returns:
            bytes: Raw signature

        Raises:
            SigningError: If the key cannot be loaded or signing fails
        """
        pem = private_key_pem if private_key_pem is not None else self.config.private_key

        try:
            private_key = load_private_key(pem)
            return private_key.sign(
                string_to_sign.encode('utf-8'),
                padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=SALT_LENGTH),
                hashes.SHA256()
            )
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(
                f"Message signing failed: {e}",
                SigningErrorCodes.SIGNING_FAILED,
                {"original_error": str(e)}
            ) from e

    def build_authorization_header(self, presigned_headers: Mapping[str, str], signature: str) -> str:
        """
        Build the authorization header value.

        Args:
            presigned_headers: The headers that were signed
            signature: Base64-encoded signature

        Returns:
            str: "<algorithm> PublicKeyId=<id>, SignedHeaders=<names>, Signature=<sig>"
        """
        signed_headers = self.canonical_builder.signed_header_names(presigned_headers)
        return (
            f"{self.config.algorithm} PublicKeyId={self.config.public_key_id}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )

    def sign_request(self, request: ApiRequest) -> SignedRequest:
        """
        Sign a request.

        Caller headers are merged over the mandatory headers (caller wins),
        the merged set is signed, then user-agent and authorization are added.
        Caller values for user-agent and authorization are discarded so the
        signed headers are exactly the transmitted ones.

        Args:
            request: Prepared request

        Returns:
            SignedRequest: Signing context and the headers to transmit

        Raises:
            ValidationError: If the request URL is malformed
            SigningError: If signing fails
        """
        url = request.parsed_url
        timestamp = format_signing_timestamp(self.clock())

        caller_headers = request.headers.copy()
        for name in UNSIGNED_HEADERS:
            caller_headers.pop(name, None)

        presigned = self.create_default_headers(url, timestamp).merged(caller_headers)
        context = SigningContext(timestamp=timestamp, presigned_headers=presigned)

        context.canonical_request = self.build_canonical_request(request, presigned)
        context.string_to_sign = self.build_string_to_sign(context.canonical_request)

        if self.config.log_canonical_requests:
            logger.debug(f"Canonical request:\n{context.canonical_request}")
            logger.debug(f"String to sign:\n{context.string_to_sign}")

        signature_bytes = self.sign(context.string_to_sign)
        context.signature = base64.b64encode(signature_bytes).decode('ascii')

        headers = presigned.copy()
        headers[HEADER_USER_AGENT] = build_user_agent(self.config.user_agent_suffix)
        headers[HEADER_AUTHORIZATION] = self.build_authorization_header(presigned, context.signature)

        return SignedRequest(request=request, context=context, headers=headers)

    def generate_button_signature(self, payload: Union[str, Mapping[str, Any]]) -> str:
        """
        Sign a checkout button payload.

        Args:
            payload: JSON text, or a mapping that is serialized to JSON

        Returns:
            str: Base64-encoded signature of the payload
        """
        if isinstance(payload, Mapping):
            payload = json.dumps(payload, separators=(',', ':'))

        if not isinstance(payload, str) or not payload:
            raise SigningError(
                "Button payload must be a non-empty JSON string or mapping",
                SigningErrorCodes.INVALID_PAYLOAD
            )

        string_to_sign = self.build_string_to_sign(payload)
        return base64.b64encode(self.sign(string_to_sign)).decode('ascii')


def create_signer(config: ApiConfiguration, **kwargs) -> RequestSigner:
    """
    Create a new request signer.

    Args:
        config: Client configuration
        **kwargs: Passed to RequestSigner

    Returns:
        RequestSigner: Configured signer instance
    """
    return RequestSigner(config, **kwargs)
