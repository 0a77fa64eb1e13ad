"""
High-level client for the Pay API

Combines the configuration, URL builder, signer and dispatcher behind a small
API that accepts resource paths and JSON-serializable bodies.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from .config import ApiConfiguration, ApiUrlBuilder, load_configuration_from_env, load_configuration_from_file
from .exceptions import ValidationError
from .http_client import RequestDispatcher, ResponseEnvelope
from .signing.signer import RequestSigner
from .signing.types import ApiRequest, HttpMethod, QueryParams

logger = logging.getLogger(__name__)

Body = Union[str, bytes, Mapping[str, Any], list, None]


def encode_body(body: Body) -> Optional[Union[str, bytes]]:
    """
    Serialize a request body.

    Args:
        body: Pre-serialized text/bytes, or a JSON-serializable mapping or list

    Returns:
        Text or bytes to send; None when there is no body
    """
    if body is None or isinstance(body, (str, bytes)):
        return body

    try:
        return json.dumps(body)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Request body is not JSON serializable: {e}", "INVALID_REQUEST") from e


class PayApiClient:
    """
    Pay API client

    Resource paths are resolved against the regional endpoint of the
    configured environment; absolute URLs are used unchanged.
    """

    def __init__(
        self,
        config: ApiConfiguration,
        dispatcher: Optional[RequestDispatcher] = None
    ):
        self.config = config
        self.url_builder = ApiUrlBuilder(config)
        self.dispatcher = dispatcher or RequestDispatcher(config)

        logger.info(f"Pay API client ready for {self.url_builder.base_url} ({config.environment.value})")

    @property
    def signer(self) -> RequestSigner:
        return self.dispatcher.signer

    def build_url(self, resource: str, query: QueryParams = None) -> str:
        """
        Resolve a resource path (or absolute URL) and append query parameters.
        """
        if not resource:
            raise ValidationError("Resource cannot be empty", "INVALID_URL")

        if resource.startswith(('http://', 'https://')):
            url = resource
        else:
            url = self.url_builder.build_full_api_path(resource)

        if query:
            items = list(query.items()) if isinstance(query, Mapping) else list(query)
            separator = '&' if '?' in url else '?'
            url = f"{url}{separator}{urlencode(items, doseq=True, quote_via=quote)}"

        return url

    def build_request(
        self,
        method: Union[HttpMethod, str],
        resource: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
        query: QueryParams = None
    ) -> ApiRequest:
        return ApiRequest(
            method=method,
            url=self.build_url(resource, query),
            headers=headers or {},
            body=encode_body(body),
        )

    def call_api(
        self,
        method: Union[HttpMethod, str],
        resource: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
        query: QueryParams = None
    ) -> ResponseEnvelope:
        """
        Sign and send a request.

        Args:
            method: HTTP method
            resource: Resource path such as "checkoutSessions", or an absolute URL
            body: JSON-serializable body, or pre-serialized text
            headers: Extra headers; these override the default signed headers
            query: Query parameters

        Returns:
            ResponseEnvelope: Normalized response; HTTP errors are not raised
        """
        request = self.build_request(method, resource, body, headers, query)
        return self.dispatcher.dispatch(request)

    def get_signed_headers(
        self,
        method: Union[HttpMethod, str],
        resource: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
        query: QueryParams = None
    ) -> Dict[str, str]:
        """
        Sign a request without sending it.

        Useful when requests are sent through another HTTP stack.

        Returns:
            dict: Every header to send, authorization included
        """
        request = self.dispatcher.prepare(self.build_request(method, resource, body, headers, query))
        return self.signer.sign_request(request).headers.to_dict()

    def generate_button_signature(self, payload: Union[str, Mapping[str, Any]]) -> str:
        """
        Sign a checkout button payload.

        Args:
            payload: JSON text, or a mapping serialized to JSON

        Returns:
            str: Base64-encoded signature
        """
        return self.signer.generate_button_signature(payload)

    def close(self) -> None:
        self.dispatcher.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_client(config: Union[ApiConfiguration, str, None] = None) -> PayApiClient:
    """
    Create a Pay API client.

    Args:
        config: A configuration, a path to a JSON configuration file, or None
            to read PAYAPI_* environment variables

    Returns:
        PayApiClient: Configured client
    """
    if config is None:
        config = load_configuration_from_env()
    elif not isinstance(config, ApiConfiguration):
        config = load_configuration_from_file(config)

    return PayApiClient(config)
