"""
Type definitions for request signing functionality

This module provides the request, header and signing-context types used by the
canonicalizer, the signer and the request dispatcher.
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..exceptions import PayApiSDKError, ValidationError


class HttpMethod(str, Enum):
    """HTTP methods supported for signing"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def coerce(cls, method: Union['HttpMethod', str]) -> 'HttpMethod':
        """Convert a method name (any case) into an HttpMethod."""
        if isinstance(method, cls):
            return method
        try:
            return cls(str(method).upper())
        except ValueError as e:
            raise ValidationError(
                f"Unsupported HTTP method: {method}",
                "INVALID_METHOD",
                {"method": method}
            ) from e

    @property
    def is_mutating(self) -> bool:
        return self is not HttpMethod.GET


class HeaderMap(MutableMapping):
    """
    Case-insensitive ordered header mapping.

    Names are stored lower-cased. A name keeps the position where it was first
    set; setting it again (in any case) replaces only the value. Values are
    stored without surrounding whitespace, as they are signed and sent.
    """

    def __init__(self, headers: Optional[Union[Mapping[str, str], List[Tuple[str, str]]]] = None):
        self._items: Dict[str, str] = {}
        if headers:
            self.update(headers)

    @staticmethod
    def _key(name: str) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Header names must be non-empty strings", "INVALID_HEADERS", {"name": name})
        return name.strip().lower()

    def __getitem__(self, name: str) -> str:
        return self._items[self._key(name)]

    def __setitem__(self, name: str, value: str) -> None:
        if value is None:
            raise ValidationError(f"Header {name} has no value", "INVALID_HEADERS", {"name": name})
        value = str(value).strip()
        if '\r' in value or '\n' in value:
            raise ValidationError(f"Header {name} contains a line break", "INVALID_HEADERS", {"name": name})
        self._items[self._key(name)] = value

    def __delitem__(self, name: str) -> None:
        del self._items[self._key(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"

    def copy(self) -> 'HeaderMap':
        return HeaderMap(self._items)

    def merged(self, other: Optional[Mapping[str, str]]) -> 'HeaderMap':
        """Return a new map with ``other`` layered on top; ``other`` wins on collision."""
        result = self.copy()
        if other:
            result.update(other)
        return result

    def to_dict(self) -> Dict[str, str]:
        return dict(self._items)


@dataclass(frozen=True)
class ApiRequest:
    """
    Request to be signed and dispatched

    Attributes:
        method: HTTP method
        url: Absolute request URL, including any query string
        headers: Caller-supplied headers (case-insensitive)
        body: Optional pre-serialized body; None means no body at all
    """
    method: HttpMethod
    url: str
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: Optional[Union[str, bytes]] = None

    def __post_init__(self):
        object.__setattr__(self, 'method', HttpMethod.coerce(self.method))

        if not self.url:
            raise ValidationError("Request URL cannot be empty", "INVALID_URL")

        headers = self.headers if isinstance(self.headers, HeaderMap) else HeaderMap(self.headers)
        object.__setattr__(self, 'headers', headers)

        if self.body is not None and not isinstance(self.body, (str, bytes)):
            raise ValidationError(
                f"Request body must be str, bytes or None, got {type(self.body).__name__}",
                "INVALID_REQUEST"
            )

        # Fail before any signing work if the URL cannot be decomposed
        self.parsed_url

    @property
    def parsed_url(self) -> 'ParsedUrl':
        from .utils import parse_url
        return parse_url(self.url)

    @property
    def effective_body(self) -> Optional[Union[str, bytes]]:
        """Body as it is signed and transmitted; GET requests never carry one."""
        if self.method is HttpMethod.GET:
            return None
        return self.body

    def with_header(self, name: str, value: str) -> 'ApiRequest':
        """Return a copy of this request with one header set."""
        headers = self.headers.copy()
        headers[name] = value
        return replace(self, headers=headers)


@dataclass(frozen=True)
class ParsedUrl:
    """Components of a request URL needed for signing"""
    scheme: str
    host: str
    port: Optional[int]
    path: str
    query: List[Tuple[str, str]]


@dataclass
class SigningContext:
    """
    Per-attempt signing state. Never cached or reused across attempts.

    Attributes:
        timestamp: Request date in yyyyMMddTHHmmssZ form
        presigned_headers: Headers covered by the signature
        canonical_request: Canonical request string
        string_to_sign: Algorithm line plus hash of the canonical request
        signature: Base64-encoded signature
    """
    timestamp: str
    presigned_headers: HeaderMap
    canonical_request: str = ""
    string_to_sign: str = ""
    signature: str = ""


@dataclass
class SignedRequest:
    """
    A request ready for transmission

    Attributes:
        request: The prepared request that was signed
        context: Signing context for this attempt
        headers: Every header to transmit, including authorization
    """
    request: ApiRequest
    context: SigningContext
    headers: HeaderMap

    @property
    def body(self) -> Optional[Union[str, bytes]]:
        return self.request.effective_body


class SigningError(PayApiSDKError):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "SIGNING_FAILED",
        details: Optional[Dict[str, object]] = None
    ):
        super().__init__(message, code, details)
        self.code = code

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"

    SIGNING_FAILED = "SIGNING_FAILED"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"


# Type aliases for convenience
Clock = Callable[[], float]
TokenFactory = Callable[[], str]
QueryParams = Union[List[Tuple[str, str]], Mapping[str, Union[str, List[str]]], None]
RequestBody = Union[str, bytes, None]
