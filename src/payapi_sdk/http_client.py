"""
Signed request dispatch for Pay API communication

This module sends signed requests to the Pay API with bounded retries on
transient service errors and normalizes every response into a
ResponseEnvelope. HTTP error statuses are returned as data; only failures
where no response arrived at all are raised.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import ApiConfiguration, RetryPolicy
from .exceptions import ClientError
from .signing.signer import HEADER_IDEMPOTENCY_KEY, HEADER_REQUEST_ID, RequestSigner
from .signing.types import ApiRequest, Clock, HttpMethod, SignedRequest, TokenFactory
from .signing.utils import generate_idempotency_key

logger = logging.getLogger(__name__)


@dataclass
class ResponseEnvelope:
    """
    Normalized result of a dispatched request

    Attributes:
        status_code: HTTP status of the terminal attempt
        headers: Response headers
        raw_body: Decoded response body (may be empty)
        request_id: Value of the request-id response header, if present
        retries: Retries consumed before the terminal attempt
        duration_ms: Wall-clock time of the whole dispatch, retries included
        url: Request URL
        method: Request method
        raw_request: Body that was sent, if any
    """
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    raw_body: str = ""
    request_id: Optional[str] = None
    retries: int = 0
    duration_ms: float = 0.0
    url: str = ""
    method: Optional[HttpMethod] = None
    raw_request: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON; None when the body is empty."""
        if not self.raw_body:
            return None
        return json.loads(self.raw_body)


class RequestDispatcher:
    """
    Signs and sends requests, retrying transient service errors

    The dispatcher holds no per-request state, so one instance may serve
    concurrent callers as long as the underlying session does.
    """

    def __init__(
        self,
        config: ApiConfiguration,
        signer: Optional[RequestSigner] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Clock = time.monotonic,
        token_factory: TokenFactory = generate_idempotency_key
    ):
        """
        Initialize the dispatcher.

        Args:
            config: Client configuration
            signer: Request signer (built from config if omitted)
            session: requests session to send through
            sleep: Called with the backoff delay in seconds
            clock: Monotonic clock for duration and deadline tracking
            token_factory: Generates idempotency keys
        """
        self.config = config
        self.signer = signer or RequestSigner(config)
        self.session = session or self._create_session()
        self.sleep = sleep
        self.clock = clock
        self.token_factory = token_factory

        logger.info(
            f"Initialized request dispatcher (region={config.region.value}, "
            f"environment={config.environment.value}, max_retries={config.max_retries})"
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self.config.retry_policy

    def _create_session(self) -> requests.Session:
        """Create HTTP session; transport failures are surfaced, never retried."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def prepare(self, request: ApiRequest) -> ApiRequest:
        """
        Ensure mutating requests carry an idempotency key.

        The caller's request is left untouched; a copy is returned when a key
        has to be added.
        """
        if not request.method.is_mutating:
            return request

        existing = request.headers.get(HEADER_IDEMPOTENCY_KEY)
        if existing and existing.strip():
            return request

        return request.with_header(HEADER_IDEMPOTENCY_KEY, self.token_factory())

    def dispatch(self, request: ApiRequest) -> ResponseEnvelope:
        """
        Sign and send a request.

        Each attempt is signed afresh so the date header stays current; the
        idempotency key is shared by all attempts.

        Args:
            request: Request to send

        Returns:
            ResponseEnvelope: Result of the terminal attempt

        Raises:
            ValidationError: If the request is malformed
            SigningError: If the request cannot be signed
            ClientError: If no response was received
        """
        policy = self.retry_policy
        prepared = self.prepare(request)
        start = self.clock()
        retries = 0

        while True:
            signed = self.signer.sign_request(prepared)
            response = self._transmit(signed, attempt=retries + 1)

            if not policy.is_retryable(response.status_code):
                break

            if retries >= policy.max_retries:
                logger.warning(
                    f"{prepared.method.value} {prepared.url} still returned {response.status_code} "
                    f"after {retries} retries"
                )
                break

            delay = policy.delay_for(retries + 1)
            if policy.total_timeout is not None and (self.clock() - start) + delay > policy.total_timeout:
                logger.warning(
                    f"Not retrying {prepared.method.value} {prepared.url}: "
                    f"next attempt would exceed the {policy.total_timeout}s deadline"
                )
                break

            retries += 1
            logger.warning(
                f"{prepared.method.value} {prepared.url} returned {response.status_code}, "
                f"retry {retries}/{policy.max_retries} in {delay:.2f}s"
            )
            response.close()
            self.sleep(delay)

        duration_ms = (self.clock() - start) * 1000
        return self._finalize(signed, response, retries, duration_ms)

    def _transmit(self, signed: SignedRequest, attempt: int) -> requests.Response:
        request = signed.request
        body = signed.body
        if isinstance(body, str):
            body = body.encode('utf-8')

        logger.debug(f"Attempt {attempt}: {request.method.value} {request.url}")

        try:
            return self.session.request(
                request.method.value,
                request.url,
                headers=signed.headers.to_dict(),
                data=body,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Request to {request.url} timed out after {self.config.timeout} seconds")
            raise ClientError(
                f"Request timeout after {self.config.timeout} seconds",
                "TIMEOUT",
                details={"url": request.url}
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection to {request.url} failed: {e}")
            raise ClientError(f"Connection error: {e}", "CONNECTION_ERROR", details={"url": request.url}) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {request.url} failed: {e}")
            raise ClientError(f"Request failed: {e}", details={"url": request.url}) from e

    def _finalize(
        self,
        signed: SignedRequest,
        response: requests.Response,
        retries: int,
        duration_ms: float
    ) -> ResponseEnvelope:
        headers = dict(response.headers)
        request_id = next(
            (value for name, value in headers.items() if name.lower() == HEADER_REQUEST_ID),
            None
        )

        raw_request = signed.body
        if isinstance(raw_request, bytes):
            raw_request = raw_request.decode('utf-8', errors='replace')

        envelope = ResponseEnvelope(
            status_code=response.status_code,
            headers=headers,
            raw_body=(response.content or b'').decode('utf-8', errors='replace'),
            request_id=request_id,
            retries=retries,
            duration_ms=duration_ms,
            url=signed.request.url,
            method=signed.request.method,
            raw_request=raw_request,
        )

        logger.debug(
            f"{envelope.method.value} {envelope.url} -> {envelope.status_code} "
            f"(request id {request_id}, {retries} retries, {duration_ms:.0f}ms)"
        )
        return envelope

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
