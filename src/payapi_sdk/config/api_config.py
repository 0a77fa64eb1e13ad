"""
Client configuration for the Pay API SDK

Provides the immutable configuration shared by the signer and the request
dispatcher, the retry policy, loaders for JSON files and environment
variables, and the builder for service URLs.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SIGNATURE_ALGORITHM = "AMZN-PAY-RSASSA-PSS"
API_VERSION = "v2"
DEFAULT_RETRY_STATUS_CODES: FrozenSet[int] = frozenset({408, 429, 500, 502, 503, 504})
ENV_PREFIX = "PAYAPI_"


class Region(str, Enum):
    """Service regions, by their short form"""
    EU = "eu"
    NA = "na"
    JP = "jp"

    @property
    def domain_suffix(self) -> str:
        return {
            Region.EU: "eu",
            Region.NA: "com",
            Region.JP: "jp",
        }[self]

    @classmethod
    def from_string(cls, value: Union['Region', str]) -> 'Region':
        """Parse a region short form or one of its country aliases."""
        if isinstance(value, cls):
            return value

        aliases = {
            "eu": cls.EU, "de": cls.EU, "uk": cls.EU, "gb": cls.EU,
            "na": cls.NA, "us": cls.NA,
            "jp": cls.JP,
        }
        try:
            return aliases[str(value).strip().lower()]
        except KeyError as e:
            raise ConfigurationError(
                f"Unknown region: {value}",
                details={"region": value, "supported": sorted(aliases)}
            ) from e


class Environment(str, Enum):
    """Service environments"""
    SANDBOX = "sandbox"
    LIVE = "live"

    @classmethod
    def from_string(cls, value: Union['Environment', str]) -> 'Environment':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown environment: {value}", details={"environment": value}) from e


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry behaviour for transient service errors

    Attributes:
        max_retries: Maximum number of retries after the first attempt
        retry_status_codes: Response statuses treated as transient
        backoff_factor: Seconds multiplied by 2**retry to get the delay
        max_backoff: Upper bound for a single delay, in seconds
        total_timeout: Optional deadline in seconds for the whole dispatch;
            no retry is started if its backoff would cross the deadline
    """
    max_retries: int = 3
    retry_status_codes: FrozenSet[int] = DEFAULT_RETRY_STATUS_CODES
    backoff_factor: float = 1.0
    max_backoff: float = 30.0
    total_timeout: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'retry_status_codes', frozenset(int(c) for c in self.retry_status_codes))

        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")

        if self.backoff_factor < 0 or self.max_backoff < 0:
            raise ConfigurationError("Backoff values must be non-negative")

        if self.total_timeout is not None and self.total_timeout <= 0:
            raise ConfigurationError("total_timeout must be positive")

        invalid = [c for c in self.retry_status_codes if not 100 <= c <= 599]
        if invalid:
            raise ConfigurationError(
                f"Invalid retry status codes: {sorted(invalid)}",
                details={"status_codes": sorted(invalid)}
            )

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retry_status_codes

    def delay_for(self, retry: int) -> float:
        """Backoff in seconds before retry number ``retry`` (1-based)."""
        return min(self.backoff_factor * (2 ** retry), self.max_backoff)


def resolve_private_key(private_key: Union[str, bytes, Path]) -> str:
    """
    Resolve a private key setting into PEM text.

    Args:
        private_key: PEM text, or a path to a PEM file

    Returns:
        str: PEM text

    Raises:
        ConfigurationError: If the value is empty or the file cannot be read
    """
    if isinstance(private_key, bytes):
        private_key = private_key.decode('utf-8')

    if isinstance(private_key, str) and "-----BEGIN" in private_key:
        return private_key

    if not private_key or not str(private_key).strip():
        raise ConfigurationError("Private key cannot be empty")

    path = Path(private_key).expanduser()
    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(
            f"Could not read private key file {path}: {e}",
            details={"path": str(path)}
        ) from e


@dataclass(frozen=True)
class ApiConfiguration:
    """
    Immutable client configuration

    Attributes:
        public_key_id: Identifier of the registered public key
        private_key: RSA private key PEM, or a path to a PEM file
        region: Service region
        environment: Sandbox or live
        retry_policy: Retry and backoff settings
        timeout: Per-attempt transport timeout in seconds
        verify_ssl: Whether to verify TLS certificates
        endpoint: Optional base URL overriding the regional endpoint
        user_agent_suffix: Optional application identifier for the user-agent
        log_canonical_requests: Log canonical requests at debug level
    """
    public_key_id: str
    private_key: str = field(repr=False)
    region: Region = Region.NA
    environment: Environment = Environment.SANDBOX
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: float = 30.0
    verify_ssl: bool = True
    endpoint: Optional[str] = None
    user_agent_suffix: Optional[str] = None
    log_canonical_requests: bool = False

    def __post_init__(self):
        if not self.public_key_id or not str(self.public_key_id).strip():
            raise ConfigurationError("public_key_id cannot be empty", "INVALID_KEY_ID")

        object.__setattr__(self, 'private_key', resolve_private_key(self.private_key))
        object.__setattr__(self, 'region', Region.from_string(self.region))
        object.__setattr__(self, 'environment', Environment.from_string(self.environment))

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive")

        if self.endpoint:
            endpoint = self.endpoint if self.endpoint.endswith('/') else self.endpoint + '/'
            if not endpoint.startswith(('http://', 'https://')):
                raise ConfigurationError(f"Invalid endpoint URL: {self.endpoint}")
            object.__setattr__(self, 'endpoint', endpoint)

    @property
    def max_retries(self) -> int:
        return self.retry_policy.max_retries

    @property
    def algorithm(self) -> str:
        return SIGNATURE_ALGORITHM

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ApiConfiguration':
        """
        Build a configuration from a plain mapping (e.g. parsed JSON).

        Retry settings may be given flat (``max_retries``), nested under
        ``retry_policy``, or as a ready ``RetryPolicy`` instance. Unknown keys
        are rejected.
        """
        data = dict(data)
        retry_policy = data.pop('retry_policy', None)
        flat_retry_keys = [
            name for name in ('max_retries', 'retry_status_codes', 'backoff_factor', 'max_backoff', 'total_timeout')
            if name in data
        ]

        if isinstance(retry_policy, RetryPolicy):
            if flat_retry_keys:
                raise ConfigurationError(
                    f"Retry keys cannot be combined with a RetryPolicy instance: {', '.join(flat_retry_keys)}",
                    details={"keys": flat_retry_keys}
                )
            retry_data = None
        elif retry_policy is None or isinstance(retry_policy, Mapping):
            retry_data = dict(retry_policy or {})
            for name in flat_retry_keys:
                retry_data[name] = data.pop(name)
        else:
            raise ConfigurationError(
                f"retry_policy must be a mapping or RetryPolicy, got {type(retry_policy).__name__}"
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}", details={"keys": unknown})

        missing = [name for name in ('public_key_id', 'private_key') if not data.get(name)]
        if missing:
            raise ConfigurationError(f"Missing configuration keys: {', '.join(missing)}", details={"keys": missing})

        try:
            if retry_data is not None:
                retry_policy = RetryPolicy(**retry_data)
            return cls(retry_policy=retry_policy, **data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_configuration_from_file(path: Union[str, Path]) -> ApiConfiguration:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to a JSON object with ApiConfiguration fields

    Returns:
        ApiConfiguration: Loaded configuration
    """
    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigurationError(f"Could not read configuration file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a JSON object", "PARSE_ERROR")

    logger.debug(f"Loaded configuration from {path}")
    return ApiConfiguration.from_dict(data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_status_codes(value: str) -> Iterable[int]:
    try:
        return [int(code) for code in value.split(',') if code.strip()]
    except ValueError as e:
        raise ConfigurationError(f"Invalid status code list: {value}") from e


def load_configuration_from_env(
    environ: Optional[Mapping[str, str]] = None,
    prefix: str = ENV_PREFIX
) -> ApiConfiguration:
    """
    Load configuration from environment variables.

    Reads ``<prefix>PUBLIC_KEY_ID``, ``<prefix>PRIVATE_KEY`` (PEM text or file
    path), ``<prefix>REGION``, ``<prefix>ENVIRONMENT``, ``<prefix>ENDPOINT``,
    ``<prefix>TIMEOUT``, ``<prefix>VERIFY_SSL``, ``<prefix>MAX_RETRIES``,
    ``<prefix>RETRY_STATUS_CODES``, ``<prefix>BACKOFF_FACTOR``,
    ``<prefix>MAX_BACKOFF`` and ``<prefix>TOTAL_TIMEOUT``.
    """
    environ = os.environ if environ is None else environ

    converters = {
        'public_key_id': str,
        'private_key': str,
        'region': str,
        'environment': str,
        'endpoint': str,
        'user_agent_suffix': str,
        'timeout': float,
        'verify_ssl': _parse_bool,
        'log_canonical_requests': _parse_bool,
        'max_retries': int,
        'retry_status_codes': _parse_status_codes,
        'backoff_factor': float,
        'max_backoff': float,
        'total_timeout': float,
    }

    data: Dict[str, Any] = {}
    for name, convert in converters.items():
        raw = environ.get(prefix + name.upper())
        if raw is None or raw == '':
            continue
        try:
            data[name] = convert(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {prefix}{name.upper()}: {raw}") from e

    return ApiConfiguration.from_dict(data)


class ApiUrlBuilder:
    """Builds service URLs for a configuration"""

    def __init__(self, config: ApiConfiguration):
        self.config = config

    @property
    def base_url(self) -> str:
        if self.config.endpoint:
            return self.config.endpoint
        return f"https://pay-api.amazon.{self.config.region.domain_suffix}/"

    def build_full_api_path(self, resource: str, version: str = API_VERSION) -> str:
        """
        Build the absolute URL of a resource.

        Args:
            resource: Resource path such as "checkoutSessions/abc"
            version: API version segment

        Returns:
            str: e.g. https://pay-api.amazon.com/sandbox/v2/checkoutSessions/abc
        """
        return f"{self.base_url}{self.config.environment.value}/{version}/{resource.lstrip('/')}"
