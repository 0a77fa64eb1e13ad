"""
Exception classes for Pay API Python SDK
"""

from typing import Optional, Dict, Any


class PayApiSDKError(Exception):
    """Base exception for all Pay API SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(PayApiSDKError):
    """Exception raised for malformed requests or invalid input"""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ConfigurationError(ValidationError):
    """Exception raised when client configuration cannot be loaded or is invalid"""

    def __init__(self, message: str, error_code: str = "INVALID_CONFIG", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ClientError(PayApiSDKError):
    """
    Exception raised when no response was received from the server.

    Covers DNS, connection, TLS and timeout failures. HTTP error statuses are
    never reported through this exception; they come back as responses.
    """

    def __init__(self, message: str, error_code: str = "CLIENT_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
