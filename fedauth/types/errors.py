"""
Error types and error codes for fedauth.
Provides the failure taxonomy shared by every federation flow.
"""

import asyncio
import binascii
import json
from enum import Enum
from typing import Dict, Any, Optional
from xml.etree.ElementTree import ParseError

import aiohttp
from botocore.exceptions import BotoCoreError, ClientError
from defusedxml import DefusedXmlException


class ErrorCode(str, Enum):
    """Standard error codes used across fedauth."""
    INTERNAL_ERROR = "internal_error"
    MISSING_PARAMETER = "missing_parameter"
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_URL = "invalid_url"
    PROTOCOL_PARSE_ERROR = "protocol_parse_error"
    ROLE_NOT_FOUND = "role_not_found"
    CSRF_MISMATCH = "csrf_mismatch"
    TIMEOUT = "timeout"
    ACCESS_DENIED = "access_denied"
    RATE_LIMITED = "rate_limited"
    AUTHORIZATION_PENDING = "authorization_pending"
    UPSTREAM_ERROR = "upstream_error"
    UNEXPECTED = "unexpected"

    def __str__(self) -> str:
        return self.value


# Error code constants for easy import
INTERNAL_ERROR = ErrorCode.INTERNAL_ERROR
MISSING_PARAMETER = ErrorCode.MISSING_PARAMETER
CONFIGURATION_ERROR = ErrorCode.CONFIGURATION_ERROR
INVALID_URL = ErrorCode.INVALID_URL
PROTOCOL_PARSE_ERROR = ErrorCode.PROTOCOL_PARSE_ERROR
ROLE_NOT_FOUND = ErrorCode.ROLE_NOT_FOUND
CSRF_MISMATCH = ErrorCode.CSRF_MISMATCH
TIMEOUT = ErrorCode.TIMEOUT
ACCESS_DENIED = ErrorCode.ACCESS_DENIED
RATE_LIMITED = ErrorCode.RATE_LIMITED
AUTHORIZATION_PENDING = ErrorCode.AUTHORIZATION_PENDING
UPSTREAM_ERROR = ErrorCode.UPSTREAM_ERROR
UNEXPECTED = ErrorCode.UNEXPECTED


class FederationError(Exception):
    """Base exception for every failure raised by a federation flow."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class MissingParameterError(FederationError):
    """Raised when a required plugin parameter was not supplied."""

    def __init__(self, parameter: str, message: Optional[str] = None):
        super().__init__(
            message or f"Missing required parameter: {parameter}",
            MISSING_PARAMETER,
            {'parameter': parameter}
        )
        self.parameter = parameter


class ConfigurationError(FederationError):
    """Raised when a parameter is present but unusable."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, CONFIGURATION_ERROR, details)
        self.config_key = config_key
        self.config_value = config_value

        if config_key:
            self.details['config_key'] = config_key
        if config_value is not None:
            self.details['config_value'] = str(config_value)


class InvalidURLError(FederationError):
    """Raised when a URL is not HTTPS or contains disallowed characters."""

    def __init__(self, url: str, message: Optional[str] = None):
        super().__init__(message or f"Invalid URL: {url}", INVALID_URL, {'url': url})
        self.url = url


class ProtocolParseError(FederationError):
    """Raised for malformed XML, HTML or JSON from an identity provider."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, PROTOCOL_PARSE_ERROR, cause=cause)


class RoleNotFoundError(FederationError):
    """Raised when the preferred role is absent from the assertion."""

    def __init__(self, role: str):
        super().__init__(
            f"Preferred role not found in SamlAssertion: {role}",
            ROLE_NOT_FOUND,
            {'role': role}
        )
        self.role = role


class CsrfMismatchError(FederationError):
    """Raised when a callback carries a state other than the one sent."""

    def __init__(self, message: str = "Incoming state does not match the outgoing state"):
        super().__init__(message, CSRF_MISMATCH)


class FederationTimeoutError(FederationError):
    """Raised when the overall response deadline elapses."""

    def __init__(self, message: str, timeout: Optional[float] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, TIMEOUT, cause=cause)
        self.timeout = timeout
        if timeout is not None:
            self.details['timeout'] = timeout


class AccessDeniedError(FederationError):
    """Raised when the identity provider refuses the request."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, ACCESS_DENIED, cause=cause)


class RateLimitedError(FederationError):
    """Raised when the provider asks the client to slow down."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, RATE_LIMITED, cause=cause)


class AuthorizationPendingError(FederationError):
    """Signals that the user has not completed authorization yet."""

    def __init__(self, message: str = "Authorization pending",
                 cause: Optional[Exception] = None):
        super().__init__(message, AUTHORIZATION_PENDING, cause=cause)


class UpstreamError(FederationError):
    """Raised for a non-success response. Retains status and body."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, UPSTREAM_ERROR, cause=cause)
        self.status = status
        self.body = body
        if status is not None:
            self.details['status'] = status


class UnexpectedError(FederationError):
    """Raised for any failure that fits nowhere else."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, UNEXPECTED, cause=cause)


_CLIENT_ERROR_CODES = {
    'AuthorizationPendingException': AuthorizationPendingError,
    'SlowDownException': RateLimitedError,
    'AccessDeniedException': AccessDeniedError,
    'AccessDenied': AccessDeniedError,
    'ExpiredTokenException': AccessDeniedError,
    'InvalidIdentityToken': AccessDeniedError,
    'Throttling': RateLimitedError,
    'ThrottlingException': RateLimitedError,
}


def from_client_error(error: ClientError) -> FederationError:
    """Map a botocore ClientError onto the taxonomy."""
    err = error.response.get('Error', {})
    code = err.get('Code', '')
    message = err.get('Message') or str(error)
    status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode')

    error_class = _CLIENT_ERROR_CODES.get(code)
    if error_class is not None:
        return error_class(f"{code}: {message}", cause=error)
    if code == 'InternalServerException':
        return UpstreamError(f"{code}: {message}", status=status or 500, body=message, cause=error)
    return UpstreamError(f"{code or 'ClientError'}: {message}", status=status, body=message, cause=error)


def normalize_error(error: BaseException) -> FederationError:
    """
    Normalize a lower-level failure into a FederationError.

    Already-normalized errors are returned unchanged. The original
    exception is kept as the cause.
    """
    if isinstance(error, FederationError):
        return error
    if isinstance(error, asyncio.TimeoutError):
        return FederationTimeoutError("Operation timed out", cause=error)
    if isinstance(error, ClientError):
        return from_client_error(error)
    if isinstance(error, aiohttp.ClientResponseError):
        return UpstreamError(
            f"Unexpected response: {error.status} {error.message}",
            status=error.status, cause=error
        )
    if isinstance(error, (ParseError, DefusedXmlException, json.JSONDecodeError,
                          binascii.Error, UnicodeDecodeError)):
        return ProtocolParseError(f"Unable to parse identity provider response: {error}",
                                  cause=error)
    if isinstance(error, (aiohttp.ClientError, BotoCoreError, OSError)):
        return UnexpectedError(f"Communication failure: {error}", cause=error)
    return UnexpectedError(f"Unexpected error: {error}", cause=error)
