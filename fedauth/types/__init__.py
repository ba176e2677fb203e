# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package types provides the shared error taxonomy for fedauth.

Every flow raises a FederationError subclass; lower-level failures are
converted with normalize_error at the flow boundary.
"""

from .errors import (
    ErrorCode,
    FederationError,
    MissingParameterError,
    ConfigurationError,
    InvalidURLError,
    ProtocolParseError,
    RoleNotFoundError,
    CsrfMismatchError,
    FederationTimeoutError,
    AccessDeniedError,
    RateLimitedError,
    AuthorizationPendingError,
    UpstreamError,
    UnexpectedError,
    from_client_error,
    normalize_error,
)

__all__ = [
    "ErrorCode",
    "FederationError",
    "MissingParameterError",
    "ConfigurationError",
    "InvalidURLError",
    "ProtocolParseError",
    "RoleNotFoundError",
    "CsrfMismatchError",
    "FederationTimeoutError",
    "AccessDeniedError",
    "RateLimitedError",
    "AuthorizationPendingError",
    "UpstreamError",
    "UnexpectedError",
    "from_client_error",
    "normalize_error",
]
