"""
HTTPS access to identity providers.
"""

from .client import (
    DEFAULT_TIMEOUT,
    create_session,
    get_text,
    post_form,
    quiet_http_logging,
    request_json,
    request_text,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "create_session",
    "get_text",
    "post_form",
    "quiet_http_logging",
    "request_json",
    "request_text",
]
