"""
Utility functions for fedauth: encoding, URL validation and HTML form scraping.
"""

from .encoding import base64_decode, url_safe_encode, unescape_html
from .validation import is_valid_https_url, validate_url, validate_timeout
from .html import (
    get_input_tags,
    get_value_by_key,
    get_form_action,
    resolve_form_action,
    extract_saml_response,
    input_fields,
)

__all__ = [
    "base64_decode",
    "url_safe_encode",
    "unescape_html",
    "is_valid_https_url",
    "validate_url",
    "validate_timeout",
    "get_input_tags",
    "get_value_by_key",
    "get_form_action",
    "resolve_form_action",
    "extract_saml_response",
    "input_fields",
]
