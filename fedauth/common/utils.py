"""
Common utilities and helper functions for fedauth.
"""

import hashlib
import secrets
import uuid
from typing import Any, Dict, List, Optional


def generate_id(prefix: str = "") -> str:
    """Generate a unique identifier with optional prefix."""
    unique_id = str(uuid.uuid4())
    return f"{prefix}{unique_id}" if prefix else unique_id


def generate_state(length: int = 32) -> str:
    """Generate a random CSRF state token."""
    return secrets.token_urlsafe(length)


def sanitize_dict(data: Dict[str, Any], sensitive_keys: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Sanitize a dictionary by masking sensitive values.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: List of keys to mask (default: common sensitive keys)

    Returns:
        Sanitized dictionary
    """
    if sensitive_keys is None:
        sensitive_keys = [
            'password', 'pwd', 'secret', 'token', 'assertion', 'credential',
            'access_token', 'client_secret'
        ]

    sanitized = {}
    for key, value in data.items():
        lower_key = key.lower()
        if any(sensitive in lower_key for sensitive in sensitive_keys):
            sanitized[key] = '***'
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        else:
            sanitized[key] = value

    return sanitized


def is_sensitive_key(key: str) -> bool:
    return key.lower() in ('password', 'pwd', 'saml_assertion', 'web_identity_token', 'token',
                           'secret_access_key', 'session_token')


def fingerprint(value: Optional[str], length: int = 16) -> str:
    """Short SHA-256 digest of a secret, safe to use in cache keys."""
    if not value:
        return ""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


CACHE_KEY_SEPARATOR = "|"


def join_cache_key(*parts: Any) -> str:
    """
    Join configuration values into one cache key.

    Parts are separated by ``|``; backslashes and separators inside a
    part are escaped, so different part lists never give the same key.
    None becomes an empty part.
    """
    escaped = []
    for part in parts:
        text = "" if part is None else str(part)
        escaped.append(text.replace("\\", "\\\\").replace(CACHE_KEY_SEPARATOR, "\\" + CACHE_KEY_SEPARATOR))
    return CACHE_KEY_SEPARATOR.join(escaped)
