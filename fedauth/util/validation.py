"""
Validation utilities for fedauth.
Outbound identity-provider URLs are checked here before any request is sent.
"""

import re
from typing import Optional

from ..types.errors import ConfigurationError, InvalidURLError


URL_ALLOWLIST = re.compile(
    r"^(https)://[-a-zA-Z0-9+&@#/%?=~_!:,.']*[-a-zA-Z0-9+&@#/%=~_']"
)


def is_valid_https_url(url: Optional[str]) -> bool:
    """Check a URL against the HTTPS character allowlist."""
    if not url or not isinstance(url, str):
        return False
    return URL_ALLOWLIST.fullmatch(url) is not None


def validate_url(url: Optional[str]) -> str:
    """Return ``url`` unchanged or raise InvalidURLError."""
    if not is_valid_https_url(url):
        raise InvalidURLError(str(url))
    return url


def validate_timeout(value: int, minimum: int, name: str) -> int:
    """Check a response timeout against its lower bound."""
    if value < minimum:
        raise ConfigurationError(
            f"{name} should be {minimum} seconds or greater.",
            config_key=name,
            config_value=value
        )
    return value
