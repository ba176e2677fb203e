"""
Encoding and decoding utilities for fedauth.
"""

import base64
import binascii
from typing import Union

from ..types.errors import ProtocolParseError


def base64_decode(encoded: str) -> bytes:
    """Decode standard or URL-safe base64, tolerating whitespace and missing padding."""
    cleaned = "".join(encoded.split()).replace("-", "+").replace("_", "/")
    padding = -len(cleaned) % 4
    try:
        return base64.b64decode(cleaned + "=" * padding)
    except (binascii.Error, ValueError) as e:
        raise ProtocolParseError(f"Invalid base64 data: {e}", cause=e)


def url_safe_encode(data: Union[str, bytes]) -> str:
    """Encode data to URL-safe base64 string without padding."""
    if isinstance(data, str):
        data = data.encode('utf-8')

    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


_HTML_ENTITIES = (
    ('&amp;', '&'),
    ('&apos;', "'"),
    ('&quot;', '"'),
    ('&lt;', '<'),
    ('&gt;', '>'),
)


def unescape_html(text: str) -> str:
    """Replace the five predefined XML entities."""
    if not text:
        return text

    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)
    return text
