"""
HTML scraping helpers for identity-provider login pages.

Login forms are reconstructed from their ``<input>`` tags and resubmitted,
so only the handful of patterns those pages need is supported.
"""

import re
from typing import Dict, List, Optional

from .encoding import unescape_html


INPUT_TAG = re.compile(r"<input(.+?)/>", re.IGNORECASE | re.DOTALL)
FORM_ACTION = re.compile(r'<form.*?action="([^"]+)"', re.IGNORECASE | re.DOTALL)
SAML_RESPONSE = re.compile(r'SAMLResponse\W+value="([^"]+)"')


def get_input_tags(body: str) -> List[str]:
    """
    Get every ``<input .../>`` tag in ``body``.

    Tags are deduplicated by lower-cased ``name``; the first occurrence
    wins. Tags without a name are kept.
    """
    tags: List[str] = []
    seen = set()
    for match in INPUT_TAG.finditer(body):
        tag = match.group(0)
        name = get_value_by_key(tag, "name")
        if name:
            lowered = name.lower()
            if lowered in seen:
                continue
            seen.add(lowered)
        tags.append(tag)
    return tags


def get_value_by_key(tag: str, key: str) -> str:
    """Get an attribute value from a tag, unescaping entities."""
    match = re.search(rf'({re.escape(key)})\s*=\s*"(.*?)"', tag, re.IGNORECASE)
    if match is None and key.lower() == "type":
        match = re.search(rf"({re.escape(key)})\s*=\s*'(.*?)'", tag, re.IGNORECASE)
    if match is None:
        return ""
    return unescape_html(match.group(2))


def get_form_action(body: str) -> Optional[str]:
    match = FORM_ACTION.search(body)
    if match is None:
        return None
    return unescape_html(match.group(1))


def resolve_form_action(action: Optional[str], host: str, port: int, fallback: str) -> str:
    """Resolve a form action to an absolute URL."""
    if not action:
        return fallback
    if action.startswith("/"):
        return f"https://{host}:{port}{action}"
    return action


def extract_saml_response(body: str) -> Optional[str]:
    """Extract the SAMLResponse input value from an HTML body."""
    match = SAML_RESPONSE.search(body)
    if match is None:
        return None
    return unescape_html(match.group(1))


def input_fields(body: str) -> Dict[str, str]:
    """Map input names to their current values."""
    fields: Dict[str, str] = {}
    for tag in get_input_tags(body):
        name = get_value_by_key(tag, "name")
        if name:
            fields[name] = get_value_by_key(tag, "value")
    return fields
