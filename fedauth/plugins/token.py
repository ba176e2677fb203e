"""
Identity-provider token plugins.

``idp_token`` passes a configured token through; ``idp_token_url`` fetches
one from a token broker endpoint.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from .base import DEFAULT_TOKEN_LIFETIME, TokenPlugin
from ..common.utils import fingerprint, join_cache_key
from ..core.credentials import TokenHolder, utc_now
from ..http.client import create_session, get_text
from ..types.errors import ProtocolParseError
from ..util.validation import validate_url


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ATTRIBUTE = "access_token"


def find_value(data: Any, key: str) -> Any:
    """Depth-first search of nested JSON objects and arrays for ``key``."""
    if isinstance(data, dict):
        if key in data:
            return data[key]
        children = data.values()
    elif isinstance(data, list):
        children = data
    else:
        return None
    for child in children:
        value = find_value(child, key)
        if value is not None:
            return value
    return None


def parse_token_response(
    body: str,
    token_type: str,
    attribute: str = DEFAULT_TOKEN_ATTRIBUTE,
    now: Optional[datetime] = None
) -> TokenHolder:
    """
    Build a holder from a token endpoint response.

    A JSON object carries the token under ``attribute`` and optionally its
    lifetime in ``expires_in``. Any other body is the token itself.
    """
    now = now or utc_now()
    body = (body or "").strip()
    if body.endswith("%"):
        body = body[:-1].strip()
    if not body:
        raise ProtocolParseError("Empty response body from token endpoint")

    if not body.startswith("{"):
        return TokenHolder(token=body, expiration=now + DEFAULT_TOKEN_LIFETIME, token_type=token_type)

    try:
        data: Dict[str, Any] = json.loads(body)
    except json.JSONDecodeError as e:
        raise ProtocolParseError("Unable to parse JSON from token endpoint response", cause=e)

    token = find_value(data, attribute)
    if token is None or str(token) == "":
        raise ProtocolParseError(f"JSON attribute '{attribute}' not found or empty in token endpoint response")

    expires_in = find_value(data, "expires_in")
    try:
        seconds = int(expires_in) if expires_in is not None else 0
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric expires_in {expires_in!r}")
        seconds = 0
    lifetime = timedelta(seconds=seconds) if seconds > 0 else DEFAULT_TOKEN_LIFETIME
    return TokenHolder(token=str(token), expiration=now + lifetime, token_type=token_type)


class IdpTokenAuthPlugin(TokenPlugin):
    """Passes a configured token and its type straight through."""

    plugin_name = "idp_token"

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("token_type"), fingerprint(self.params.get_str("token")))

    async def _build(self) -> TokenHolder:
        token = self.params.require("token")
        token_type = self.params.require("token_type")
        return TokenHolder(
            token=token,
            expiration=utc_now() + DEFAULT_TOKEN_LIFETIME,
            token_type=token_type,
        )


class IdpTokenUrlAuthPlugin(TokenPlugin):
    """Fetches a token with a GET to ``token_url``, optionally sending a bearer token."""

    plugin_name = "idp_token_url"

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(
            self.params.get_str("token_url"),
            self.params.get_str("token_type"),
            self.params.get_str("token_attribute"),
            fingerprint(self.params.get_str("bearer_token")),
        )

    async def _build(self) -> TokenHolder:
        token_url = validate_url(self.params.require("token_url"))
        token_type = self.params.require("token_type")
        attribute = self.params.get_str("token_attribute") or DEFAULT_TOKEN_ATTRIBUTE

        headers = {}
        bearer_token = self.params.get_str("bearer_token")
        if bearer_token:
            headers['Authorization'] = f"Bearer {bearer_token}"

        async with create_session(ssl_insecure=self.params.get_bool("ssl_insecure")) as session:
            body = await get_text(session, token_url, headers=headers)

        holder = parse_token_response(body, token_type, attribute)
        self.logger.debug(f"Got token of length={len(holder.token)} from token endpoint")
        return holder
