"""
HTTPS client used to talk to identity providers.

Every outbound URL is validated before a request is sent. Non-success
responses become UpstreamError carrying the status and body.
"""

import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..types.errors import ProtocolParseError, UpstreamError
from ..util.validation import validate_url


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
WIRE_LOGGERS = ('aiohttp.client', 'aiohttp.internal', 'botocore', 'urllib3')


def quiet_http_logging(verbose: bool = False) -> None:
    """
    Keep HTTP library wire logging out of the driver log.

    With ``verbose`` the libraries log at DEBUG again.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    for name in WIRE_LOGGERS:
        logging.getLogger(name).setLevel(level)


def create_session(
    ssl_insecure: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    follow_cookies: bool = True
) -> aiohttp.ClientSession:
    """
    Create a client session for identity-provider calls.

    Args:
        ssl_insecure: Skip certificate verification (test IdPs only)
        timeout: Total timeout per request in seconds
        follow_cookies: Keep cookies between requests of one login
    """
    if ssl_insecure:
        logger.warning("TLS certificate verification is disabled for identity provider calls")
    connector = aiohttp.TCPConnector(ssl=False if ssl_insecure else None)
    jar = aiohttp.CookieJar() if follow_cookies else aiohttp.DummyCookieJar()
    return aiohttp.ClientSession(
        connector=connector,
        cookie_jar=jar,
        timeout=aiohttp.ClientTimeout(total=timeout),
    )


async def request_text(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    **kwargs: Any
) -> str:
    """Send a request and return the body of a 200 response."""
    validate_url(url)
    logger.debug(f"{method} {url.split('?')[0]}")
    async with session.request(method, url, **kwargs) as response:
        body = await response.text()
        if response.status != 200:
            raise UpstreamError(
                f"Unexpected response from {url.split('?')[0]}: {response.status} {response.reason}",
                status=response.status,
                body=body
            )
        return body


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    **kwargs: Any
) -> Dict[str, Any]:
    """Send a request and parse the JSON body of a 200 response."""
    body = await request_text(session, method, url, **kwargs)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ProtocolParseError(f"Invalid JSON response: {e}", cause=e)
    if not isinstance(data, dict):
        raise ProtocolParseError("Expected a JSON object in response")
    return data


async def get_text(session: aiohttp.ClientSession, url: str,
                   headers: Optional[Dict[str, str]] = None) -> str:
    return await request_text(session, "GET", url, headers=headers)


async def post_form(session: aiohttp.ClientSession, url: str, data: Dict[str, str]) -> str:
    return await request_text(session, "POST", url, data=data)
