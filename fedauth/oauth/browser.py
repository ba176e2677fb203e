"""
Launching the system browser for interactive logins.
"""

import asyncio
import logging
import webbrowser

from ..types.errors import UnexpectedError
from ..util.validation import validate_url


logger = logging.getLogger(__name__)


async def open_browser(url: str) -> None:
    """Open ``url`` in the system browser after validating it."""
    validate_url(url)
    loop = asyncio.get_running_loop()
    opened = await loop.run_in_executor(None, webbrowser.open, url)
    if not opened:
        raise UnexpectedError(f"Unable to open a browser for {url.split('?')[0]}")
    logger.info(f"Opened browser at {url.split('?')[0]}")
