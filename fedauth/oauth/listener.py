"""
Local HTTP listener that receives identity-provider redirects.

The listener binds the loopback interface, serves one redirect path and
resolves with the outcome of the first request that reaches that path.
The caller waits for the outcome with a deadline and always stops the
listener afterwards.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from aiohttp import web

from ..types.errors import FederationTimeoutError, normalize_error


logger = logging.getLogger(__name__)

REDIRECT_PATH = "/redshift/"
LOOPBACK_HOST = "127.0.0.1"

SUCCESS_PAGE = (
    "<html><body><p>Thank you for using the driver. "
    "You can now close this window.</p></body></html>"
)
FAILURE_PAGE = (
    "<html><body><p>Login failed. "
    "Return to the application for details.</p></body></html>"
)

CallbackHandler = Callable[[Dict[str, str]], Any]


class CallbackListener:
    """
    One-shot redirect listener.

    ``handler`` receives the merged query and form parameters of the first
    request and either returns the result or raises; either outcome is
    delivered to ``wait``.
    """

    def __init__(
        self,
        handler: CallbackHandler,
        port: int = 0,
        path: str = REDIRECT_PATH,
        host: str = LOOPBACK_HOST
    ):
        self.handler = handler
        self.host = host
        self.path = path
        self._requested_port = port
        self._port: Optional[int] = None
        self._runner: Optional[web.AppRunner] = None
        self._result: Optional[asyncio.Future] = None

    @property
    def port(self) -> int:
        if self._port is None:
            raise RuntimeError("Listener is not started")
        return self._port

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"

    async def start(self) -> int:
        """Bind the listener and return the port actually used."""
        self._result = asyncio.get_running_loop().create_future()

        app = web.Application()
        app.router.add_route("*", self.path, self._handle)
        if self.path.endswith("/"):
            app.router.add_route("*", self.path.rstrip("/"), self._handle)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self._requested_port)
        await site.start()

        self._port = self._runner.addresses[0][1]
        logger.debug(f"Listening for connection on port {self._port}")
        return self._port

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("Listener stopped")
        if self._result is not None and not self._result.done():
            self._result.cancel()

    async def wait(self, timeout: float) -> Any:
        """Wait up to ``timeout`` seconds for the callback outcome."""
        if self._result is None:
            raise RuntimeError("Listener is not started")
        try:
            return await asyncio.wait_for(asyncio.shield(self._result), timeout)
        except asyncio.TimeoutError:
            raise FederationTimeoutError("Fail to login during timeout.", timeout=timeout)

    async def _handle(self, request: web.Request) -> web.Response:
        if self._result is None or self._result.done():
            return web.Response(status=410, text="Request already processed")

        params: Dict[str, str] = dict(request.query)
        if request.method == "POST":
            form = await request.post()
            params.update({k: v for k, v in form.items() if isinstance(v, str)})
        elif request.method != "GET":
            return web.Response(status=405)

        try:
            outcome = self.handler(params)
        except Exception as e:
            error = normalize_error(e)
            logger.debug(f"Callback rejected: {error}")
            if not self._result.done():
                self._result.set_exception(error)
            return web.Response(status=400, text=FAILURE_PAGE, content_type="text/html")

        if not self._result.done():
            self._result.set_result(outcome)
        return web.Response(text=SUCCESS_PAGE, content_type="text/html")

    async def __aenter__(self) -> "CallbackListener":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
