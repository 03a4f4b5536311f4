"""
Local listener for the provider redirect during CLI login
"""
import asyncio
import logging
from typing import Optional

from aiohttp import web

from oauth.constants import CALLBACK_PATH
from settings import CALLBACK_PORT, CALLBACK_TIMEOUT

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """
<html>
    <body>
        <h1>Sign-in received</h1>
        <p>You can now close this window and return to the terminal.</p>
        <script>
            setTimeout(function() {
                window.close();
            }, 2000);
        </script>
    </body>
</html>
"""

FAILURE_PAGE = """
<html>
    <body>
        <h1>Authentication Failed</h1>
        <p>Error: {error}</p>
        <p>You can close this window.</p>
    </body>
</html>
"""


class CallbackListener:
    """Captures the first callback URL hitting /auth/callback

    Validation of code and state is left to the CallbackCoordinator; this
    only records what the browser was redirected to.
    """

    def __init__(self, host: str = "localhost", port: int = CALLBACK_PORT):
        self.host = host
        self.port = port
        self.callback_url: Optional[str] = None
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._event = asyncio.Event()

        self.app.router.add_get(CALLBACK_PATH, self._handle_callback)

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}{CALLBACK_PATH}"

    async def _handle_callback(self, request: web.Request) -> web.Response:
        if self.callback_url is None:
            self.callback_url = str(request.url)
            self._event.set()

        error = request.query.get("error")
        if error:
            logger.warning(f"Provider returned error on callback: {error}")
            return web.Response(
                text=FAILURE_PAGE.format(error=error),
                content_type="text/html",
                status=400,
            )

        return web.Response(text=SUCCESS_PAGE, content_type="text/html")

    async def start(self) -> None:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.host, port=self.port)
        await site.start()
        logger.info(f"Callback listener on {self.redirect_uri}")

    async def wait_for_callback(self, timeout: float = CALLBACK_TIMEOUT) -> Optional[str]:
        """
        Wait for the browser redirect.

        Returns:
            The full callback URL, or None on timeout
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
            return self.callback_url
        except asyncio.TimeoutError:
            logger.warning(f"No callback received after {timeout} seconds")
            return None

    async def stop(self) -> None:
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
