"""
Browser-redirect SAML acquirer.

The user signs in through the system browser; the identity provider posts
the assertion back to a listener on the loopback interface.
"""

from typing import Dict

from .saml import SamlCredentialsPlugin
from ..oauth.browser import open_browser
from ..oauth.listener import CallbackListener
from ..types.errors import ProtocolParseError
from ..util.validation import validate_url


DEFAULT_LISTEN_PORT = 7890
DEFAULT_RESPONSE_TIMEOUT = 120
SAML_RESPONSE_FIELD = "SAMLResponse"


class BrowserSamlCredentialsPlugin(SamlCredentialsPlugin):
    """SAML plugin that waits for the browser to deliver the assertion."""

    plugin_name = "browser_saml"

    @property
    def login_url(self) -> str:
        return validate_url(self.params.require("login_url"))

    @property
    def listen_port(self) -> int:
        return self.params.get_int("listen_port", default=DEFAULT_LISTEN_PORT)

    def get_plugin_specific_cache_key(self) -> str:
        return self.params.get_str("login_url", default="")

    async def get_saml_assertion(self) -> str:
        login_url = self.login_url
        timeout = self.response_timeout("idp_response_timeout", DEFAULT_RESPONSE_TIMEOUT)

        listener = CallbackListener(self._on_callback, port=self.listen_port)
        try:
            await listener.start()
            self.logger.info(f"Listening for SAML response on port {listener.port}")
            await open_browser(login_url)
            return await listener.wait(timeout)
        finally:
            await listener.stop()

    @staticmethod
    def _on_callback(params: Dict[str, str]) -> str:
        assertion = params.get(SAML_RESPONSE_FIELD)
        if not assertion:
            raise ProtocolParseError("No SAMLResponse in identity provider callback")
        return assertion
