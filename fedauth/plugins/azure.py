"""
Azure AD plugins.

Azure AD either issues a JWT for native authentication or, when asked for
the SAML 2.0 token type, a bare assertion. Bare assertions are wrapped in
a SAML response before the role is assumed.

Browser plugins receive the authorization code on the local listener
(``response_mode=form_post``) and exchange it at the token endpoint.
"""

import base64
import json
from typing import Dict, Tuple
from urllib.parse import urlencode

from .base import FederationPlugin, TokenPlugin
from .saml import SamlCredentialsPlugin
from .web_identity import token_expiration
from ..common.utils import fingerprint, generate_state, join_cache_key
from ..core.credentials import TokenHolder
from ..http.client import create_session, request_json
from ..oauth.browser import open_browser
from ..oauth.listener import REDIRECT_PATH, CallbackListener
from ..types.errors import AccessDeniedError, CsrfMismatchError, ProtocolParseError, UpstreamError
from ..util.encoding import base64_decode


MICROSOFT_IDP_HOST = "login.microsoftonline.com"
DEFAULT_RESPONSE_TIMEOUT = 120
JWT_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:jwt"
SAML2_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:saml2"

SAML_RESPONSE_TEMPLATE = (
    '<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol">'
    '<samlp:Status><samlp:StatusCode Value="urn:oasis:names:tc:SAML:2.0:status:Success"/>'
    '</samlp:Status>{assertion}</samlp:Response>'
)


def wrap_saml_assertion(encoded: str) -> str:
    """Wrap a base64 assertion issued by Azure AD in a SAML response, base64 encoded."""
    assertion = base64_decode(encoded).decode("utf-8")
    response = SAML_RESPONSE_TEMPLATE.format(assertion=assertion)
    return base64.b64encode(response.encode("utf-8")).decode("ascii")


def azure_error_message(error: UpstreamError) -> str:
    """Describe a failed token request from the ``error`` fields Azure AD returns."""
    try:
        data = json.loads(error.body or "")
    except json.JSONDecodeError:
        data = None
    if not isinstance(data, dict) or not data.get("error_description"):
        return ("Authentication failed on the Azure server. Please check the tenant, "
                "user, password, client secret, and client id.")
    description = " ".join(str(data["error_description"]).split())
    if data.get("error"):
        return f"{data['error']}: {description}"
    return f"Unexpected response: {description}"


async def authorize_in_browser(
    plugin: FederationPlugin,
    tenant: str,
    client_id: str,
    authorize_path: str,
    scope: str
) -> Tuple[str, str]:
    """
    Run the browser leg of the authorization-code grant.

    Returns the authorization code and the redirect URI it was issued for.
    """
    timeout = plugin.response_timeout("idp_response_timeout", DEFAULT_RESPONSE_TIMEOUT)
    state = generate_state()

    def on_callback(params: Dict[str, str]) -> str:
        incoming = params.get("state")
        if incoming != state:
            raise CsrfMismatchError(
                f"Incoming state {incoming} does not match the outgoing state {state}"
            )
        code = params.get("code")
        if not code:
            raise ProtocolParseError("No valid code found")
        return code

    listener = CallbackListener(on_callback, port=plugin.params.get_int("listen_port", default=0))
    try:
        await listener.start()
        redirect_uri = f"http://localhost:{listener.port}{REDIRECT_PATH}"
        plugin.logger.info(f"Listening for connection on port {listener.port}")

        authorize_url = (f"https://{MICROSOFT_IDP_HOST}/{tenant}/{authorize_path}?"
                         + urlencode({
                             'scope': scope,
                             'response_type': 'code',
                             'response_mode': 'form_post',
                             'client_id': client_id,
                             'redirect_uri': redirect_uri,
                             'state': state,
                         }))
        await open_browser(authorize_url)
        code = await listener.wait(timeout)
    finally:
        await listener.stop()
    return code, redirect_uri


async def fetch_access_token(plugin: FederationPlugin, url: str, form: Dict[str, str]) -> str:
    """POST ``form`` to an Azure AD token endpoint and return its ``access_token``."""
    async with create_session(ssl_insecure=plugin.params.get_bool("ssl_insecure")) as session:
        data = await request_json(session, "POST", url, data=form,
                                  headers={'Accept': 'application/json'})

    token = data.get('access_token')
    if not token:
        raise ProtocolParseError("Failed to find access_token")
    return token


class BrowserAzureOAuth2Plugin(TokenPlugin):
    """JWT from Azure AD through the authorization-code grant."""

    plugin_name = "browser_azure_oauth2"

    @property
    def tenant(self) -> str:
        return self.params.require("idp_tenant")

    @property
    def client_id(self) -> str:
        return self.params.require("client_id")

    @property
    def scope(self) -> str:
        return f"openid {self.params.get_str('scope', default='')}".strip()

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("idp_tenant"), self.params.get_str("client_id"))

    async def _build(self) -> TokenHolder:
        tenant = self.tenant
        client_id = self.client_id
        code, redirect_uri = await authorize_in_browser(
            self, tenant, client_id, "oauth2/v2.0/authorize", self.scope
        )

        token = await self._exchange_code(tenant, client_id, code, redirect_uri)
        self.logger.debug(f"Got authorization token of length={len(token)}")
        return TokenHolder(token=token, expiration=token_expiration(token), token_type="EXT_JWT")

    async def _exchange_code(self, tenant: str, client_id: str, code: str, redirect_uri: str) -> str:
        url = f"https://{MICROSOFT_IDP_HOST}/{tenant}/oauth2/v2.0/token"
        form = {
            'grant_type': 'authorization_code',
            'code': code,
            'client_id': client_id,
            'scope': self.scope,
            'redirect_uri': redirect_uri,
            'requested_token_type': JWT_TOKEN_TYPE,
        }
        return await fetch_access_token(self, url, form)


class BrowserAzureCredentialsPlugin(SamlCredentialsPlugin):
    """SAML assertion from Azure AD through the authorization-code grant."""

    plugin_name = "browser_azure"

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("idp_tenant"), self.params.get_str("client_id"))

    async def get_saml_assertion(self) -> str:
        tenant = self.params.require("idp_tenant")
        client_id = self.params.require("client_id")
        code, redirect_uri = await authorize_in_browser(self, tenant, client_id, "oauth2/authorize", "openid")

        form = {
            'code': code,
            'requested_token_type': SAML2_TOKEN_TYPE,
            'grant_type': 'authorization_code',
            'scope': 'openid',
            'resource': client_id,
            'client_id': client_id,
            'redirect_uri': redirect_uri,
        }
        token = await fetch_access_token(self, f"https://{MICROSOFT_IDP_HOST}/{tenant}/oauth2/token", form)
        self.logger.debug("Successfully got SAML assertion")
        return wrap_saml_assertion(token)


class AzureCredentialsPlugin(SamlCredentialsPlugin):
    """
    SAML assertion from Azure AD through the resource-owner password grant.

    The user's password and the application's client secret are sent to
    the tenant's token endpoint; no browser is involved.
    """

    plugin_name = "azure"

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(
            self.params.get_str("idp_tenant"),
            self.params.get_str("client_id"),
            fingerprint(self.params.get_str("client_secret")),
        )

    async def get_saml_assertion(self) -> str:
        tenant = self.params.require("idp_tenant")
        user = self.params.require("user", "uid")
        password = self.params.require("password", "pwd")
        client_secret = self.params.require("client_secret")
        client_id = self.params.require("client_id")

        form = {
            'grant_type': 'password',
            'requested_token_type': SAML2_TOKEN_TYPE,
            'username': user,
            'password': password,
            'client_secret': client_secret,
            'client_id': client_id,
            'resource': client_id,
        }
        url = f"https://{MICROSOFT_IDP_HOST}/{tenant}/oauth2/token"
        try:
            token = await fetch_access_token(self, url, form)
        except UpstreamError as e:
            if e.status in (400, 401):
                raise AccessDeniedError(azure_error_message(e), cause=e) from e
            raise
        return wrap_saml_assertion(token)
