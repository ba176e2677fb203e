"""
IAM Identity Center (IdC) plugins.

Two ways to obtain an IdC access token are supported: the device
authorization grant, where the user approves a code shown in the browser,
and the authorization-code grant with PKCE, where the browser redirects
back to a local listener. The token is either returned as the bearer
credential or exchanged for role credentials.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .base import CredentialsPlugin, FederationPlugin, TokenPlugin
from ..aws.clients import call_aws
from ..common.utils import generate_id, generate_state, join_cache_key
from ..core.cache import RegisteredClient
from ..core.credentials import AwsCredentials, CredentialsHolder, TokenHolder, utc_now
from ..oauth.browser import open_browser
from ..oauth.listener import CallbackListener
from ..oauth.pkce import CHALLENGE_METHOD, generate_code_challenge, generate_code_verifier
from ..oauth.polling import poll_for_token
from ..types.errors import CsrfMismatchError, ProtocolParseError


logger = logging.getLogger(__name__)

CLIENT_TYPE = "public"
SCOPE = "redshift:connect"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
AUTHORIZATION_CODE_GRANT_TYPE = "authorization_code"
REFRESH_TOKEN_GRANT_TYPE = "refresh_token"

DEFAULT_CLIENT_DISPLAY_NAME = "Amazon Redshift driver"
DEFAULT_RESPONSE_TIMEOUT = 120
MIN_RESPONSE_TIMEOUT = 10
DEFAULT_LISTEN_PORT = 7890
DEFAULT_TOKEN_EXPIRES_IN = 900
ROLE_SESSION_PREFIX = "redshift-idc-"
DEFAULT_ROLE_DURATION = 3600


class IdcTokenFlow:
    """
    Token acquisition against the IdC OIDC service.

    Holds no state of its own beyond references to the owning plugin's
    parameters, service clients and registered-client cache.
    """

    def __init__(self, plugin: FederationPlugin):
        self.plugin = plugin
        self.params = plugin.params

    @property
    def logger(self) -> logging.Logger:
        return self.plugin.logger

    @property
    def region(self) -> str:
        return self.params.require("idc_region")

    @property
    def display_name(self) -> str:
        return self.params.get_str("idc_client_display_name", default=DEFAULT_CLIENT_DISPLAY_NAME)

    @property
    def response_timeout(self) -> int:
        value = self.params.get_int("idc_response_timeout", default=DEFAULT_RESPONSE_TIMEOUT)
        if value <= MIN_RESPONSE_TIMEOUT:
            self.logger.warning(
                f"idc_response_timeout must be greater than {MIN_RESPONSE_TIMEOUT}; "
                f"using {DEFAULT_RESPONSE_TIMEOUT}"
            )
            return DEFAULT_RESPONSE_TIMEOUT
        return value

    @property
    def listen_port(self) -> int:
        return self.params.get_int("listen_port", default=DEFAULT_LISTEN_PORT)

    async def register_client(self, oidc: Any, cache_key: Optional[str], **extra: Any) -> RegisteredClient:
        """Register a public OAuth client, reusing a cached registration."""
        cache = self.plugin.client_cache
        if cache_key is not None:
            cached = cache.get(cache_key)
            if cached is not None:
                self.logger.debug("Using cached registered client")
                return cached

        response = await call_aws(
            oidc, "register_client",
            clientName=self.display_name,
            clientType=CLIENT_TYPE,
            scopes=[SCOPE],
            **extra
        )
        client = RegisteredClient(
            client_id=response['clientId'],
            client_secret=response['clientSecret'],
            expires_at=datetime.fromtimestamp(response['clientSecretExpiresAt'], tz=timezone.utc),
        )
        if cache_key is not None:
            cache.put(cache_key, client)
        return client

    async def create_token(self, oidc: Any, interval: Optional[float] = None, **request: Any) -> TokenHolder:
        """Poll ``create_token`` until the user completes authorization."""
        async def attempt() -> Dict[str, Any]:
            return await call_aws(oidc, "create_token", **request)

        response = await poll_for_token(attempt, self.response_timeout, interval)
        token = response.get('accessToken')
        if not token:
            raise ProtocolParseError("IdC token response carried no access token")

        expires_in = response.get('expiresIn') or DEFAULT_TOKEN_EXPIRES_IN
        self.logger.info(f"Obtained IdC access token valid for {expires_in}s")
        return TokenHolder(
            token=token,
            expiration=utc_now() + timedelta(seconds=expires_in),
            token_type="ACCESS_TOKEN",
        )

    async def device_token(self) -> TokenHolder:
        """Device authorization grant."""
        start_url = self.params.require("start_url")
        region = self.region
        oidc = self.plugin.aws.sso_oidc(region)

        client = await self.register_client(oidc, f"{start_url}:{region}")
        authorization = await call_aws(
            oidc, "start_device_authorization",
            clientId=client.client_id,
            clientSecret=client.client_secret,
            startUrl=start_url,
        )
        self.logger.info(f"Verify the code {authorization.get('userCode')} in the browser to continue")
        await open_browser(authorization['verificationUriComplete'])

        return await self.create_token(
            oidc,
            interval=authorization.get('interval'),
            clientId=client.client_id,
            clientSecret=client.client_secret,
            grantType=DEVICE_GRANT_TYPE,
            deviceCode=authorization['deviceCode'],
        )

    async def authorization_code_token(self) -> TokenHolder:
        """Authorization-code grant with PKCE and a local redirect listener."""
        region = self.region
        oidc = self.plugin.aws.sso_oidc(region)
        state = generate_state()
        verifier = generate_code_verifier()

        def on_callback(params: Dict[str, str]) -> str:
            if params.get("state") != state:
                raise CsrfMismatchError(
                    "Incoming state does not match the outgoing state"
                )
            code = params.get("code")
            if not code:
                raise ProtocolParseError("No valid code found")
            return code

        listener = CallbackListener(on_callback, port=self.listen_port)
        try:
            await listener.start()
            redirect_uri = listener.redirect_uri

            extra: Dict[str, Any] = {
                'redirectUris': [redirect_uri],
                'grantTypes': [AUTHORIZATION_CODE_GRANT_TYPE, REFRESH_TOKEN_GRANT_TYPE],
            }
            issuer_url = self.params.get_str("issuer_url")
            if issuer_url:
                extra['issuerUrl'] = issuer_url
            # An ephemeral port changes the redirect URI, so the registration can't be reused.
            cache_key = f"{redirect_uri}:{region}:{self.listen_port}" if self.listen_port else None
            client = await self.register_client(oidc, cache_key, **extra)

            authorize_url = f"https://oidc.{region}.amazonaws.com/authorize?" + urlencode({
                'response_type': 'code',
                'client_id': client.client_id,
                'redirect_uri': redirect_uri,
                'scopes': SCOPE,
                'state': state,
                'code_challenge': generate_code_challenge(verifier),
                'code_challenge_method': CHALLENGE_METHOD,
            })
            await open_browser(authorize_url)
            code = await listener.wait(self.response_timeout)
        finally:
            await listener.stop()

        return await self.create_token(
            oidc,
            clientId=client.client_id,
            clientSecret=client.client_secret,
            grantType=AUTHORIZATION_CODE_GRANT_TYPE,
            code=code,
            codeVerifier=verifier,
            redirectUri=redirect_uri,
        )


class IdcDeviceAuthPlugin(TokenPlugin):
    """IdC access token through the device authorization grant."""

    plugin_name = "idc_device"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.flow = IdcTokenFlow(self)

    def get_plugin_specific_cache_key(self) -> str:
        return self.params.get_str("start_url", default="")

    async def _build(self) -> TokenHolder:
        return await self.flow.device_token()


class IdcBrowserAuthPlugin(TokenPlugin):
    """IdC access token through the authorization-code grant with PKCE."""

    plugin_name = "idc_browser"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.flow = IdcTokenFlow(self)

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("issuer_url"), self.params.get_str("idc_region"),
                              self.flow.listen_port)

    async def _build(self) -> TokenHolder:
        return await self.flow.authorization_code_token()


class IdcRoleCredentialsPlugin(CredentialsPlugin):
    """
    Cloud credentials from an IdC token.

    The token is exchanged for account role credentials, which then assume
    ``role_arn`` when configured. ``idc_flow`` selects ``browser`` (the
    default) or ``device`` token acquisition.
    """

    plugin_name = "idc_role"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.flow = IdcTokenFlow(self)

    def get_cache_key(self) -> str:
        return join_cache_key(
            self.params.get_str("idc_flow", default="browser"),
            self.params.get_str("start_url", default=""),
            self.params.get_str("issuer_url", default=""),
            self.params.get_str("idc_region", default=""),
            self.params.get_str("account_id", default=""),
            self.params.get_str("role_name", default=""),
            self.params.get_str("role_arn", default=""),
            self.duration,
        )

    async def _access_token(self) -> TokenHolder:
        if self.params.get_str("idc_flow", default="browser").lower() == "device":
            return await self.flow.device_token()
        return await self.flow.authorization_code_token()

    async def _build(self) -> CredentialsHolder:
        account_id = self.params.require("account_id")
        role_name = self.params.require("role_name")
        token = await self._access_token()

        sso = self.aws.sso(self.flow.region)
        response = await call_aws(
            sso, "get_role_credentials",
            roleName=role_name,
            accountId=account_id,
            accessToken=token.token,
        )
        role = response['roleCredentials']
        credentials = AwsCredentials(
            access_key_id=role['accessKeyId'],
            secret_access_key=role['secretAccessKey'],
            session_token=role.get('sessionToken'),
        )
        expiration = datetime.fromtimestamp(role['expiration'] / 1000, tz=timezone.utc)
        self.logger.info(f"Obtained role credentials for {role_name} in account {account_id}")

        role_arn = self.params.get_str("role_arn")
        if not role_arn:
            return CredentialsHolder(credentials=credentials, expiration=expiration)

        sts = self.aws.sts(credentials=credentials)
        assumed = await call_aws(
            sts, "assume_role",
            RoleArn=role_arn,
            RoleSessionName=generate_id(ROLE_SESSION_PREFIX),
            DurationSeconds=self.duration if self.duration > 0 else DEFAULT_ROLE_DURATION,
        )
        return CredentialsHolder(
            credentials=AwsCredentials.from_response(assumed['Credentials']),
            expiration=assumed['Credentials']['Expiration'],
        )
