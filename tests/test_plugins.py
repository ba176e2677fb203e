"""
Tests for the JWT, token, role chain, IdC and Azure plugins and the registry.
"""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import aiohttp
import jwt
import pytest
from botocore.exceptions import ClientError

from conftest import sts_response
from fedauth.core.credentials import AwsCredentials
from fedauth.oauth.listener import CallbackListener
from fedauth.plugins import (
    PLUGINS,
    BasicJwtPlugin,
    BasicSamlCredentialsPlugin,
    BrowserAzureOAuth2Plugin,
    IdcBrowserAuthPlugin,
    IdcDeviceAuthPlugin,
    IdcRoleCredentialsPlugin,
    IdpTokenAuthPlugin,
    IdpTokenUrlAuthPlugin,
    RoleChainCredentialsPlugin,
    WebIdentityCredentialsPlugin,
    create_plugin,
    create_plugin_from_config,
    resolve_plugin_class,
)
from fedauth.types.errors import (
    AccessDeniedError,
    ConfigurationError,
    CsrfMismatchError,
    InvalidURLError,
    MissingParameterError,
    ProtocolParseError,
)


def make_jwt(claims):
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def pending():
    return ClientError(
        {'Error': {'Code': 'AuthorizationPendingException', 'Message': 'pending'}},
        "CreateToken",
    )


class RecordingListener(CallbackListener):
    """Listener that remembers every instance, so tests can reach its port."""

    created = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        RecordingListener.created.append(self)


@pytest.fixture(autouse=True)
def reset_listeners():
    RecordingListener.created = []
    yield


class TestRoleChainPlugin:
    """Test chained role assumption."""

    @pytest.mark.asyncio
    async def test_each_hop_signs_with_previous_credentials(self, fake_aws, cache):
        fake_aws.sts_client.assume_role.side_effect = [
            sts_response("K1", "S1", "T1"),
            sts_response("K2", "S2", "T2"),
        ]
        plugin = RoleChainCredentialsPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("role_arn", "arn:aws:iam::1:role/first, arn:aws:iam::2:role/second")

        holder = await plugin.get_credentials()

        assert holder.credentials == AwsCredentials("K2", "S2", "T2")
        assert fake_aws.sts_requests[0]['credentials'] is None
        assert fake_aws.sts_requests[1]['credentials'] == AwsCredentials("K1", "S1", "T1")
        calls = fake_aws.sts_client.assume_role.call_args_list
        assert [c.kwargs['RoleArn'] for c in calls] == ["arn:aws:iam::1:role/first", "arn:aws:iam::2:role/second"]
        assert all(c.kwargs['RoleSessionName'] == "assumeRoleIamAuthJDBC" for c in calls)

    @pytest.mark.asyncio
    async def test_configured_source_keys(self, fake_aws, cache):
        fake_aws.sts_client.assume_role.return_value = sts_response()
        plugin = RoleChainCredentialsPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("role_arn", "arn:aws:iam::1:role/first")
        plugin.add_parameter("access_key_id", "AKIA")
        plugin.add_parameter("secret_access_key", "shh")
        plugin.add_parameter("session_name", "etl")
        plugin.add_parameter("duration", "900")

        await plugin.get_credentials()

        assert fake_aws.sts_requests[0]['credentials'] == AwsCredentials("AKIA", "shh")
        assert fake_aws.sts_client.assume_role.call_args.kwargs == {
            'RoleArn': "arn:aws:iam::1:role/first",
            'RoleSessionName': "etl",
            'DurationSeconds': 900,
        }
        assert plugin.get_cache_key() == "AssumeRole|arn:aws:iam::1:role/first|etl|AKIA"

    def test_adjacent_fields_do_not_merge_in_key(self, cache):
        """Test shifting characters between role and session name changes the key."""
        first = RoleChainCredentialsPlugin(cache=cache)
        first.add_parameter("role_arn", "arn:aws:iam::1:role/a")
        first.add_parameter("session_name", "bc")
        second = RoleChainCredentialsPlugin(cache=cache)
        second.add_parameter("role_arn", "arn:aws:iam::1:role/ab")
        second.add_parameter("session_name", "c")

        assert first.get_cache_key() != second.get_cache_key()

    @pytest.mark.asyncio
    async def test_requires_roles(self, fake_aws, cache):
        with pytest.raises(MissingParameterError):
            await RoleChainCredentialsPlugin(cache=cache, aws=fake_aws).get_credentials()

    @pytest.mark.asyncio
    async def test_denied_hop(self, fake_aws, cache):
        """Test a refused hop aborts the chain with AccessDenied."""
        fake_aws.sts_client.assume_role.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'not allowed'}}, "AssumeRole"
        )
        plugin = RoleChainCredentialsPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("role_arn", "arn:aws:iam::1:role/first,arn:aws:iam::2:role/second")

        with pytest.raises(AccessDeniedError):
            await plugin.get_credentials()
        assert fake_aws.sts_client.assume_role.call_count == 1


class TestJwtPlugins:
    """Test the web identity and basic JWT plugins."""

    @pytest.mark.asyncio
    async def test_web_identity(self, fake_aws, cache):
        fake_aws.sts_client.assume_role_with_web_identity.return_value = sts_response()
        token = make_jwt({'sub': 'u1', 'preferred_username': 'alice'})
        plugin = WebIdentityCredentialsPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("role_arn", "arn:aws:iam::1:role/web")
        plugin.add_parameter("web_identity_token", token)
        plugin.add_parameter("db_user_claim", "preferred_username")

        holder = await plugin.get_credentials()

        assert holder.credentials.access_key_id == "K"
        assert holder.metadata.db_user == "alice"
        assert fake_aws.sts_client.assume_role_with_web_identity.call_args.kwargs == {
            'RoleArn': "arn:aws:iam::1:role/web",
            'RoleSessionName': "jwt_redshift_session",
            'WebIdentityToken': token,
        }
        assert fake_aws.sts_requests[0]['unsigned'] is True
        assert token not in plugin.get_cache_key()

    @pytest.mark.asyncio
    async def test_web_identity_requires_role(self, fake_aws, cache):
        plugin = WebIdentityCredentialsPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("web_identity_token", make_jwt({'sub': 'u1'}))
        with pytest.raises(MissingParameterError):
            await plugin.get_credentials()

    @pytest.mark.asyncio
    async def test_basic_jwt_uses_exp_claim(self, fake_aws, cache):
        exp = int(time.time()) + 600
        token = make_jwt({'sub': 'u1', 'exp': exp})
        plugin = BasicJwtPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("providerName", "okta-idp")
        plugin.add_parameter("web_identity_token", token)

        holder = await plugin.get_auth_token()

        assert holder.token == token
        assert holder.token_type == "EXT_JWT"
        assert holder.expiration == datetime.fromtimestamp(exp, tz=timezone.utc)

    @pytest.mark.asyncio
    async def test_basic_jwt_requires_provider(self, fake_aws, cache):
        plugin = BasicJwtPlugin(cache=cache, aws=fake_aws)
        plugin.add_parameter("web_identity_token", make_jwt({'sub': 'u1'}))
        with pytest.raises(MissingParameterError):
            await plugin.get_auth_token()


class TestIdpTokenPlugin:
    """Test the static token plugin."""

    @pytest.mark.asyncio
    async def test_passthrough(self, cache):
        plugin = IdpTokenAuthPlugin(cache=cache)
        plugin.add_parameter("token", "opaque")
        plugin.add_parameter("token_type", "ACCESS_TOKEN")

        before = datetime.now(timezone.utc)
        holder = await plugin.get_auth_token()

        assert holder.token == "opaque"
        assert holder.token_type == "ACCESS_TOKEN"
        assert before + timedelta(minutes=14) < holder.expiration <= datetime.now(timezone.utc) + timedelta(minutes=15)
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_cache_enabled_explicitly(self, cache):
        """Test token plugins cache only when asked to."""
        plugin = IdpTokenAuthPlugin(cache=cache)
        plugin.add_parameter("token", "opaque")
        plugin.add_parameter("token_type", "ACCESS_TOKEN")
        plugin.add_parameter("IAMDisableCache", "false")

        await plugin.get_auth_token()
        holder = await plugin.get_auth_token()

        assert holder.refresh is False
        assert len(cache) == 1


class TestIdpTokenUrlPlugin:
    """Test the token broker endpoint plugin."""

    def plugin(self, cache, **params):
        plugin = IdpTokenUrlAuthPlugin(cache=cache)
        plugin.add_parameter("token_url", "https://broker.example.com/token")
        plugin.add_parameter("token_type", "ACCESS_TOKEN")
        for key, value in params.items():
            plugin.add_parameter(key, value)
        return plugin

    @pytest.mark.asyncio
    async def test_json_response(self, cache):
        plugin = self.plugin(cache, bearer_token="broker-secret")
        body = '{"access_token": "idc-token", "expires_in": 600}'
        with patch("fedauth.plugins.token.get_text", AsyncMock(return_value=body)) as get_text:
            holder = await plugin.get_auth_token()

        assert holder.token == "idc-token"
        assert holder.token_type == "ACCESS_TOKEN"
        assert holder.expiration <= datetime.now(timezone.utc) + timedelta(seconds=600)
        assert holder.expiration > datetime.now(timezone.utc) + timedelta(seconds=590)
        assert get_text.call_args.args[1] == "https://broker.example.com/token"
        assert get_text.call_args.kwargs['headers'] == {'Authorization': 'Bearer broker-secret'}
        assert "broker-secret" not in plugin.get_cache_key()

    @pytest.mark.asyncio
    async def test_nested_custom_attribute(self, cache):
        plugin = self.plugin(cache, token_attribute="id_token")
        body = '{"result": {"id_token": "nested"}}'
        with patch("fedauth.plugins.token.get_text", AsyncMock(return_value=body)) as get_text:
            holder = await plugin.get_auth_token()

        assert holder.token == "nested"
        assert get_text.call_args.kwargs['headers'] == {}

    @pytest.mark.asyncio
    async def test_plain_body_is_token(self, cache):
        """Test a non-JSON body is used whole, minus a trailing percent sign."""
        with patch("fedauth.plugins.token.get_text", AsyncMock(return_value="raw-token%\n")):
            holder = await self.plugin(cache).get_auth_token()
        assert holder.token == "raw-token"

    @pytest.mark.asyncio
    async def test_missing_attribute(self, cache):
        with patch("fedauth.plugins.token.get_text", AsyncMock(return_value='{"token_type": "Bearer"}')):
            with pytest.raises(ProtocolParseError):
                await self.plugin(cache).get_auth_token()

    @pytest.mark.asyncio
    async def test_empty_body(self, cache):
        with patch("fedauth.plugins.token.get_text", AsyncMock(return_value="  ")):
            with pytest.raises(ProtocolParseError):
                await self.plugin(cache).get_auth_token()

    @pytest.mark.asyncio
    async def test_requires_token_url(self, cache):
        plugin = IdpTokenUrlAuthPlugin(cache=cache)
        plugin.add_parameter("token_type", "ACCESS_TOKEN")
        with pytest.raises(MissingParameterError):
            await plugin.get_auth_token()

    @pytest.mark.asyncio
    async def test_rejects_plain_http(self, cache):
        plugin = self.plugin(cache, token_url="http://broker.example.com/token")
        with pytest.raises(InvalidURLError):
            await plugin.get_auth_token()

    def test_cache_key_tracks_bearer_token(self, cache):
        first = self.plugin(cache, bearer_token="one")
        second = self.plugin(cache, bearer_token="two")
        assert first.get_cache_key() != second.get_cache_key()

    @pytest.mark.asyncio
    async def test_missing_type(self, cache):
        plugin = IdpTokenAuthPlugin(cache=cache)
        plugin.add_parameter("token", "opaque")
        with pytest.raises(MissingParameterError):
            await plugin.get_auth_token()


class TestIdcPlugins:
    """Test IAM Identity Center token acquisition."""

    def configure_oidc(self, fake_aws, create_token_outcomes):
        oidc = fake_aws.sso_oidc_client
        oidc.register_client.return_value = {
            'clientId': 'client-1',
            'clientSecret': 'client-secret',
            'clientSecretExpiresAt': int(time.time()) + 86400,
        }
        oidc.start_device_authorization.return_value = {
            'deviceCode': 'device-1',
            'userCode': 'ABCD-EFGH',
            'verificationUriComplete': 'https://device.sso.us-west-2.amazonaws.com/?user_code=ABCD-EFGH',
            'interval': 0.01,
        }
        oidc.create_token.side_effect = create_token_outcomes
        return oidc

    def device_plugin(self, fake_aws, cache, client_cache):
        plugin = IdcDeviceAuthPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        plugin.add_parameter("start_url", "https://corp.awsapps.com/start")
        plugin.add_parameter("idc_region", "us-west-2")
        return plugin

    @pytest.mark.asyncio
    async def test_device_flow(self, fake_aws, cache, client_cache):
        oidc = self.configure_oidc(fake_aws, [pending(), pending(), {'accessToken': 'at', 'expiresIn': 3600}])
        plugin = self.device_plugin(fake_aws, cache, client_cache)

        with patch("fedauth.plugins.idc.open_browser", AsyncMock()) as browser:
            holder = await plugin.get_auth_token()

        assert holder.token == "at"
        assert holder.token_type == "ACCESS_TOKEN"
        assert oidc.create_token.call_count == 3
        assert oidc.create_token.call_args.kwargs == {
            'clientId': 'client-1',
            'clientSecret': 'client-secret',
            'grantType': 'urn:ietf:params:oauth:grant-type:device_code',
            'deviceCode': 'device-1',
        }
        browser.assert_awaited_once_with('https://device.sso.us-west-2.amazonaws.com/?user_code=ABCD-EFGH')
        assert oidc.register_client.call_args.kwargs == {
            'clientName': 'Amazon Redshift driver',
            'clientType': 'public',
            'scopes': ['redshift:connect'],
        }

    @pytest.mark.asyncio
    async def test_registered_client_reused(self, fake_aws, cache, client_cache):
        """Test a second flow reuses the registered client."""
        oidc = self.configure_oidc(fake_aws, [{'accessToken': 'a1'}, {'accessToken': 'a2'}])

        with patch("fedauth.plugins.idc.open_browser", AsyncMock()):
            first = await self.device_plugin(fake_aws, cache, client_cache).get_auth_token()
            second = await self.device_plugin(fake_aws, cache, client_cache).get_auth_token()

        assert (first.token, second.token) == ("a1", "a2")
        assert oidc.register_client.call_count == 1
        assert oidc.start_device_authorization.call_count == 2
        assert len(client_cache) == 1

    @pytest.mark.asyncio
    async def test_device_flow_denied(self, fake_aws, cache, client_cache):
        denied = ClientError({'Error': {'Code': 'AccessDeniedException', 'Message': 'no'}}, "CreateToken")
        self.configure_oidc(fake_aws, [pending(), denied])
        plugin = self.device_plugin(fake_aws, cache, client_cache)

        with patch("fedauth.plugins.idc.open_browser", AsyncMock()):
            with pytest.raises(AccessDeniedError):
                await plugin.get_auth_token()

    @pytest.mark.asyncio
    async def test_device_flow_requires_region(self, fake_aws, cache, client_cache):
        plugin = IdcDeviceAuthPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        plugin.add_parameter("start_url", "https://corp.awsapps.com/start")
        with pytest.raises(MissingParameterError):
            await plugin.get_auth_token()

    @pytest.mark.asyncio
    async def test_browser_flow(self, fake_aws, cache, client_cache):
        """Test the authorization-code grant through the local listener."""
        oidc = self.configure_oidc(fake_aws, [{'accessToken': 'browser-token', 'expiresIn': 900}])
        plugin = IdcBrowserAuthPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        plugin.add_parameter("idc_region", "us-west-2")
        plugin.add_parameter("listen_port", "0")
        authorize_urls = []

        async def approve(url):
            authorize_urls.append(url)
            query = parse_qs(urlparse(url).query)
            async with aiohttp.ClientSession() as session:
                async with session.get(query['redirect_uri'][0],
                                       params={'code': 'auth-code', 'state': query['state'][0]}) as response:
                    assert response.status == 200

        with patch("fedauth.plugins.idc.open_browser", AsyncMock(side_effect=approve)):
            holder = await plugin.get_auth_token()

        assert holder.token == "browser-token"
        query = parse_qs(urlparse(authorize_urls[0]).query)
        assert authorize_urls[0].startswith("https://oidc.us-west-2.amazonaws.com/authorize?")
        assert query['code_challenge_method'] == ['S256']
        request = oidc.create_token.call_args.kwargs
        assert request['grantType'] == "authorization_code"
        assert request['code'] == "auth-code"
        assert request['redirectUri'] == query['redirect_uri'][0]
        assert len(client_cache) == 0

    @pytest.mark.asyncio
    async def test_browser_flow_state_mismatch(self, fake_aws, cache, client_cache):
        oidc = self.configure_oidc(fake_aws, [{'accessToken': 'never'}])
        plugin = IdcBrowserAuthPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        plugin.add_parameter("idc_region", "us-west-2")
        plugin.add_parameter("listen_port", "0")

        async def forge(url):
            query = parse_qs(urlparse(url).query)
            async with aiohttp.ClientSession() as session:
                async with session.get(query['redirect_uri'][0],
                                       params={'code': 'auth-code', 'state': 'forged'}) as response:
                    assert response.status == 400

        with patch("fedauth.plugins.idc.open_browser", AsyncMock(side_effect=forge)):
            with pytest.raises(CsrfMismatchError):
                await plugin.get_auth_token()
        oidc.create_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_role_credentials(self, fake_aws, cache, client_cache):
        """Test the IdC token is exchanged for role credentials and then assumed."""
        self.configure_oidc(fake_aws, [{'accessToken': 'at'}])
        expiration_ms = int((time.time() + 3600) * 1000)
        fake_aws.sso_client.get_role_credentials.return_value = {
            'roleCredentials': {
                'accessKeyId': 'RK', 'secretAccessKey': 'RS', 'sessionToken': 'RT',
                'expiration': expiration_ms,
            }
        }
        fake_aws.sts_client.assume_role.return_value = sts_response("AK", "AS", "AT")

        plugin = IdcRoleCredentialsPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        for key, value in {
            'idc_flow': 'device',
            'start_url': 'https://corp.awsapps.com/start',
            'idc_region': 'us-west-2',
            'account_id': '123456789012',
            'role_name': 'ReadOnly',
            'role_arn': 'arn:aws:iam::123456789012:role/warehouse',
        }.items():
            plugin.add_parameter(key, value)

        with patch("fedauth.plugins.idc.open_browser", AsyncMock()):
            holder = await plugin.get_credentials()

        assert holder.credentials == AwsCredentials("AK", "AS", "AT")
        assert fake_aws.sso_client.get_role_credentials.call_args.kwargs == {
            'roleName': 'ReadOnly', 'accountId': '123456789012', 'accessToken': 'at',
        }
        assert fake_aws.sts_requests[0]['credentials'] == AwsCredentials("RK", "RS", "RT")
        assume = fake_aws.sts_client.assume_role.call_args.kwargs
        assert assume['RoleSessionName'].startswith("redshift-idc-")
        assert assume['DurationSeconds'] == 3600

    @pytest.mark.asyncio
    async def test_role_credentials_without_assume(self, fake_aws, cache, client_cache):
        self.configure_oidc(fake_aws, [{'accessToken': 'at'}])
        expiration_ms = int((time.time() + 3600) * 1000)
        fake_aws.sso_client.get_role_credentials.return_value = {
            'roleCredentials': {
                'accessKeyId': 'RK', 'secretAccessKey': 'RS', 'sessionToken': 'RT',
                'expiration': expiration_ms,
            }
        }
        plugin = IdcRoleCredentialsPlugin(cache=cache, aws=fake_aws, client_cache=client_cache)
        for key, value in {
            'idc_flow': 'device',
            'start_url': 'https://corp.awsapps.com/start',
            'idc_region': 'us-west-2',
            'account_id': '123456789012',
            'role_name': 'ReadOnly',
        }.items():
            plugin.add_parameter(key, value)

        with patch("fedauth.plugins.idc.open_browser", AsyncMock()):
            holder = await plugin.get_credentials()

        assert holder.credentials == AwsCredentials("RK", "RS", "RT")
        assert holder.expiration == datetime.fromtimestamp(expiration_ms / 1000, tz=timezone.utc)
        fake_aws.sts_client.assume_role.assert_not_called()


class TestAzurePlugin:
    """Test the Azure AD browser OAuth2 plugin."""

    def plugin(self, cache):
        plugin = BrowserAzureOAuth2Plugin(cache=cache)
        plugin.add_parameter("idp_tenant", "contoso")
        plugin.add_parameter("client_id", "app-1")
        plugin.add_parameter("scope", "api://redshift/session:role-any")
        return plugin

    @pytest.mark.asyncio
    async def test_code_exchanged_for_jwt(self, cache):
        plugin = self.plugin(cache)
        token = make_jwt({'sub': 'u1', 'exp': int(time.time()) + 600})
        authorize_urls = []

        async def approve(url):
            authorize_urls.append(url)
            query = parse_qs(urlparse(url).query)
            listener = RecordingListener.created[0]
            async with aiohttp.ClientSession() as session:
                async with session.post(listener.redirect_uri,
                                        data={'code': 'azure-code', 'state': query['state'][0]}) as response:
                    assert response.status == 200

        exchange = AsyncMock(return_value=token)
        with patch("fedauth.plugins.azure.CallbackListener", RecordingListener), \
                patch("fedauth.plugins.azure.open_browser", AsyncMock(side_effect=approve)), \
                patch.object(BrowserAzureOAuth2Plugin, "_exchange_code", exchange):
            holder = await plugin.get_auth_token()

        assert holder.token == token
        assert holder.token_type == "EXT_JWT"
        query = parse_qs(urlparse(authorize_urls[0]).query)
        assert authorize_urls[0].startswith("https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize?")
        assert query['response_mode'] == ['form_post']
        assert query['scope'] == ['openid api://redshift/session:role-any']
        port = RecordingListener.created[0].port
        exchange.assert_awaited_once_with("contoso", "app-1", "azure-code", f"http://localhost:{port}/redshift/")

    @pytest.mark.asyncio
    async def test_missing_access_token(self, cache):
        plugin = self.plugin(cache)
        with patch("fedauth.plugins.azure.request_json", AsyncMock(return_value={'token_type': 'Bearer'})):
            with pytest.raises(ProtocolParseError) as exc_info:
                await plugin._exchange_code("contoso", "app-1", "code", "http://localhost:1/redshift/")
        assert "Failed to find access_token" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_requires_tenant(self, cache):
        plugin = BrowserAzureOAuth2Plugin(cache=cache)
        plugin.add_parameter("client_id", "app-1")
        with pytest.raises(MissingParameterError):
            await plugin.get_auth_token()


class TestRegistry:
    """Test plugin lookup by name."""

    def test_every_plugin_registered(self):
        assert set(PLUGINS) == {
            "saml", "browser_saml", "okta", "ping", "adfs", "idc_device", "idc_browser",
            "idc_role", "jwt", "basic_jwt", "azure", "browser_azure", "browser_azure_oauth2",
            "role_chain", "idp_token", "idp_token_url",
        }

    def test_aliases(self):
        assert resolve_plugin_class("com.amazon.redshift.plugin.BasicSamlCredentialsProvider") \
            is BasicSamlCredentialsPlugin
        assert resolve_plugin_class("IdpTokenAuthPlugin") is IdpTokenAuthPlugin
        assert resolve_plugin_class("ROLE_CHAIN") is RoleChainCredentialsPlugin
        assert resolve_plugin_class("IdpTokenUrlAuthPlugin") is IdpTokenUrlAuthPlugin

    def test_unknown_plugin(self):
        with pytest.raises(ConfigurationError):
            resolve_plugin_class("kerberos")
        with pytest.raises(MissingParameterError):
            resolve_plugin_class("")

    def test_create_plugin_shares_cache(self, cache):
        first = create_plugin("saml", cache=cache)
        second = create_plugin("jwt", cache=cache)
        assert first.cache is second.cache is cache

    def test_from_config(self):
        plugin = create_plugin_from_config({'plugin_name': 'idp_token', 'token': 't', 'token_type': 'EXT_JWT'})
        assert isinstance(plugin, IdpTokenAuthPlugin)
        assert plugin.params.get_str("token") == "t"
        assert "plugin_name" not in plugin.params
