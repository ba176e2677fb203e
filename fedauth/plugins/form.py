"""
Form-automation SAML acquirers.

These plugins sign in to a specific identity provider the way a browser
would: fetch the login page, refill its form from the parsed input tags,
submit it and pull the assertion out of the resulting page.
"""

from abc import abstractmethod
from typing import Dict, Optional
from urllib.parse import quote

import aiohttp

from .saml import SamlCredentialsPlugin
from ..common.utils import join_cache_key
from ..http.client import create_session, get_text, post_form, request_json
from ..types.errors import AccessDeniedError, MissingParameterError, ProtocolParseError
from ..util.html import (
    extract_saml_response,
    get_form_action,
    get_input_tags,
    get_value_by_key,
    input_fields,
    resolve_form_action,
)
from ..util.validation import validate_url


class FormSamlCredentialsPlugin(SamlCredentialsPlugin):
    """Common plumbing for identity providers signed in through a form."""

    async def get_saml_assertion(self) -> str:
        self.params.require("idp_host")
        async with create_session(ssl_insecure=self.ssl_insecure) as session:
            return await self.sign_in(session)

    @abstractmethod
    async def sign_in(self, session: aiohttp.ClientSession) -> str:
        """Sign in and return the base64 assertion."""

    def _require_credentials(self) -> None:
        self.params.require("user", "uid")
        self.params.require("password", "pwd")

    async def _submit_and_extract(self, session: aiohttp.ClientSession, page_url: str,
                                  body: str, fields: Dict[str, str]) -> str:
        action = resolve_form_action(get_form_action(body), self.idp_host, self.idp_port, page_url)
        validate_url(action)
        response = await post_form(session, action, fields)
        assertion = extract_saml_response(response)
        if not assertion:
            raise ProtocolParseError("Failed to retrieve SAMLAssertion.")
        return assertion


class OktaCredentialsPlugin(FormSamlCredentialsPlugin):
    """Okta: primary authentication, then the app's SSO page."""

    plugin_name = "okta"
    DEFAULT_APP_NAME = "amazon_aws"

    @property
    def app_name(self) -> str:
        return self.params.get_str("app_name", default=self.DEFAULT_APP_NAME)

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("app_id"), self.app_name)

    async def sign_in(self, session: aiohttp.ClientSession) -> str:
        app_id = self.params.require("app_id")
        self._require_credentials()

        session_token = await self._session_token(session)
        url = (f"https://{self.idp_host}/home/{quote(self.app_name)}/{quote(app_id)}"
               f"?onetimetoken={quote(session_token)}")
        body = await get_text(session, url)

        for tag in get_input_tags(body):
            if get_value_by_key(tag, "name") == "SAMLResponse":
                value = get_value_by_key(tag, "value")
                return value.replace("&#x2b;", "+").replace("&#x3d;", "=")
        raise ProtocolParseError("Failed to retrieve SAMLAssertion.")

    async def _session_token(self, session: aiohttp.ClientSession) -> str:
        url = f"https://{self.idp_host}/api/v1/authn"
        data = await request_json(
            session, "POST", url,
            json={'username': self.user, 'password': self.password},
            headers={'Accept': 'application/json', 'Cache-Control': 'no-cache'},
        )
        status = data.get('status')
        if status != "SUCCESS" or not data.get('sessionToken'):
            raise AccessDeniedError(f"No session token in the response, status: {status}")
        return data['sessionToken']


class PingCredentialsPlugin(FormSamlCredentialsPlugin):
    """PingFederate: IdP-initiated SSO with username/password form."""

    plugin_name = "ping"
    DEFAULT_PARTNER_SPID = "urn%3Aamazon%3Awebservices"
    USER_FIELD_HINTS = ("email", "user", "login")

    @property
    def partner_spid(self) -> str:
        return self.params.get_str("partner_spid", default=self.DEFAULT_PARTNER_SPID)

    def get_plugin_specific_cache_key(self) -> str:
        return self.partner_spid

    async def sign_in(self, session: aiohttp.ClientSession) -> str:
        self._require_credentials()
        url = (f"https://{self.idp_host}:{self.idp_port}"
               f"/idp/startSSO.ping?PartnerSpId={self.partner_spid}")
        validate_url(url)
        body = await get_text(session, url)

        fields = input_fields(body)
        user_field: Optional[str] = None
        password_field: Optional[str] = None

        for tag in get_input_tags(body):
            name = get_value_by_key(tag, "name")
            if not name:
                continue
            input_type = get_value_by_key(tag, "type").lower()
            lowered = name.lower()

            if input_type == "password":
                if password_field is not None:
                    raise ProtocolParseError("Duplicate password fields on login page")
                password_field = name
            elif user_field is None and (
                lowered == "pf.username"
                or (input_type in ("text", "email")
                    and any(hint in lowered for hint in self.USER_FIELD_HINTS))
            ):
                user_field = name

        if user_field is None:
            raise ProtocolParseError("Failed to find the username field on the login page")
        if password_field is None:
            raise ProtocolParseError("Failed to find the password field on the login page")

        fields[user_field] = self.user
        fields[password_field] = self.password
        return await self._submit_and_extract(session, url, body, fields)


class AdfsCredentialsPlugin(FormSamlCredentialsPlugin):
    """ADFS: forms-based sign-in to the IdP-initiated sign-on page."""

    plugin_name = "adfs"
    DEFAULT_LOGIN_TO_RP = "urn:amazon:webservices"

    @property
    def login_to_rp(self) -> str:
        return self.params.get_str("loginToRp", default=self.DEFAULT_LOGIN_TO_RP)

    def get_plugin_specific_cache_key(self) -> str:
        return self.login_to_rp

    async def sign_in(self, session: aiohttp.ClientSession) -> str:
        if not self.user or not self.password:
            raise MissingParameterError(
                "user",
                "user and password are required; integrated Windows authentication is not supported"
            )

        url = (f"https://{self.idp_host}:{self.idp_port}"
               f"/adfs/ls/IdpInitiatedSignOn.aspx?loginToRp={self.login_to_rp}")
        validate_url(url)
        body = await get_text(session, url)

        fields = input_fields(body)
        for name, value in list(fields.items()):
            lowered = name.lower()
            if "username" in lowered:
                fields[name] = self.user
            elif "authmethod" in lowered:
                if not value:
                    del fields[name]
            elif "password" in lowered:
                fields[name] = self.password

        return await self._submit_and_extract(session, url, body, fields)
