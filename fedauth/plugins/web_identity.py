"""
JWT plugins.

WebIdentityCredentialsPlugin exchanges a JWT for role credentials;
BasicJwtPlugin hands the JWT itself to the server as a native token.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt

from .base import DEFAULT_TOKEN_LIFETIME, CredentialsPlugin, TokenPlugin
from ..aws.clients import call_aws
from ..common.utils import fingerprint, join_cache_key
from ..core.credentials import AwsCredentials, CredentialsHolder, IamMetadata, TokenHolder, utc_now
from ..types.errors import ProtocolParseError


DEFAULT_SESSION_NAME = "jwt_redshift_session"


def read_claims(token: str) -> Dict[str, Any]:
    """
    Read JWT claims without verifying the signature.

    The identity service verifies the token; the claims are only used for
    expiry and database user hints.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise ProtocolParseError(f"Invalid JWT: {e}", cause=e)


def token_expiration(token: str) -> datetime:
    """The ``exp`` claim of ``token``, or the default token lifetime."""
    try:
        claims = read_claims(token)
    except ProtocolParseError:
        claims = {}
    exp = claims.get("exp")
    if isinstance(exp, (int, float)):
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    return utc_now() + DEFAULT_TOKEN_LIFETIME


class WebIdentityCredentialsPlugin(CredentialsPlugin):
    """Role credentials through ``assume_role_with_web_identity``."""

    plugin_name = "jwt"

    @property
    def session_name(self) -> str:
        return self.params.get_str("role_session_name", default=DEFAULT_SESSION_NAME)

    def get_cache_key(self) -> str:
        return join_cache_key(
            self.params.get_str("role_arn", default=""),
            self.session_name,
            self.duration,
            self.get_plugin_specific_cache_key(),
        )

    def get_plugin_specific_cache_key(self) -> str:
        return fingerprint(self.params.get_str("web_identity_token"))

    async def _build(self) -> CredentialsHolder:
        role_arn = self.params.require("role_arn")
        token = self.params.require("web_identity_token")

        request = {
            'RoleArn': role_arn,
            'RoleSessionName': self.session_name,
            'WebIdentityToken': token,
        }
        if self.duration > 0:
            request['DurationSeconds'] = self.duration

        client = self.aws.sts(unsigned=True)
        response = await call_aws(client, "assume_role_with_web_identity", **request)
        credentials = response['Credentials']
        self.logger.info(f"Assumed role {role_arn} with web identity")

        return CredentialsHolder(
            credentials=AwsCredentials.from_response(credentials),
            expiration=credentials['Expiration'],
            metadata=self._metadata(token),
        )

    def _metadata(self, token: str) -> Optional[IamMetadata]:
        claim = self.params.get_str("db_user_claim")
        if not claim:
            return None
        value = read_claims(token).get(claim)
        return IamMetadata(db_user=str(value)) if value else None


class BasicJwtPlugin(TokenPlugin):
    """A configured JWT passed to the server as a native token."""

    plugin_name = "basic_jwt"

    def get_plugin_specific_cache_key(self) -> str:
        return join_cache_key(self.params.get_str("provider_name", "providerName"),
                              fingerprint(self.params.get_str("web_identity_token")))

    async def _build(self) -> TokenHolder:
        self.params.require("provider_name", "providerName")
        token = self.params.require("web_identity_token")
        self.logger.debug(f"Got JWT assertion of length={len(token)}")
        return TokenHolder(token=token, expiration=token_expiration(token), token_type="EXT_JWT")
