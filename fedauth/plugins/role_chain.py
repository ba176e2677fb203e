"""
Role chaining plugin.

Assumes each configured role in turn; the first hop signs with ambient
credentials (or the configured keys) and every later hop signs with the
credentials of the hop before it.
"""

from typing import List, Optional

from .base import CredentialsPlugin
from ..aws.clients import call_aws
from ..common.utils import join_cache_key
from ..core.credentials import AwsCredentials, CredentialsHolder
from ..types.errors import MissingParameterError


DEFAULT_SESSION_NAME = "assumeRoleIamAuthJDBC"


class RoleChainCredentialsPlugin(CredentialsPlugin):
    """Credentials of the last role in a comma-separated ``role_arn`` chain."""

    plugin_name = "role_chain"

    @property
    def roles(self) -> List[str]:
        return self.params.get_list("role_arn")

    @property
    def session_name(self) -> str:
        return self.params.get_str("session_name", "role_session_name", default=DEFAULT_SESSION_NAME)

    def get_cache_key(self) -> str:
        return join_cache_key("AssumeRole", ",".join(self.roles), self.session_name,
                              self.get_plugin_specific_cache_key())

    def get_plugin_specific_cache_key(self) -> str:
        return self.params.get_str("access_key_id", default="")

    def _source_credentials(self) -> Optional[AwsCredentials]:
        access_key = self.params.get_str("access_key_id")
        if not access_key:
            return None
        return AwsCredentials(
            access_key_id=access_key,
            secret_access_key=self.params.require("secret_access_key"),
            session_token=self.params.get_str("session_token"),
        )

    async def _build(self) -> CredentialsHolder:
        roles = self.roles
        if not roles:
            raise MissingParameterError("role_arn")

        current = self._source_credentials()
        holder = None
        for hop, role_arn in enumerate(roles, start=1):
            request = {'RoleArn': role_arn, 'RoleSessionName': self.session_name}
            if self.duration > 0:
                request['DurationSeconds'] = self.duration

            client = self.aws.sts(credentials=current)
            response = await call_aws(client, "assume_role", **request)
            credentials = response['Credentials']
            current = AwsCredentials.from_response(credentials)
            holder = CredentialsHolder(credentials=current, expiration=credentials['Expiration'])
            self.logger.info(f"Assumed role {role_arn} (hop {hop} of {len(roles)})")

        return holder
