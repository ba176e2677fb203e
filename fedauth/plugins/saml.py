"""
SAML federation flow.

The assertion is decoded, parsed with DTDs and entities forbidden, and
searched for role/provider pairs. The selected role is assumed with the
assertion and the custom database attributes become IamMetadata.
"""

import logging
import re
from abc import abstractmethod
from typing import Dict, List, Optional, Tuple

from defusedxml import ElementTree as safe_tree

from .base import CredentialsPlugin
from ..aws.clients import call_aws
from ..common.utils import fingerprint, join_cache_key
from ..core.credentials import AwsCredentials, CredentialsHolder, IamMetadata
from ..core.config import parse_bool
from ..core.metadata import filter_groups
from ..types.errors import ProtocolParseError, RoleNotFoundError
from ..util.encoding import base64_decode


logger = logging.getLogger(__name__)

ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
ROLE_SESSION_NAME_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/RoleSessionName"
REDSHIFT_ATTRIBUTE_PREFIX = "https://redshift.amazon.com/SAML/Attributes/"

ROLE_PATTERN = re.compile(r"arn:aws[-a-z]*:iam::\d*:role/\S+")
PROVIDER_PATTERN = re.compile(r"arn:aws[-a-z]*:iam::\d*:saml-provider/\S+")

DEFAULT_IDP_PORT = 443


def parse_assertion(assertion: str):
    """Decode a base64 assertion and parse it without DTD or entity support."""
    xml = base64_decode(assertion)
    return safe_tree.fromstring(xml, forbid_dtd=True, forbid_entities=True,
                                forbid_external=True)


def get_attribute_values(document, name: str) -> List[str]:
    """Get the text of every AttributeValue of every Attribute named ``name``."""
    values = []
    for attribute in document.findall(".//{*}Attribute"):
        if attribute.get("Name") != name:
            continue
        for value in attribute.findall("{*}AttributeValue"):
            text = "".join(value.itertext()).strip()
            if text:
                values.append(text)
    return values


def extract_roles(values: List[str]) -> Dict[str, str]:
    """
    Build the role to provider map from Role attribute values.

    Each value holds a role ARN and a provider ARN separated by a comma in
    either order. A role seen again replaces its earlier provider.
    """
    roles: Dict[str, str] = {}
    for value in values:
        parts = [part.strip() for part in value.split(",")]
        if len(parts) < 2:
            continue

        role = provider = None
        for part in parts:
            if ROLE_PATTERN.fullmatch(part):
                role = part
            elif PROVIDER_PATTERN.fullmatch(part):
                provider = part
        if role is None or provider is None:
            continue

        if role in roles and roles[role] != provider:
            logger.warning(f"Role {role} is asserted with more than one provider; using {provider}")
        roles[role] = provider
    return roles


def select_role(roles: Dict[str, str], preferred_role: Optional[str] = None) -> Tuple[str, str]:
    """Pick the preferred role, or the first one seen."""
    if not roles:
        raise ProtocolParseError("No role found in SamlAssertion")
    if preferred_role:
        if preferred_role not in roles:
            raise RoleNotFoundError(preferred_role)
        return preferred_role, roles[preferred_role]
    role = next(iter(roles))
    return role, roles[role]


def extract_metadata(document, db_groups_filter: Optional[str] = None) -> IamMetadata:
    """Read the database attributes asserted by the identity provider."""
    def first(name: str) -> Optional[str]:
        values = get_attribute_values(document, REDSHIFT_ATTRIBUTE_PREFIX + name)
        return values[0] if values else None

    db_user = first("DbUser")
    if not db_user:
        session_names = get_attribute_values(document, ROLE_SESSION_NAME_ATTRIBUTE)
        db_user = session_names[0] if session_names else None

    force_lowercase = parse_bool(first("ForceLowercase") or "false")
    groups = []
    for value in get_attribute_values(document, REDSHIFT_ATTRIBUTE_PREFIX + "DbGroups"):
        groups.extend(g.strip() for g in value.split(",") if g.strip())
    groups = filter_groups(groups, db_groups_filter)
    if force_lowercase:
        groups = [g.lower() for g in groups]

    return IamMetadata(
        db_user=db_user,
        db_groups=tuple(groups),
        auto_create=parse_bool(first("AutoCreate") or "false"),
        force_lowercase=force_lowercase,
        allow_db_user_override=parse_bool(first("AllowDbUserOverride") or "false"),
    )


class SamlCredentialsPlugin(CredentialsPlugin):
    """
    Base class for SAML plugins.

    Subclasses only know how to obtain the assertion.
    """

    @abstractmethod
    async def get_saml_assertion(self) -> str:
        """Obtain the base64 encoded SAML assertion."""

    @property
    def user(self) -> Optional[str]:
        return self.params.get_str("user", "uid")

    @property
    def password(self) -> Optional[str]:
        return self.params.get_str("password", "pwd")

    @property
    def idp_host(self) -> Optional[str]:
        return self.params.get_str("idp_host")

    @property
    def idp_port(self) -> int:
        return self.params.get_int("idp_port", default=DEFAULT_IDP_PORT)

    @property
    def ssl_insecure(self) -> bool:
        return self.params.get_bool("ssl_insecure")

    def get_cache_key(self) -> str:
        return join_cache_key(
            self.user or "",
            fingerprint(self.password),
            self.idp_host or "",
            self.idp_port,
            self.duration,
            self.params.get_str("preferred_role", default=""),
            self.get_plugin_specific_cache_key(),
        )

    async def _build(self) -> CredentialsHolder:
        assertion = await self.get_saml_assertion()
        if not assertion:
            raise ProtocolParseError("SAML assertion is empty")
        self.logger.debug(f"Got SAML assertion of length={len(assertion)}")

        document = parse_assertion(assertion)
        roles = extract_roles(get_attribute_values(document, ROLE_ATTRIBUTE))
        role_arn, principal_arn = select_role(roles, self.params.get_str("preferred_role"))
        self.logger.info(f"Assuming role {role_arn}")

        request = {
            'RoleArn': role_arn,
            'PrincipalArn': principal_arn,
            'SAMLAssertion': assertion,
        }
        if self.duration > 0:
            request['DurationSeconds'] = self.duration

        client = self.aws.sts(unsigned=True)
        response = await call_aws(client, "assume_role_with_saml", **request)
        credentials = response['Credentials']

        return CredentialsHolder(
            credentials=AwsCredentials.from_response(credentials),
            expiration=credentials['Expiration'],
            metadata=extract_metadata(document, self.params.get_str("DbGroupsFilter")),
        )


class BasicSamlCredentialsPlugin(SamlCredentialsPlugin):
    """SAML plugin for an assertion supplied directly as configuration."""

    plugin_name = "saml"

    async def get_saml_assertion(self) -> str:
        return self.params.require("saml_assertion")

    def get_plugin_specific_cache_key(self) -> str:
        return fingerprint(self.params.get_str("saml_assertion"))
