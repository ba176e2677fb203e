"""
Metadata resolution for database logins.

Combines what the identity provider asserted about the database user with
what the connection supplied. Explicit connection values beat asserted
values, which beat defaults, unless the assertion allows overriding the
database user.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .credentials import IamMetadata
from ..types.errors import ConfigurationError, MissingParameterError


logger = logging.getLogger(__name__)

ANONYMOUS_USER = "*"


@dataclass
class ConnectionSettings:
    """Database settings supplied on the connection."""
    db_user: Optional[str] = None
    username: Optional[str] = None
    db_groups: List[str] = field(default_factory=list)
    db_groups_filter: Optional[str] = None
    auto_create: Optional[bool] = None
    force_lowercase: Optional[bool] = None
    profile_db_user: Optional[str] = None


@dataclass(frozen=True)
class ResolvedMetadata:
    """Effective settings used to request database credentials."""
    db_user: str
    db_groups: Tuple[str, ...] = ()
    auto_create: bool = False
    force_lowercase: bool = False


def filter_groups(groups: Iterable[str], pattern: Optional[str]) -> List[str]:
    """
    Drop every group that fully matches ``pattern``.

    An empty or missing pattern keeps every group.
    """
    groups = [g for g in groups if g]
    if not pattern:
        return groups
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid DbGroupsFilter: {e}",
                                 config_key="DbGroupsFilter", config_value=pattern)
    return [g for g in groups if regex.fullmatch(g) is None]


class MetadataResolver:
    """Resolves the effective database user, groups and flags."""

    def resolve(
        self,
        metadata: Optional[IamMetadata],
        settings: ConnectionSettings
    ) -> ResolvedMetadata:
        metadata = metadata or IamMetadata()

        if metadata.allow_db_user_override:
            candidates = (metadata.db_user, settings.db_user, settings.profile_db_user)
        else:
            candidates = (settings.db_user, settings.profile_db_user, metadata.db_user)
        db_user = next((c for c in candidates if c), None)

        if not db_user:
            if not settings.username or settings.username == ANONYMOUS_USER:
                raise MissingParameterError(
                    "DbUser",
                    "Connection specified an anonymous user but no DbUser was provided"
                )
            db_user = settings.username

        auto_create = settings.auto_create if settings.auto_create is not None else metadata.auto_create
        force_lowercase = (settings.force_lowercase if settings.force_lowercase is not None
                           else metadata.force_lowercase)

        groups = settings.db_groups if settings.db_groups else list(metadata.db_groups)
        groups = filter_groups(groups, settings.db_groups_filter)
        if force_lowercase:
            groups = [g.lower() for g in groups]

        logger.debug(f"Resolved db user {db_user} with {len(groups)} groups")
        return ResolvedMetadata(
            db_user=db_user,
            db_groups=tuple(groups),
            auto_create=bool(auto_create),
            force_lowercase=bool(force_lowercase),
        )


def build_cluster_credentials_request(
    resolved: ResolvedMetadata,
    cluster_identifier: str,
    db_name: Optional[str] = None,
    duration: int = 0
) -> Dict[str, Any]:
    """Keyword arguments for ``redshift.get_cluster_credentials``."""
    request: Dict[str, Any] = {
        'DbUser': resolved.db_user,
        'ClusterIdentifier': cluster_identifier,
        'AutoCreate': resolved.auto_create,
    }
    if db_name:
        request['DbName'] = db_name
    if resolved.db_groups:
        request['DbGroups'] = list(resolved.db_groups)
    if duration > 0:
        request['DurationSeconds'] = duration
    return request


def build_serverless_credentials_request(
    workgroup_name: str,
    db_name: Optional[str] = None,
    duration: int = 0
) -> Dict[str, Any]:
    """Keyword arguments for ``redshift-serverless.get_credentials``."""
    request: Dict[str, Any] = {'workgroupName': workgroup_name}
    if db_name:
        request['dbName'] = db_name
    if duration > 0:
        request['durationSeconds'] = duration
    return request
