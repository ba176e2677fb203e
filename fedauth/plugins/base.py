"""
Plugin contract shared by every federation strategy.

A plugin receives its configuration one parameter at a time, computes a
deterministic cache key from it and hands out holders. Refresh is
serialized per plugin instance; the credential cache itself is shared by
reference between instances.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from ..aws.clients import AwsClientFactory, call_aws
from ..common.decorators import federation_boundary, log_execution_time
from ..common.utils import is_sensitive_key, join_cache_key
from ..core.cache import CredentialCache, RegisteredClientCache
from ..core.config import PluginConfig
from ..core.credentials import (
    AwsCredentials,
    CredentialsHolder,
    DatabaseCredentials,
    Holder,
    TokenHolder,
)
from ..core.metadata import (
    ConnectionSettings,
    MetadataResolver,
    build_cluster_credentials_request,
    build_serverless_credentials_request,
)
from ..types.errors import ConfigurationError
from ..util.validation import validate_timeout


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(minutes=15)

KeyFunction = Callable[[], str]
BuildFunction = Callable[[], Awaitable[Holder]]


class FederationPlugin(ABC):
    """
    Base class for federation plugins.

    Subclasses implement ``_build`` to run their flow from scratch and
    ``get_cache_key`` to describe their configuration.
    """

    plugin_name: str = ""
    cache_disabled_by_default: bool = False

    def __init__(
        self,
        cache: Optional[CredentialCache] = None,
        aws: Optional[AwsClientFactory] = None,
        client_cache: Optional[RegisteredClientCache] = None
    ):
        """
        Initialize plugin.

        Args:
            cache: Credential cache shared with other plugins; a private
                one is created when omitted
            aws: Service client factory; built from Region and
                StsEndpointUrl when omitted
            client_cache: Registered OAuth client cache, used by plugins
                that register OAuth clients
        """
        self.params = PluginConfig()
        self.cache = cache if cache is not None else CredentialCache()
        self.client_cache = client_cache if client_cache is not None else RegisteredClientCache()
        self._aws = aws
        self._lock = asyncio.Lock()
        self.logger = logger

    def add_parameter(self, key: str, value: Any) -> None:
        """Add one configuration parameter."""
        if is_sensitive_key(key):
            self.logger.debug(f"key: {key} (value masked)")
        else:
            self.logger.debug(f"key: {key} value: {value}")
        self.params.set(key, value)

    def set_logger(self, log: logging.Logger) -> None:
        self.logger = log

    @property
    def disable_cache(self) -> bool:
        return self.params.get_bool("IAMDisableCache", default=self.cache_disabled_by_default)

    @property
    def aws(self) -> AwsClientFactory:
        if self._aws is not None:
            return self._aws
        return AwsClientFactory(
            region=self.params.get_str("Region"),
            sts_endpoint_url=self.params.get_str("StsEndpointUrl"),
        )

    @property
    def duration(self) -> int:
        return self.params.get_int("duration", default=0)

    @abstractmethod
    def get_cache_key(self) -> str:
        """Deterministic key built from this plugin's configuration."""

    def get_plugin_specific_cache_key(self) -> str:
        return ""

    @abstractmethod
    async def _build(self) -> Holder:
        """Run the flow from scratch and return a fresh holder."""

    async def refresh(self) -> Holder:
        """
        Force a new flow run.

        The fresh holder replaces the cache entry unless the cache is
        disabled, in which case it is only returned to this caller.
        """
        async with self._lock:
            return await self._refresh_locked(self.get_cache_key, self._build)

    async def _obtain(self) -> Holder:
        return await self._cached(self.get_cache_key, self._build)

    def _from_cache(self, key_fn: KeyFunction) -> Optional[Holder]:
        if self.disable_cache:
            return None
        cached = self.cache.get_valid(key_fn())
        return cached.from_cache() if cached is not None else None

    async def _cached(self, key_fn: KeyFunction, build: BuildFunction) -> Holder:
        cached = self._from_cache(key_fn)
        if cached is not None:
            self.logger.info(f"{type(self).__name__} getCredentials from cache")
            return cached

        self.logger.info(f"{type(self).__name__} getCredentials NOT from cache")
        async with self._lock:
            return await self._get_locked(key_fn, build)

    async def _get_locked(self, key_fn: KeyFunction, build: BuildFunction) -> Holder:
        # Another caller may have refreshed while we waited for the lock.
        cached = self._from_cache(key_fn)
        if cached is not None:
            return cached
        return await self._refresh_locked(key_fn, build)

    async def _refresh_locked(self, key_fn: KeyFunction, build: BuildFunction) -> Holder:
        holder = await self._run_flow(build)
        if not self.disable_cache:
            self.cache.put(key_fn(), holder)
        return holder

    @federation_boundary
    @log_execution_time()
    async def _run_flow(self, build: BuildFunction) -> Holder:
        return await build()

    def response_timeout(self, key: str, default: int, minimum: int = 10) -> int:
        """Read a response timeout, rejecting values below ``minimum``."""
        return validate_timeout(self.params.get_int(key, default=default), minimum, key)

    def connection_settings(self) -> ConnectionSettings:
        """Database settings supplied on the connection."""
        return ConnectionSettings(
            db_user=self.params.get_str("DbUser"),
            username=self.params.get_str("user", "uid"),
            db_groups=self.params.get_list("DbGroups"),
            db_groups_filter=self.params.get_str("DbGroupsFilter"),
            auto_create=self.params.get_optional_bool("AutoCreate"),
            force_lowercase=self.params.get_optional_bool("ForceLowercase"),
            profile_db_user=self.params.get_str("profile_db_user"),
        )


class CredentialsPlugin(FederationPlugin):
    """Plugin that produces cloud credentials."""

    async def get_credentials(self) -> CredentialsHolder:
        holder = await self._obtain()
        if not isinstance(holder, CredentialsHolder):
            raise ConfigurationError(f"{type(self).__name__} did not produce credentials")
        return holder

    async def get_database_credentials(self) -> CredentialsHolder:
        """
        Exchange the plugin's cloud credentials for an ephemeral database
        user and password.

        A serverless ``workgroup_name`` takes precedence over a provisioned
        ``cluster_identifier``; one of the two is required.
        """
        workgroup = self.params.get_str("workgroup_name", "serverless_work_group")
        if workgroup:
            kind, target = "workgroup", workgroup
        else:
            kind, target = "cluster", self.params.require("cluster_identifier")

        def key() -> str:
            return join_cache_key(self.get_cache_key(), kind, target,
                                  self.params.get_str("DbUser"), self.params.get_str("dbname"))

        async def build() -> Holder:
            # Runs under the instance lock, so the source lookup must not lock again.
            source = await self._get_locked(self.get_cache_key, self._build)
            if workgroup:
                return await self._issue_serverless_credentials(source, workgroup)
            return await self._issue_database_credentials(source, target)

        holder = await self._cached(key, build)
        if not isinstance(holder, CredentialsHolder):
            raise ConfigurationError(f"{type(self).__name__} did not produce credentials")
        return holder

    def _cloud_credentials(self, source: Holder) -> AwsCredentials:
        if not isinstance(source, CredentialsHolder) or not isinstance(source.credentials, AwsCredentials):
            raise ConfigurationError("Database credentials require cloud credentials")
        return source.credentials

    async def _issue_database_credentials(self, source: Holder, cluster: str) -> CredentialsHolder:
        credentials = self._cloud_credentials(source)
        resolved = MetadataResolver().resolve(source.metadata, self.connection_settings())
        request = build_cluster_credentials_request(
            resolved, cluster, db_name=self.params.get_str("dbname"), duration=self.duration
        )
        client = self.aws.redshift(credentials, self.params.get_str("Region"))
        response = await call_aws(client, "get_cluster_credentials", **request)
        self.logger.info(f"Issued database credentials for {response.get('DbUser')}")
        return CredentialsHolder(
            credentials=DatabaseCredentials(
                db_user=response['DbUser'],
                db_password=response['DbPassword'],
            ),
            expiration=response['Expiration'],
            metadata=source.metadata,
        )

    async def _issue_serverless_credentials(self, source: Holder, workgroup: str) -> CredentialsHolder:
        # Serverless derives the database user from the IAM identity.
        credentials = self._cloud_credentials(source)
        request = build_serverless_credentials_request(
            workgroup, db_name=self.params.get_str("dbname"), duration=self.duration
        )
        client = self.aws.redshift_serverless(credentials, self.params.get_str("Region"))
        response = await call_aws(client, "get_credentials", **request)
        self.logger.info(f"Issued serverless database credentials for {response.get('dbUser')}")
        return CredentialsHolder(
            credentials=DatabaseCredentials(
                db_user=response['dbUser'],
                db_password=response['dbPassword'],
            ),
            expiration=response['expiration'],
            metadata=source.metadata,
        )


class TokenPlugin(FederationPlugin):
    """Plugin that produces a bearer token for native authentication."""

    cache_disabled_by_default = True

    async def get_auth_token(self) -> TokenHolder:
        holder = await self._obtain()
        if not isinstance(holder, TokenHolder):
            raise ConfigurationError(f"{type(self).__name__} did not produce a token")
        return holder

    def get_cache_key(self) -> str:
        return self.get_plugin_specific_cache_key()
