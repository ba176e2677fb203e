# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Core value types, caches, configuration and metadata resolution.
"""

from .credentials import (
    AwsCredentials,
    DatabaseCredentials,
    IamMetadata,
    CredentialsHolder,
    TokenHolder,
    utc_now,
)
from .cache import (
    CredentialCache,
    RegisteredClient,
    RegisteredClientCache,
    DEFAULT_GRACE_PERIOD,
)
from .config import PluginConfig, load_config_file, load_config_from_env, load_profile
from .metadata import (
    ConnectionSettings,
    MetadataResolver,
    ResolvedMetadata,
    build_cluster_credentials_request,
    build_serverless_credentials_request,
    filter_groups,
)

__all__ = [
    "AwsCredentials",
    "DatabaseCredentials",
    "IamMetadata",
    "CredentialsHolder",
    "TokenHolder",
    "utc_now",
    "CredentialCache",
    "RegisteredClient",
    "RegisteredClientCache",
    "DEFAULT_GRACE_PERIOD",
    "PluginConfig",
    "load_config_file",
    "load_config_from_env",
    "load_profile",
    "ConnectionSettings",
    "MetadataResolver",
    "ResolvedMetadata",
    "build_cluster_credentials_request",
    "build_serverless_credentials_request",
    "filter_groups",
]
