"""
fedauth Python Package

Credential federation for data-warehouse drivers: turns SAML assertions,
OAuth2/OIDC tokens, JWTs or role chains into short-lived credentials.
"""

__version__ = "0.1.0"
__author__ = "Mauricio Fernandez"
__email__ = "mauricio.fernandez@siemens.com"

from .core.cache import CredentialCache, RegisteredClientCache
from .core.credentials import (
    AwsCredentials,
    DatabaseCredentials,
    IamMetadata,
    CredentialsHolder,
    TokenHolder,
)
from .plugins import (
    CredentialsPlugin,
    FederationPlugin,
    TokenPlugin,
    create_plugin,
    create_plugin_from_config,
)
from .types.errors import FederationError

__all__ = [
    "CredentialCache",
    "RegisteredClientCache",
    "AwsCredentials",
    "DatabaseCredentials",
    "IamMetadata",
    "CredentialsHolder",
    "TokenHolder",
    "CredentialsPlugin",
    "FederationPlugin",
    "TokenPlugin",
    "create_plugin",
    "create_plugin_from_config",
    "FederationError",
]
