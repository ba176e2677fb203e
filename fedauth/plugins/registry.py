"""
Plugin selection by name.

The set of plugins is closed: a name maps to exactly one class, and the
class names used by other drivers are accepted as aliases.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Type

from .azure import AzureCredentialsPlugin, BrowserAzureCredentialsPlugin, BrowserAzureOAuth2Plugin
from .base import FederationPlugin
from .browser_saml import BrowserSamlCredentialsPlugin
from .form import AdfsCredentialsPlugin, OktaCredentialsPlugin, PingCredentialsPlugin
from .idc import IdcBrowserAuthPlugin, IdcDeviceAuthPlugin, IdcRoleCredentialsPlugin
from .role_chain import RoleChainCredentialsPlugin
from .saml import BasicSamlCredentialsPlugin
from .token import IdpTokenAuthPlugin, IdpTokenUrlAuthPlugin
from .web_identity import BasicJwtPlugin, WebIdentityCredentialsPlugin
from ..aws.clients import AwsClientFactory
from ..common.utils import sanitize_dict
from ..core.cache import CredentialCache, RegisteredClientCache
from ..types.errors import ConfigurationError, MissingParameterError


logger = logging.getLogger(__name__)

PLUGIN_NAME_KEY = "plugin_name"

PLUGINS: Dict[str, Type[FederationPlugin]] = {
    plugin.plugin_name: plugin
    for plugin in (
        BasicSamlCredentialsPlugin,
        BrowserSamlCredentialsPlugin,
        OktaCredentialsPlugin,
        PingCredentialsPlugin,
        AdfsCredentialsPlugin,
        IdcDeviceAuthPlugin,
        IdcBrowserAuthPlugin,
        IdcRoleCredentialsPlugin,
        WebIdentityCredentialsPlugin,
        BasicJwtPlugin,
        AzureCredentialsPlugin,
        BrowserAzureCredentialsPlugin,
        BrowserAzureOAuth2Plugin,
        RoleChainCredentialsPlugin,
        IdpTokenAuthPlugin,
        IdpTokenUrlAuthPlugin,
    )
}

ALIASES: Dict[str, str] = {
    "basicsamlcredentialsprovider": "saml",
    "browsersamlcredentialsprovider": "browser_saml",
    "oktacredentialsprovider": "okta",
    "pingcredentialsprovider": "ping",
    "adfscredentialsprovider": "adfs",
    "browseridcauthplugin": "idc_device",
    "basicjwtcredentialsprovider": "basic_jwt",
    "azurecredentialsprovider": "azure",
    "browserazurecredentialsprovider": "browser_azure",
    "browserazureoauth2credentialsprovider": "browser_azure_oauth2",
    "assumerolechaincredentialsprovider": "role_chain",
    "idptokenauthplugin": "idp_token",
    "idptokenurlauthplugin": "idp_token_url",
}


def resolve_plugin_class(name: str) -> Type[FederationPlugin]:
    """Look up a plugin class by name, alias or dotted class path."""
    if not name:
        raise MissingParameterError(PLUGIN_NAME_KEY)

    key = name.strip().rsplit(".", 1)[-1].lower()
    key = ALIASES.get(key, key)
    plugin_class = PLUGINS.get(key)
    if plugin_class is None:
        raise ConfigurationError(
            f"Unknown plugin: {name}. Known plugins: {', '.join(sorted(PLUGINS))}",
            config_key=PLUGIN_NAME_KEY,
            config_value=name
        )
    return plugin_class


def create_plugin(
    name: str,
    cache: Optional[CredentialCache] = None,
    aws: Optional[AwsClientFactory] = None,
    client_cache: Optional[RegisteredClientCache] = None,
    log: Optional[logging.Logger] = None
) -> FederationPlugin:
    """Create a plugin instance by name."""
    plugin = resolve_plugin_class(name)(cache=cache, aws=aws, client_cache=client_cache)
    if log is not None:
        plugin.set_logger(log)
    logger.debug(f"Created plugin {type(plugin).__name__}")
    return plugin


def create_plugin_from_config(params: Mapping[str, Any], **kwargs: Any) -> FederationPlugin:
    """
    Create a plugin from a parameter mapping.

    ``plugin_name`` selects the plugin; every other entry is passed to
    ``add_parameter``.
    """
    name = next((str(v) for k, v in params.items() if k.lower() == PLUGIN_NAME_KEY), "")
    logger.debug(f"Creating plugin from parameters {sanitize_dict(dict(params))}")
    plugin = create_plugin(name, **kwargs)
    for key, value in params.items():
        if key.lower() != PLUGIN_NAME_KEY and value is not None:
            plugin.add_parameter(key, value)
    return plugin
