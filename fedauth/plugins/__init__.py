# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Package plugins provides the federation strategies.

Credential plugins return CredentialsHolder objects through
get_credentials(); token plugins return TokenHolder objects through
get_auth_token(). All of them share the FederationPlugin contract.
"""

from .base import CredentialsPlugin, FederationPlugin, TokenPlugin
from .saml import BasicSamlCredentialsPlugin, SamlCredentialsPlugin
from .browser_saml import BrowserSamlCredentialsPlugin
from .form import AdfsCredentialsPlugin, OktaCredentialsPlugin, PingCredentialsPlugin
from .idc import IdcBrowserAuthPlugin, IdcDeviceAuthPlugin, IdcRoleCredentialsPlugin
from .web_identity import BasicJwtPlugin, WebIdentityCredentialsPlugin
from .azure import AzureCredentialsPlugin, BrowserAzureCredentialsPlugin, BrowserAzureOAuth2Plugin
from .role_chain import RoleChainCredentialsPlugin
from .token import IdpTokenAuthPlugin, IdpTokenUrlAuthPlugin
from .registry import PLUGINS, create_plugin, create_plugin_from_config, resolve_plugin_class

__all__ = [
    "CredentialsPlugin",
    "FederationPlugin",
    "TokenPlugin",
    "BasicSamlCredentialsPlugin",
    "SamlCredentialsPlugin",
    "BrowserSamlCredentialsPlugin",
    "AdfsCredentialsPlugin",
    "OktaCredentialsPlugin",
    "PingCredentialsPlugin",
    "IdcBrowserAuthPlugin",
    "IdcDeviceAuthPlugin",
    "IdcRoleCredentialsPlugin",
    "BasicJwtPlugin",
    "WebIdentityCredentialsPlugin",
    "AzureCredentialsPlugin",
    "BrowserAzureCredentialsPlugin",
    "BrowserAzureOAuth2Plugin",
    "RoleChainCredentialsPlugin",
    "IdpTokenAuthPlugin",
    "IdpTokenUrlAuthPlugin",
    "PLUGINS",
    "create_plugin",
    "create_plugin_from_config",
    "resolve_plugin_class",
]
