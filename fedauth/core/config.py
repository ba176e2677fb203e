"""
Plugin configuration for fedauth.

Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from ..types.errors import ConfigurationError, MissingParameterError


TRUE_VALUES = ('true', '1', 'yes', 'on')


def parse_bool(value: Any) -> bool:
    """Parse a boolean parameter value."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


class PluginConfig:
    """
    Case-insensitive store of plugin parameters.

    Parameters originate from the connection URL or properties and arrive
    one at a time through ``add_parameter``. Keys are compared without
    regard to case; the last value set for a key wins.
    """

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        self._params: Dict[str, Tuple[str, Any]] = {}
        for key, value in (params or {}).items():
            self.set(key, value)

    def set(self, key: str, value: Any) -> None:
        self._params[key.lower()] = (key, value)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get the first present value among ``keys`` (aliases)."""
        for key in keys:
            entry = self._params.get(key.lower())
            if entry is not None and entry[1] is not None:
                return entry[1]
        return default

    def get_str(self, *keys: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(*keys)
        if value is None:
            return default
        return str(value)

    def get_int(self, *keys: str, default: Optional[int] = None) -> Optional[int]:
        value = self.get(*keys)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Parameter {keys[0]} must be an integer",
                config_key=keys[0],
                config_value=value
            )

    def get_bool(self, *keys: str, default: bool = False) -> bool:
        value = self.get(*keys)
        if value is None or value == "":
            return default
        return parse_bool(value)

    def get_optional_bool(self, *keys: str) -> Optional[bool]:
        """Get a boolean only if the parameter was explicitly supplied."""
        value = self.get(*keys)
        if value is None or value == "":
            return None
        return parse_bool(value)

    def get_list(self, *keys: str, separator: str = ",") -> List[str]:
        value = self.get(*keys)
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return [item.strip() for item in str(value).split(separator) if item.strip()]

    def require(self, *keys: str) -> str:
        """Get a non-empty parameter or raise MissingParameterError."""
        value = self.get_str(*keys)
        if value is None or value.strip() == "":
            raise MissingParameterError(keys[0])
        return value

    def items(self) -> Iterator[Tuple[str, Any]]:
        for original_key, value in self._params.values():
            yield original_key, value

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.items())

    def __contains__(self, key: str) -> bool:
        return key.lower() in self._params

    def __len__(self) -> int:
        return len(self._params)


def load_config_from_env(prefix: str = "FEDAUTH_") -> Dict[str, str]:
    """
    Load plugin parameters from environment variables with given prefix.
    """
    config = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            config[key[len(prefix):].lower()] = value

    return config


def load_config_file(file_path: str) -> Dict[str, Any]:
    """Load plugin parameters from a file (JSON or YAML)."""
    if not os.path.exists(file_path):
        raise ConfigurationError(f"Configuration file not found: {file_path}",
                                 config_key="config_file", config_value=file_path)

    file_ext = Path(file_path).suffix.lower()

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            if file_ext == '.json':
                data = json.load(f)
            elif file_ext in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {file_ext}",
                                         config_key="config_file", config_value=file_path)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid configuration file {file_path}: {e}",
                                     config_key="config_file", config_value=file_path) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a mapping",
                                 config_key="config_file", config_value=file_path)
    return data


def load_profile(file_path: str, profile: str = "default") -> Dict[str, Any]:
    """
    Load one named profile from a parameter file.

    Files either hold a flat mapping of parameters or a ``profiles``
    mapping keyed by profile name.
    """
    data = load_config_file(file_path)
    if "profiles" not in data:
        return data

    profiles = data.get("profiles") or {}
    if profile not in profiles:
        raise ConfigurationError(f"Profile '{profile}' not found in configuration",
                                 config_key="profile", config_value=profile)
    return dict(profiles[profile] or {})


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge multiple parameter dictionaries.
    Later configs override earlier ones.
    """
    result: Dict[str, Any] = {}

    for config in configs:
        if isinstance(config, dict):
            result.update(config)

    return result
