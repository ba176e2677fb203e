"""
fedauth command line credential helper.

Loads plugin parameters from a profile file, the environment and the
command line, runs the selected plugin once and prints the result as JSON
on stdout. Cloud credentials use the ``credential_process`` layout.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Union

from .. import __version__
from ..core.cache import CredentialCache
from ..core.config import load_config_from_env, load_profile, merge_configs
from ..core.credentials import CredentialsHolder, DatabaseCredentials, TokenHolder
from ..http.client import quiet_http_logging
from ..plugins.base import CredentialsPlugin, TokenPlugin
from ..plugins.registry import create_plugin_from_config
from ..types.errors import FederationError


def parse_params(pairs: List[str]) -> Dict[str, str]:
    """Parse ``key=value`` pairs from the command line."""
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got: {pair}")
        params[key.strip()] = value
    return params


def format_holder(holder: Union[CredentialsHolder, TokenHolder]) -> Dict[str, Any]:
    """Render a holder as a JSON-serializable mapping."""
    expiration = holder.expiration.isoformat()
    if isinstance(holder, TokenHolder):
        return {"Token": holder.token, "TokenType": holder.token_type, "Expiration": expiration}

    creds = holder.credentials
    if isinstance(creds, DatabaseCredentials):
        return {"DbUser": creds.db_user, "DbPassword": creds.db_password, "Expiration": expiration}

    output: Dict[str, Any] = {
        "Version": 1,
        "AccessKeyId": creds.access_key_id,
        "SecretAccessKey": creds.secret_access_key,
        "SessionToken": creds.session_token,
        "Expiration": expiration,
    }
    if holder.metadata is not None and holder.metadata.db_user:
        output["DbUser"] = holder.metadata.db_user
    return output


async def run(params: Dict[str, Any], database: bool = False) -> Dict[str, Any]:
    plugin = create_plugin_from_config(params, cache=CredentialCache())
    if isinstance(plugin, TokenPlugin):
        return format_holder(await plugin.get_auth_token())
    if database and isinstance(plugin, CredentialsPlugin):
        return format_holder(await plugin.get_database_credentials())
    return format_holder(await plugin.get_credentials())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Federated credentials for Amazon Redshift")
    parser.add_argument("--config", "-c", help="Parameter file (YAML or JSON)")
    parser.add_argument("--profile", "-p", default="default", help="Profile within the parameter file")
    parser.add_argument("--param", "-P", action="append", default=[], metavar="KEY=VALUE",
                        help="Plugin parameter, may be repeated")
    parser.add_argument("--database", action="store_true",
                        help="Exchange for database credentials on cluster_identifier or workgroup_name")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    quiet_http_logging(verbose=args.verbose)

    try:
        params = merge_configs(
            load_profile(args.config, args.profile) if args.config else {},
            load_config_from_env(),
            parse_params(args.param),
        )
        result = asyncio.run(run(params, database=args.database))
    except FederationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except argparse.ArgumentTypeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
