"""
Basic fedauth usage example.

This example demonstrates the fundamental fedauth operations:
- Sharing one credential cache between plugins
- Exchanging a JWT for cloud credentials
- Serving the second request from the cache
- Passing a static token through for native authentication
"""

import asyncio
import logging
import os

from fedauth import CredentialCache, FederationError, create_plugin


async def basic_example():
    """Demonstrate basic fedauth usage"""
    print("Basic fedauth Example")
    print("=" * 30)

    # 1. One cache for every connection in the process
    cache = CredentialCache()

    # 2. Web identity plugin configured like a driver connection
    plugin = create_plugin("jwt", cache=cache)
    plugin.add_parameter("role_arn", os.environ.get("ROLE_ARN", "arn:aws:iam::123456789012:role/warehouse"))
    plugin.add_parameter("web_identity_token", os.environ.get("WEB_IDENTITY_TOKEN", ""))
    plugin.add_parameter("Region", os.environ.get("AWS_REGION", "us-east-1"))

    try:
        # 3. First call runs the flow, the second one is served from the cache
        holder = await plugin.get_credentials()
        print(f"✓ Credentials issued, expiring {holder.expiration.isoformat()}")

        again = await plugin.get_credentials()
        print(f"✓ Second call from cache: {not again.refresh}")
    except FederationError as e:
        print(f"✗ Federation failed: {e}")

    # 4. Static token passed straight to the server
    token_plugin = create_plugin("idp_token", cache=cache)
    token_plugin.add_parameter("token", "example-token")
    token_plugin.add_parameter("token_type", "ACCESS_TOKEN")
    token = await token_plugin.get_auth_token()
    print(f"✓ Token of type {token.token_type} valid until {token.expiration.isoformat()}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(basic_example())
