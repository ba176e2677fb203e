"""
Cloud service clients used by the federation flows.

The factory builds boto3 clients for STS, SSO, SSO-OIDC and both
provisioned and serverless Redshift. Calls that authenticate with an
assertion or token rather than signed credentials use unsigned clients.
Blocking client calls run in the default executor so flows stay awaitable.
"""

import asyncio
import functools
import logging
from typing import Any, Dict, Optional

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.credentials import AwsCredentials
from ..types.errors import UnexpectedError, from_client_error
from ..util.validation import validate_url


logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


class AwsClientFactory:
    """
    Creates service clients.

    Tests replace the factory (or single methods) with fakes that return
    objects exposing the same operation names.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        sts_endpoint_url: Optional[str] = None,
        session: Optional[boto3.session.Session] = None
    ):
        if sts_endpoint_url:
            validate_url(sts_endpoint_url)
        self.region = region
        self.sts_endpoint_url = sts_endpoint_url
        self._session = session

    def _boto_session(self) -> boto3.session.Session:
        if self._session is None:
            self._session = boto3.session.Session()
        return self._session

    def _region(self, region: Optional[str] = None) -> str:
        return region or self.region or self._boto_session().region_name or DEFAULT_REGION

    def _client(
        self,
        service: str,
        region: Optional[str] = None,
        credentials: Optional[AwsCredentials] = None,
        unsigned: bool = False,
        endpoint_url: Optional[str] = None
    ):
        kwargs: Dict[str, Any] = {'region_name': self._region(region)}
        if unsigned:
            kwargs['config'] = Config(signature_version=UNSIGNED)
        elif credentials is not None:
            kwargs.update(credentials.as_client_kwargs())
        if endpoint_url:
            kwargs['endpoint_url'] = endpoint_url
        return self._boto_session().client(service, **kwargs)

    def sts(self, credentials: Optional[AwsCredentials] = None, unsigned: bool = False,
            region: Optional[str] = None):
        return self._client("sts", region, credentials, unsigned, self.sts_endpoint_url)

    def sso_oidc(self, region: str):
        return self._client("sso-oidc", region, unsigned=True)

    def sso(self, region: str):
        return self._client("sso", region, unsigned=True)

    def redshift(self, credentials: Optional[AwsCredentials] = None, region: Optional[str] = None):
        return self._client("redshift", region, credentials)

    def redshift_serverless(self, credentials: Optional[AwsCredentials] = None, region: Optional[str] = None):
        return self._client("redshift-serverless", region, credentials)


async def call_aws(client: Any, operation: str, **kwargs: Any) -> Dict[str, Any]:
    """
    Invoke ``operation`` on ``client`` in the default executor.

    ClientError is mapped onto the error taxonomy; other botocore
    failures become UnexpectedError.
    """
    method = getattr(client, operation)
    loop = asyncio.get_running_loop()
    logger.debug(f"Calling {operation}")
    try:
        return await loop.run_in_executor(None, functools.partial(method, **kwargs))
    except ClientError as e:
        raise from_client_error(e) from e
    except BotoCoreError as e:
        raise UnexpectedError(f"{operation} failed: {e}", cause=e) from e
