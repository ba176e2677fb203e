"""
Shared fixtures: fake service clients and SAML assertion builders.
"""

import base64
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence
from unittest.mock import MagicMock

import pytest

from fedauth.aws.clients import AwsClientFactory
from fedauth.core.cache import CredentialCache, RegisteredClientCache


ROLE_ARN = "arn:aws:iam::123456789012:role/analyst"
PROVIDER_ARN = "arn:aws:iam::123456789012:saml-provider/corp-idp"
ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"
REDSHIFT_PREFIX = "https://redshift.amazon.com/SAML/Attributes/"


def sts_response(access_key: str = "K", secret: str = "S", token: str = "T",
                 lifetime: timedelta = timedelta(hours=1)) -> Dict:
    return {
        'Credentials': {
            'AccessKeyId': access_key,
            'SecretAccessKey': secret,
            'SessionToken': token,
            'Expiration': datetime.now(timezone.utc) + lifetime,
        }
    }


def build_assertion(roles: Sequence[str] = (f"{ROLE_ARN},{PROVIDER_ARN}",),
                    attributes: Optional[Dict[str, List[str]]] = None) -> str:
    """Base64 encoded SAML response with a role attribute and extra attributes."""
    attributes = dict(attributes or {})
    statements = [_attribute(ROLE_ATTRIBUTE, list(roles))]
    for name, values in attributes.items():
        full_name = name if name.startswith("https://") else REDSHIFT_PREFIX + name
        statements.append(_attribute(full_name, values))

    xml = (
        '<samlp:Response xmlns:samlp="urn:oasis:names:tc:SAML:2.0:protocol" '
        'xmlns:saml="urn:oasis:names:tc:SAML:2.0:assertion">'
        '<saml:Assertion><saml:AttributeStatement>'
        + "".join(statements)
        + '</saml:AttributeStatement></saml:Assertion></samlp:Response>'
    )
    return base64.b64encode(xml.encode("utf-8")).decode("ascii")


def _attribute(name: str, values: List[str]) -> str:
    inner = "".join(f"<saml:AttributeValue>{v}</saml:AttributeValue>" for v in values)
    return f'<saml:Attribute Name="{name}">{inner}</saml:Attribute>'


class FakeAwsFactory(AwsClientFactory):
    """Client factory handing out MagicMock clients and recording how they were requested."""

    def __init__(self):
        super().__init__(region="us-east-1")
        self.sts_client = MagicMock(name="sts")
        self.sso_oidc_client = MagicMock(name="sso-oidc")
        self.sso_client = MagicMock(name="sso")
        self.redshift_client = MagicMock(name="redshift")
        self.serverless_client = MagicMock(name="redshift-serverless")
        self.sts_requests = []
        self.redshift_requests = []

    def sts(self, credentials=None, unsigned=False, region=None):
        self.sts_requests.append({'credentials': credentials, 'unsigned': unsigned})
        return self.sts_client

    def sso_oidc(self, region):
        return self.sso_oidc_client

    def sso(self, region):
        return self.sso_client

    def redshift(self, credentials=None, region=None):
        self.redshift_requests.append({'credentials': credentials, 'region': region})
        return self.redshift_client

    def redshift_serverless(self, credentials=None, region=None):
        self.redshift_requests.append({'credentials': credentials, 'region': region, 'serverless': True})
        return self.serverless_client


@pytest.fixture
def fake_aws():
    return FakeAwsFactory()


@pytest.fixture
def cache():
    return CredentialCache()


@pytest.fixture
def client_cache():
    return RegisteredClientCache()
