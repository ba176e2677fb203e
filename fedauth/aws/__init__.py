"""
Cloud service client access.
"""

from .clients import DEFAULT_REGION, AwsClientFactory, call_aws

__all__ = ["DEFAULT_REGION", "AwsClientFactory", "call_aws"]
