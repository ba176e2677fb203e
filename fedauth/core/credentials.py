"""
Credential and token value types.

Holders are created only when a flow completes successfully and are never
mutated afterwards; the cache replaces them wholesale.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Union


def utc_now() -> datetime:
    """Get the current time in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by some service clients."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class AwsCredentials:
    """Temporary cloud credentials."""
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None

    def __repr__(self) -> str:
        return f"AwsCredentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"

    @classmethod
    def from_response(cls, data: dict) -> "AwsCredentials":
        """Build from an STS ``Credentials`` mapping."""
        return cls(
            access_key_id=data['AccessKeyId'],
            secret_access_key=data['SecretAccessKey'],
            session_token=data.get('SessionToken'),
        )

    def as_client_kwargs(self) -> dict:
        """Keyword arguments accepted by ``boto3`` client constructors."""
        return {
            'aws_access_key_id': self.access_key_id,
            'aws_secret_access_key': self.secret_access_key,
            'aws_session_token': self.session_token,
        }


@dataclass(frozen=True)
class DatabaseCredentials:
    """Ephemeral database user and password."""
    db_user: str
    db_password: str

    def __repr__(self) -> str:
        return f"DatabaseCredentials(db_user={self.db_user!r}, db_password='***')"


@dataclass(frozen=True)
class IamMetadata:
    """Database settings asserted by the identity provider."""
    db_user: Optional[str] = None
    db_groups: Tuple[str, ...] = ()
    auto_create: bool = False
    force_lowercase: bool = False
    allow_db_user_override: bool = False

    @property
    def db_groups_string(self) -> str:
        return ",".join(self.db_groups)


Credential = Union[AwsCredentials, DatabaseCredentials]


@dataclass(frozen=True)
class CredentialsHolder:
    """A credential together with its expiration and optional metadata."""
    credentials: Credential
    expiration: datetime
    metadata: Optional[IamMetadata] = None
    refresh: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'expiration', ensure_utc(self.expiration))

    def is_expired(self, grace: timedelta = timedelta(0), now: Optional[datetime] = None) -> bool:
        """Check whether the holder is within ``grace`` of its expiration."""
        now = now or utc_now()
        return now > self.expiration - grace

    def from_cache(self) -> "CredentialsHolder":
        """Copy flagged as served from cache."""
        return replace(self, refresh=False)

    def with_metadata(self, metadata: Optional[IamMetadata]) -> "CredentialsHolder":
        return replace(self, metadata=metadata)


@dataclass(frozen=True)
class TokenHolder:
    """An opaque bearer token with its expiration."""
    token: str = field(repr=False)
    expiration: datetime = field(default_factory=utc_now)
    refresh: bool = True
    token_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'expiration', ensure_utc(self.expiration))

    def is_expired(self, grace: timedelta = timedelta(0), now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return now > self.expiration - grace

    def from_cache(self) -> "TokenHolder":
        return replace(self, refresh=False)


Holder = Union[CredentialsHolder, TokenHolder]
