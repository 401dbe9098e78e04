"""Data models for profiles, resolved credentials and cached sessions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

PROVIDER_NAME = "SharedCredentialsProvider"


@dataclass
class Profile:
    """One named section of the shared credentials file.

    A profile either holds static keys (``access_key_id`` and
    ``secret_access_key``) or chains to another profile through
    ``role_arn`` and ``source_profile``.
    """

    name: str
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    role_arn: str = ""
    source_profile: str = ""
    role_session_name: str = ""
    external_id: str = ""
    mfa_serial: str = ""

    @property
    def is_role_chained(self) -> bool:
        return bool(self.role_arn)


@dataclass
class CredentialValue:
    """Credentials handed back to callers.

    ``expires_at`` is the true expiration of an assumed-role session and
    ``None`` for static profiles.
    """

    access_key_id: str
    secret_access_key: str
    session_token: str = ""
    provider_name: str = PROVIDER_NAME
    expires_at: Optional[datetime] = None

    def to_env(self) -> Dict[str, str]:
        """Render the credentials as AWS environment variables."""
        env = {
            "AWS_ACCESS_KEY_ID": self.access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.secret_access_key,
        }
        if self.session_token:
            env["AWS_SESSION_TOKEN"] = self.session_token
        return env


class SessionCredentials(BaseModel):
    """Temporary credentials returned by a role assumption."""

    access_key_id: str = Field(..., alias="AccessKeyId")
    secret_access_key: str = Field(..., alias="SecretAccessKey")
    session_token: str = Field(..., alias="SessionToken")
    expiration: datetime = Field(..., alias="Expiration")

    class Config:
        populate_by_name = True

    @field_validator("expiration")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC so comparisons never mix kinds."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_value(self) -> CredentialValue:
        return CredentialValue(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
            expires_at=self.expiration,
        )


class CachedSession(BaseModel):
    """Cache file document, shaped like an STS AssumeRole response.

    This is the layout the AWS CLI writes under ``~/.aws/cli/cache``.
    Provider-specific keys beyond the ones declared here are preserved.
    """

    credentials: SessionCredentials = Field(..., alias="Credentials")
    assumed_role_user: Optional[Dict[str, Any]] = Field(None, alias="AssumedRoleUser")

    class Config:
        populate_by_name = True
        extra = "allow"

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "CachedSession":
        """Build a cached session from a raw STS ``assume_role`` response."""
        document = {k: v for k, v in response.items() if k != "ResponseMetadata"}
        return cls.model_validate(document)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: str) -> "CachedSession":
        return cls.model_validate_json(data)


@dataclass
class ResolverState:
    """Expiry bookkeeping owned by a credentials provider.

    ``expiration`` already has the expiry window subtracted, so it is the
    instant at which the provider should refresh.
    """

    retrieved: bool = False
    expiration: Optional[datetime] = None
    expiry_window: timedelta = field(default_factory=timedelta)

    def reset(self) -> None:
        self.retrieved = False

    def mark_static(self) -> None:
        self.retrieved = True
        self.expiration = None

    def set_expiration(self, expiration: datetime, window: Optional[timedelta] = None) -> None:
        """Record a session expiration, refreshing ``window`` ahead of it.

        A window of zero or less is ignored.
        """
        if window is not None:
            self.expiry_window = window
        self.expiration = expiration
        if self.expiry_window > timedelta(0):
            self.expiration = expiration - self.expiry_window
        self.retrieved = True

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.retrieved:
            return True
        if self.expiration is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expiration
