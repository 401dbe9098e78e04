"""Role assumption for role-chained profiles.

A role-chained profile names a role ARN and a source profile. The source
profile's static keys sign an STS ``AssumeRole`` request, and the temporary
credentials that come back are optionally cached on disk so that repeated
invocations within the session lifetime skip the network call.
"""

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

import boto3
import structlog
from pydantic import ValidationError

from .cache_provider import CacheProvider, JSONFileCacheProvider, cache_key
from .errors import AssumeRoleError, CacheReadError, CacheWriteError, SharedCredentialsError
from .models import CachedSession, CredentialValue, Profile

logger = structlog.get_logger(__name__)

# Expire as often as AWS permits.
DEFAULT_DURATION = timedelta(minutes=15)
MIN_DURATION = timedelta(minutes=15)
MAX_DURATION = timedelta(hours=12)


class AssumeRoler(Protocol):
    """The subset of the STS client API used here."""

    def assume_role(self, **kwargs: Any) -> Dict[str, Any]: ...


@dataclass
class STSOptions:
    """Settings for the role assumption request.

    Attributes:
        duration: Lifetime requested for the session (default: 15 minutes).
            None or zero selects the default.
        expiry_window: How long before expiry the credentials report expired.
            A window of 10s makes ``is_expired()`` turn true 10 seconds early.
            Zero or less disables the early refresh.
        client: STS client to call. When unset, a client is built from the
            source profile's static keys for every request.
        region: Region for the default STS client
    """

    duration: Optional[timedelta] = None
    expiry_window: timedelta = field(default_factory=timedelta)
    client: Optional[AssumeRoler] = None
    region: Optional[str] = None

    def __post_init__(self):
        if not self.duration:
            self.duration = DEFAULT_DURATION
        if not MIN_DURATION <= self.duration <= MAX_DURATION:
            raise ValueError(
                f"duration must be between {MIN_DURATION} and {MAX_DURATION}, got {self.duration}"
            )


@dataclass
class AssumeResult:
    """Outcome of one role assumption."""

    value: CredentialValue
    session: CachedSession
    from_cache: bool = False
    cache_errors: List[SharedCredentialsError] = field(default_factory=list)


def generate_session_name() -> str:
    """Session name derived from the current time in nanoseconds."""
    return str(time.time_ns())


class RoleAssumer:
    """Exchanges a source profile's keys for a role session.

    Usage:
        assumer = RoleAssumer(STSOptions(), cache=True)
        result = assumer.assume(role_profile, source_profile)
        print(result.value.access_key_id, result.value.expires_at)
    """

    def __init__(
        self,
        options: Optional[STSOptions] = None,
        cache: bool = False,
        cache_provider: Optional[CacheProvider] = None,
    ):
        self.options = options or STSOptions()
        self.cache = cache
        self.cache_provider = cache_provider or JSONFileCacheProvider()

    def _sts_client(self, source: Profile) -> AssumeRoler:
        if self.options.client is not None:
            return self.options.client

        session = boto3.Session(
            aws_access_key_id=source.access_key_id or None,
            aws_secret_access_key=source.secret_access_key or None,
            aws_session_token=source.session_token or None,
            region_name=self.options.region,
        )
        return session.client("sts")

    def _call_sts(self, role: Profile, source: Profile) -> CachedSession:
        request: Dict[str, Any] = {
            "RoleArn": role.role_arn,
            "RoleSessionName": role.role_session_name,
            "DurationSeconds": int(self.options.duration.total_seconds()),
        }
        if role.external_id:
            request["ExternalId"] = role.external_id

        logger.debug(
            "Assuming IAM role",
            profile=role.name,
            source_profile=source.name,
            role_arn=role.role_arn,
            session_name=role.role_session_name,
            duration_seconds=request["DurationSeconds"],
        )

        try:
            response = self._sts_client(source).assume_role(**request)
        except Exception as e:
            logger.error(
                "Failed to assume role",
                role_arn=role.role_arn,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise AssumeRoleError(
                f"unable to assume role {role.role_arn} as session {role.role_session_name}: {e}",
                profile=role.name,
            ) from e

        if not response or not response.get("Credentials"):
            raise AssumeRoleError("AssumeRole response missing credentials", profile=role.name)

        try:
            session = CachedSession.from_response(response)
        except ValidationError as e:
            raise AssumeRoleError(f"AssumeRole response has invalid credentials: {e}", profile=role.name) from e

        logger.info(
            "Role assumed successfully",
            profile=role.name,
            role_arn=role.role_arn,
            expires_at=session.credentials.expiration.isoformat(),
        )
        return session

    def assume(self, role: Profile, source: Profile) -> AssumeResult:
        """Assume ``role.role_arn`` using ``source``'s credentials.

        Args:
            role: Role-chained profile naming the role to assume
            source: Profile whose static keys sign the request

        Returns:
            AssumeResult with the session credentials and their expiration

        Raises:
            AssumeRoleError: If the STS call fails or returns no credentials
        """
        # Keyed on the configured name so unnamed sessions still hit the cache.
        configured_session_name = role.role_session_name
        if not role.role_session_name:
            role = replace(role, role_session_name=generate_session_name())

        if not self.cache:
            session = self._call_sts(role, source)
            return AssumeResult(value=session.credentials.to_value(), session=session)

        cache_errors: List[SharedCredentialsError] = []
        store = self.cache_provider.get(role.source_profile, role.role_arn, configured_session_name)
        key = cache_key(role.source_profile, role.role_arn, configured_session_name)

        # Entries inside the expiry window would be reported expired as soon as
        # they are served, so they count as stale here too.
        check_at = datetime.now(timezone.utc)
        if self.options.expiry_window > timedelta(0):
            check_at += self.options.expiry_window

        if not store.is_expired(check_at):
            try:
                session = store.get()
            except CacheReadError as e:
                logger.warning("Cached session unreadable, assuming role", cache_key=key, error=str(e))
                cache_errors.append(e)
            else:
                logger.debug("Using cached session", cache_key=key)
                return AssumeResult(
                    value=session.credentials.to_value(),
                    session=session,
                    from_cache=True,
                )

        session = self._call_sts(role, source)
        try:
            store.set(session)
        except CacheWriteError as e:
            logger.warning("Failed to cache assumed role session", cache_key=key, error=str(e))
            cache_errors.append(e)

        return AssumeResult(
            value=session.credentials.to_value(),
            session=session,
            cache_errors=cache_errors,
        )
