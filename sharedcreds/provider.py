"""Shared credentials provider.

Resolves credentials for a named profile in the shared credentials file,
assuming a role when the profile is role-chained, and tracks when the
resolved credentials need refreshing.

Usage:
    provider = SharedCredentialsProvider(profile="ops", cache=True)
    value = provider.retrieve()
    if provider.is_expired():
        value = provider.retrieve()

The provider does no locking. Wrap it in ``Credentials`` when several threads
share one instance.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional

import structlog

from .assume_role import AssumeResult, RoleAssumer, STSOptions
from .cache_provider import CacheProvider
from .errors import SharedCredentialsError
from .models import CredentialValue, Profile, ResolverState
from .profiles import DEFAULT_PROFILE, load_profile, resolve_credentials_filename, resolve_profile_name

logger = structlog.get_logger(__name__)


class SharedCredentialsProvider:
    """Retrieves credentials from a shared credentials file profile.

    Attributes:
        cache: Whether assumed-role sessions are cached (default: False)
        sts: Role assumption settings
        state: Expiry bookkeeping for the last retrieval
        cache_errors: Non-fatal cache failures seen by the last retrieval
    """

    def __init__(
        self,
        filename: Optional[str] = None,
        profile: Optional[str] = None,
        cache: bool = False,
        cache_provider: Optional[CacheProvider] = None,
        sts: Optional[STSOptions] = None,
    ):
        """
        Args:
            filename: Credentials file path. Falls back to
                AWS_SHARED_CREDENTIALS_FILE, then ~/.aws/credentials.
            profile: Profile name. Falls back to AWS_PROFILE, then "default".
            cache: Cache assumed-role sessions through ``cache_provider``
            cache_provider: Where sessions are cached (default: ~/.aws/cli/cache)
            sts: Role assumption settings (default duration 15 minutes)
        """
        self._filename = filename
        self._profile = profile
        self.cache = cache
        self.sts = sts or STSOptions()
        self.assumer = RoleAssumer(self.sts, cache=cache, cache_provider=cache_provider)
        self.state = ResolverState(expiry_window=self.sts.expiry_window)
        self.cache_errors: List[SharedCredentialsError] = []

    @property
    def filename(self) -> str:
        if not self._filename:
            self._filename = resolve_credentials_filename()
        return self._filename

    @property
    def profile(self) -> str:
        if not self._profile:
            self._profile = resolve_profile_name()
        return self._profile

    def retrieve(self) -> CredentialValue:
        """Resolve credentials for the configured profile.

        Raises:
            SharedCredentialsError: Any load, validation or role assumption failure
        """
        self.state.reset()
        self.cache_errors = []

        filename = self.filename
        profile = load_profile(filename, self.profile)

        if profile.is_role_chained:
            source_name = profile.source_profile or DEFAULT_PROFILE
            source = load_profile(filename, source_name)
            return self.assume(profile, source)

        self.state.mark_static()
        logger.debug("Resolved static credentials", profile=profile.name, filename=filename)
        return CredentialValue(
            access_key_id=profile.access_key_id,
            secret_access_key=profile.secret_access_key,
            session_token=profile.session_token,
        )

    def assume(self, role: Profile, source: Profile) -> CredentialValue:
        """Assume the role named by ``role`` and record its expiration."""
        if not role.source_profile:
            role = replace(role, source_profile=DEFAULT_PROFILE)

        result: AssumeResult = self.assumer.assume(role, source)
        self.cache_errors = list(result.cache_errors)
        self.state.set_expiration(result.session.credentials.expiration, self.sts.expiry_window)

        logger.debug(
            "Resolved role credentials",
            profile=role.name,
            from_cache=result.from_cache,
            refresh_at=self.state.expiration.isoformat() if self.state.expiration else None,
        )
        return result.value

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True before the first successful retrieval and once the refresh instant passes."""
        return self.state.is_expired(now)

    def expires_at(self) -> Optional[datetime]:
        """Instant at which the credentials report expired, or None for static ones."""
        return self.state.expiration


def new_shared_credentials_provider(
    filename: Optional[str] = None,
    profile: Optional[str] = None,
    cache: bool = False,
    cache_provider: Optional[CacheProvider] = None,
    duration: Optional[timedelta] = None,
    expiry_window: Optional[timedelta] = None,
    client=None,
    region: Optional[str] = None,
) -> SharedCredentialsProvider:
    """Convenience constructor taking the STS settings as keyword arguments."""
    sts = STSOptions(
        duration=duration,
        expiry_window=expiry_window or timedelta(0),
        client=client,
        region=region,
    )
    return SharedCredentialsProvider(
        filename=filename,
        profile=profile,
        cache=cache,
        cache_provider=cache_provider,
        sts=sts,
    )
