"""Thread-safe credential cache around a provider.

``SharedCredentialsProvider`` is not safe to share between threads. This
wrapper guarantees at most one refresh in flight; while it runs, other
callers keep receiving the previously retrieved value.
"""

import threading
from typing import Optional

import boto3
import structlog
from botocore.credentials import RefreshableCredentials
from botocore.session import Session

from .models import CredentialValue
from .provider import SharedCredentialsProvider

logger = structlog.get_logger(__name__)


class Credentials:
    """Caches the value returned by a provider until it reports expired.

    Usage:
        creds = Credentials(SharedCredentialsProvider(profile="ops"))
        value = creds.get()
        s3 = creds.boto3_session(region_name="us-east-1").client("s3")
    """

    def __init__(self, provider: SharedCredentialsProvider):
        self.provider = provider
        self._value: Optional[CredentialValue] = None
        self._force_refresh = True
        self._lock = threading.Lock()

    def _refresh_needed(self) -> bool:
        return self._force_refresh or self._value is None or self.provider.is_expired()

    def _refresh(self) -> CredentialValue:
        # precondition: self._lock is held
        value = self.provider.retrieve()
        self._value = value
        self._force_refresh = False
        return value

    def get(self) -> CredentialValue:
        """Return current credentials, refreshing them if expired.

        Raises:
            SharedCredentialsError: If a required refresh fails
        """
        if not self._refresh_needed():
            return self._value

        # Non-blocking: if another thread is refreshing, serve the old value.
        if self._lock.acquire(False):
            try:
                if not self._refresh_needed():
                    return self._value
                return self._refresh()
            finally:
                self._lock.release()

        previous = self._value
        if previous is not None:
            logger.debug("Refresh in progress, returning previous credentials")
            return previous

        with self._lock:
            if not self._refresh_needed():
                return self._value
            return self._refresh()

    def expire(self) -> None:
        """Force the next ``get()`` to refresh."""
        self._force_refresh = True

    def is_expired(self) -> bool:
        return self._refresh_needed()

    def boto3_session(self, region_name: Optional[str] = None) -> boto3.Session:
        """Create a boto3 session backed by these credentials.

        Static credentials are passed through directly. Role credentials use
        botocore's ``RefreshableCredentials`` so long-lived clients re-resolve
        through this wrapper once the provider reports expired. The provider's
        expiry window replaces botocore's fixed 15 and 10 minute refresh
        timeouts, which would otherwise refresh a 15 minute session on every
        request.
        """
        value = self.get()

        if value.expires_at is None:
            return boto3.Session(
                aws_access_key_id=value.access_key_id,
                aws_secret_access_key=value.secret_access_key,
                aws_session_token=value.session_token or None,
                region_name=region_name,
            )

        def refresh_credentials():
            logger.debug("Refreshing boto3 session credentials", profile=self.provider.profile)
            return self._metadata(self.get())

        session_credentials = RefreshableCredentials.create_from_metadata(
            metadata=self._metadata(value),
            refresh_using=refresh_credentials,
            method="shared-credentials-assume-role",
            advisory_timeout=0,
            mandatory_timeout=0,
        )

        botocore_session = Session()
        botocore_session._credentials = session_credentials
        return boto3.Session(botocore_session=botocore_session, region_name=region_name)

    def _metadata(self, value: CredentialValue) -> dict:
        # Refresh deadline is the expiration minus the provider's window.
        refresh_at = self.provider.expires_at() or value.expires_at
        return {
            "access_key": value.access_key_id,
            "secret_key": value.secret_access_key,
            "token": value.session_token,
            "expiry_time": refresh_at.isoformat() if refresh_at else None,
        }
