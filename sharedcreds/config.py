import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import structlog

from .assume_role import DEFAULT_DURATION, STSOptions
from .cache_provider import DEFAULT_CACHE_DIR, JSONFileCacheProvider
from .provider import SharedCredentialsProvider

logger = structlog.get_logger(__name__)

TRUE_VALUES = ("true", "1", "yes", "on")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in TRUE_VALUES


def _env_seconds(name: str, default: timedelta) -> timedelta:
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    try:
        return timedelta(seconds=int(value))
    except ValueError:
        raise ValueError(f"{name} must be an integer number of seconds, got {value!r}")


@dataclass
class Settings:
    """Provider settings read from the environment.

    Environment variables:
        - AWS_SHARED_CREDENTIALS_FILE: Credentials file (default: ~/.aws/credentials)
        - AWS_PROFILE: Profile to resolve (default: default)
        - AWS_REGION: Region for the STS client (default: unset)
        - SHAREDCREDS_CACHE: Cache assumed-role sessions (default: false)
        - SHAREDCREDS_CACHE_DIR: Cache directory (default: ~/.aws/cli/cache)
        - SHAREDCREDS_DURATION_SECONDS: Session lifetime (default: 900)
        - SHAREDCREDS_EXPIRY_WINDOW_SECONDS: Early refresh window (default: 0)
        - LOG_LEVEL: Logging level (default: WARNING)
        - LOG_FORMAT: "console" or "json" (default: console)

    Values passed to the constructor win over the environment.
    """

    filename: Optional[str] = None
    profile: Optional[str] = None
    region: Optional[str] = None
    cache: Optional[bool] = None
    cache_dir: Optional[str] = None
    duration: Optional[timedelta] = None
    expiry_window: Optional[timedelta] = None
    log_level: str = ""
    json_logs: Optional[bool] = None

    def __post_init__(self):
        self.filename = self.filename or os.getenv("AWS_SHARED_CREDENTIALS_FILE") or None
        self.profile = self.profile or os.getenv("AWS_PROFILE") or None
        self.region = self.region or os.getenv("AWS_REGION") or None
        if self.cache is None:
            self.cache = _env_bool("SHAREDCREDS_CACHE")
        self.cache_dir = self.cache_dir or os.getenv("SHAREDCREDS_CACHE_DIR") or DEFAULT_CACHE_DIR
        if self.duration is None:
            self.duration = _env_seconds("SHAREDCREDS_DURATION_SECONDS", DEFAULT_DURATION)
        if self.expiry_window is None:
            self.expiry_window = _env_seconds("SHAREDCREDS_EXPIRY_WINDOW_SECONDS", timedelta(0))
        self.log_level = (self.log_level or os.getenv("LOG_LEVEL") or "WARNING").upper()
        if self.json_logs is None:
            self.json_logs = (os.getenv("LOG_FORMAT") or "console").strip().lower() == "json"

    def build_provider(self, client=None) -> SharedCredentialsProvider:
        """Construct a provider from these settings.

        Args:
            client: Optional STS client, mainly for tests
        """
        logger.debug(
            "Building shared credentials provider",
            filename=self.filename,
            profile=self.profile,
            cache=self.cache,
            cache_dir=self.cache_dir,
            duration_seconds=int(self.duration.total_seconds()),
        )
        return SharedCredentialsProvider(
            filename=self.filename,
            profile=self.profile,
            cache=self.cache,
            cache_provider=JSONFileCacheProvider(self.cache_dir),
            sts=STSOptions(
                duration=self.duration,
                expiry_window=self.expiry_window,
                client=client,
                region=self.region,
            ),
        )
