"""Shared credentials file resolution with role chaining and session caching.

This package resolves named profiles from the AWS shared credentials file,
assumes roles for role-chained profiles and caches assumed-role sessions in
the AWS CLI cache layout.
"""

from .assume_role import DEFAULT_DURATION, AssumeResult, RoleAssumer, STSOptions
from .cache import CacheStore, FileCache, MemoryCache
from .cache_provider import CacheProvider, JSONFileCacheProvider, MemoryCacheProvider, cache_key
from .credentials import Credentials
from .errors import (
    AssumeRoleError,
    CacheReadError,
    CacheWriteError,
    CredentialsFileLoadError,
    HomeDirectoryNotFoundError,
    MissingAccessKeyError,
    MissingSecretKeyError,
    MissingSourceProfileError,
    ProfileNotFoundError,
    SharedCredentialsError,
)
from .models import CachedSession, CredentialValue, Profile, ResolverState, SessionCredentials
from .profiles import load_profile
from .provider import SharedCredentialsProvider, new_shared_credentials_provider

__all__ = [
    "AssumeResult",
    "AssumeRoleError",
    "CacheProvider",
    "CacheReadError",
    "CacheStore",
    "CacheWriteError",
    "CachedSession",
    "CredentialValue",
    "Credentials",
    "CredentialsFileLoadError",
    "DEFAULT_DURATION",
    "FileCache",
    "HomeDirectoryNotFoundError",
    "JSONFileCacheProvider",
    "MemoryCache",
    "MemoryCacheProvider",
    "MissingAccessKeyError",
    "MissingSecretKeyError",
    "MissingSourceProfileError",
    "Profile",
    "ProfileNotFoundError",
    "ResolverState",
    "RoleAssumer",
    "STSOptions",
    "SessionCredentials",
    "SharedCredentialsError",
    "SharedCredentialsProvider",
    "cache_key",
    "load_profile",
    "new_shared_credentials_provider",
]
