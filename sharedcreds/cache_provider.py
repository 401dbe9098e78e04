"""Cache key derivation and cache store lookup.

Keys have the form ``<profile>--<role arn>[--<session name>]`` with every
``:`` and path separator in the role ARN replaced by ``_`` so the key is
usable as a file name.
"""

import re
from pathlib import Path
from typing import Dict, Optional, Protocol

from .cache import CacheStore, FileCache, MemoryCache
from .profiles import resolve_home_dir

DEFAULT_CACHE_DIR = str(Path("~") / ".aws" / "cli" / "cache")
KEY_SEPARATOR = "--"
UNSAFE_ARN_CHARS = re.compile(r"[:/\\]")


def cache_key(profile: str, role_arn: str, session_name: str = "") -> str:
    """Derive the cache key for a profile, role and optional session name."""
    key = KEY_SEPARATOR.join([profile, UNSAFE_ARN_CHARS.sub("_", role_arn)])
    if session_name:
        key = KEY_SEPARATOR.join([key, session_name])
    return key


class CacheProvider(Protocol):
    def get(self, profile: str, role_arn: str, session_name: str = "") -> CacheStore: ...


class JSONFileCacheProvider:
    """Hands out one JSON file per cache key under ``cache_dir``.

    A leading ``~`` in ``cache_dir`` expands to the user's home directory.
    """

    def __init__(self, cache_dir: str = DEFAULT_CACHE_DIR):
        self.cache_dir = cache_dir

    def resolve_dir(self) -> Path:
        if self.cache_dir == "~" or self.cache_dir.startswith(("~/", "~\\")):
            return resolve_home_dir() / self.cache_dir[2:]
        return Path(self.cache_dir)

    def get(self, profile: str, role_arn: str, session_name: str = "") -> FileCache:
        key = cache_key(profile, role_arn, session_name)
        return FileCache(self.resolve_dir() / f"{key}.json")


class MemoryCacheProvider:
    """Keeps one in-memory store per cache key."""

    def __init__(self, stores: Optional[Dict[str, MemoryCache]] = None):
        self.stores = stores if stores is not None else {}

    def get(self, profile: str, role_arn: str, session_name: str = "") -> MemoryCache:
        key = cache_key(profile, role_arn, session_name)
        if key not in self.stores:
            self.stores[key] = MemoryCache()
        return self.stores[key]
