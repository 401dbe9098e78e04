"""Persistence for assumed-role sessions.

A cache store addresses exactly one cached session. Stores are handed out by
a cache provider (see ``cache_provider``) which maps a profile, role and
session name to a store.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Union

import structlog
from pydantic import ValidationError

from .errors import CacheReadError, CacheWriteError
from .models import CachedSession

logger = structlog.get_logger(__name__)


class CacheStore(Protocol):
    def get(self) -> CachedSession: ...

    def is_expired(self, now: Optional[datetime] = None) -> bool: ...

    def set(self, session: CachedSession) -> None: ...


def _expired(session: CachedSession, now: Optional[datetime]) -> bool:
    now = now or datetime.now(timezone.utc)
    return now >= session.credentials.expiration


class FileCache:
    """JSON file holding one cached session.

    Writes go to a temporary file in the same directory which is then renamed
    over the target, so readers never observe a partial document.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self) -> CachedSession:
        """Read the cached session.

        Raises:
            CacheReadError: If the file is missing, unreadable or malformed
        """
        try:
            data = self.path.read_text(encoding="utf-8")
            return CachedSession.from_json(data)
        except (OSError, ValidationError, ValueError) as e:
            raise CacheReadError(f"failed to read cached session: {e}", filename=str(self.path)) from e

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Report whether the stored session should be bypassed.

        A missing or unreadable file counts as expired.
        """
        if not self.path.exists():
            return True
        try:
            session = self.get()
        except CacheReadError as e:
            logger.debug("Treating unreadable cache entry as expired", path=str(self.path), error=str(e))
            return True
        return _expired(session, now)

    def set(self, session: CachedSession) -> None:
        """Atomically overwrite the cached session.

        Raises:
            CacheWriteError: If the directory or file cannot be written
        """
        temp_path = None
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.stem}.", suffix=".tmp"
            )
            try:
                f = os.fdopen(temp_fd, "w", encoding="utf-8")
            except Exception:
                os.close(temp_fd)
                raise
            with f:
                f.write(session.to_json())
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise CacheWriteError(f"failed to write cached session: {e}", filename=str(self.path)) from e

        logger.debug("Cached session written", path=str(self.path))


class MemoryCache:
    """In-process cache store, mainly for tests and embedding."""

    def __init__(self, session: Optional[CachedSession] = None):
        self.session = session

    def get(self) -> CachedSession:
        if self.session is None:
            raise CacheReadError("no cached session")
        return self.session

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.session is None:
            return True
        return _expired(self.session, now)

    def set(self, session: CachedSession) -> None:
        self.session = session
