"""Error types raised while resolving shared credentials.

Every error carries a ``code`` naming its kind plus the profile and file it
concerns, so callers can branch on the type and still print a useful message.
"""

from typing import Optional


class SharedCredentialsError(Exception):
    """Base class for all shared credential resolution failures."""

    code = "SharedCredentialsError"

    def __init__(
        self,
        message: str,
        profile: Optional[str] = None,
        filename: Optional[str] = None,
    ):
        full_message = message
        if profile:
            full_message += f" (profile: {profile})"
        if filename:
            full_message += f" (file: {filename})"
        super().__init__(full_message)
        self.message = message
        self.profile = profile
        self.filename = filename

    def format(self) -> str:
        """Format error for console output."""
        output = f"❌ {self.code}: {self.message}"
        if self.profile:
            output += f"\n   profile: {self.profile}"
        if self.filename:
            output += f"\n   file: {self.filename}"
        return output


class HomeDirectoryNotFoundError(SharedCredentialsError):
    """Raised when neither HOME nor USERPROFILE is set."""

    code = "HomeDirectoryNotFound"


class CredentialsFileLoadError(SharedCredentialsError):
    """Raised when the credentials file cannot be read or parsed."""

    code = "CredentialsFileLoadFailure"


class ProfileNotFoundError(SharedCredentialsError):
    """Raised when the requested profile has no section in the credentials file."""

    code = "ProfileNotFound"


class MissingAccessKeyError(SharedCredentialsError):
    code = "MissingAccessKey"


class MissingSecretKeyError(SharedCredentialsError):
    code = "MissingSecretKey"


class MissingSourceProfileError(SharedCredentialsError):
    code = "MissingSourceProfile"


class AssumeRoleError(SharedCredentialsError):
    """Raised when the role assumption call fails or returns no credentials."""

    code = "AssumeRoleFailure"


class CacheReadError(SharedCredentialsError):
    """Raised when a cached session cannot be read or deserialized."""

    code = "CacheReadFailure"


class CacheWriteError(SharedCredentialsError):
    """Raised when a session cannot be persisted to the cache."""

    code = "CacheWriteFailure"
