"""Shared credentials file loading.

Reads a single named profile from an INI credentials file and validates that
it describes exactly one resolution mode: static keys, or a role to assume
through a source profile.

File location (in priority order):
    1. An explicit path passed by the caller
    2. AWS_SHARED_CREDENTIALS_FILE environment variable
    3. <home>/.aws/credentials

Profile name (in priority order):
    1. An explicit name passed by the caller
    2. AWS_PROFILE environment variable
    3. "default"
"""

import configparser
import os
from pathlib import Path
from typing import List, Optional

import structlog

from .errors import (
    CredentialsFileLoadError,
    HomeDirectoryNotFoundError,
    MissingAccessKeyError,
    MissingSecretKeyError,
    MissingSourceProfileError,
    ProfileNotFoundError,
)
from .models import Profile

logger = structlog.get_logger(__name__)

DEFAULT_PROFILE = "default"

# INI key -> Profile attribute
PROFILE_KEYS = {
    "aws_access_key_id": "access_key_id",
    "aws_secret_access_key": "secret_access_key",
    "aws_session_token": "session_token",
    "role_arn": "role_arn",
    "role_session_name": "role_session_name",
    "source_profile": "source_profile",
    "external_id": "external_id",
    "mfa_serial": "mfa_serial",
}


def resolve_home_dir() -> Path:
    """Return the current user's home directory.

    Raises:
        HomeDirectoryNotFoundError: If neither HOME nor USERPROFILE is set
    """
    home = os.getenv("HOME") or os.getenv("USERPROFILE")
    if not home:
        raise HomeDirectoryNotFoundError("user home directory not found")
    return Path(home)


def resolve_credentials_filename(filename: Optional[str] = None) -> str:
    """Return the credentials file path to read."""
    if filename:
        return filename

    env_filename = os.getenv("AWS_SHARED_CREDENTIALS_FILE")
    if env_filename:
        return env_filename

    return str(resolve_home_dir() / ".aws" / "credentials")


def resolve_profile_name(profile: Optional[str] = None) -> str:
    """Return the profile name to resolve."""
    return profile or os.getenv("AWS_PROFILE") or DEFAULT_PROFILE


def _read_config(filename: str) -> configparser.ConfigParser:
    config = configparser.ConfigParser(interpolation=None, default_section="__sharedcreds_defaults__")
    try:
        with open(filename, "r", encoding="utf-8") as f:
            config.read_file(f, source=filename)
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        raise CredentialsFileLoadError(
            f"failed to load shared credentials file: {e}", filename=filename
        ) from e
    return config


def list_profiles(filename: str) -> List[str]:
    """List the profile names defined in a credentials file, in file order."""
    return _read_config(filename).sections()


def load_profile(filename: str, profile: str) -> Profile:
    """Load and validate one profile from the credentials file.

    Args:
        filename: Path to the INI credentials file
        profile: Section name to read

    Returns:
        The validated profile

    Raises:
        CredentialsFileLoadError: If the file cannot be read or parsed
        ProfileNotFoundError: If the file has no section for the profile
        MissingAccessKeyError, MissingSecretKeyError, MissingSourceProfileError:
            If the profile fails validation
    """
    config = _read_config(filename)

    if not config.has_section(profile):
        raise ProfileNotFoundError("failed to get profile", profile=profile, filename=filename)

    section = config[profile]
    fields = {attr: section.get(key, "").strip() for key, attr in PROFILE_KEYS.items()}
    value = Profile(name=profile, **fields)

    logger.debug(
        "Loaded profile",
        profile=profile,
        filename=filename,
        role_chained=value.is_role_chained,
    )

    return validate_profile(value, filename)


def validate_profile(value: Profile, filename: str) -> Profile:
    """Check that a profile holds either static keys or a role chain."""
    if not value.role_arn:
        if not value.access_key_id:
            raise MissingAccessKeyError(
                "shared credentials did not contain aws_access_key_id",
                profile=value.name,
                filename=filename,
            )
        if not value.secret_access_key:
            raise MissingSecretKeyError(
                "shared credentials did not contain aws_secret_access_key",
                profile=value.name,
                filename=filename,
            )
    elif not value.source_profile:
        raise MissingSourceProfileError(
            "shared credentials did not contain source_profile",
            profile=value.name,
            filename=filename,
        )
    return value
