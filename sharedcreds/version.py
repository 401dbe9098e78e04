"""Version utility to read from installed metadata or pyproject.toml"""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def get_version() -> str:
    """
    Read the package version.

    Priority:
    1. Installed distribution metadata
    2. pyproject.toml project.version (source checkout)
    3. "unknown" as fallback

    Returns:
        str: Version string (e.g., "0.3.0")
    """
    try:
        return version("sharedcreds")
    except PackageNotFoundError:
        pass

    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            return data.get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"


__version__ = get_version()
