# nut_version/core/config.py
import io
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv.parser import parse_stream
from pydantic_settings import BaseSettings

from nut_version.core.errors import ConfigSourceError
from nut_version.models.version import VersionConfig

logger = logging.getLogger(__name__)

# Fallback default, to be updated only during release cycle
FALLBACK_VERSION = "2.8.2.1"
DEFAULT_WEBSITE = "https://www.networkupstools.org/"

VERSION_FORCED_FILE = "VERSION_FORCED"
VERSION_FORCED_SEMVER_FILE = "VERSION_FORCED_SEMVER"
VERSION_DEFAULT_FILE = "VERSION_DEFAULT"


class Settings(BaseSettings):
    # Switches only react to the exact words "true" and "false"
    NUT_VERSION_FORCED: Optional[str] = None
    NUT_VERSION_FORCED_SEMVER: Optional[str] = None
    NUT_VERSION_DEFAULT: Optional[str] = None
    NUT_VERSION_PREFER_GIT: Optional[str] = None
    NUT_VERSION_GIT_TRUNK: Optional[str] = None
    NUT_VERSION_GIT_ALL_TAGS: Optional[str] = None
    NUT_VERSION_GIT_ALWAYS_DESC: Optional[str] = None
    NUT_WEBSITE: Optional[str] = None
    NUT_VERSION_QUERY: Optional[str] = None

    # Set by automake for scripts it runs
    abs_top_srcdir: Optional[str] = None
    abs_top_builddir: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env

@lru_cache() # Environment is read once per process
def get_settings() -> Settings:
    return Settings()


def is_nonempty_file(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


def load_version_file(path: Path) -> Dict[str, str]:
    """
    Reads shell-style assignments (NUT_VERSION_DEFAULT='2.8.2') from a
    VERSION_* file.

    Args:
        path: The file to read

    Returns:
        Mapping of assigned variable names to their values

    Raises:
        ConfigSourceError: If the file cannot be read or contains a line
            that is not a plain assignment, comment or blank line
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigSourceError(f"Cannot read {path}: {e}") from e

    values: Dict[str, str] = {}
    for binding in parse_stream(io.StringIO(content)):
        if binding.error:
            raise ConfigSourceError(
                f"Cannot parse {path} at line {binding.original.line}: {binding.original.string.strip()!r}"
            )
        if binding.key is not None and binding.value is not None:
            values[binding.key] = binding.value

    logger.debug(f"Loaded {sorted(values)} from {path}")
    return values


def resolve_config(settings: Optional[Settings] = None) -> VersionConfig:
    """
    Builds the invocation's configuration from the environment and the
    VERSION_FORCED, VERSION_FORCED_SEMVER and VERSION_DEFAULT files.

    Priority for the default version:
    1. NUT_VERSION_FORCED (env or VERSION_FORCED file), which also disables git
    2. VERSION_DEFAULT in the build directory
    3. VERSION_DEFAULT in the source directory
    4. FALLBACK_VERSION

    Raises:
        ConfigSourceError: If any present VERSION_* file is unreadable
    """
    if settings is None:
        settings = get_settings()

    values = {key: value for key, value in settings.model_dump().items() if value is not None}

    srcdir = Path(values.get("abs_top_srcdir") or os.getcwd())
    builddir = Path(values.get("abs_top_builddir") or srcdir)

    # Files assign on top of whatever the environment said
    for name in (VERSION_FORCED_FILE, VERSION_FORCED_SEMVER_FILE):
        path = srcdir / name
        if is_nonempty_file(path):
            values.update(load_version_file(path))

    if values.get("NUT_VERSION_FORCED"):
        values["NUT_VERSION_DEFAULT"] = values["NUT_VERSION_FORCED"]
        values["NUT_VERSION_PREFER_GIT"] = "false"

    for directory in (builddir, srcdir):
        if values.get("NUT_VERSION_DEFAULT"):
            break
        path = directory / VERSION_DEFAULT_FILE
        if is_nonempty_file(path):
            values.update(load_version_file(path))

    default_version = values.get("NUT_VERSION_DEFAULT") or FALLBACK_VERSION

    # Explicit "false" wins, anything else depends on having a git workspace
    if values.get("NUT_VERSION_PREFER_GIT") == "false":
        prefer_git = False
    else:
        prefer_git = (srcdir / ".git").exists()

    config = VersionConfig(
        srcdir=srcdir,
        builddir=builddir,
        default_version=default_version,
        forced_semver=values.get("NUT_VERSION_FORCED_SEMVER") or None,
        prefer_git=prefer_git,
        git_trunk=values.get("NUT_VERSION_GIT_TRUNK") or None,
        all_tags=values.get("NUT_VERSION_GIT_ALL_TAGS") == "true",
        always_desc=values.get("NUT_VERSION_GIT_ALWAYS_DESC") == "true",
        website=values.get("NUT_WEBSITE") or DEFAULT_WEBSITE,
        query=values.get("NUT_VERSION_QUERY") or None,
    )
    logger.debug(f"Resolved configuration: {config}")
    return config
