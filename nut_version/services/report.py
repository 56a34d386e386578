# nut_version/services/report.py
import logging
import shutil
from typing import Optional

from nut_version.core.config import VERSION_DEFAULT_FILE, is_nonempty_file
from nut_version.core.errors import CacheWriteError
from nut_version.models.version import VersionConfig, VersionQuery, VersionRecord

logger = logging.getLogger(__name__)


def release_url(record: VersionRecord, website: str) -> str:
    """
    Project website URL; releases point at their historically frozen
    snapshot of the site, anything else at the live site.
    """
    if record.is_release:
        return f"{website}historic/v{record.semver}/index.html"
    return website


def update_version_file(config: VersionConfig, desc50: str) -> str:
    """
    Stores desc50 in the build directory's VERSION_DEFAULT file.

    The file is only replaced when its content would change, so that make
    does not see a fresh timestamp and rebuild everything on each run.

    Args:
        config: Resolved configuration (source and build directories)
        desc50: The version to store

    Returns:
        The content of VERSION_DEFAULT after the update

    Raises:
        CacheWriteError: If the file cannot be copied, written or renamed
    """
    src_file = config.srcdir / VERSION_DEFAULT_FILE
    target = config.builddir / VERSION_DEFAULT_FILE
    temp_file = config.builddir / f"{VERSION_DEFAULT_FILE}.tmp"

    try:
        if (
            config.builddir != config.srcdir
            and is_nonempty_file(src_file)
            and not is_nonempty_file(target)
        ):
            shutil.copyfile(src_file, target)
            logger.info(f"Copied {src_file} to {target}")

        content = f"NUT_VERSION_DEFAULT='{desc50}'\n"
        temp_file.write_text(content, encoding="utf-8")

        if target.is_file() and target.read_bytes() == temp_file.read_bytes():
            temp_file.unlink()
            logger.debug(f"{target} is up to date")
        else:
            temp_file.replace(target)
            logger.info(f"Updated {target} to {desc50}")

        return target.read_text(encoding="utf-8")
    except OSError as e:
        raise CacheWriteError(f"Failed to update {target}: {e}") from e


def report_output(record: VersionRecord, config: VersionConfig, query: Optional[str] = None) -> str:
    """
    Returns the text requested by the query selector (NUT_VERSION_QUERY).
    Unknown or missing selectors report DESC50.

    Raises:
        CacheWriteError: For UPDATE_FILE, if the cache file cannot be written
    """
    selector = VersionQuery.parse(query if query is not None else config.query)

    if selector is VersionQuery.DESC5:
        return record.desc5
    elif selector is VersionQuery.VER5:
        return record.ver5
    elif selector is VersionQuery.VER50:
        return record.ver50
    elif selector is VersionQuery.SEMVER:
        return record.semver
    elif selector is VersionQuery.IS_RELEASE:
        return "true" if record.is_release else "false"
    elif selector is VersionQuery.TAG:
        return record.tag
    elif selector is VersionQuery.SUFFIX:
        return record.suffix
    elif selector is VersionQuery.BASE:
        return record.base
    elif selector is VersionQuery.URL:
        return release_url(record, config.website)
    elif selector is VersionQuery.UPDATE_FILE:
        return update_version_file(config, record.desc50)
    return record.desc50
