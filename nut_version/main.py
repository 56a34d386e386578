# nut_version/main.py
import logging
import sys

from nut_version.core.config import get_settings, resolve_config
from nut_version.core.errors import CacheWriteError, ConfigSourceError
from nut_version.services.report import report_output
from nut_version.services.resolver import resolve_version

logger = logging.getLogger(__name__)


def run() -> int:
    """
    Prints the project version selected by NUT_VERSION_QUERY.

    Diagnostics go to stderr, the value to stdout. Exits 0 only when a
    non-empty version was determined.
    """
    # Configure basic logging (stderr)
    logging.basicConfig(level=logging.INFO)

    try:
        config = resolve_config(get_settings())
        record = resolve_version(config)
        output = report_output(record, config)
    except (ConfigSourceError, CacheWriteError) as e:
        logger.error(f"Version resolution aborted: {e}")
        return 1

    if not output.endswith("\n"):
        output += "\n"
    sys.stdout.write(output)

    return 0 if record.desc50 else 1


if __name__ == "__main__":
    sys.exit(run())
