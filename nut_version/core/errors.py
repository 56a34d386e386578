# nut_version/core/errors.py
"""Error kinds raised while resolving the project version."""


class VersionError(Exception):
    """Base class for all version resolution errors."""


class GitDerivationError(VersionError):
    """Git-based derivation failed; callers fall back to the default version."""

    def __init__(self, message: str, trunk: str = ""):
        super().__init__(message)
        # Trunk reference already chosen when the failure happened, if any
        self.trunk = trunk


class TrunkDiscoveryError(GitDerivationError):
    """No usable trunk reference (local or remote master) was found."""


class DescribeError(GitDerivationError):
    """Neither describe strategy produced a matching release tag."""


class MergeBaseError(GitDerivationError):
    """The merge-base of HEAD and the trunk could not be determined."""


class ConfigSourceError(VersionError):
    """A VERSION_* configuration file could not be read or parsed."""


class CacheWriteError(VersionError):
    """The VERSION_DEFAULT cache file could not be written."""
