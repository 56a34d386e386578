# nut_version/models/version.py
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class VersionQuery(Enum):
    """Output selectors accepted via NUT_VERSION_QUERY."""
    DESC5 = "DESC5"
    DESC50 = "DESC50"
    VER5 = "VER5"
    VER50 = "VER50"
    SEMVER = "SEMVER"
    IS_RELEASE = "IS_RELEASE"
    TAG = "TAG"
    SUFFIX = "SUFFIX"
    BASE = "BASE"
    URL = "URL"
    UPDATE_FILE = "UPDATE_FILE"

    @classmethod
    def parse(cls, value: Optional[str]) -> "VersionQuery":
        """Map a raw selector to a query, defaulting to DESC50 for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return cls.DESC50


class VersionConfig(BaseModel):
    """
    Fully resolved configuration for one invocation, built once by
    core.config.resolve_config() from the environment and VERSION_* files.
    """
    srcdir: Path = Field(..., description="Top of the source tree (abs_top_srcdir).")
    builddir: Path = Field(..., description="Top of the build tree (abs_top_builddir).")
    default_version: str = Field(..., description="Version used when git derivation is skipped or fails.")
    forced_semver: Optional[str] = Field(None, description="Forced MAJOR.MINOR.PATCH override, reported on any path.")
    prefer_git: bool = Field(False, description="Whether git derivation should be attempted at all.")
    git_trunk: Optional[str] = Field(None, description="Explicit trunk reference; discovered when unset.")
    all_tags: bool = Field(False, description="Consider lightweight tags too (describe --tags).")
    always_desc: bool = Field(False, description="Let describe fall back to a bare hash (describe --always).")
    website: str = Field(..., description="Project website root, with trailing slash.")
    query: Optional[str] = Field(None, description="Raw output selector.")

    class Config:
        frozen = True


class VersionRecord(BaseModel):
    """
    The version descriptor computed once per invocation, either from git
    metadata or from the default version string (never a mix of both).
    """
    tag: str = Field(..., description="Nearest preceding release tag, prefixed with 'v'.")
    suffix: str = Field("", description="Describe suffix '-<count>-g<hash>', empty on a tagged commit.")
    ver5: str = Field(..., description="MAJOR.MINOR.PATCH.TRUNK_COMMITS.BRANCH_COMMITS")
    ver50: str = Field(..., description="ver5 with up to two trailing '.0' components stripped.")
    semver: str = Field(..., description="MAJOR.MINOR.PATCH triplet, or a forced override.")
    base: str = Field("", description="Merge-base of HEAD and trunk, empty if unavailable.")

    # --- Diagnostics only ---
    describe: str = Field("", description="Raw describe output the tag and suffix were split from.")
    trunk: str = Field("", description="Trunk reference used for commit counting.")

    class Config:
        frozen = True

    @property
    def desc5(self) -> str:
        return f"{self.ver5}{self.suffix}"

    @property
    def desc50(self) -> str:
        return f"{self.ver50}{self.suffix}"

    @property
    def is_release(self) -> bool:
        """True when there is no trunk or branch drift past the release tag."""
        return self.semver == self.ver50
