# nut_version/services/resolver.py
"""
Version derivation.

The version is X.Y.Z.T.B(-C-gHASH), similar to what `git describe` produces
but with two more numbers after the common semver triplet:
- X.Y.Z: the nearest release tag (MAJOR.MINOR.PATCH)
- T: commits on trunk since that release tag
- B: commits on the branch since its nearest ancestor on trunk
- -C-gHASH: describe suffix (commits since the tag, abbreviated hash),
  only present for commits which are not tags themselves

Outside a git workspace (release tarballs, forced versions) the same
record is built from a static default version string instead.
"""
import logging
import re
from typing import List, Optional, Tuple

from nut_version.core.errors import (
    DescribeError,
    GitDerivationError,
    MergeBaseError,
    TrunkDiscoveryError,
)
from nut_version.models.version import VersionConfig, VersionRecord
from nut_version.services.git import GitClient

logger = logging.getLogger(__name__)

# Fixed fallbacks tried after local master and whatever `git branch -a` lists
TRUNK_CANDIDATES_TAIL = ["origin/master", "upstream/master"]

TAG_MATCH = "v[0-9]*.[0-9]*.[0-9]"
TAG_EXCLUDES = ["*-signed", "*rc*", "*alpha*", "*beta*", "*Windows*", "*IPM*"]

# Post-filters for describe implementations without --match/--exclude support
EXCLUDED_DESCRIBE_PATTERN = re.compile(r"(rc|-signed|alpha|beta|Windows|IPM)")
LOOSE_TAG_PATTERN = re.compile(r"v[0-9]*.[0-9]*.[0-9]")

DESCRIBE_SUFFIX_PATTERN = re.compile(r"-[0-9]+-g[0-9a-fA-F]+$")
SEMVER_PREFIX_PATTERN = re.compile(r"^([0-9]+\.[0-9]+\.[0-9]+)\..*$")
TRAILING_ZERO_PATTERN = re.compile(r"\.0$")


def discover_trunk(git: GitClient) -> str:
    """
    Finds the newest known trunk: local master or any fetched remote master.

    Candidates without retrievable history are skipped. A later candidate
    replaces the current pick when the pick is its ancestor (same or newer),
    assuming no deviations from the one true path in a master branch.

    Raises:
        TrunkDiscoveryError: If none of the candidates exists
    """
    candidates = ["master"] + git.remote_trunks() + TRUNK_CANDIDATES_TAIL
    trunk = None
    for candidate in candidates:
        if not git.has_history(candidate):
            continue
        if trunk is None:
            trunk = candidate
        elif git.is_ancestor(trunk, candidate):
            trunk = candidate

    if trunk is None:
        raise TrunkDiscoveryError("FAILED to discover a NUT_VERSION_GIT_TRUNK in this workspace")
    logger.debug(f"Discovered trunk reference: {trunk}")
    return trunk


def describe_head(git: GitClient, all_tags: bool = False, always: bool = False) -> str:
    """
    Describes HEAD relative to the nearest release tag.

    Release candidates, signed-tag twins, alphas, betas and platform-specific
    tags never count as releases.

    Raises:
        DescribeError: If no acceptable tag is found
    """
    base_args: List[str] = []
    if all_tags:
        base_args.append("--tags")
    if always:
        base_args.append("--always")

    match_args = ["--match", TAG_MATCH]
    for pattern in TAG_EXCLUDES:
        match_args += ["--exclude", pattern]

    desc = git.describe(*base_args, *match_args)
    if not desc:
        # Older gits cannot --exclude, so filter a plain describe instead
        desc = git.describe(*base_args) or ""
        if EXCLUDED_DESCRIBE_PATTERN.search(desc) or not LOOSE_TAG_PATTERN.search(desc):
            desc = ""

    if not desc:
        raise DescribeError("FAILED to 'git describe' this codebase")
    return desc


def split_describe(desc: str) -> Tuple[str, str]:
    """Splits 'v2.8.2-15-gabc123' into ('v2.8.2', '-15-gabc123')."""
    match = DESCRIBE_SUFFIX_PATTERN.search(desc)
    if match is None:
        return desc, ""
    return desc[:match.start()], match.group(0)


def strip_trailing_zeros(ver5: str) -> str:
    """Drops at most two trailing '.0' components (trunk snapshots and releases)."""
    ver50 = ver5
    for _ in range(2):
        ver50 = TRAILING_ZERO_PATTERN.sub("", ver50)
    return ver50


def semver_prefix(ver5: str) -> str:
    """First three numeric components; unchanged if there are not more than three."""
    return SEMVER_PREFIX_PATTERN.sub(r"\1", ver5)


def pad_components(version: str, count: int) -> str:
    """Appends '.0' components until the version has at least `count` of them."""
    components = version.count(".") + 1
    while components < count:
        version += ".0"
        components += 1
    return version


def normalize_triplet(version: str) -> str:
    """Pads or truncates (from the right) to exactly three components."""
    version = pad_components(version, 3)
    return ".".join(version.split(".")[:3])


def getver_git(config: VersionConfig, git: GitClient) -> VersionRecord:
    """
    Derives the version record from git history.

    Raises:
        TrunkDiscoveryError: If no trunk reference is configured or found
        DescribeError: If HEAD cannot be described relative to a release tag
        MergeBaseError: If HEAD shares no history with the trunk
    """
    # NOTE: The chosen trunk must be up to date (may be "origin/master" or
    # "upstream/master") for the resulting numbers to make sense.
    trunk = config.git_trunk or discover_trunk(git)

    try:
        desc = describe_head(git, all_tags=config.all_tags, always=config.always_desc)
    except DescribeError as e:
        e.trunk = trunk
        raise

    # All of trunk history when on that branch, some of it for a historic
    # snapshot, the tagged commit itself when looking at a release
    base = git.merge_base("HEAD", trunk)
    if not base:
        logger.error(f"FAILED to get a git merge-base of this codebase vs. '{trunk}'")
        raise MergeBaseError(f"No merge-base between HEAD and '{trunk}'", trunk=trunk)

    tag, suffix = split_describe(desc)

    trunk_commits = git.count_commits(f"{tag}..{base}")
    branch_commits = git.count_commits(f"{trunk}..HEAD")
    tag_version = tag[1:] if tag.startswith("v") else tag
    ver5 = f"{tag_version}.{trunk_commits}.{branch_commits}"

    return VersionRecord(
        tag=tag,
        suffix=suffix,
        ver5=ver5,
        ver50=strip_trailing_zeros(ver5),
        semver=config.forced_semver or semver_prefix(ver5),
        base=base,
        describe=desc,
        trunk=trunk,
    )


def getver_default(config: VersionConfig, trunk: str = "") -> VersionRecord:
    """
    Builds the version record from the configured default version string.

    `trunk` is only carried into the diagnostic summary.
    """
    default = config.default_version
    triplet = normalize_triplet(default)

    return VersionRecord(
        tag=f"v{triplet}",
        suffix="",
        ver5=pad_components(default, 5),
        ver50=default,
        semver=config.forced_semver or triplet,
        base="",
        trunk=trunk or config.git_trunk or "",
    )


def format_debug_summary(record: VersionRecord) -> str:
    return (
        f"TRUNK='{record.trunk}'; BASE='{record.base}'; DESC='{record.describe}'"
        f" => TAG='{record.tag}' + SUFFIX='{record.suffix}'"
        f" => VER5='{record.ver5}' => VER50='{record.ver50}' => DESC50='{record.desc50}'"
    )


def resolve_version(config: VersionConfig, git: Optional[GitClient] = None) -> VersionRecord:
    """
    Computes the version record for this invocation.

    Git derivation is attempted only when preferred and possible; any
    failure there falls back to the default version as a whole, so the
    two derivation paths are never mixed.
    """
    if git is None:
        git = GitClient()

    record = None
    trunk = ""
    if config.prefer_git and git.available() and git.is_work_tree():
        try:
            record = getver_git(config, git)
        except GitDerivationError as e:
            logger.warning(f"Git version derivation failed: {e}")
            logger.warning("Fall back to pre-set default version information")
            record = None
            trunk = e.trunk

    if record is None:
        record = getver_default(config, trunk=trunk)

    logger.info(format_debug_summary(record))
    return record
