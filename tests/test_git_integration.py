# tests/test_git_integration.py
"""
Integration tests against throwaway git repositories.

Skipped when no git executable is installed.
"""
import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest

from nut_version.core.config import Settings, resolve_config
from nut_version.services.git import GitClient
from nut_version.services.resolver import resolve_version

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")

GIT_IDENTITY = [
    "-c", "user.name=Release Bot",
    "-c", "user.email=release@example.org",
    "-c", "commit.gpgsign=false",
    "-c", "tag.gpgsign=false",
]


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *GIT_IDENTITY, *args],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit(repo: Path, message: str) -> str:
    git(repo, "commit", "-q", "--allow-empty", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repo():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir)
        git(path, "init", "-q")
        git(path, "symbolic-ref", "HEAD", "refs/heads/master")
        commit(path, "Initial import")
        git(path, "tag", "-a", "v1.2.3", "-m", "Release 1.2.3")
        yield path


def resolve(repo: Path, **values):
    config = resolve_config(Settings(_env_file=None, abs_top_srcdir=str(repo), **values))
    return resolve_version(config, GitClient(cwd=repo))


class TestGitClient:
    """Test the git wrapper against a real repository."""

    def test_work_tree_detection(self, repo):
        assert GitClient(cwd=repo).is_work_tree() is True

    def test_outside_work_tree(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert GitClient(cwd=tmpdir).is_work_tree() is False

    def test_missing_executable(self, repo):
        """A missing git binary behaves like a failed command."""
        client = GitClient(cwd=repo, executable="git-does-not-exist")

        assert client.available() is False
        assert client.is_work_tree() is False
        assert client.describe() is None
        assert client.count_commits("HEAD") == 0

    def test_count_commits(self, repo):
        commit(repo, "Second")
        commit(repo, "Third")

        assert GitClient(cwd=repo).count_commits("v1.2.3..HEAD") == 2


class TestResolveFromGit:
    """Test version derivation from real git history."""

    def test_tagged_release(self, repo):
        """HEAD at the release tag is the plain release version."""
        record = resolve(repo)

        assert record.describe == "v1.2.3"
        assert record.trunk == "master"
        assert record.ver5 == "1.2.3.0.0"
        assert record.desc50 == "1.2.3"
        assert record.base == git(repo, "rev-parse", "HEAD")
        assert record.is_release is True

    def test_trunk_snapshot(self, repo):
        """Commits on trunk past the tag become the fourth component."""
        head = commit(repo, "Fix a driver")

        record = resolve(repo)

        assert record.tag == "v1.2.3"
        assert record.suffix.startswith("-1-g")
        assert head.startswith(record.suffix[len("-1-g"):])
        assert record.ver5 == "1.2.3.1.0"
        assert record.ver50 == "1.2.3.1"
        assert record.desc50 == f"1.2.3.1{record.suffix}"
        assert record.semver == "1.2.3"
        assert record.is_release is False

    def test_feature_branch(self, repo):
        """Commits on a branch off trunk become the fifth component."""
        commit(repo, "Fix a driver")
        git(repo, "checkout", "-q", "-b", "feature")
        commit(repo, "Add a driver")
        commit(repo, "Document the driver")

        record = resolve(repo)

        assert record.ver5 == "1.2.3.1.2"
        assert record.suffix.startswith("-3-g")
        assert record.trunk == "master"

    def test_release_candidate_tags_ignored(self, repo):
        """Release candidate tags are never used as the base release."""
        commit(repo, "Prepare 1.2.4")
        git(repo, "tag", "-a", "v1.2.4-rc1", "-m", "Release candidate")

        record = resolve(repo)

        assert record.tag == "v1.2.3"
        assert record.ver5 == "1.2.3.1.0"

    def test_prefer_git_false(self, repo):
        """Disabling git uses the default even inside a workspace."""
        record = resolve(repo, NUT_VERSION_PREFER_GIT="false", NUT_VERSION_DEFAULT="3.0.1")

        assert record.desc50 == "3.0.1"
        assert record.base == ""

    def test_untagged_repository_falls_back(self):
        """Without a release tag the default version is used."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir)
            git(path, "init", "-q")
            git(path, "symbolic-ref", "HEAD", "refs/heads/master")
            commit(path, "Initial import")

            record = resolve(path, NUT_VERSION_DEFAULT="2.8.2")

        assert record.ver5 == "2.8.2.0.0"
        assert record.suffix == ""
        assert record.is_release is True

    def test_missing_trunk_falls_back(self, repo):
        """A workspace without any master branch falls back to the default."""
        git(repo, "branch", "-q", "-m", "master", "main")

        record = resolve(repo, NUT_VERSION_DEFAULT="2.8.2.1")

        assert record.desc50 == "2.8.2.1"
        assert record.tag == "v2.8.2"

    def test_fetched_remote_master_becomes_trunk(self, repo):
        """A fetched upstream master ahead of the local one is used as trunk."""
        with tempfile.TemporaryDirectory() as tmpdir:
            clone = Path(tmpdir) / "clone"
            git(repo, "clone", "-q", str(repo), str(clone))
            commit(repo, "Upstream fix")
            commit(repo, "Another upstream fix")
            git(clone, "fetch", "-q", "origin")

            client = GitClient(cwd=clone)
            assert client.remote_trunks() == ["remotes/origin/master"]

            record = resolve(clone)

        assert record.trunk == "origin/master"
        assert record.tag == "v1.2.3"
        assert record.ver5 == "1.2.3.0.0"
        assert record.desc50 == "1.2.3"
