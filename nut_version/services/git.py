# nut_version/services/git.py
import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

REMOTE_TRUNK_PATTERN = re.compile(r"^ *remotes/[^ ]*/master$")

# Parsed output must not depend on the caller's locale or timezone
GIT_ENV_OVERRIDES = {"LANG": "C", "LC_ALL": "C", "TZ": "UTC"}


class GitClient:
    """
    Runs git subcommands and turns their exit status into plain results.

    A failing command (including a missing git executable) is reported as
    None/False/0 rather than raised, so that callers decide what a failure
    means for version derivation.
    """

    def __init__(self, cwd: Optional[Union[str, Path]] = None, executable: str = "git"):
        self.cwd = str(cwd) if cwd is not None else None
        self.executable = executable

    def _run(self, *args: str) -> Optional[str]:
        """Runs `git <args>` and returns its stdout, or None if it failed."""
        cmd = [self.executable, *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                env={**os.environ, **GIT_ENV_OVERRIDES},
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.debug(f"Could not run {' '.join(cmd)}: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"{' '.join(cmd)} exited with {result.returncode}: {result.stderr.strip()}")
            return None
        return result.stdout

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def is_work_tree(self) -> bool:
        """True if the working directory is inside a git work tree."""
        return self._run("rev-parse", "--show-toplevel") is not None

    def remote_trunks(self) -> List[str]:
        """Remote-tracking master branches, e.g. 'remotes/origin/master'."""
        output = self._run("branch", "-a")
        if output is None:
            return []
        return [line.strip() for line in output.splitlines() if REMOTE_TRUNK_PATTERN.match(line)]

    def has_history(self, ref: str) -> bool:
        return self._run("log", "-1", ref) is not None

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return self._run("merge-base", "--is-ancestor", ancestor, descendant) is not None

    def describe(self, *args: str) -> Optional[str]:
        output = self._run("describe", *args)
        if output is None:
            return None
        return output.strip()

    def merge_base(self, first: str, second: str) -> Optional[str]:
        output = self._run("merge-base", first, second)
        if output is None:
            return None
        return output.strip() or None

    def count_commits(self, rev_range: str) -> int:
        """
        Counts commits listed by `git log --oneline <rev_range>`.

        An unknown revision counts as zero commits, matching what a plain
        `git log | wc -l` pipeline reports.
        """
        output = self._run("log", "--oneline", rev_range)
        if output is None:
            logger.warning(f"Could not list commits in range '{rev_range}', counting 0")
            return 0
        return len(output.splitlines())
