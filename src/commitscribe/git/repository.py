"""Git subprocess wrapper supplying raw diff text and repository metadata."""

import logging
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel


logger = logging.getLogger(__name__)

# Directories never descended into while looking for repositories
_SKIP_DIRS = {"node_modules", ".venv", "venv", "__pycache__", ".tox"}


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""
    pass


class UnstagedStatus(str, Enum):
    MODIFIED = "modified"
    NEW = "new"


class UnstagedFile(BaseModel):
    """A working-tree file that is not staged."""

    path: str
    status: UnstagedStatus


class RepositoryInfo(BaseModel):
    name: str
    path: Path


def find_repositories(root: Path) -> List[RepositoryInfo]:
    """Find git repositories under ``root`` (the root itself included)."""
    root = root.expanduser()
    logger.info(f"Searching for repositories under '{root}'")
    if not root.is_dir():
        return []

    repositories: List[RepositoryInfo] = []
    for current, dirs, _files in os.walk(root):
        if ".git" in dirs:
            repo_path = Path(current)
            repositories.append(RepositoryInfo(name=repo_path.name, path=repo_path))
        dirs[:] = sorted(d for d in dirs if d != ".git" and d not in _SKIP_DIRS)
    return repositories


class GitRepository:
    """Read-only accessor for one working copy."""

    def __init__(self, path: Optional[Path] = None, timeout: int = 30):
        self.path = (path or Path.cwd()).resolve()
        self.timeout = timeout

    def _run(self, args: Sequence[str], ok_codes: Iterable[int] = (0,)) -> str:
        """Run a git command and return stdout. Raises GitError on failure."""
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            raise GitError("git is not installed or not on PATH")
        except subprocess.TimeoutExpired:
            raise GitError(f"git command timed out after {self.timeout}s: git {' '.join(args)}")

        if result.returncode not in tuple(ok_codes):
            raise GitError(
                f"Git command failed with exit code {result.returncode}: {result.stderr.strip()}"
            )
        return result.stdout

    def _run_lines(self, args: Sequence[str]) -> List[str]:
        return [line.strip() for line in self._run(args).splitlines() if line.strip()]

    def has_staged_changes(self) -> bool:
        return bool(self._run_lines(["diff", "--cached", "--name-only"]))

    def get_staged_diff(self) -> str:
        return self._run(["diff", "--cached", "--no-color"])

    def get_unstaged_files(self) -> List[UnstagedFile]:
        """Modified tracked files and untracked new files."""
        files: List[UnstagedFile] = []
        for line in self._run(["status", "--porcelain", "--untracked-files=all"]).splitlines():
            if len(line) < 4:
                continue
            code, path = line[:2], line[3:]
            if code == "??":
                files.append(UnstagedFile(path=path, status=UnstagedStatus.NEW))
            elif code[1] in ("M", "T"):
                files.append(UnstagedFile(path=path, status=UnstagedStatus.MODIFIED))
        return files

    def get_diff_for_file(self, file: UnstagedFile) -> str:
        if file.status == UnstagedStatus.NEW:
            # --no-index exits 1 when the files differ
            return self._run(
                ["diff", "--no-color", "--no-index", "--", os.devnull, file.path],
                ok_codes=(0, 1),
            )
        return self._run(["diff", "--no-color", "--", file.path])

    def get_diff_for_files(self, files: Sequence[UnstagedFile]) -> str:
        """Concatenated diffs of the selected files."""
        return "".join(self._terminated(self.get_diff_for_file(f)) for f in files)

    def get_commit_diff(self, commit_hash: str) -> str:
        return self._run(["show", "--no-color", commit_hash])

    def get_branch_diff(self, branch: str, base_branch: str) -> str:
        return self._run(["diff", "--no-color", f"{base_branch}...{branch}"])

    def get_commits_for_branch(self, branch: str, base_branch: str) -> List[str]:
        """One ``<hash> - <author>, <when> : <subject>`` line per commit."""
        return self._run_lines(["log", "--pretty=format:%h - %an, %ar : %s", f"{base_branch}..{branch}"])

    def get_local_branches(self) -> List[str]:
        return self._run_lines(["branch", "--list", "--format=%(refname:short)"])

    @staticmethod
    def _terminated(text: str) -> str:
        if text and not text.endswith("\n"):
            return text + "\n"
        return text
