"""Version-control access for commitscribe."""

from .repository import (
    GitError,
    GitRepository,
    RepositoryInfo,
    UnstagedFile,
    UnstagedStatus,
    find_repositories,
)

__all__ = [
    "GitError",
    "GitRepository",
    "RepositoryInfo",
    "UnstagedFile",
    "UnstagedStatus",
    "find_repositories",
]
