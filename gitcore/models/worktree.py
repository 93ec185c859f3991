"""Worktree data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Worktree:
    """Administrative record for a main or linked git worktree."""

    id: str
    path: str
    bare: bool
    detached: bool
    main: bool  # Is this the main working tree?
    ref: Optional[str] = None  # Branch name; None when detached
    rev: Optional[str] = None  # Commit SHA resolved from HEAD

    def __str__(self) -> str:
        """String representation of worktree."""
        label = self.ref if self.ref else (self.rev[:7] if self.rev else "(unborn)")
        main_marker = " (main)" if self.main else ""
        state = "detached" if self.detached else "branch"
        return f"{label} @ {self.path}{main_marker} [{state}]"


@dataclass
class WorktreePaths:
    """Resolved locations of the main and (optionally) linked worktree metadata.

    `dir` and `gitdir` always describe the main worktree. The `worktree_*`
    fields are only populated when the queried path belongs to a linked
    worktree: `worktree_dir` is its working directory, `worktree_gitdir` the
    `.git` pointer file inside it, and `worktree_link` the administrative
    directory that pointer names, addressed through the main repository
    (`<gitdir>/worktrees/<name>`).
    """

    dir: Optional[str] = None
    gitdir: Optional[str] = None
    worktrees: Optional[str] = None
    worktree_dir: Optional[str] = None
    worktree_gitdir: Optional[str] = None
    worktree_link: Optional[str] = None

    @property
    def is_repository(self) -> bool:
        return self.dir is not None

    @property
    def is_linked(self) -> bool:
        return self.worktree_link is not None
