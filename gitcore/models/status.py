"""Status models and related enums"""
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class GitStatus(str, Enum):
    """Normalized status of a path.

    Values prefixed with `*` are unstaged variants; the others are staged.
    """
    IGNORED = "ignored"
    UNMODIFIED = "unmodified"
    UNSTAGED_MODIFIED = "*modified"
    UNSTAGED_DELETED = "*deleted"
    UNSTAGED_ADDED = "*added"
    ABSENT = "absent"
    MODIFIED = "modified"
    DELETED = "deleted"
    ADDED = "added"
    UNMERGED = "unmerged"

    @property
    def is_staged(self) -> bool:
        return self in (GitStatus.MODIFIED, GitStatus.DELETED, GitStatus.ADDED)

    @property
    def is_unstaged(self) -> bool:
        return self.value.startswith("*")


class BranchStatus(str, Enum):
    """Aggregate status of a worktree."""
    CLEAN = "clean"
    UNCOMMITTED = "uncommitted"
    UNMERGED = "unmerged"


# (filepath, head, workdir, stage)
MatrixRow = Tuple[str, int, int, int]


@dataclass
class StatusEntry:
    """Status of a single path relative to the worktree root."""
    path: str
    status: GitStatus


@dataclass
class StatusOutput:
    """Result of a worktree status query."""
    ref: str
    root: str
    status: BranchStatus
    bare: bool
    entries: List[StatusEntry] = field(default_factory=list)

    def find(self, path: str) -> Optional[StatusEntry]:
        """Find the entry for a path relative to the worktree root."""
        return next((entry for entry in self.entries if entry.path == path), None)
