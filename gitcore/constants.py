"""Shared constants for gitcore."""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


STATUS_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("path", "Path", 50),
    ColumnDefinition("status", "Status", 12),
]

WORKTREE_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("id", "Name", 20),
    ColumnDefinition("ref", "Branch", 30),
    ColumnDefinition("rev", "Commit", 9),
    ColumnDefinition("path", "Path", 0),
]

MATRIX_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("path", "Path", 50),
    ColumnDefinition("head", "HEAD", 4),
    ColumnDefinition("workdir", "WORKDIR", 7),
    ColumnDefinition("stage", "STAGE", 5),
    ColumnDefinition("status", "Status", 12),
]


# Symbol constants
SYMBOL_MAIN_WORKTREE = " *"
SYMBOL_DETACHED = "(detached)"
SYMBOL_UNBORN = "(unborn)"

SHORT_SHA_LENGTH = 7


# Colors for file statuses (Rich color names)
STATUS_COLORS = {
    "ignored": "dim",
    "unmodified": "white",
    "*modified": "yellow",
    "*deleted": "red",
    "*added": "green",
    "absent": "magenta",
    "modified": "bold yellow",
    "deleted": "bold red",
    "added": "bold green",
    "unmerged": "bold magenta",
}

# Colors for aggregate worktree statuses
BRANCH_STATUS_COLORS = {
    "clean": "green",
    "uncommitted": "yellow",
    "unmerged": "red",
}
