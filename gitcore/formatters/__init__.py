"""Formatting utilities for gitcore.

This package provides formatting functions for displaying repository state,
organized into logical modules:
- status: File and worktree status formatting
- worktree: Worktree and revision formatting
"""

# Status formatters
from .status import (
    format_status,
    format_branch_status,
    format_matrix_code,
    get_status_style,
)

# Worktree formatters
from .worktree import (
    format_revision,
    format_worktree_ref,
    format_worktree_name,
)

__all__ = [
    # Status
    "format_status",
    "format_branch_status",
    "format_matrix_code",
    "get_status_style",
    # Worktree
    "format_revision",
    "format_worktree_ref",
    "format_worktree_name",
]
