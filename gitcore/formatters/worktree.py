"""Worktree formatting utilities."""

from typing import Optional

from gitcore.models.worktree import Worktree
from gitcore.constants import SHORT_SHA_LENGTH, SYMBOL_DETACHED, SYMBOL_MAIN_WORKTREE, SYMBOL_UNBORN


def format_revision(rev: Optional[str]) -> str:
    """Abbreviate a commit id for display."""
    if not rev:
        return f"[dim]{SYMBOL_UNBORN}[/dim]"
    return rev[:SHORT_SHA_LENGTH]


def format_worktree_ref(worktree: Worktree) -> str:
    """Branch name, or a detached marker."""
    if worktree.detached or not worktree.ref:
        return f"[yellow]{SYMBOL_DETACHED}[/yellow]"
    return worktree.ref


def format_worktree_name(worktree: Worktree) -> str:
    """Worktree name, marking the main worktree."""
    return f"[bold]{worktree.id}{SYMBOL_MAIN_WORKTREE}[/bold]" if worktree.main else worktree.id
