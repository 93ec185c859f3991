"""Status formatting utilities."""

from typing import Optional

from gitcore.models.status import BranchStatus, GitStatus
from gitcore.constants import BRANCH_STATUS_COLORS, STATUS_COLORS


def get_status_style(status: Optional[GitStatus]) -> str:
    """
    Determine the Rich style for a file status.

    Args:
        status: File status, or None for paths outside version control

    Returns:
        Rich style name
    """
    if status is None:
        return "dim"
    return STATUS_COLORS.get(status.value, "white")


def format_status(status: Optional[GitStatus]) -> str:
    """
    Format a file status as Rich markup.

    Args:
        status: File status, or None for paths outside version control

    Returns:
        Markup such as "[yellow]*modified[/yellow]"
    """
    if status is None:
        return "[dim]untracked path[/dim]"
    style = get_status_style(status)
    return f"[{style}]{status.value}[/{style}]"


def format_branch_status(status: BranchStatus) -> str:
    """Format an aggregate worktree status as Rich markup."""
    style = BRANCH_STATUS_COLORS.get(status.value, "white")
    return f"[{style}]{status.value}[/{style}]"


def format_matrix_code(code: int) -> str:
    """Format a status-matrix code, dimming zeros."""
    return "[dim]0[/dim]" if code == 0 else str(code)
