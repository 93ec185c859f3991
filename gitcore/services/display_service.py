"""Display service for repository state"""
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import List, Optional

from gitcore.models.git_config import GitConfig
from gitcore.models.status import GitStatus, MatrixRow, StatusOutput
from gitcore.models.worktree import Worktree, WorktreePaths
from gitcore.logging_config import get_logger
from gitcore.constants import MATRIX_COLUMNS, STATUS_COLUMNS, WORKTREE_COLUMNS
from gitcore.formatters import (
    format_branch_status,
    format_matrix_code,
    format_revision,
    format_status,
    format_worktree_name,
    format_worktree_ref,
)
from gitcore.services.git.status_engine import matrix_to_status

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False, output: Optional[Console] = None):
        self.verbose = verbose
        self.debug_mode = debug
        self.console = output or console

    def display_status(self, status: StatusOutput) -> None:
        """Display the entries of a worktree status query."""
        ref = escape(status.ref) if status.ref else "[dim](no branch)[/dim]"
        self.console.print(f"On {ref} in {escape(str(status.root))}: {format_branch_status(status.status)}")
        if not status.entries:
            return

        table = Table()
        for col in STATUS_COLUMNS:
            table.add_column(col.label)
        for entry in status.entries:
            table.add_row(escape(entry.path), format_status(entry.status))
        self.console.print(table)

    def display_file_status(self, path: str, status: Optional[GitStatus]) -> None:
        """Display the status of a single path."""
        self.console.print(f"{escape(path)}: {format_status(status)}")

    def display_matrix(self, rows: List[MatrixRow]) -> None:
        """Display status-matrix rows with their normalized status."""
        table = Table()
        for col in MATRIX_COLUMNS:
            table.add_column(col.label)
        for filepath, head, workdir, stage in rows:
            table.add_row(
                escape(filepath),
                format_matrix_code(head),
                format_matrix_code(workdir),
                format_matrix_code(stage),
                format_status(matrix_to_status(head, workdir, stage)),
            )
        self.console.print(table)

    def display_worktrees(self, worktrees: List[Worktree]) -> None:
        """Display a table of worktrees, main worktree first."""
        table = Table()
        for col in WORKTREE_COLUMNS:
            table.add_column(col.label)
        for worktree in worktrees:
            table.add_row(
                format_worktree_name(worktree),
                format_worktree_ref(worktree),
                format_revision(worktree.rev),
                escape(worktree.path),
            )
        self.console.print(table)
        if self.verbose:
            self.console.print(f"[dim]{len(worktrees)} worktree(s)[/dim]")

    def display_paths(self, paths: WorktreePaths) -> None:
        """Display resolved worktree locations."""
        for label, value in (
            ("dir", paths.dir),
            ("gitdir", paths.gitdir),
            ("worktrees", paths.worktrees),
            ("worktree_dir", paths.worktree_dir),
            ("worktree_gitdir", paths.worktree_gitdir),
            ("worktree_link", paths.worktree_link),
        ):
            if value or self.verbose:
                self.console.print(f"{label:>16}: {escape(value) if value else '[dim]-[/dim]'}")

    def display_config(self, key: str, config: GitConfig) -> None:
        """Display a config lookup result."""
        if not config.found:
            self.console.print(f"[yellow]{escape(key)} is not set[/yellow]")
            return
        line = f"{escape(config.value or '')} [dim]({config.scope})[/dim]"
        if config.origin:
            line += f" [dim]{escape(config.origin)}[/dim]"
        self.console.print(line)
