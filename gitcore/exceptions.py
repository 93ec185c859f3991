"""Custom exceptions for gitcore"""

from typing import List, Optional


class GitCoreError(Exception):
    """Base exception for all gitcore errors."""
    pass


class GitOperationError(GitCoreError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotARepositoryError(GitOperationError):
    """Exception raised when an operation requires a repository and none was found."""

    def __init__(self, operation: str, path: str):
        self.path = path
        super().__init__(operation, message=f"'{path}' is not contained in a git repository")


class WorktreeLinkError(GitOperationError):
    """Exception raised when a `.git` file points to missing or corrupt administrative files."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__("resolve_worktree", message=message or f"cannot resolve worktree link at '{path}'")


class BranchNotFoundError(GitOperationError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str):
        super().__init__("find_branch", branch, "Branch not found")


class BranchAlreadyCheckedOutError(GitOperationError):
    """Exception raised when a branch is already checked out in another worktree."""

    def __init__(self, branch: str, path: str):
        self.path = path
        super().__init__("checkout", branch, f"Branch is already checked out at '{path}'")


class MissingConfigError(GitOperationError):
    """Exception raised when required git-config entries are not set."""

    def __init__(self, operation: str, keys: List[str]):
        self.keys = keys
        super().__init__(operation, message=f"missing git-config entries: {', '.join(keys)}")


class MergeConflictError(GitOperationError):
    """Exception raised when a merge cannot complete without conflicts."""

    def __init__(self, base: str, compare: str, paths: Optional[List[str]] = None):
        self.base = base
        self.compare = compare
        self.paths = paths or []
        message = f"merging '{compare}' into '{base}' produces conflicts"
        if self.paths:
            message += f" in {', '.join(self.paths)}"
        super().__init__("merge", base, message)


class CheckoutConflictError(GitOperationError):
    """Exception raised when a checkout would overwrite local changes."""

    def __init__(self, ref: str, paths: List[str]):
        self.paths = paths
        super().__init__("checkout", ref, f"local changes would be overwritten: {', '.join(paths)}")


class RemoteOperationError(GitOperationError):
    """Exception raised for errors in network operations (clone, ls-remote)."""

    def __init__(self, operation: str, url: str, message: Optional[str] = None):
        self.url = url
        super().__init__(operation, message=f"{url}: {message}" if message else url)
