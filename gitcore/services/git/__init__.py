"""Git-related services for gitcore."""

from .path_resolver import PathResolver
from .config_store import ConfigStore
from .status_engine import StatusEngine, GitIgnoreMatcher, IgnoreMatcher, process_status_code, matrix_to_status
from .worktrees import WorktreeManager
from .remote import RemoteClient
from .operations import RepositoryOperations

__all__ = [
    "PathResolver",
    "ConfigStore",
    "StatusEngine",
    "GitIgnoreMatcher",
    "IgnoreMatcher",
    "process_status_code",
    "matrix_to_status",
    "WorktreeManager",
    "RemoteClient",
    "RepositoryOperations",
]
