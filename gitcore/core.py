"""Core functionality for gitcore"""

from typing import Optional, Union

from gitcore.config import Config
from gitcore.services.git.config_store import ConfigStore
from gitcore.services.git.operations import RepositoryOperations
from gitcore.services.git.path_resolver import PathResolver
from gitcore.services.git.remote import RemoteClient
from gitcore.services.git.status_engine import IgnoreMatcher, StatusEngine
from gitcore.services.git.worktrees import WorktreeManager
from gitcore.logging_config import get_logger

logger = get_logger(__name__)


class GitCore:
    """Context object that builds and wires the git services.

    Each service receives its collaborators through its constructor, so
    several independently configured instances can coexist in one process.
    """

    def __init__(self, config: Union[Config, dict, None] = None, ignore_matcher: Optional[IgnoreMatcher] = None):
        """Initialize GitCore.

        Args:
            config: Configuration dict or Config object
            ignore_matcher: Ignore-rule engine used for status (defaults to `git check-ignore`)
        """
        # Convert dict to Config if needed
        if isinstance(config, dict):
            self.config = Config.from_dict(config)
        else:
            self.config = config or Config()

        self.resolver = PathResolver()
        self.config_store = ConfigStore(self.resolver, self.config)
        self.status = StatusEngine(self.resolver, ignore_matcher)
        self.worktrees = WorktreeManager(self.resolver, self.status, self.config)
        self.remote = RemoteClient()
        self.operations = RepositoryOperations(
            self.resolver,
            self.config_store,
            self.status,
            self.worktrees,
            self.remote,
            self.config,
        )
        logger.debug(f"GitCore initialized with remote '{self.config.remote_name}'")
