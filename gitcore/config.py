"""Configuration handling for gitcore"""

import re
from dataclasses import dataclass, field
from typing import Optional, List


@dataclass
class Config:
    """Configuration for gitcore with validation."""

    # Remote used for tracking branches, clone fallbacks and checkout
    remote_name: str = "origin"

    # Linked worktrees created by `branch`/`checkout` live in <repo>/../<root>/<repo-name>/<branch>
    linked_worktree_root: str = ".syn"

    # Paths skipped when a local-only branch is cloned by copying the working tree
    clone_excludes: List[str] = field(default_factory=lambda: ["node_modules"])

    # Identity used by merge dry-runs when user.name/user.email are missing
    placeholder_name: str = "Mr. Test"
    placeholder_email: str = "mrtest@example.com"

    # Overrides the platform-standard global git-config location (None = ~/.gitconfig)
    global_config_path: Optional[str] = None

    # Execution modes
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_remote_name()
        self._validate_linked_worktree_root()
        self._validate_clone_excludes()
        self._validate_placeholder_identity()

    def _validate_remote_name(self):
        """Validate remote_name is not empty."""
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def _validate_linked_worktree_root(self):
        """Validate linked_worktree_root is a single relative directory name."""
        root = self.linked_worktree_root
        if not root or root.startswith("/") or ".." in root.split("/"):
            raise ValueError(f"linked_worktree_root must be a relative directory name, got '{root}'")

    def _validate_clone_excludes(self):
        """Validate clone_excludes list."""
        if not isinstance(self.clone_excludes, list):
            raise ValueError("clone_excludes must be a list")

    def _validate_placeholder_identity(self):
        """Validate the placeholder author identity."""
        if not self.placeholder_name.strip():
            raise ValueError("placeholder_name cannot be empty")
        if not re.match(r"^[^@\s]+@[^@\s]+$", self.placeholder_email):
            raise ValueError(f"placeholder_email must be an email address, got '{self.placeholder_email}'")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "remote_name": self.remote_name,
            "linked_worktree_root": self.linked_worktree_root,
            "clone_excludes": self.clone_excludes,
            "placeholder_name": self.placeholder_name,
            "placeholder_email": self.placeholder_email,
            "global_config_path": self.global_config_path,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        # Extract only known fields
        known_fields = {
            "remote_name",
            "linked_worktree_root",
            "clone_excludes",
            "placeholder_name",
            "placeholder_email",
            "global_config_path",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
