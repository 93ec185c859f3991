"""
gitcore - Worktree-aware Git repository operations and status classification
"""

from .__version__ import __version__
from .core import GitCore
from .cli.main import main

__all__ = ["GitCore", "main", "__version__"]
