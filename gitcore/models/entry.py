"""Content entries whose git status can be queried."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class FileEntry:
    """A file on disk."""
    path: str


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory on disk."""
    path: str


@dataclass(frozen=True)
class VirtualEntry:
    """Content held only in memory (e.g. an unsaved editor buffer)."""
    name: str
    content: str = ""
    path: Optional[str] = None  # Where the content would be saved, if known


ContentEntry = Union[FileEntry, DirectoryEntry, VirtualEntry]
