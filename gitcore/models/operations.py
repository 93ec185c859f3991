"""Records exchanged with repository operations."""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional


def local_timezone_offset(timestamp: Optional[int] = None) -> int:
    """Minutes between UTC and local time, positive west of UTC (JavaScript convention)."""
    when = time.localtime(timestamp if timestamp is not None else time.time())
    return -(when.tm_gmtoff // 60)


@dataclass
class Identity:
    """Author or committer details for a commit."""
    name: Optional[str] = None
    email: Optional[str] = None
    timestamp: Optional[int] = None  # Seconds since the Unix epoch
    timezone_offset: Optional[int] = None  # Minutes, UTC minus local time

    def git_date(self) -> str:
        """Date in git's internal `<seconds> <+hhmm>` format."""
        timestamp = self.timestamp if self.timestamp is not None else int(time.time())
        offset = self.timezone_offset if self.timezone_offset is not None else local_timezone_offset(timestamp)
        # offsets are stored UTC - local, git wants local - UTC
        sign = "-" if offset > 0 else "+"
        hours, minutes = divmod(abs(offset), 60)
        return f"{timestamp} {sign}{hours:02d}{minutes:02d}"


@dataclass
class MergeResult:
    """Outcome of a merge."""
    oid: Optional[str] = None
    tree: Optional[str] = None
    already_merged: bool = False
    fast_forward: bool = False
    merge_commit: bool = False
    missing_configs: Optional[List[str]] = None


@dataclass
class ServerRef:
    """A ref advertised by a remote server."""
    ref: str
    oid: str
    target: Optional[str] = None  # Symbolic ref target (e.g. HEAD -> refs/heads/main)


@dataclass
class RemoteInfo:
    """Branches, tags and HEAD advertised by a remote."""
    url: str
    head: Optional[str] = None
    heads: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
