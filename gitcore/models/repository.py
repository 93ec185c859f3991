"""Repository descriptor supplied by the surrounding application."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Credentials:
    """Resolved credentials handed to network operations."""
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None

    @property
    def secret(self) -> Optional[str]:
        """The value used as the HTTP password (tokens take precedence)."""
        return self.token or self.password


@dataclass
class Repository:
    """A repository entity as held by the application state store."""
    id: str
    name: str
    root: str
    url: str = ""
    cors_proxy: Optional[str] = None  # Only meaningful for browser transports; carried for the store
    local: List[str] = field(default_factory=list)
    remote: List[str] = field(default_factory=list)
    oauth: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None

    @property
    def credentials(self) -> Optional[Credentials]:
        if not (self.username or self.password or self.token):
            return None
        return Credentials(username=self.username, password=self.password, token=self.token)
