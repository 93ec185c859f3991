"""Git-config entry model."""

from dataclasses import dataclass
from typing import Literal, Optional

ConfigScope = Literal["local", "global", "none"]


@dataclass
class GitConfig:
    """Value of a git-config entry and the scope in which it was found."""

    scope: ConfigScope
    value: Optional[str] = None
    origin: Optional[str] = None  # Only set when the caller asked for the origin

    @property
    def found(self) -> bool:
        return self.scope != "none"
