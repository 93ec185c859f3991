"""Version information for gitcore."""

__version__ = "0.3.0"
