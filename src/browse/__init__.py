"""Browse session wiring."""

from .session import BrowseSession

__all__ = ["BrowseSession"]
