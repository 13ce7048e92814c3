"""Feature modules."""

from . import scripts

__all__ = ["scripts"]
