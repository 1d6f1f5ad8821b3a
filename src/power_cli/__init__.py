"""UI Development Power maintainer CLI."""

from power_router import __version__

__all__ = ["__version__"]
