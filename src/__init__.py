"""primedash: log parsing and streaming backend for the prime-cubes dashboard."""

from primedash.version import __version__

__all__ = ["__version__"]
