"""learnloop command-line interface."""

from learnloop import __version__

__all__ = ["__version__"]
