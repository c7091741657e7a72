"""
twiggit - Context-aware git worktree management
"""

from .__version__ import __version__
from .core import Twiggit

__all__ = ["Twiggit", "__version__"]
