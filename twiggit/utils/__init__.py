"""Utility functions for twiggit.

This package provides utility modules:
- paths: Path normalization and containment checks
- deadline: Cancellation signal passed through git backend calls
"""

from .paths import normalize_path, is_path_under, relative_parts
from .deadline import Deadline

__all__ = [
    # Paths
    "normalize_path",
    "is_path_under",
    "relative_parts",
    # Cancellation
    "Deadline",
]
