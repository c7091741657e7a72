"""Git access layer for twiggit."""

from .backend import GitBackend, MetadataBackend, MutationBackend
from .cli import GitCliBackend
from .metadata import GitPythonMetadataBackend

__all__ = [
    "GitBackend",
    "MetadataBackend",
    "MutationBackend",
    "GitCliBackend",
    "GitPythonMetadataBackend",
]
