"""Path helpers shared by detection, resolution and lifecycle code."""

import os
from typing import List, Optional


def normalize_path(path: str) -> str:
    """Return an absolute, symlink-free, user-expanded form of ``path``."""
    return os.path.realpath(os.path.abspath(os.path.expanduser(path)))


def is_path_under(base: str, target: str, allow_equal: bool = False) -> bool:
    """Check whether ``target`` lies below ``base``.

    Both paths should already be normalized. Comparison is by path
    components, so ``/a/bc`` is not under ``/a/b``.
    """
    base = os.path.normpath(base)
    target = os.path.normpath(target)
    if target == base:
        return allow_equal
    return target.startswith(base.rstrip(os.sep) + os.sep)


def relative_parts(base: str, target: str) -> Optional[List[str]]:
    """Components of ``target`` relative to ``base``, or None when outside it."""
    if not is_path_under(base, target):
        return None
    rel = os.path.relpath(target, base)
    return [part for part in rel.split(os.sep) if part and part != "."]
