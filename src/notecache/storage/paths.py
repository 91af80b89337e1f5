"""Path canonicalization and relative path computation for note bodies.

Bodies are stored as canonical absolute paths. Export and import can
rewrite them relative to the directory holding the export file so that a
note collection can be moved together with its documents.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from notecache.exceptions import CanonicalizeError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def canonicalize(path: PathLike) -> str:
    """Resolve a path to its absolute, symlink-free form.

    The path must exist: bodies always reference existing documents at the
    time they are written.

    Args:
        path: Path to resolve. A leading ``~`` is expanded.

    Returns:
        The canonical absolute path as a string.

    Raises:
        CanonicalizeError: If the path is empty, missing or cannot be resolved.
    """
    raw = os.fspath(path)
    if not raw:
        raise CanonicalizeError(raw)
    try:
        resolved = Path(raw).expanduser().resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as e:
        logger.debug(f"Cannot canonicalize {raw!r}: {e}")
        raise CanonicalizeError(raw, original_error=e) from e
    return str(resolved)


def relative_from(path: PathLike, base: PathLike) -> Optional[Path]:
    """Compute the path that reaches ``path`` starting from directory ``base``.

    This is a pure component-wise comparison, nothing is looked up on disk,
    so both arguments should already be canonical.

    Args:
        path: Target path.
        base: Directory the result is relative to.

    Returns:
        The relative path (``Path(".")`` when both are equal). If exactly one
        of the arguments is absolute, ``path`` is returned unchanged when it is
        the absolute one and None otherwise. None is also returned when
        ``base`` climbs with ``..`` past the shared prefix, since the result
        would depend on the filesystem.
    """
    path = Path(path)
    base = Path(base)

    if path.is_absolute() != base.is_absolute():
        return path if path.is_absolute() else None

    path_parts = iter(path.parts)
    base_parts = iter(base.parts)
    comps: List[str] = []

    while True:
        a = next(path_parts, None)
        b = next(base_parts, None)

        if a is None and b is None:
            break
        if b is None:
            # base is an ancestor of path
            comps.append(a)
            comps.extend(path_parts)
            break
        if a is None:
            # path is an ancestor of base
            comps.append(os.pardir)
            comps.extend(os.pardir for _ in base_parts)
            break
        if not comps and a == b:
            continue
        if b == os.curdir:
            comps.append(a)
            continue
        if b == os.pardir:
            return None

        comps.append(os.pardir)
        comps.extend(os.pardir for _ in base_parts)
        comps.append(a)
        comps.extend(path_parts)
        break

    return Path(*comps)


def resolve_relative(body: PathLike, base_dir: PathLike) -> str:
    """Resolve a body path against ``base_dir`` and canonicalize it.

    An absolute ``body`` ignores ``base_dir``.

    Raises:
        CanonicalizeError: If the joined path does not exist.
    """
    return canonicalize(Path(base_dir) / Path(body))
