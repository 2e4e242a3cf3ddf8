"""
Shared-file helpers: advisory locking and atomic replacement.

The pattern index and the changelog are read-modify-written by short-lived
processes that may overlap. Every such cycle runs under ``locked(path)`` and
finishes with ``atomic_write`` so a reader never observes a half-written file.
"""

import fcntl
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


def lock_path_for(path: Path) -> Path:
    """Sibling lock file used to serialise writers of ``path``."""
    return path.with_name(path.name + ".lock")


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """
    Hold an exclusive advisory lock for ``path`` for the duration of the block.

    Blocks until any other holder releases the lock. The lock file is left in
    place so concurrent waiters always contend on the same inode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_file = lock_path_for(path)
    with open(lock_file, "a") as lock_fd:
        fcntl.flock(lock_fd.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_fd.fileno(), fcntl.LOCK_UN)


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to a temp file next to ``path`` and swap it in."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(str(tmp), str(path))
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug(f"Wrote {path}")
