"""Advisory locks and atomic replacement for worklog files."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import portalocker

DEFAULT_TIMEOUT = 10.0


def lock_path_for(path: Path) -> Path:
    """Return the sidecar lock file used for ``path``."""
    return path.with_suffix(path.suffix + ".lock")


@contextmanager
def file_lock(path: Path, timeout: float = DEFAULT_TIMEOUT) -> Generator[None, None, None]:
    """Hold an exclusive advisory lock for ``path``.

    The lock lives in a ``<name>.lock`` file next to the target so the
    target itself can be replaced while the lock is held. The lock is not
    re-entrant: do not nest two locks on the same path in one process.

    Args:
        path: File to lock
        timeout: Seconds to wait for the lock

    Raises:
        portalocker.LockException: If the lock cannot be acquired in time
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


@contextmanager
def atomic_write(path: Path, encoding: str = "utf-8") -> Generator:
    """Write text to ``path`` through a temp file and rename.

    Readers see either the old or the new content, never a partial file.
    The temp file is removed if the body raises.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(tmp_path, "w", encoding=encoding) as f:
            yield f

        # os.replace overwrites on both POSIX and Windows
        os.replace(tmp_path, path)

    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


@contextmanager
def locked_atomic_write(path: Path, encoding: str = "utf-8", timeout: float = DEFAULT_TIMEOUT) -> Generator:
    """Lock ``path`` and replace it atomically.

    Yields:
        File handle for writing
    """
    with file_lock(path, timeout=timeout):
        with atomic_write(path, encoding=encoding) as f:
            yield f
