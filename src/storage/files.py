# src/storage/files.py
"""Scoped atomic file writes.

Writers stage content in a temporary file inside the destination
directory and ``os.replace`` it into place, so readers observe either
the old file or the complete new one. The staging file is removed on
every failure path.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

_TMP_SUFFIX = ".part"


@contextlib.contextmanager
def staged_file(destination: Path) -> Iterator[Path]:
    """Yield a temporary path next to ``destination``; publish it on clean exit.

    The caller writes the temporary path; when the block exits without an
    exception it is atomically renamed onto ``destination``. On error the
    temporary file is deleted and the destination is left untouched.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(destination.parent),
        prefix=f".{destination.name}.",
        suffix=_TMP_SUFFIX,
    )
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        os.replace(tmp_path, destination)
    finally:
        if tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()


def atomic_write_bytes(destination: Path, data: bytes) -> Path:
    """Write ``data`` to ``destination`` via write-to-temp-then-rename."""
    with staged_file(destination) as tmp:
        with open(tmp, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
    return destination


def atomic_write_text(destination: Path, text: str) -> Path:
    return atomic_write_bytes(destination, text.encode("utf-8"))


def atomic_copy(source: Path, destination: Path) -> Path:
    """Copy ``source`` onto ``destination`` atomically (content only)."""
    with staged_file(destination) as tmp:
        shutil.copyfile(source, tmp)
    return destination


def remove_quietly(*paths: Path) -> None:
    """Best-effort delete; missing files are ignored."""
    for path in paths:
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)
