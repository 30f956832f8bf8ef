"""
Filesystem helpers for atomic file replacement.

**Conceptual**: Writers never touch their destination file directly. They
write into a temporary file in the same directory and then rename it over the
destination with os.replace. A rename within one directory is atomic on POSIX
and Windows, so readers see either the old file or the complete new one.

**Why the same directory?**
  - os.replace cannot move a file across filesystems atomically.
  - A sibling temp file is guaranteed to live on the destination's filesystem.
"""

import os
import shutil
import tempfile
from pathlib import Path


def create_sibling_temp(path: Path | str) -> Path:
    """
    Create a new, empty temporary file next to `path`.

    The file is named `.<name>.<random>.tmp` so it is hidden on POSIX and
    easy to identify if a crashed process leaves it behind.

    Args:
        path: Destination the temp file will eventually replace.

    Returns:
        Path of the created temp file (the caller owns and must remove it).

    Raises:
        OSError: If the directory does not exist or is not writable.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    os.close(fd)
    return Path(tmp_name)


def copy_mode(src_path: Path | str, dest_path: Path | str) -> None:
    """
    Copy permission bits from `src_path` onto `dest_path`.

    mkstemp creates files as 0600; without this a replace would silently
    make the destination owner-only. A missing `src_path` leaves the temp
    file's mode as is.
    """
    try:
        shutil.copymode(src_path, dest_path)
    except FileNotFoundError:
        pass


def atomic_replace(tmp_path: Path | str, dest_path: Path | str) -> None:
    """
    Atomically move `tmp_path` over `dest_path`.

    Raises:
        OSError: If the rename fails (tmp_path is left in place).
    """
    os.replace(tmp_path, dest_path)


def remove_quietly(path: Path | str | None) -> None:
    """Delete `path` if it exists. Other OS errors propagate."""
    if path is None:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
