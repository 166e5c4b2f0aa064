"""Byte-for-byte file copy used by the event processor."""

from __future__ import annotations

import os
import shutil
import stat

from filedrop import COPY_ERROR


class CopyError(Exception):
    """Raised when a source file cannot be copied."""

    code = COPY_ERROR


def copy_file(src: str, dst: str) -> int:
    """Copy ``src`` to ``dst`` and return the number of bytes written.

    Only regular files are copied; directories, sockets, FIFOs and the like
    raise :class:`CopyError`, as does copying a file onto itself or any I/O
    failure on either side.
    """
    try:
        mode = os.stat(src).st_mode
    except OSError as exc:
        raise CopyError(f"{src}: {exc.strerror or exc}") from exc

    if not stat.S_ISREG(mode):
        raise CopyError(f"{src} is not a regular file")

    try:
        if os.path.exists(dst) and os.path.samefile(src, dst):
            raise CopyError(f"{src} and {dst} are the same file")
        with open(src, "rb") as source, open(dst, "wb") as destination:
            shutil.copyfileobj(source, destination)
            return destination.tell()
    except OSError as exc:
        raise CopyError(f"copying {src} to {dst}: {exc.strerror or exc}") from exc
