"""Register a directory tree with a watch session."""

from __future__ import annotations

import logging
import os
from typing import Union

from filedrop import WATCH_ERROR

logger = logging.getLogger(__name__)


class WatchSetupError(Exception):
    """Raised when the tree cannot be put under watch."""

    code = WATCH_ERROR


def register_tree(root: Union[str, os.PathLike], session) -> int:
    """Register ``root`` and every directory below it with ``session``.

    The walk happens once; directories created later are not registered.
    Symlinked directories are not followed. Returns the number of
    directories registered.
    """
    root = os.fspath(root)
    if not os.path.isdir(root):
        raise WatchSetupError(f"{root} does not exist or is not a directory")

    def _walk_error(exc: OSError) -> None:
        raise WatchSetupError(f"cannot read {exc.filename}: {exc.strerror}") from exc

    count = 0
    for dirpath, _dirnames, _filenames in os.walk(root, onerror=_walk_error):
        try:
            session.add(dirpath)
        except OSError as exc:
            raise WatchSetupError(f"cannot watch {dirpath}: {exc}") from exc
        logger.debug("Registered %s", dirpath)
        count += 1
    return count
