from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import StagingError

logger = logging.getLogger(__name__)


def _link(src: Path, dest: Path) -> bool:
    """Point ``dest`` at ``src``. Returns True when something changed.

    Missing files are linked, regular files and links pointing elsewhere are
    replaced, anything else (e.g. a directory) is left alone.
    """

    if not dest.is_symlink() and not dest.exists():
        os.symlink(src, dest)
        return True

    if dest.is_symlink():
        if os.readlink(dest) == str(src):
            return False
    elif not dest.is_file():
        logger.warning("Not replacing %s, it is not a regular file", dest)
        return False

    dest.unlink()
    os.symlink(src, dest)
    return True


def link_tree(src: Path, dest: Path) -> int:
    """Mirror ``src`` into ``dest`` as symlinks. Returns number of links made."""

    if not src.is_dir():
        logger.info("No %s, nothing to link", src)
        return 0
    changed = 0
    for p in sorted(src.iterdir()):
        target = dest / p.name
        try:
            if p.is_dir():
                target.mkdir(mode=0o755, parents=True, exist_ok=True)
                changed += link_tree(p, target)
            elif _link(p, target):
                logger.info("Linked %s -> %s", target, p)
                changed += 1
        except OSError as e:
            raise StagingError(f"Unable to link {p} to {target}: {e}") from e
    return changed
