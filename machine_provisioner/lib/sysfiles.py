from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, List

from ..errors import StagingError

if TYPE_CHECKING:
    from ..context import ExecContext

logger = logging.getLogger(__name__)


def read_list(path: Path) -> List[str]:
    """One entry per line; blank lines and ``#`` comments are ignored."""

    if not path.exists():
        logger.info("No %s, nothing to do", path)
        return []
    lines = [line.split("#", 1)[0].strip() for line in path.read_text(encoding="utf-8").splitlines()]
    return [line for line in lines if line]


def copy_tree(src: Path, dest: Path, *, dry_run: bool = False) -> int:
    """Copy regular files from ``src`` onto ``dest``, overwriting. Returns file count."""

    if not src.is_dir():
        logger.info("No %s, nothing to copy", src)
        return 0
    copied = 0
    for p in sorted(src.rglob("*")):
        rel = p.relative_to(src)
        target = dest / rel
        if dry_run:
            logger.info("Would copy %s -> %s", p, target)
            copied += p.is_file()
            continue
        try:
            if p.is_dir():
                target.mkdir(mode=0o755, parents=True, exist_ok=True)
            elif p.is_file():
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(p, target)
                copied += 1
        except OSError as e:
            raise StagingError(f"Unable to copy {p} to {target}: {e}") from e
    logger.info("Copied %d files from %s to %s", copied, src, dest)
    return copied


def enable_services(units: List[str], ctx: "ExecContext") -> None:
    for unit in units:
        ctx.runner.run(["systemctl", "enable", unit])
