from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from ..errors import FstabWriteError
from .mounts import MountEntry

logger = logging.getLogger(__name__)

FSTAB_HEADER = "# Generated automatically - remember to update the system profile if updating this file!"


@dataclass(frozen=True)
class FstabEntry:
    spec: str
    mountpoint: str
    fstype: str
    options: str
    dump: int = 0
    passno: int = 0

    def line(self) -> str:
        return f"{self.spec} {self.mountpoint} {self.fstype} {self.options} {self.dump} {self.passno}"


def fstab_entries(mounts: Sequence[MountEntry], uuid_of: Callable[[str], str]) -> List[FstabEntry]:
    """One fstab entry per mount, keyed by UUID rather than device path."""

    uuids: Dict[str, str] = {}
    entries: List[FstabEntry] = []
    for m in mounts:
        if m.partition not in uuids:
            uuids[m.partition] = uuid_of(m.partition)
        entries.append(
            FstabEntry(
                spec=f"UUID={uuids[m.partition]}",
                mountpoint=m.target,
                fstype=m.fstype,
                options=m.mount_options,
                dump=m.dump,
                passno=m.passno,
            )
        )
    return entries


def render_fstab(mounts: Sequence[MountEntry], uuid_of: Callable[[str], str]) -> str:
    lines = [FSTAB_HEADER]
    lines += [e.line() for e in fstab_entries(mounts, uuid_of)]
    return "\n".join(lines) + "\n"


def write_fstab(path: str, contents: str) -> None:
    """Write ``contents`` to ``path`` all-or-nothing."""

    p = Path(path)
    tmp_name = None
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".fstab.", dir=str(p.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, p)
        tmp_name = None
    except OSError as e:
        raise FstabWriteError(f"Unable to write {p}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning("Leftover temporary file %s", tmp_name)
    logger.info("Wrote %s (%d entries)", p, contents.count("\nUUID="))
