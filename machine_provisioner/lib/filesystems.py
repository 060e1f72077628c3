from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Sequence

from ..errors import ConfigurationError, StagingError
from .storage import PartitionSpec

if TYPE_CHECKING:
    from ..context import ExecContext

logger = logging.getLogger(__name__)

MKFS: Dict[str, List[str]] = {
    "fat32": ["mkfs.fat", "-F", "32"],
    "vfat": ["mkfs.fat", "-F", "32"],
    "btrfs": ["mkfs.btrfs", "-f"],
    "ext4": ["mkfs.ext4", "-F"],
}

# parted filesystem names -> kernel filesystem types
KERNEL_FSTYPE: Dict[str, str] = {
    "fat32": "vfat",
}


def kernel_fstype(filesystem: str) -> str:
    return KERNEL_FSTYPE.get(filesystem, filesystem)


def format_partition(spec: PartitionSpec, path: str, ctx: "ExecContext") -> None:
    """Create the filesystem described by ``spec`` on ``path``. No retries."""

    argv = MKFS.get(spec.filesystem)
    if argv is None:
        raise ConfigurationError(f"Don't know how to format {spec.filesystem} ({spec.label})")
    ctx.runner.run([*argv, path])
    logger.info("Formatted %s as %s", path, spec.filesystem)


def create_subvolumes(mount_point: str, names: Sequence[str], ctx: "ExecContext") -> None:
    """Create btrfs subvolumes under a bare top-level mount, in order.

    Not idempotent: btrfs refuses to create a subvolume that already exists.
    """

    for name in names:
        parent = posixpath.dirname(name.strip("/"))
        if parent and not ctx.dry_run:
            try:
                Path(mount_point, parent).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StagingError(f"Unable to create {mount_point}/{parent}: {e}") from e
        ctx.runner.run(["btrfs", "subvolume", "create", posixpath.join(mount_point, name.strip("/"))])
    logger.info("Created subvolumes %s under %s", ", ".join(names), mount_point)
