from __future__ import annotations

import logging
from pathlib import Path

from ..errors import BlockDeviceError, ExternalCommandFailure, ResourceResolutionFailure
from .command import CommandRunner
from .env import PATHS

logger = logging.getLogger(__name__)


def disk_name(disk: str) -> str:
    """``/dev/sda`` and ``sda`` both name the disk ``sda``."""

    return disk[len("/dev/"):] if disk.startswith("/dev/") else disk


def disk_exists(disk: str, *, sys_block: str = PATHS.sys_block) -> bool:
    return (Path(sys_block) / disk_name(disk)).exists()


def partition_count(disk: str, *, sys_block: str = PATHS.sys_block) -> int:
    """Count partitions the kernel currently knows about for ``disk``."""

    d = Path(sys_block) / disk_name(disk)
    try:
        children = list(d.iterdir())
    except OSError as e:
        raise BlockDeviceError(f"Cannot enumerate device {d}: {e}") from e
    return sum(1 for c in children if c.is_dir() and (c / "partition").exists())


def get_uuid(partition: str, *, runner: CommandRunner) -> str:
    """Return filesystem UUID for a partition."""

    try:
        r = runner.run(["lsblk", "-n", "-o", "UUID", partition])
    except ExternalCommandFailure as e:
        raise ResourceResolutionFailure(f"Unable to get uuid for {partition}") from e
    uuid = (r.stdout or "").strip()
    if not uuid and not runner.dry_run:
        raise ResourceResolutionFailure(f"Unable to get uuid for {partition}")
    logger.info("Resolved %s -> UUID=%s", partition, uuid)
    return uuid
