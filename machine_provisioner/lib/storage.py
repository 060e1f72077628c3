from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Mapping, Sequence, Tuple

from ..errors import ConfigurationError
from .block import disk_name

if TYPE_CHECKING:
    from ..context import ExecContext
    from ..profiles import SystemProfile

logger = logging.getLogger(__name__)

PARTITION_FLAGS = frozenset({"esp", "boot", "bios_grub", "legacy_boot"})


@dataclass(frozen=True)
class PartitionSpec:
    role: str  # boot|root
    label: str
    filesystem: str  # fat32|btrfs|ext4
    start: str
    end: str  # "100%" is the rest of the disk
    flags: Tuple[str, ...] = ()
    disk: int = 0  # index into the --disks list

    @property
    def is_esp(self) -> bool:
        return "esp" in self.flags


@dataclass(frozen=True)
class ResolvedPartition:
    spec: PartitionSpec
    disk: str
    number: int
    path: str


def partition_path(disk: str, number: int) -> str:
    """Device path of partition ``number`` on ``disk``.

    nvme/mmcblk style names end in a digit and take a ``p`` separator:
    ``/dev/nvme0n1p1`` vs ``/dev/sda1``. Every stage must go through here.
    """

    name = disk_name(disk)
    sep = "p" if ("nvme" in name or name[-1:].isdigit()) else ""
    return f"/dev/{name}{sep}{number}"


def plan(profile_name: str, profiles: Mapping[str, "SystemProfile"]) -> List[PartitionSpec]:
    """Ordered partition layout for a named profile."""

    profile = profiles.get(profile_name)
    if profile is None:
        raise ConfigurationError(f"Unknown system {profile_name}")
    return list(profile.partitions)


def resolve_partitions(specs: Sequence[PartitionSpec], disks: Sequence[str]) -> List[ResolvedPartition]:
    """Number partitions positionally per disk and resolve their device paths."""

    counters: dict[int, int] = {}
    resolved: List[ResolvedPartition] = []
    for spec in specs:
        if spec.disk >= len(disks):
            raise ConfigurationError(
                f"Partition {spec.label} wants disk #{spec.disk + 1} but only {len(disks)} given"
            )
        number = counters.get(spec.disk, 0) + 1
        counters[spec.disk] = number
        disk = disk_name(disks[spec.disk])
        resolved.append(
            ResolvedPartition(spec=spec, disk=disk, number=number, path=partition_path(disk, number))
        )
    return resolved


def apply_partition_plan(disk: str, partitions: Sequence[ResolvedPartition], ctx: "ExecContext") -> None:
    """Create a GPT label and the given partitions on one disk, in order."""

    dev = f"/dev/{disk_name(disk)}"
    logger.info("Partitioning disk=%s partitions=%d", dev, len(partitions))

    ctx.runner.run(["parted", "-s", dev, "mklabel", "gpt"])
    for part in partitions:
        spec = part.spec
        ctx.runner.run(["parted", "-s", dev, "mkpart", spec.label, spec.filesystem, spec.start, spec.end])
        for flag in spec.flags:
            ctx.runner.run(["parted", "-s", dev, "set", str(part.number), flag, "on"])

    # Inform kernel
    ctx.runner.run(["partprobe", dev])
