from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence

from ..errors import ConfigurationError, StagingError
from .command import CommandRunner
from .mountopts import MountOptions, decode, encode

if TYPE_CHECKING:
    from ..context import ExecContext

logger = logging.getLogger(__name__)

TARGET_DIR_MODE = 0o777


@dataclass(frozen=True)
class MountEntry:
    """One mount, shared by the orchestrator (executes it) and fstab (persists it)."""

    partition: str
    target: str  # absolute path inside the new system
    fstype: str
    options: MountOptions
    subvolume: Optional[str] = None
    dump: int = 0
    passno: int = 2

    @property
    def mount_options(self) -> str:
        opts = self.options.with_subvolume(self.subvolume) if self.subvolume else self.options
        return opts.raw


class Mounter(Protocol):
    def mount(self, source: str, target: str, fstype: str, flags: int, data: str) -> None:
        ...

    def unmount(self, target: str) -> None:
        ...


class CommandMounter:
    """Mounter backed by mount(8)/umount(8)."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def mount(self, source: str, target: str, fstype: str, flags: int, data: str) -> None:
        self.runner.run(["mount", "-t", fstype, "-o", decode(flags, data), source, target])

    def unmount(self, target: str) -> None:
        self.runner.run(["umount", target])


def staged_path(staging_root: str, target: str) -> str:
    return posixpath.normpath(posixpath.join(staging_root, target.lstrip("/")))


def _depth(target: str) -> int:
    return len([p for p in target.strip("/").split("/") if p])


def mount_order(entries: Sequence[MountEntry]) -> List[MountEntry]:
    """Entries in an order where every parent is mounted before its children."""

    targets = [posixpath.normpath(e.target) for e in entries]
    if targets.count("/") != 1:
        raise ConfigurationError("Mount plan needs exactly one entry for /")
    if len(set(targets)) != len(targets):
        raise ConfigurationError("Mount plan mounts the same target twice")
    return sorted(entries, key=lambda e: _depth(e.target))


def mount_entry(entry: MountEntry, staging_root: str, ctx: "ExecContext") -> str:
    target = staged_path(staging_root, entry.target)
    if not ctx.dry_run:
        try:
            Path(target).mkdir(mode=TARGET_DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(f"Unable to create {target}: {e}") from e

    flags, data = encode(entry.mount_options)
    logger.info("Mounting %s on %s (%s flags=%#x data=%s)", entry.partition, target, entry.fstype, flags, data)
    ctx.mounter.mount(entry.partition, target, entry.fstype, flags, data)
    return target


def unmount_target(target: str, ctx: "ExecContext") -> None:
    logger.info("Unmounting %s", target)
    ctx.mounter.unmount(target)


def mount_all(entries: Sequence[MountEntry], staging_root: str, ctx: "ExecContext") -> List[MountEntry]:
    ordered = mount_order(entries)
    for entry in ordered:
        mount_entry(entry, staging_root, ctx)
    return ordered
