"""Translate mount option strings to kernel mount flags and back.

A generic option string such as ``rw,relatime,compress=zstd`` is split into
the flags mount(2) understands (a bitmask) and the filesystem-specific data
string the driver parses itself. Unknown tokens are never rejected; the
filesystem driver is the authority on what is valid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

# <linux/mount.h>
MS_RDONLY = 1
MS_NOSUID = 2
MS_NODEV = 4
MS_NOEXEC = 8
MS_SYNCHRONOUS = 16
MS_MANDLOCK = 64
MS_DIRSYNC = 128
MS_NOATIME = 1024
MS_NODIRATIME = 2048
MS_SILENT = 32768
MS_RELATIME = 1 << 21
MS_STRICTATIME = 1 << 24
MS_LAZYTIME = 1 << 25

# Order matters for decode().
KERNEL_FLAGS: Dict[str, int] = {
    "ro": MS_RDONLY,
    "nosuid": MS_NOSUID,
    "nodev": MS_NODEV,
    "noexec": MS_NOEXEC,
    "sync": MS_SYNCHRONOUS,
    "mand": MS_MANDLOCK,
    "dirsync": MS_DIRSYNC,
    "noatime": MS_NOATIME,
    "nodiratime": MS_NODIRATIME,
    "silent": MS_SILENT,
    "relatime": MS_RELATIME,
    "strictatime": MS_STRICTATIME,
    "lazytime": MS_LAZYTIME,
}

# mount(8) tokens that mean "leave the flag cleared".
DEFAULT_TOKENS = frozenset({"rw", "defaults", "suid", "dev", "exec", "async"})


def split_options(options: str) -> List[str]:
    return [t for t in (options or "").split(",") if t]


def append_option(options: str, token: str) -> str:
    return ",".join([*split_options(options), token])


def encode(options: str) -> Tuple[int, str]:
    """Return ``(flags, data)`` for a comma separated option string."""

    flags = 0
    data: List[str] = []
    for token in split_options(options):
        if token in DEFAULT_TOKENS:
            continue
        bit = KERNEL_FLAGS.get(token)
        if bit is not None:
            flags |= bit
        else:
            data.append(token)
    return flags, ",".join(data)


def decode(flags: int, data: str = "") -> str:
    """Inverse of :func:`encode`, suitable for ``mount -o``.

    Returns ``rw`` alone when there is nothing else to say, since mount(8)
    rejects an empty option list.
    """

    tokens = [name for name, bit in KERNEL_FLAGS.items() if flags & bit]
    tokens += split_options(data)
    return ",".join(tokens) or "rw"


@dataclass(frozen=True)
class MountOptions:
    raw: str

    @property
    def flags(self) -> int:
        return encode(self.raw)[0]

    @property
    def data(self) -> str:
        return encode(self.raw)[1]

    def with_subvolume(self, subvolume: str) -> "MountOptions":
        return MountOptions(append_option(self.raw, f"subvol={subvolume}"))

    def __str__(self) -> str:
        return self.raw
