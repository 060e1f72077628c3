"""Data-described system profiles.

Each target machine is a YAML manifest under ``manifests/profiles``: its disk
layout, btrfs subvolumes, mounts, base packages and the opaque commands that
finish configuration inside the new root. One generic pipeline consumes them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigurationError
from .lib.env import PROFILES_ENV
from .lib.filesystems import MKFS, kernel_fstype
from .lib.mountopts import MountOptions
from .lib.mounts import MountEntry
from .lib.storage import PARTITION_FLAGS, PartitionSpec, ResolvedPartition

DEFAULT_PROFILES_DIR = Path(__file__).resolve().parent / "manifests" / "profiles"


@dataclass(frozen=True)
class MountSpec:
    target: str
    partition: str  # partition role
    options: str
    subvolume: Optional[str] = None
    dump: int = 0
    passno: int = 2


@dataclass(frozen=True)
class ChrootCommand:
    argv: Tuple[str, ...]
    user: Optional[str] = None


@dataclass(frozen=True)
class SystemProfile:
    name: str
    hostname: str
    disks: int
    partitions: Tuple[PartitionSpec, ...]
    subvolumes: Tuple[str, ...]
    mounts: Tuple[MountSpec, ...]
    base_packages: Tuple[str, ...]
    configure: Tuple[ChrootCommand, ...] = ()
    credentials: Tuple[ChrootCommand, ...] = ()

    def mount_entries(self, partitions: Sequence[ResolvedPartition]) -> List[MountEntry]:
        """Build the run's single shared mount list, in manifest order."""

        by_role = {p.spec.role: p for p in partitions}
        entries = []
        for m in self.mounts:
            part = by_role[m.partition]
            entries.append(
                MountEntry(
                    partition=part.path,
                    target=m.target,
                    fstype=kernel_fstype(part.spec.filesystem),
                    options=MountOptions(m.options),
                    subvolume=m.subvolume,
                    dump=m.dump,
                    passno=m.passno,
                )
            )
        return entries


def _require(data: Mapping[str, Any], key: str, source: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigurationError(f"{source}: missing required key '{key}'")
    return data[key]


def _str_list(value: Any, what: str, source: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, (str, int)) for v in value):
        raise ConfigurationError(f"{source}: {what} must be a list of strings")
    return tuple(str(v) for v in value)


def _parse_partition(raw: Any, disks: int, source: str) -> PartitionSpec:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{source}: partitions must be mappings")
    spec = PartitionSpec(
        role=str(_require(raw, "role", source)),
        label=str(raw.get("label") or str(raw["role"]).upper()),
        filesystem=str(_require(raw, "filesystem", source)),
        start=str(_require(raw, "start", source)),
        end=str(_require(raw, "end", source)),
        flags=_str_list(raw.get("flags") or [], "partition flags", source),
        disk=int(raw.get("disk", 0)),
    )
    if spec.filesystem not in MKFS:
        raise ConfigurationError(f"{source}: unsupported filesystem {spec.filesystem}")
    unknown = set(spec.flags) - PARTITION_FLAGS
    if unknown:
        raise ConfigurationError(f"{source}: unknown partition flags {sorted(unknown)}")
    if not 0 <= spec.disk < disks:
        raise ConfigurationError(f"{source}: partition {spec.label} on disk #{spec.disk + 1} of {disks}")
    return spec


def _parse_command(raw: Any, source: str) -> ChrootCommand:
    if isinstance(raw, list):
        raw = {"argv": raw}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{source}: commands must be lists or mappings with argv")
    argv = _str_list(_require(raw, "argv", source), "argv", source)
    return ChrootCommand(argv=argv, user=raw.get("user"))


def parse_profile(data: Any, source: str) -> SystemProfile:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Profile must be a mapping/dict: {source}")

    name = str(_require(data, "name", source))
    disks = int(data.get("disks", 1))
    if disks < 1:
        raise ConfigurationError(f"{source}: disks must be at least 1")

    partitions = tuple(_parse_partition(p, disks, source) for p in _require(data, "partitions", source))
    roles = [p.role for p in partitions]
    if len(set(roles)) != len(roles):
        raise ConfigurationError(f"{source}: partition roles must be unique")

    subvolumes = _str_list(data.get("subvolumes") or [], "subvolumes", source)
    option_sets = data.get("option_sets") or {}

    mounts: List[MountSpec] = []
    for raw in _require(data, "mounts", source):
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{source}: mounts must be mappings")
        role = str(_require(raw, "partition", source))
        if role not in roles:
            raise ConfigurationError(f"{source}: mount {raw.get('target')} uses unknown partition {role}")
        options = str(raw.get("options") or "defaults")
        subvolume = raw.get("subvolume")
        if subvolume is not None:
            subvolume = str(subvolume)
            if subvolume != "/" and subvolume not in subvolumes:
                raise ConfigurationError(f"{source}: mount uses undeclared subvolume {subvolume}")
            if partitions[roles.index(role)].filesystem != "btrfs":
                raise ConfigurationError(f"{source}: subvolume mount on non-btrfs partition {role}")
        mounts.append(
            MountSpec(
                target=str(_require(raw, "target", source)),
                partition=role,
                options=str(option_sets.get(options, options)),
                subvolume=subvolume,
                dump=int(raw.get("dump", 0)),
                passno=int(raw.get("passno", 2)),
            )
        )
    if [m.target for m in mounts].count("/") != 1:
        raise ConfigurationError(f"{source}: exactly one mount must target /")

    base_packages = _str_list(_require(data, "base_packages", source), "base_packages", source)
    if not base_packages:
        raise ConfigurationError(f"{source}: base_packages must not be empty")

    return SystemProfile(
        name=name,
        hostname=str(data.get("hostname") or name),
        disks=disks,
        partitions=partitions,
        subvolumes=subvolumes,
        mounts=tuple(mounts),
        base_packages=base_packages,
        configure=tuple(_parse_command(c, source) for c in data.get("configure") or []),
        credentials=tuple(_parse_command(c, source) for c in data.get("credentials") or []),
    )


def load_profile(path: Path) -> SystemProfile:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Unable to read profile {path}: {e}") from e
    return parse_profile(data, str(path))


def profiles_dir(directory: Optional[str] = None) -> Path:
    return Path(directory or os.environ.get(PROFILES_ENV) or DEFAULT_PROFILES_DIR)


def load_profiles(directory: Optional[str] = None) -> Dict[str, SystemProfile]:
    d = profiles_dir(directory)
    if not d.is_dir():
        raise ConfigurationError(f"Profile directory {d} does not exist")
    profiles: Dict[str, SystemProfile] = {}
    for p in sorted([*d.glob("*.yaml"), *d.glob("*.yml")]):
        profile = load_profile(p)
        if profile.name in profiles:
            raise ConfigurationError(f"Duplicate profile {profile.name} in {p}")
        profiles[profile.name] = profile
    return profiles


def get_profile(name: str, profiles: Mapping[str, SystemProfile]) -> SystemProfile:
    try:
        return profiles[name]
    except KeyError:
        raise ConfigurationError(f"Unknown system {name}") from None
