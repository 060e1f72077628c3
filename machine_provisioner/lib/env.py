from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    staging_root: str = "/mnt"
    fstab_rel: str = "etc/fstab"
    sys_block: str = "/sys/block"
    log_default: str = "/var/log/machine-provisioner.log"


PATHS = Paths()

PROFILES_ENV = "MACHINE_PROVISIONER_PROFILES"
SYSFILES_ENV = "MACHINE_PROVISIONER_SYSFILES"
DOTFILES_ENV = "MACHINE_PROVISIONER_DOTFILES"
