"""Configure a running machine from a directory of system files.

Layout of ``<sysfiles>``::

    <system>/pkgs       packages, one per line
    <system>/files/     copied over the target root
    <system>/services   systemd units to enable
    shared/...          same, applied to every system after <system>

Normally run from the new root at the end of provisioning, as a profile
configure command.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .cli import ArgumentParser
from .context import ExecContext, build_context
from .errors import ConfigurationError, ProvisioningError
from .lib.env import SYSFILES_ENV
from .lib.pkg import pacman_install
from .lib.sysfiles import copy_tree, enable_services, read_list
from .logging_utils import DEFAULT_LOG_PATH, configure_logging

logger = logging.getLogger(__name__)

SHARED = "shared"

GRUB_INSTALL = ["grub-install", "--target=x86_64-efi", "--efi-directory=/boot/efi", "--bootloader-id=GRUB"]
GRUB_MKCONFIG = ["grub-mkconfig", "-o", "/boot/grub/grub.cfg"]


def default_source(env: str, name: str) -> Path:
    """``$env``, else ``<name>`` next to the directory holding the script."""

    if os.environ.get(env):
        return Path(os.environ[env])
    return Path(sys.argv[0]).resolve().parent.parent / name


def system_dirs(source: Path, system: str) -> list[Path]:
    system_dir = source / system
    if not system_dir.is_dir():
        raise ConfigurationError(f"Unable to find config for {system} in {source}")
    return [system_dir, source / SHARED]


def apply_system_dir(d: Path, target: Path, ctx: ExecContext) -> None:
    logger.info("Applying %s to %s", d, target)
    pacman_install(read_list(d / "pkgs"), ctx)
    copy_tree(d / "files", target, dry_run=ctx.dry_run)
    enable_services(read_list(d / "services"), ctx)


def install_grub(ctx: ExecContext) -> None:
    ctx.runner.run(GRUB_INSTALL)
    ctx.runner.run(GRUB_MKCONFIG)


def run(*, system: str, source: Path, target: Path, ctx: ExecContext, grub: bool = False) -> None:
    r = ctx.reporter
    for d in system_dirs(source, system):
        r.begin(f"Applying {d.name}")
        apply_system_dir(d, target, ctx)
        r.ok()
    if grub:
        r.begin("Installing bootloader")
        install_grub(ctx)
        r.ok()


def main(argv: Optional[list[str]] = None) -> int:
    p = ArgumentParser(prog="machine-sysconf")
    p.add_argument("--system", required=True, help="The hostname of the system to configure")
    p.add_argument("--sysfiles", default=None, help="Directory of per-system files")
    p.add_argument("--target", default="/", help="Root to copy system files onto")
    p.add_argument("--install-grub", action="store_true", help="Install and configure GRUB for EFI")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log")
    p.add_argument("--dry-run", action="store_true", help="Log commands without running them")
    p.add_argument("--output", action="store_true", help="Echo command output to the terminal")
    args = p.parse_args(argv)

    configure_logging(log_path=args.log)
    ctx = build_context(dry_run=args.dry_run, show_output=args.output)

    if os.geteuid() != 0:
        ctx.reporter.fail("Must be run as root user!")
        return 1

    source = Path(args.sysfiles) if args.sysfiles else default_source(SYSFILES_ENV, "sysfiles")
    try:
        run(system=args.system, source=source, target=Path(args.target), ctx=ctx, grub=args.install_grub)
    except ProvisioningError as e:
        logger.error("sysconf failed: %s", e)
        ctx.reporter.fail(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
