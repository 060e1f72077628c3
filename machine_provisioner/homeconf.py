"""Link a user's dotfiles into their home directory.

``<dotfiles>/<system>/files`` and then ``<dotfiles>/shared/files`` are
mirrored into ``$HOME`` as symlinks.
"""

from __future__ import annotations

import logging
import os
import socket
from pathlib import Path
from typing import Optional

from .cli import ArgumentParser
from .errors import ConfigurationError, ProvisioningError
from .lib.dotfiles import link_tree
from .lib.env import DOTFILES_ENV
from .logging_utils import configure_logging
from .report import Reporter
from .sysconf import SHARED, default_source

logger = logging.getLogger(__name__)


def run(*, system: str, source: Path, home: Path, reporter: Reporter) -> int:
    system_dir = source / system
    if not system_dir.is_dir():
        raise ConfigurationError(f"Unable to find files for {system} in {source}")

    total = 0
    for d in (system_dir, source / SHARED):
        reporter.begin(f"Linking {d.name}")
        n = link_tree(d / "files", home)
        reporter.ok(f"OK ({n} changed)")
        total += n
    return total


def main(argv: Optional[list[str]] = None) -> int:
    p = ArgumentParser(prog="machine-homeconf")
    p.add_argument("--system", default=None, help="The hostname of the system to configure (default: this host)")
    p.add_argument("--dotfiles", default=None, help="Directory of per-system dotfiles")
    p.add_argument("--log", default=str(Path.home() / ".machine-homeconf.log"), help="Path to log")
    args = p.parse_args(argv)

    configure_logging(log_path=args.log)
    reporter = Reporter()

    if os.geteuid() == 0:
        reporter.fail("Must NOT be run as root user!")
        return 1

    system = args.system or socket.gethostname()
    source = Path(args.dotfiles) if args.dotfiles else default_source(DOTFILES_ENV, "dotfiles")
    try:
        run(system=system, source=source, home=Path.home(), reporter=reporter)
    except ProvisioningError as e:
        logger.error("homeconf failed: %s", e)
        reporter.fail(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
