from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..context import ExecContext

logger = logging.getLogger(__name__)

PACMAN_INSTALL = ["pacman", "-S", "--needed", "--noconfirm", "-"]


def pacstrap(target_root: str, packages: Sequence[str], ctx: "ExecContext") -> None:
    """Install a base package set into a staged root."""

    if not packages:
        raise ConfigurationError("pacstrap needs at least one package")
    ctx.runner.run(["pacstrap", target_root, *packages])
    logger.info("Bootstrapped %s with %s", target_root, " ".join(packages))


def pacman_install(packages: Sequence[str], ctx: "ExecContext") -> None:
    """Install packages on the running system, reading names from stdin."""

    if not packages:
        return
    ctx.runner.run(PACMAN_INSTALL, input_text="\n".join(packages) + "\n")
