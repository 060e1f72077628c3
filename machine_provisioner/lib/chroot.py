from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from ..context import ExecContext

logger = logging.getLogger(__name__)


def chroot_argv(target_root: str, argv: Sequence[str], *, user: Optional[str] = None) -> list[str]:
    prefix = ["arch-chroot"]
    if user:
        prefix += ["-u", user]
    return [*prefix, target_root, *argv]


def chroot_cmd(
    target_root: str,
    argv: Sequence[str],
    ctx: "ExecContext",
    *,
    user: Optional[str] = None,
    interactive: bool = False,
) -> None:
    """Run a command inside target root."""

    ctx.runner.run(chroot_argv(target_root, argv, user=user), interactive=interactive)
