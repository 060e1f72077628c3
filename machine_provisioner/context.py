from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

from .lib.command import CommandRunner
from .lib.mounts import CommandMounter, Mounter
from .report import Reporter


@dataclass
class ExecContext:
    """Everything a side-effecting operation needs, passed explicitly.

    Output sinks live on the runner; nothing here is process-global.
    """

    runner: CommandRunner
    mounter: Mounter
    reporter: Reporter

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run


def build_context(
    *,
    dry_run: bool = False,
    show_output: bool = False,
    reporter: Optional[Reporter] = None,
) -> ExecContext:
    runner = CommandRunner(
        stdout=sys.stdout if show_output else None,
        stderr=sys.stderr if show_output else None,
        dry_run=dry_run,
    )
    return ExecContext(runner=runner, mounter=CommandMounter(runner), reporter=reporter or Reporter())
