from __future__ import annotations

import logging

from ..lib.block import get_uuid
from ..lib.fstab import render_fstab, write_fstab
from ..pipeline import ProvisioningRun, RunState

logger = logging.getLogger(__name__)


class WriteFstabStep:
    step_id = "70_write_fstab"
    title = "Generating fstab"
    reaches = RunState.FSTAB_WRITTEN

    def run(self, run: ProvisioningRun) -> None:
        runner = run.ctx.runner
        contents = render_fstab(run.mounts, lambda part: get_uuid(part, runner=runner))

        if run.ctx.dry_run:
            logger.info("Would write %s:\n%s", run.fstab_path, contents)
            return
        write_fstab(run.fstab_path, contents)
