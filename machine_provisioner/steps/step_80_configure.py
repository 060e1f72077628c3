from __future__ import annotations

import logging

from ..lib.chroot import chroot_cmd
from ..pipeline import ProvisioningRun, RunState

logger = logging.getLogger(__name__)


class ConfigureStep:
    """Hand the new root over to the profile's own configuration commands."""

    step_id = "80_configure"
    title = "Configuring system"
    reaches = RunState.CONFIGURED

    def run(self, run: ProvisioningRun) -> None:
        for cmd in run.profile.configure:
            logger.info("Configuring in chroot: %s (user=%s)", " ".join(cmd.argv), cmd.user or "root")
            chroot_cmd(run.staging_root, cmd.argv, run.ctx, user=cmd.user)
