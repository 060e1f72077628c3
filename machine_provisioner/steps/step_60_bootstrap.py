from __future__ import annotations

from ..lib.pkg import pacstrap
from ..pipeline import ProvisioningRun, RunState


class BootstrapStep:
    step_id = "60_bootstrap"
    title = "Installing base system"
    reaches = RunState.BOOTSTRAPPED

    def run(self, run: ProvisioningRun) -> None:
        pacstrap(run.staging_root, run.profile.base_packages, run.ctx)
