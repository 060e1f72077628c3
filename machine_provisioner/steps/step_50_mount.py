from __future__ import annotations

from ..lib.mounts import mount_all
from ..pipeline import ProvisioningRun, RunState


class MountStep:
    step_id = "50_mount"
    title = "Mounting filesystems"
    reaches = RunState.MOUNTED

    def run(self, run: ProvisioningRun) -> None:
        mount_all(run.mounts, run.staging_root, run.ctx)
