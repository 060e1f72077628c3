from __future__ import annotations

import logging

from ..lib.filesystems import create_subvolumes
from ..lib.mounts import MountEntry, mount_entry, unmount_target
from ..pipeline import ProvisioningRun, RunState

logger = logging.getLogger(__name__)


class SubvolumesStep:
    """Mount the bare btrfs top level, create the subvolumes, unmount again.

    The later use-time mounts need the subvolumes to exist, so this has to
    be its own mount cycle.
    """

    step_id = "40_subvolumes"
    title = "Creating subvolumes"
    reaches = RunState.SUBVOLUMES_CREATED

    def run(self, run: ProvisioningRun) -> None:
        if not run.profile.subvolumes:
            logger.info("Profile %s has no subvolumes", run.profile.name)
            return

        root = next(m for m in run.mounts if m.target == "/")
        top_level = MountEntry(
            partition=root.partition,
            target="/",
            fstype=root.fstype,
            options=root.options,
            subvolume="/",
        )
        mp = mount_entry(top_level, run.staging_root, run.ctx)
        create_subvolumes(mp, run.profile.subvolumes, run.ctx)
        unmount_target(mp, run.ctx)
