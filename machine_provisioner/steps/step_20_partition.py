from __future__ import annotations

import logging

from ..lib.storage import apply_partition_plan
from ..pipeline import ProvisioningRun, RunState

logger = logging.getLogger(__name__)


class PartitionStep:
    step_id = "20_partition"
    title = "Partitioning disks"
    reaches = RunState.PARTITIONED

    def run(self, run: ProvisioningRun) -> None:
        for disk in run.disks:
            parts = [p for p in run.partitions if p.disk == disk]
            if not parts:
                logger.warning("No partitions planned for %s, leaving it alone", disk)
                continue
            apply_partition_plan(disk, parts, run.ctx)
