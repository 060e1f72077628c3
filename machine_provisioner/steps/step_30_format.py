from __future__ import annotations

from ..lib.filesystems import format_partition
from ..pipeline import ProvisioningRun, RunState


class FormatStep:
    step_id = "30_format"
    title = "Formatting partitions"
    reaches = RunState.FORMATTED

    def run(self, run: ProvisioningRun) -> None:
        for p in run.partitions:
            format_partition(p.spec, p.path, run.ctx)
