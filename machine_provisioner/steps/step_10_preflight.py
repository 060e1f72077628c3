from __future__ import annotations

import logging

from ..errors import PreconditionFailure
from ..lib.preflight import DEFAULT_CHECKS, PreflightContext, failures, run_all
from ..pipeline import ProvisioningRun, RunState

logger = logging.getLogger(__name__)


class PreflightStep:
    step_id = "10_preflight"
    title = None  # each check reports its own line
    reaches = RunState.CHECKED

    def __init__(self, checks=DEFAULT_CHECKS) -> None:
        self.checks = checks

    def run(self, run: ProvisioningRun) -> None:
        pctx = PreflightContext(disks=run.disks, sys_block=run.sys_block)
        results = run_all(self.checks, pctx)
        run.check_results = results
        for r in results:
            run.ctx.reporter.check(r)

        failed = failures(results)
        if failed:
            raise PreconditionFailure("All checks must pass to continue. Exiting.", results=results)
        run.ctx.reporter.ok("All checks passed")
