"""Non-destructive environment checks run before any disk is touched.

Every check runs (no short circuit) so the operator sees all problems at once.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from ..errors import BlockDeviceError
from .block import disk_exists, partition_count
from .env import PATHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    check: str
    success: bool
    message: str


@dataclass(frozen=True)
class PreflightContext:
    disks: Tuple[str, ...]
    sys_block: str = PATHS.sys_block
    euid: int = field(default_factory=lambda: os.geteuid())


Check = Callable[[PreflightContext], CheckResult]


def check_is_root(ctx: PreflightContext) -> CheckResult:
    check = "Checking root user"
    if ctx.euid == 0:
        return CheckResult(check, True, "OK")
    return CheckResult(check, False, "Must be run as root user!")


def check_disks_exist(ctx: PreflightContext) -> CheckResult:
    check = "Checking devices exist"
    missing = [d for d in ctx.disks if not disk_exists(d, sys_block=ctx.sys_block)]
    if missing:
        return CheckResult(check, False, f"{', '.join(missing)} does not exist or is not a disk")
    return CheckResult(check, True, "OK")


def check_disks_unpartitioned(ctx: PreflightContext) -> CheckResult:
    check = "Checking install device for partitions"
    problems: List[str] = []
    for disk in ctx.disks:
        try:
            n = partition_count(disk, sys_block=ctx.sys_block)
        except BlockDeviceError:
            problems.append(f"Error reading {ctx.sys_block}/{disk}!")
            continue
        if n:
            problems.append(f"Found {n} partitions on {disk}!")
    if problems:
        return CheckResult(check, False, " ".join(problems))
    return CheckResult(check, True, "OK")


DEFAULT_CHECKS: Tuple[Check, ...] = (
    check_is_root,
    check_disks_exist,
    check_disks_unpartitioned,
)


def run_all(checks: Sequence[Check], ctx: PreflightContext) -> List[CheckResult]:
    results = []
    for c in checks:
        res = c(ctx)
        logger.info("%s: %s (%s)", res.check, "pass" if res.success else "FAIL", res.message)
        results.append(res)
    return results


def failures(results: Sequence[CheckResult]) -> List[CheckResult]:
    return [r for r in results if not r.success]
