from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple

from .context import ExecContext
from .errors import ConfigurationError, ProvisioningError
from .lib.block import disk_name
from .lib.env import PATHS
from .lib.mounts import MountEntry, mount_order
from .lib.preflight import CheckResult
from .lib.storage import ResolvedPartition, resolve_partitions
from .profiles import SystemProfile

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "Idle"
    CHECKED = "Checked"
    PARTITIONED = "Partitioned"
    FORMATTED = "Formatted"
    SUBVOLUMES_CREATED = "SubvolumesCreated"
    MOUNTED = "Mounted"
    BOOTSTRAPPED = "Bootstrapped"
    FSTAB_WRITTEN = "FstabWritten"
    CONFIGURED = "Configured"
    DONE = "Done"
    ABORTED = "Aborted"


# Forward-only; ABORTED is reachable from anything before DONE.
STATE_ORDER: Tuple[RunState, ...] = (
    RunState.IDLE,
    RunState.CHECKED,
    RunState.PARTITIONED,
    RunState.FORMATTED,
    RunState.SUBVOLUMES_CREATED,
    RunState.MOUNTED,
    RunState.BOOTSTRAPPED,
    RunState.FSTAB_WRITTEN,
    RunState.CONFIGURED,
    RunState.DONE,
)


def next_state(state: RunState) -> RunState:
    if state in (RunState.DONE, RunState.ABORTED):
        raise ValueError(f"{state.value} is terminal")
    return STATE_ORDER[STATE_ORDER.index(state) + 1]


@dataclass
class ProvisioningRun:
    """A single-use, in-memory execution of a profile against concrete disks."""

    profile: SystemProfile
    disks: Tuple[str, ...]
    ctx: ExecContext
    partitions: List[ResolvedPartition]
    mounts: List[MountEntry]
    staging_root: str = PATHS.staging_root
    sys_block: str = PATHS.sys_block
    state: RunState = RunState.IDLE
    check_results: List[CheckResult] = field(default_factory=list)
    completed_steps: List[str] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        profile: SystemProfile,
        disks: Sequence[str],
        ctx: ExecContext,
        *,
        staging_root: str = PATHS.staging_root,
        sys_block: str = PATHS.sys_block,
    ) -> "ProvisioningRun":
        names = tuple(disk_name(d) for d in disks if d)
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Disks must be distinct, got {', '.join(names)}")
        if len(names) != profile.disks:
            raise ConfigurationError(f"{profile.name} requires exactly {profile.disks} disks")
        partitions = resolve_partitions(profile.partitions, names)
        mounts = profile.mount_entries(partitions)
        mount_order(mounts)
        return cls(
            profile=profile,
            disks=names,
            ctx=ctx,
            partitions=partitions,
            mounts=mounts,
            staging_root=staging_root,
            sys_block=sys_block,
        )

    @property
    def fstab_path(self) -> str:
        return posixpath.join(self.staging_root, PATHS.fstab_rel)


class Step(Protocol):
    """One forward transition of the run state machine."""

    step_id: str
    title: Optional[str]
    reaches: RunState

    def run(self, run: ProvisioningRun) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: RunState
    ran_steps: List[str]
    error: Optional[ProvisioningError] = None
    failed_step: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.DONE


def run_pipeline(run: ProvisioningRun, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order, once each. The first failure aborts the run.

    Nothing is retried or rolled back: a disk left half-provisioned is
    recovered by the operator.
    """

    reporter = run.ctx.reporter

    for step in steps:
        expected = next_state(run.state)
        if step.reaches is not expected:
            raise RuntimeError(f"Step {step.step_id} goes to {step.reaches.value}, expected {expected.value}")

        logger.info("Running step %s (%s -> %s)", step.step_id, run.state.value, step.reaches.value)
        if step.title:
            reporter.begin(step.title)
        try:
            step.run(run)
        except ProvisioningError as e:
            logger.error("Step %s failed (%s): %s", step.step_id, e.kind.value, e)
            if step.title:
                reporter.fail("FAILED")
            run.state = RunState.ABORTED
            return PipelineResult(
                state=run.state,
                ran_steps=list(run.completed_steps),
                error=e,
                failed_step=step.step_id,
            )
        if step.title:
            reporter.ok()

        run.state = step.reaches
        run.completed_steps.append(step.step_id)

    return PipelineResult(state=run.state, ran_steps=list(run.completed_steps))
