from __future__ import annotations

import logging
from typing import List, Optional

from .cli import ArgumentParser
from .context import ExecContext, build_context
from .errors import ConfigurationError, ProvisioningError
from .lib.env import PATHS
from .lib.fstab import render_fstab
from .lib.mounts import mount_order, staged_path
from .lib.storage import plan
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, ProvisioningRun, RunState, run_pipeline
from .profiles import get_profile, load_profiles
from .report import Reporter
from .steps import default_steps

logger = logging.getLogger(__name__)

PLACEHOLDER_UUID = "<uuid of {}>"


def split_disks(value: str) -> List[str]:
    return [d.strip() for d in value.split(",") if d.strip()]


def show_plan(run: ProvisioningRun) -> None:
    """Print what a run would do. Touches nothing."""

    r = run.ctx.reporter
    r.rule(f"System {run.profile.name} on {', '.join(run.disks)}")
    r.table(
        "Partitions",
        ["Device", "Label", "Filesystem", "Start", "End", "Flags"],
        [
            [p.path, p.spec.label, p.spec.filesystem, p.spec.start, p.spec.end, ",".join(p.spec.flags)]
            for p in run.partitions
        ],
    )
    if run.profile.subvolumes:
        r.line(f"Subvolumes: {', '.join(run.profile.subvolumes)}")
    r.table(
        "Mounts",
        ["Device", "Mount point", "Type", "Options"],
        [
            [m.partition, staged_path(run.staging_root, m.target), m.fstype, m.mount_options]
            for m in mount_order(run.mounts)
        ],
    )
    r.rule(run.fstab_path)
    r.line(render_fstab(run.mounts, PLACEHOLDER_UUID.format).rstrip("\n"))


def run(
    *,
    system: str,
    disks: List[str],
    ctx: ExecContext,
    profiles_dir: Optional[str] = None,
    plan_only: bool = False,
) -> Optional[PipelineResult]:
    """Provision ``disks`` as ``system``. Returns None for ``plan_only``.

    Configuration problems raise :class:`ConfigurationError` before any
    step runs; everything after that is reported through the result.
    """

    profiles = load_profiles(profiles_dir)
    layout = plan(system, profiles)
    profile = get_profile(system, profiles)
    logger.info("Layout for %s: %s", system, ", ".join(f"{s.label}:{s.filesystem}" for s in layout))
    prun = ProvisioningRun.create(
        profile,
        disks,
        ctx,
        staging_root=PATHS.staging_root,
        sys_block=PATHS.sys_block,
    )
    logger.info("Provisioning %s on %s", profile.name, ", ".join(prun.disks))

    if plan_only:
        show_plan(prun)
        return None

    result = run_pipeline(prun, default_steps())
    logger.info("Run finished state=%s ran=%s", result.state.value, ",".join(result.ran_steps))
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = ArgumentParser(prog="machine-setup")
    p.add_argument("--system", required=True, help="Name of the system profile to install")
    p.add_argument("--disks", required=True, type=split_disks, help="Comma separated disks, boot/root disk first")
    p.add_argument("--profiles", default=None, help="Directory of profile manifests")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to provisioning log")
    p.add_argument("--dry-run", action="store_true", help="Log commands without running them")
    p.add_argument("--plan", action="store_true", help="Print the partition, mount and fstab plan and exit")
    p.add_argument("--output", action="store_true", help="Echo command output to the terminal")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log)
    reporter = Reporter()
    ctx = build_context(dry_run=args.dry_run, show_output=args.output, reporter=reporter)
    if args.dry_run:
        reporter.info("Dry run: commands are logged, not executed")

    try:
        result = run(
            system=args.system,
            disks=args.disks,
            ctx=ctx,
            profiles_dir=args.profiles,
            plan_only=args.plan,
        )
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        reporter.fail(str(e))
        return 1

    if result is None:
        return 0
    if result.state is RunState.DONE:
        reporter.ok(f"{args.system} provisioned")
        return 0

    err: Optional[ProvisioningError] = result.error
    reporter.fail(str(err) if err else f"Stopped in state {result.state.value}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
