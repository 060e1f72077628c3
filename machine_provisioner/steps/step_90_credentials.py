from __future__ import annotations

from ..lib.chroot import chroot_cmd
from ..pipeline import ProvisioningRun, RunState


class CredentialsStep:
    step_id = "90_credentials"
    title = None  # interactive, prompts own the terminal
    reaches = RunState.DONE

    def run(self, run: ProvisioningRun) -> None:
        reporter = run.ctx.reporter
        for cmd in run.profile.credentials:
            reporter.line(f"Please set the password for {cmd.argv[-1] if len(cmd.argv) > 1 else 'root'}...")
            chroot_cmd(run.staging_root, cmd.argv, run.ctx, user=cmd.user, interactive=True)
            reporter.ok("...OK")
