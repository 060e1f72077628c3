from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, TextIO

from ..errors import ExternalCommandFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class CommandRunner:
    """Run external commands with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr and echoes them to the optional sinks.
    - dry_run logs but does not execute.
    - Any failure to start, or a non-zero exit when ``check`` is set, raises
      :class:`ExternalCommandFailure`.
    """

    def __init__(
        self,
        *,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        dry_run: bool = False,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.dry_run = dry_run

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        input_text: str | None = None,
        interactive: bool = False,
    ) -> CmdResult:
        argv_list = list(argv)
        logger.info("CMD %s", _fmt_argv(argv_list))

        if self.dry_run:
            return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

        try:
            if interactive:
                # Inherit the terminal so the operator can answer prompts.
                p = subprocess.run(argv_list, cwd=cwd, env=dict(os.environ, **(env or {})))
                stdout, stderr = "", ""
            else:
                p = subprocess.run(
                    argv_list,
                    input=input_text,
                    text=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    cwd=cwd,
                    env=dict(os.environ, **(env or {})),
                )
                stdout, stderr = p.stdout or "", p.stderr or ""
        except OSError as e:
            raise ExternalCommandFailure(
                f"Unable to run command: {_fmt_argv(argv_list)} ({e})",
                argv=argv_list,
            ) from e

        if stdout:
            logger.debug("STDOUT %s", stdout.strip())
            if self.stdout is not None:
                self.stdout.write(stdout)
        if stderr:
            logger.debug("STDERR %s", stderr.strip())
            if self.stderr is not None:
                self.stderr.write(stderr)

        if check and p.returncode != 0:
            raise ExternalCommandFailure(
                f"Command failed ({p.returncode}): {_fmt_argv(argv_list)}\n{stderr}".rstrip(),
                argv=argv_list,
                returncode=p.returncode,
                stderr=stderr,
            )

        return CmdResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)
