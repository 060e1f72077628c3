import io
import subprocess
from types import SimpleNamespace

import pytest

from machine_provisioner.errors import ExternalCommandFailure
from machine_provisioner.lib import command
from machine_provisioner.lib.command import CommandRunner


def test_dry_run_does_not_execute(monkeypatch):
    monkeypatch.setattr(command.subprocess, "run", lambda *a, **k: pytest.fail("executed"))
    r = CommandRunner(dry_run=True).run(["parted", "-s", "/dev/sda", "mklabel", "gpt"])
    assert r.returncode == 0
    assert r.stdout == ""


def test_output_goes_to_sinks(monkeypatch):
    seen = {}

    def fake_run(argv, **kwargs):
        seen.update(kwargs)
        return SimpleNamespace(returncode=0, stdout="hello\n", stderr="warn\n")

    monkeypatch.setattr(command.subprocess, "run", fake_run)
    out, err = io.StringIO(), io.StringIO()
    r = CommandRunner(stdout=out, stderr=err).run(["pacman", "-S", "-"], input_text="base\n")

    assert r.stdout == "hello\n"
    assert out.getvalue() == "hello\n"
    assert err.getvalue() == "warn\n"
    assert seen["input"] == "base\n"
    assert seen["stdout"] is subprocess.PIPE


def test_nonzero_exit_raises(monkeypatch):
    monkeypatch.setattr(
        command.subprocess, "run", lambda argv, **k: SimpleNamespace(returncode=2, stdout="", stderr="bad disk\n")
    )
    with pytest.raises(ExternalCommandFailure) as exc:
        CommandRunner().run(["mkfs.btrfs", "-f", "/dev/sda2"])
    assert exc.value.returncode == 2
    assert exc.value.argv == ["mkfs.btrfs", "-f", "/dev/sda2"]
    assert "bad disk" in exc.value.stderr


def test_nonzero_exit_allowed_without_check(monkeypatch):
    monkeypatch.setattr(command.subprocess, "run", lambda argv, **k: SimpleNamespace(returncode=1, stdout="", stderr=""))
    assert CommandRunner().run(["false"], check=False).returncode == 1


def test_missing_program_raises(monkeypatch):
    def fake_run(argv, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    monkeypatch.setattr(command.subprocess, "run", fake_run)
    with pytest.raises(ExternalCommandFailure, match="Unable to run command"):
        CommandRunner().run(["nosuchtool"])


def test_interactive_inherits_terminal(monkeypatch):
    seen = {}

    def fake_run(argv, **kwargs):
        seen.update(kwargs)
        return SimpleNamespace(returncode=0, stdout=None, stderr=None)

    monkeypatch.setattr(command.subprocess, "run", fake_run)
    CommandRunner().run(["passwd"], interactive=True)
    assert "stdout" not in seen and "input" not in seen
