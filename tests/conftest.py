import io
from typing import Dict, List, Optional

import pytest

from machine_provisioner.context import ExecContext
from machine_provisioner.errors import ExternalCommandFailure
from machine_provisioner.lib.command import CmdResult
from machine_provisioner.profiles import DEFAULT_PROFILES_DIR, load_profiles
from machine_provisioner.report import Reporter


class FakeRunner:
    """Records argv instead of running anything.

    ``lsblk`` answers with a UUID derived from the partition name unless
    ``uuids`` says otherwise. ``fail_on`` makes the first command starting
    with that program fail.
    """

    def __init__(self, *, uuids: Optional[Dict[str, str]] = None, fail_on: Optional[str] = None, dry_run=False):
        self.uuids = uuids
        self.fail_on = fail_on
        self.dry_run = dry_run
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.interactive: List[List[str]] = []

    def run(self, argv, *, check=True, env=None, cwd=None, input_text=None, interactive=False):
        argv = list(argv)
        self.calls.append(argv)
        self.inputs.append(input_text)
        if interactive:
            self.interactive.append(argv)
        if self.fail_on and argv[0] == self.fail_on:
            raise ExternalCommandFailure(f"Command failed (1): {' '.join(argv)}", argv=argv, returncode=1)

        stdout = ""
        if argv[0] == "lsblk":
            part = argv[-1]
            if self.uuids is None:
                stdout = "UUID-" + part.rsplit("/", 1)[-1] + "\n"
            else:
                stdout = self.uuids.get(part, "") + "\n"
        return CmdResult(argv=argv, returncode=0, stdout=stdout, stderr="")

    def programs(self):
        return [c[0] for c in self.calls]

    def calls_to(self, *prefix):
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


class FakeMounter:
    def __init__(self):
        self.mounted = []
        self.unmounted = []

    def mount(self, source, target, fstype, flags, data):
        self.mounted.append((source, target, fstype, flags, data))

    def unmount(self, target):
        self.unmounted.append(target)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def mounter():
    return FakeMounter()


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def ctx(runner, mounter, out):
    return ExecContext(runner=runner, mounter=mounter, reporter=Reporter(file=out))


@pytest.fixture
def sysfs(tmp_path):
    """A /sys/block with blank nvme1n1 and sda, and sdb holding two partitions."""

    root = tmp_path / "sys" / "block"
    for disk in ("nvme1n1", "sda"):
        (root / disk).mkdir(parents=True)
        (root / disk / "queue").mkdir()
    for part in ("sdb1", "sdb2"):
        (root / "sdb" / part).mkdir(parents=True)
        (root / "sdb" / part / "partition").write_text("1\n", encoding="utf-8")
    (root / "sdb" / "queue").mkdir()
    return root


@pytest.fixture
def staging(tmp_path):
    d = tmp_path / "mnt"
    d.mkdir()
    return d


@pytest.fixture(scope="session")
def profiles():
    return load_profiles(str(DEFAULT_PROFILES_DIR))
