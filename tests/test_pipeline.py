import pytest

from machine_provisioner.errors import ConfigurationError, ExternalCommandFailure, PreconditionFailure
from machine_provisioner.lib import preflight
from machine_provisioner.lib.fstab import FSTAB_HEADER
from machine_provisioner.lib.mountopts import encode
from machine_provisioner.pipeline import ProvisioningRun, RunState, next_state, run_pipeline
from machine_provisioner.profiles import parse_profile
from machine_provisioner.steps import default_steps

from conftest import FakeRunner


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr(preflight.os, "geteuid", lambda: 0)


def make_run(profiles, ctx, staging, sysfs, disks=("nvme1n1",), name="example"):
    return ProvisioningRun.create(profiles[name], list(disks), ctx, staging_root=str(staging), sys_block=str(sysfs))


def test_example_on_nvme(as_root, profiles, ctx, runner, mounter, staging, sysfs, out):
    run = make_run(profiles, ctx, staging, sysfs)
    result = run_pipeline(run, default_steps())

    assert result.state is RunState.DONE
    assert result.ok
    assert result.error is None
    assert len(result.ran_steps) == 9

    assert [p.path for p in run.partitions] == ["/dev/nvme1n1p1", "/dev/nvme1n1p2"]
    assert len(runner.calls_to("parted", "-s", "/dev/nvme1n1", "mkpart")) == 2
    assert runner.calls_to("mkfs.fat") == [["mkfs.fat", "-F", "32", "/dev/nvme1n1p1"]]
    assert runner.calls_to("mkfs.btrfs") == [["mkfs.btrfs", "-f", "/dev/nvme1n1p2"]]
    assert len(runner.calls_to("btrfs", "subvolume", "create")) == 4

    # format-time mount of the top level, then the use-time mounts
    assert mounter.mounted[0][:2] == ("/dev/nvme1n1p2", str(staging))
    assert mounter.mounted[0][4].endswith("subvol=/")
    assert mounter.unmounted == [str(staging)]
    assert len(mounter.mounted) == 6

    fstab = (staging / "etc" / "fstab").read_text(encoding="utf-8").splitlines()
    assert fstab[0] == FSTAB_HEADER
    assert len(fstab[1:]) == 5
    assert fstab[1] == (
        "UUID=UUID-nvme1n1p2 / btrfs rw,relatime,compress=zstd,ssd,space_cache,subvol=_active/root 0 1"
    )
    assert fstab[2].startswith("UUID=UUID-nvme1n1p1 /boot/efi vfat ")

    assert runner.calls_to("pacstrap") == [["pacstrap", str(staging), "base", "linux", "linux-firmware"]]
    assert runner.calls_to("arch-chroot") == [
        ["arch-chroot", str(staging), "hwclock", "--systohc"],
        ["arch-chroot", str(staging), "passwd"],
    ]
    assert runner.interactive == [["arch-chroot", str(staging), "passwd"]]
    assert "All checks passed" in out.getvalue()


def test_mount_and_fstab_use_identical_options(as_root, profiles, ctx, mounter, staging, sysfs):
    run = make_run(profiles, ctx, staging, sysfs)
    run_pipeline(run, default_steps())

    use_time = mounter.mounted[1:]
    fstab = (staging / "etc" / "fstab").read_text(encoding="utf-8").splitlines()[1:]
    by_target = {line.split(" ")[1]: line.split(" ")[3] for line in fstab}
    for m in run.mounts:
        assert by_target[m.target] == m.mount_options
    assert sorted((f, d) for _, _, _, f, d in use_time) == sorted(encode(m.mount_options) for m in run.mounts)


def test_missing_disk_aborts_before_touching_anything(as_root, profiles, ctx, runner, mounter, staging, sysfs, out):
    run = make_run(profiles, ctx, staging, sysfs, disks=("sdz",))
    result = run_pipeline(run, default_steps())

    assert result.state is RunState.ABORTED
    assert result.failed_step == "10_preflight"
    assert isinstance(result.error, PreconditionFailure)
    assert [r.success for r in result.error.results] == [True, False, False]
    assert runner.calls == []
    assert mounter.mounted == []
    assert "sdz does not exist or is not a disk" in out.getvalue()


def test_not_root_aborts(monkeypatch, profiles, ctx, runner, staging, sysfs):
    monkeypatch.setattr(preflight.os, "geteuid", lambda: 1000)
    result = run_pipeline(make_run(profiles, ctx, staging, sysfs), default_steps())
    assert result.state is RunState.ABORTED
    assert runner.calls == []


def test_partitioned_disk_aborts(as_root, profiles, ctx, runner, staging, sysfs):
    result = run_pipeline(make_run(profiles, ctx, staging, sysfs, disks=("sdb",)), default_steps())
    assert result.state is RunState.ABORTED
    assert runner.calls == []


def test_command_failure_stops_the_run(as_root, profiles, mounter, out, staging, sysfs):
    from machine_provisioner.context import ExecContext
    from machine_provisioner.report import Reporter

    runner = FakeRunner(fail_on="mkfs.btrfs")
    ctx = ExecContext(runner=runner, mounter=mounter, reporter=Reporter(file=out))
    result = run_pipeline(make_run(profiles, ctx, staging, sysfs), default_steps())

    assert result.state is RunState.ABORTED
    assert result.failed_step == "30_format"
    assert isinstance(result.error, ExternalCommandFailure)
    assert result.ran_steps == ["10_preflight", "20_partition"]
    assert runner.calls_to("btrfs") == []
    assert not (staging / "etc" / "fstab").exists()
    assert "FAILED" in out.getvalue()


def test_wrong_disk_count(profiles, ctx, staging, sysfs):
    with pytest.raises(ConfigurationError, match="example requires exactly 1 disks"):
        make_run(profiles, ctx, staging, sysfs, disks=("nvme1n1", "sda"))


TWO_DISKS = {
    "name": "twodisk",
    "disks": 2,
    "partitions": [
        {"role": "boot", "filesystem": "fat32", "start": "1MiB", "end": "513MiB", "flags": ["esp"]},
        {"role": "root", "filesystem": "btrfs", "start": "513MiB", "end": "100%"},
        {"role": "data", "filesystem": "ext4", "start": "1MiB", "end": "100%", "disk": 1},
    ],
    "mounts": [
        {"target": "/", "partition": "root"},
        {"target": "/boot/efi", "partition": "boot"},
        {"target": "/data", "partition": "data"},
    ],
    "base_packages": ["base"],
}


@pytest.mark.parametrize("disks", [["sda", "sda"], ["sda", "/dev/sda"]])
def test_same_disk_twice_is_rejected(disks, ctx, runner, staging, sysfs):
    profile = parse_profile(TWO_DISKS, "twodisk.yaml")
    with pytest.raises(ConfigurationError, match="Disks must be distinct"):
        ProvisioningRun.create(profile, disks, ctx, staging_root=str(staging), sys_block=str(sysfs))
    assert runner.calls == []


def test_two_distinct_disks(ctx, staging, sysfs):
    profile = parse_profile(TWO_DISKS, "twodisk.yaml")
    run = ProvisioningRun.create(profile, ["sda", "nvme1n1"], ctx, staging_root=str(staging), sys_block=str(sysfs))
    assert [p.path for p in run.partitions] == ["/dev/sda1", "/dev/sda2", "/dev/nvme1n1p1"]


def test_steps_must_follow_state_order(as_root, profiles, ctx, staging, sysfs):
    steps = default_steps()
    with pytest.raises(RuntimeError):
        run_pipeline(make_run(profiles, ctx, staging, sysfs), [steps[0], steps[2]])


def test_next_state():
    assert next_state(RunState.IDLE) is RunState.CHECKED
    assert next_state(RunState.CONFIGURED) is RunState.DONE
    with pytest.raises(ValueError):
        next_state(RunState.ABORTED)
