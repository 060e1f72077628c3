from .step_10_preflight import PreflightStep
from .step_20_partition import PartitionStep
from .step_30_format import FormatStep
from .step_40_subvolumes import SubvolumesStep
from .step_50_mount import MountStep
from .step_60_bootstrap import BootstrapStep
from .step_70_write_fstab import WriteFstabStep
from .step_80_configure import ConfigureStep
from .step_90_credentials import CredentialsStep

__all__ = [
    "PreflightStep",
    "PartitionStep",
    "FormatStep",
    "SubvolumesStep",
    "MountStep",
    "BootstrapStep",
    "WriteFstabStep",
    "ConfigureStep",
    "CredentialsStep",
    "default_steps",
]


def default_steps():
    return [
        PreflightStep(),
        PartitionStep(),
        FormatStep(),
        SubvolumesStep(),
        MountStep(),
        BootstrapStep(),
        WriteFstabStep(),
        ConfigureStep(),
        CredentialsStep(),
    ]
