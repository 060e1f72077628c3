from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    PRECONDITION = "precondition"
    EXTERNAL_COMMAND = "external_command"
    RESOURCE_RESOLUTION = "resource_resolution"
    FILESYSTEM = "filesystem"


class ProvisioningError(RuntimeError):
    """Base class for every failure that halts provisioning.

    There is no recoverable subclass: anything raised from here ends the run.
    """

    kind: ErrorKind = ErrorKind.CONFIGURATION


class ConfigurationError(ProvisioningError):
    """Unknown profile, wrong disk count or a malformed profile manifest."""

    kind = ErrorKind.CONFIGURATION


class PreconditionFailure(ProvisioningError):
    kind = ErrorKind.PRECONDITION

    def __init__(self, message: str, results: Sequence = ()) -> None:
        super().__init__(message)
        self.results = list(results)


class BlockDeviceError(ProvisioningError):
    kind = ErrorKind.PRECONDITION


class ExternalCommandFailure(ProvisioningError):
    kind = ErrorKind.EXTERNAL_COMMAND

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


class ResourceResolutionFailure(ProvisioningError):
    kind = ErrorKind.RESOURCE_RESOLUTION


class StagingError(ProvisioningError):
    """Local directory operations under the staging root failed."""

    kind = ErrorKind.FILESYSTEM


class FstabWriteError(ProvisioningError):
    kind = ErrorKind.FILESYSTEM
