"""
hostenv - the host process environment behind an injectable port.

Depend on EnvironmentPort; wire SystemEnvironment in production and
FakeEnvironment in tests.
"""

from hostenv.adapters import (
    FakeEnvironment,
    ProcessTerminated,
    SystemEnvironment,
    create_fake_environment,
    create_system_environment,
)
from hostenv.core.ports import (
    EnvironmentPort,
    EnvironmentVariableTarget,
    HostEnvironmentError,
    InvalidArgumentError,
    NotFoundError,
    NotSupportedError,
    OperatingSystem,
    OperationFailedError,
    PermissionDeniedError,
    PlatformID,
    SpecialFolder,
    SpecialFolderOption,
    Version,
)

__version__ = "0.1.0"

__all__ = [
    "EnvironmentPort",
    "EnvironmentVariableTarget",
    "FakeEnvironment",
    "HostEnvironmentError",
    "InvalidArgumentError",
    "NotFoundError",
    "NotSupportedError",
    "OperatingSystem",
    "OperationFailedError",
    "PermissionDeniedError",
    "PlatformID",
    "ProcessTerminated",
    "SpecialFolder",
    "SpecialFolderOption",
    "SystemEnvironment",
    "Version",
    "create_fake_environment",
    "create_system_environment",
]
