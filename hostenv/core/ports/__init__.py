# hostenv — Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from hostenv.core.ports.environment import (
    MAX_PERSISTENT_NAME_LENGTH,
    MAX_VARIABLE_LENGTH,
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
    VariableStorePort,
    Version,
)

__all__ = [
    # Environment
    "EnvironmentPort",
    "EnvironmentVariableTarget",
    "OperatingSystem",
    "PlatformID",
    "SpecialFolder",
    "SpecialFolderOption",
    "VariableStorePort",
    "Version",
    # Errors
    "HostEnvironmentError",
    "InvalidArgumentError",
    "NotFoundError",
    "NotSupportedError",
    "OperationFailedError",
    "PermissionDeniedError",
    # Limits
    "MAX_PERSISTENT_NAME_LENGTH",
    "MAX_VARIABLE_LENGTH",
]
