# hostenv — Adapters
# Implementations of the ports in hostenv.core.ports

from hostenv.adapters.fake_environment import (
    FakeEnvironment,
    ProcessTerminated,
    Termination,
    create_fake_environment,
)
from hostenv.adapters.system_environment import (
    SystemEnvironment,
    create_system_environment,
)
from hostenv.adapters.variable_store import (
    FileVariableStore,
    RegistryVariableStore,
    create_variable_store,
)

__all__ = [
    "FakeEnvironment",
    "FileVariableStore",
    "ProcessTerminated",
    "RegistryVariableStore",
    "SystemEnvironment",
    "Termination",
    "create_fake_environment",
    "create_system_environment",
    "create_variable_store",
]
