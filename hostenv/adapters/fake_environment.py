"""
Fake Environment Adapter.

Implements the EnvironmentPort interface against in-memory tables and
caller-supplied fixed values, for deterministic tests of code that takes
an EnvironmentPort.

Key behaviors:
- Variable tables per target, with the same argument rules as the host
- Working directory limited to a known set of directories
- Special folders come from a caller-supplied map; unmapped folders are ""
- exit() and fail_fast() record the call and raise ProcessTerminated,
  a SystemExit subclass, so they never return
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import NoReturn

from hostenv.adapters.special_folders import coerce_folder, coerce_option
from hostenv.core.ports.environment import (
    EnvironmentVariableTarget,
    InvalidArgumentError,
    NotFoundError,
    OperatingSystem,
    OperationFailedError,
    PermissionDeniedError,
    PlatformID,
    SpecialFolder,
    SpecialFolderOption,
    Version,
)
from hostenv.core.services.variables import (
    check_assignment,
    check_name,
    check_target,
    expand_placeholders,
)

logger = logging.getLogger(__name__)

# 128 + SIGABRT, what a shell reports for an aborted process
FAIL_FAST_EXIT_CODE = 134


@dataclass(frozen=True)
class Termination:
    """Record of an exit() or fail_fast() call for test assertions."""

    exit_code: int
    message: str | None = None
    exception: BaseException | None = None
    fail_fast: bool = False


class ProcessTerminated(SystemExit):
    """Raised by FakeEnvironment in place of ending the process."""

    def __init__(self, termination: Termination) -> None:
        self.termination = termination
        super().__init__(termination.exit_code)

    @property
    def exit_code(self) -> int:
        return self.termination.exit_code


class FakeEnvironment:
    """
    In-memory implementation of EnvironmentPort.

    Every read-only host fact is a plain attribute that tests may
    reassign. machine_name, user_name and user_domain_name raise
    OperationFailedError when set to None.
    """

    def __init__(
        self,
        *,
        variables: Mapping[str, str] | None = None,
        user_variables: Mapping[str, str] | None = None,
        machine_variables: Mapping[str, str] | None = None,
        command_line_args: Sequence[str] = ("app",),
        current_directory: str = "/",
        directories: Iterable[str] | None = None,
        denied_directories: Iterable[str] | None = None,
        folders: Mapping[SpecialFolder, str] | None = None,
        logical_drives: Sequence[str] = ("/",),
        machine_name: str | None = "fake-machine",
        user_name: str | None = "fake-user",
        user_domain_name: str | None = "fake-machine",
        os_version: OperatingSystem | None = None,
        version: Version | None = None,
        new_line: str = "\n",
        processor_count: int = 4,
        stack_trace: str = "",
        system_directory: str = "",
        system_page_size: int = 4096,
        tick_count: int = 0,
        user_interactive: bool = False,
        working_set: int = 0,
        is_64bit_process: bool = True,
        is_64bit_operating_system: bool = True,
        current_managed_thread_id: int = 1,
        has_shutdown_started: bool = False,
    ) -> None:
        self._tables: dict[EnvironmentVariableTarget, dict[str, str]] = {
            EnvironmentVariableTarget.PROCESS: dict(variables or {}),
            EnvironmentVariableTarget.USER: dict(user_variables or {}),
            EnvironmentVariableTarget.MACHINE: dict(machine_variables or {}),
        }
        self.command_line_args = tuple(command_line_args)
        # Directory bookkeeping compares normalized paths
        current_directory = os.path.normpath(current_directory)
        self.directories: set[str] = {os.path.normpath(d) for d in directories or ()}
        self.directories.add(current_directory)
        self.denied_directories: set[str] = {
            os.path.normpath(d) for d in denied_directories or ()
        }
        self._current_directory = current_directory
        self.folders: dict[SpecialFolder, str] = dict(folders or {})
        self.logical_drives = tuple(logical_drives)

        self._machine_name = machine_name
        self._user_name = user_name
        self._user_domain_name = user_domain_name

        self.os_version = os_version or OperatingSystem(PlatformID.UNIX, Version(6, 0, 0))
        self.version = version or Version(3, 12, 0, 0)
        self.new_line = new_line
        self.processor_count = processor_count
        self.stack_trace = stack_trace
        self.system_directory = system_directory
        self.system_page_size = system_page_size
        self.tick_count = tick_count
        self.user_interactive = user_interactive
        self.working_set = working_set
        self.is_64bit_process = is_64bit_process
        self.is_64bit_operating_system = is_64bit_operating_system
        self.current_managed_thread_id = current_managed_thread_id
        self.has_shutdown_started = has_shutdown_started

        self.exit_code = 0
        self.terminations: list[Termination] = []

    # --- Facts that can fail ---

    @property
    def machine_name(self) -> str:
        if self._machine_name is None:
            raise OperationFailedError("The name of this computer cannot be obtained")
        return self._machine_name

    @machine_name.setter
    def machine_name(self, name: str | None) -> None:
        self._machine_name = name

    @property
    def user_name(self) -> str:
        if self._user_name is None:
            raise OperationFailedError("The user name cannot be retrieved")
        return self._user_name

    @user_name.setter
    def user_name(self, name: str | None) -> None:
        self._user_name = name

    @property
    def user_domain_name(self) -> str:
        if self._user_domain_name is None:
            raise OperationFailedError("The network domain name cannot be retrieved")
        return self._user_domain_name

    @user_domain_name.setter
    def user_domain_name(self, name: str | None) -> None:
        self._user_domain_name = name

    @property
    def command_line(self) -> str:
        return shlex.join(self.command_line_args)

    # --- Working directory ---

    @property
    def current_directory(self) -> str:
        return self._current_directory

    @current_directory.setter
    def current_directory(self, path: str) -> None:
        if path is None:
            raise InvalidArgumentError("Path is required", argument="path")
        if path == "":
            raise InvalidArgumentError("Path cannot be empty", argument="path")
        path = os.path.normpath(path)
        if path in self.denied_directories:
            raise PermissionDeniedError(f"Cannot change directory to {path}: access denied")
        if path not in self.directories:
            raise NotFoundError(f"Cannot change directory to {path}: no such directory")
        self._current_directory = path

    # --- Termination ---

    def exit(self, exit_code: int) -> NoReturn:
        self.exit_code = exit_code
        termination = Termination(exit_code=exit_code)
        self.terminations.append(termination)
        logger.info("Exiting with code %d (fake)", exit_code)
        raise ProcessTerminated(termination)

    def fail_fast(
        self, message: str | None, exception: BaseException | None = None
    ) -> NoReturn:
        termination = Termination(
            exit_code=FAIL_FAST_EXIT_CODE,
            message=message,
            exception=exception,
            fail_fast=True,
        )
        self.terminations.append(termination)
        logger.critical("Process terminated. %s (fake)", message or "", exc_info=exception)
        raise ProcessTerminated(termination) from exception

    # --- Command line ---

    def get_command_line_args(self) -> tuple[str, ...]:
        return self.command_line_args

    # --- Variables ---

    def expand_environment_variables(self, text: str) -> str:
        return expand_placeholders(text, self._tables[EnvironmentVariableTarget.PROCESS].get)

    def get_environment_variable(
        self,
        name: str,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> str | None:
        check_name(name)
        return self._tables[check_target(target)].get(name)

    def get_environment_variables(
        self,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> Mapping[str, str]:
        return MappingProxyType(dict(self._tables[check_target(target)]))

    def set_environment_variable(
        self,
        name: str,
        value: str | None,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> None:
        value = check_assignment(name, value, target)
        table = self._tables[target]
        if value is None:
            table.pop(name, None)
        else:
            table[name] = value

    # --- Folders and drives ---

    def get_folder_path(
        self,
        folder: SpecialFolder | int,
        option: SpecialFolderOption = SpecialFolderOption.NONE,
    ) -> str:
        path = self.folders.get(coerce_folder(folder), "")
        option = coerce_option(option)
        if not path or option is SpecialFolderOption.DO_NOT_VERIFY:
            return path
        if option is SpecialFolderOption.CREATE:
            self.directories.add(os.path.normpath(path))
            return path
        return path if os.path.normpath(path) in self.directories else ""

    def get_logical_drives(self) -> tuple[str, ...]:
        return self.logical_drives

    # --- Test Helper Methods ---

    def advance(self, milliseconds: int) -> None:
        """Move tick_count forward."""
        self.tick_count += milliseconds

    def get_last_termination(self) -> Termination | None:
        """Most recent exit() or fail_fast() call."""
        return self.terminations[-1] if self.terminations else None


def create_fake_environment(**values: object) -> FakeEnvironment:
    """Factory function to create a fake with the given fixed values."""
    return FakeEnvironment(**values)  # type: ignore[arg-type]
