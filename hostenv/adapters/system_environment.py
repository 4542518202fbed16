"""
System Environment Adapter.

Implements the EnvironmentPort interface by forwarding every member to
the running interpreter and operating system (os, sys, platform,
threading, psutil). Nothing is cached: each call reads live host state.

Key behaviors:
- PROCESS variables live in os.environ; USER and MACHINE variables in a
  VariableStorePort (registry on Windows, YAML file elsewhere)
- Host exceptions are translated to the HostEnvironmentError family
  with the original attached as __cause__
- exit_code is process-global and applied at interpreter shutdown
- exit() and fail_fast() terminate the process and never return
"""

from __future__ import annotations

import atexit
import faulthandler
import getpass
import logging
import mmap
import os
import platform
import shlex
import subprocess
import sys
import threading
import time
import traceback
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import NoReturn

import psutil

from hostenv.adapters import special_folders
from hostenv.adapters.variable_store import create_variable_store
from hostenv.core.ports.environment import (
    EnvironmentVariableTarget,
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
from hostenv.core.services.variables import (
    check_assignment,
    check_name,
    check_target,
)
from hostenv.settings.models import EnvironmentSettings

logger = logging.getLogger(__name__)

_64BIT_MACHINES = frozenset(
    {
        "amd64",
        "x86_64",
        "arm64",
        "aarch64",
        "ia64",
        "ppc64",
        "ppc64le",
        "s390x",
        "riscv64",
        "sparc64",
        "mips64",
        "loongarch64",
    }
)

_MAX_PATH = 260

# Process-global, shared by every SystemEnvironment instance
_exit_code = 0


def _flush_standard_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        if stream is not None:
            try:
                stream.flush()
            except (OSError, ValueError):
                # Closed or detached stream
                continue


def _ended_on_unhandled_exception() -> bool:
    return (getattr(sys, "last_exc", None) or getattr(sys, "last_value", None)) is not None


def _apply_exit_code() -> None:
    """
    atexit hook: report a non-zero exit_code to the OS.

    Registered at import, so every handler registered later has already
    run. An unhandled exception keeps its own status.
    """
    if _exit_code == 0 or _ended_on_unhandled_exception():
        return
    _flush_standard_streams()
    logging.shutdown()
    os._exit(_exit_code)


atexit.register(_apply_exit_code)


@contextmanager
def _translate_os_errors(action: str) -> Iterator[None]:
    """Map OSError subclasses raised by the host onto the error taxonomy."""
    try:
        yield
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"{action}: {e}") from e
    except PermissionError as e:
        raise PermissionDeniedError(f"{action}: {e}") from e
    except OSError as e:
        raise OperationFailedError(f"{action}: {e}") from e


class SystemEnvironment:
    """
    Host implementation of EnvironmentPort.

    Persistent stores are created on first use from settings unless
    passed in explicitly.
    """

    def __init__(
        self,
        settings: EnvironmentSettings | None = None,
        *,
        stores: Mapping[EnvironmentVariableTarget, VariableStorePort] | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            settings: Store locations and fail-fast behavior (defaults if None)
            stores: Explicit USER / MACHINE stores, overriding settings
        """
        self.settings = settings or EnvironmentSettings()
        self._stores: dict[EnvironmentVariableTarget, VariableStorePort] = dict(stores or {})

    def _store(self, target: EnvironmentVariableTarget) -> VariableStorePort:
        store = self._stores.get(target)
        if store is None:
            store = create_variable_store(target, self.settings)
            self._stores[target] = store
        return store

    # --- Read-only host facts ---

    @property
    def command_line(self) -> str:
        args = self.get_command_line_args()
        if sys.platform == "win32":
            return subprocess.list2cmdline(args)
        return shlex.join(args)

    @property
    def current_managed_thread_id(self) -> int:
        return threading.get_ident()

    @property
    def is_64bit_process(self) -> bool:
        return sys.maxsize > 2**32

    @property
    def is_64bit_operating_system(self) -> bool:
        if self.is_64bit_process:
            return True
        # A 32-bit process on 64-bit Windows sees the real machine here
        machine = os.environ.get("PROCESSOR_ARCHITEW6432") or platform.machine()
        return machine.lower() in _64BIT_MACHINES

    @property
    def machine_name(self) -> str:
        name = platform.node()
        if not name:
            raise OperationFailedError("The name of this computer cannot be obtained")
        return name

    @property
    def new_line(self) -> str:
        return os.linesep

    @property
    def os_version(self) -> OperatingSystem:
        if sys.platform == "win32":
            info = sys.getwindowsversion()  # type: ignore[attr-defined]
            return OperatingSystem(
                platform=PlatformID.WIN32_NT,
                version=Version(info.major, info.minor, info.build, 0),
                service_pack=info.service_pack,
            )

        release = platform.release()
        try:
            version = Version.parse(release)
        except ValueError as e:
            raise OperationFailedError(
                f"Unable to obtain the system version from {release!r}"
            ) from e
        return OperatingSystem(platform=PlatformID.UNIX, version=version)

    @property
    def processor_count(self) -> int:
        if hasattr(os, "sched_getaffinity"):
            return len(os.sched_getaffinity(0))
        return os.cpu_count() or 1

    @property
    def stack_trace(self) -> str:
        # Drop this property's own frame
        return "".join(traceback.format_stack()[:-1])

    @property
    def system_directory(self) -> str:
        if sys.platform != "win32":
            return ""
        import ctypes

        buffer = ctypes.create_unicode_buffer(_MAX_PATH)
        length = ctypes.windll.kernel32.GetSystemDirectoryW(buffer, _MAX_PATH)  # type: ignore[attr-defined]
        if length == 0:
            raise OperationFailedError("Unable to obtain the system directory")
        return buffer.value

    @property
    def system_page_size(self) -> int:
        return mmap.PAGESIZE

    @property
    def tick_count(self) -> int:
        try:
            boot_time = psutil.boot_time()
        except psutil.Error as e:
            raise OperationFailedError(f"Unable to obtain the boot time: {e}") from e
        return int((time.time() - boot_time) * 1000)

    @property
    def user_domain_name(self) -> str:
        if sys.platform == "win32":
            domain = os.environ.get("USERDOMAIN")
            if not domain:
                raise OperationFailedError("The network domain name cannot be retrieved")
            return domain
        if os.name != "posix":
            raise NotSupportedError(f"Domain names are not supported on {sys.platform}")
        # No domains on POSIX; the host reports the machine name instead
        return self.machine_name

    @property
    def user_interactive(self) -> bool:
        stdin = sys.stdin
        if stdin is None or stdin.closed:
            return False
        return stdin.isatty()

    @property
    def user_name(self) -> str:
        try:
            return getpass.getuser()
        except (OSError, KeyError) as e:
            raise OperationFailedError(f"The user name cannot be retrieved: {e}") from e

    @property
    def version(self) -> Version:
        info = sys.version_info
        return Version(info.major, info.minor, info.micro, info.serial)

    @property
    def working_set(self) -> int:
        try:
            return psutil.Process().memory_info().rss
        except psutil.AccessDenied as e:
            raise PermissionDeniedError(f"Cannot read the working set: {e}") from e
        except psutil.Error as e:
            raise OperationFailedError(f"Cannot read the working set: {e}") from e

    @property
    def has_shutdown_started(self) -> bool:
        return sys.is_finalizing()

    # --- Mutable scalars ---

    @property
    def current_directory(self) -> str:
        with _translate_os_errors("Cannot read the current directory"):
            return os.getcwd()

    @current_directory.setter
    def current_directory(self, path: str) -> None:
        if path is None:
            raise InvalidArgumentError("Path is required", argument="path")
        if path == "":
            raise InvalidArgumentError("Path cannot be empty", argument="path")
        with _translate_os_errors(f"Cannot change directory to {path}"):
            os.chdir(path)
        logger.debug("Changed current directory to %s", path)

    @property
    def exit_code(self) -> int:
        return _exit_code

    @exit_code.setter
    def exit_code(self, code: int) -> None:
        global _exit_code
        _exit_code = code
        logger.debug("Exit code set to %d", code)

    # --- Termination ---

    def exit(self, exit_code: int) -> NoReturn:
        global _exit_code
        _exit_code = exit_code
        logger.info("Exiting with code %d", exit_code)
        _flush_standard_streams()
        logging.shutdown()
        os._exit(exit_code)

    def fail_fast(
        self, message: str | None, exception: BaseException | None = None
    ) -> NoReturn:
        text = message or ""
        logger.critical("Process terminated. %s", text, exc_info=exception)

        stderr = sys.__stderr__
        if stderr is not None:
            stderr.write(f"Process terminated. {text}\n")
            if exception is not None:
                stderr.write("".join(traceback.format_exception(exception)))
            _flush_standard_streams()
            if self.settings.fail_fast.dump_traceback:
                try:
                    faulthandler.dump_traceback(file=stderr, all_threads=True)
                except (OSError, ValueError):
                    # stderr has no usable file descriptor
                    pass
        os.abort()

    # --- Command line ---

    def get_command_line_args(self) -> tuple[str, ...]:
        if not sys.orig_argv:
            raise NotSupportedError("This interpreter was started without an argument vector")
        return tuple(sys.orig_argv)

    # --- Variables ---

    def expand_environment_variables(self, text: str) -> str:
        if text is None:
            raise InvalidArgumentError("Text to expand is required", argument="text")
        return os.path.expandvars(text)

    def get_environment_variable(
        self,
        name: str,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> str | None:
        check_name(name)
        check_target(target)
        if target is EnvironmentVariableTarget.PROCESS:
            return os.environ.get(name)
        return self._store(target).get(name)

    def get_environment_variables(
        self,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> Mapping[str, str]:
        check_target(target)
        if target is EnvironmentVariableTarget.PROCESS:
            return MappingProxyType(dict(os.environ))
        return MappingProxyType(self._store(target).snapshot())

    def set_environment_variable(
        self,
        name: str,
        value: str | None,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> None:
        value = check_assignment(name, value, target)

        if target is EnvironmentVariableTarget.PROCESS:
            with _translate_os_errors(f"Cannot set {name}"):
                if value is None:
                    os.environ.pop(name, None)
                else:
                    os.environ[name] = value
        else:
            store = self._store(target)
            if value is None:
                store.delete(name)
            else:
                store.set(name, value)

        if value is None:
            logger.debug("Deleted %s (%s)", name, target.name)
        else:
            logger.debug("Set %s (%s)", name, target.name)

    # --- Folders and drives ---

    def get_folder_path(
        self,
        folder: SpecialFolder | int,
        option: SpecialFolderOption = SpecialFolderOption.NONE,
    ) -> str:
        return special_folders.get_folder_path(folder, option, environ=os.environ)

    def get_logical_drives(self) -> tuple[str, ...]:
        try:
            partitions = psutil.disk_partitions(all=True)
        except (psutil.AccessDenied, PermissionError) as e:
            raise PermissionDeniedError(f"Cannot enumerate drives: {e}") from e
        except (psutil.Error, OSError) as e:
            raise OperationFailedError(f"Cannot enumerate drives: {e}") from e
        return tuple(dict.fromkeys(p.mountpoint for p in partitions))


def create_system_environment(
    settings: EnvironmentSettings | None = None,
) -> SystemEnvironment:
    """Factory function to create the host adapter."""
    return SystemEnvironment(settings)
