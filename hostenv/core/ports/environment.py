"""
Host Environment Interface.

Protocol-based interface over the process/environment surface of the host:
command line, working directory, environment variables, special folders,
exit code, termination, and read-only host facts.

Consumers receive an EnvironmentPort instance instead of touching
os/sys/platform directly, so tests can hand them a fake.

Key requirements:
- Every member forwards to the host with no caching or extra policy
- Host failures surface as one of the error kinds below
- Unset variables read as None, never as an error
- exit() and fail_fast() never return

Implementation strategies:
1. SystemEnvironment: Forwards to the running interpreter and OS
2. FakeEnvironment: In-memory values for deterministic tests

All strategies implement the same EnvironmentPort interface.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NoReturn, Protocol


class EnvironmentVariableTarget(Enum):
    """Where an environment variable is read from or written to."""

    PROCESS = 0
    USER = 1  # Persistent, current user
    MACHINE = 2  # Persistent, all users


class SpecialFolderOption(Enum):
    """How get_folder_path treats folders that do not exist yet."""

    NONE = 0
    DO_NOT_VERIFY = 0x4000
    CREATE = 0x8000


class SpecialFolder(IntEnum):
    """
    Well-known folders.

    Values are the host shell folder identifiers, so they can be passed
    to the Windows shell API unchanged.
    """

    DESKTOP = 0
    PROGRAMS = 2
    MY_DOCUMENTS = 5
    PERSONAL = 5
    FAVORITES = 6
    STARTUP = 7
    RECENT = 8
    SEND_TO = 9
    START_MENU = 11
    MY_MUSIC = 13
    MY_VIDEOS = 14
    DESKTOP_DIRECTORY = 16
    MY_COMPUTER = 17
    NETWORK_SHORTCUTS = 19
    FONTS = 20
    TEMPLATES = 21
    COMMON_START_MENU = 22
    COMMON_PROGRAMS = 23
    COMMON_STARTUP = 24
    COMMON_DESKTOP_DIRECTORY = 25
    APPLICATION_DATA = 26
    PRINTER_SHORTCUTS = 27
    LOCAL_APPLICATION_DATA = 28
    INTERNET_CACHE = 32
    COOKIES = 33
    HISTORY = 34
    COMMON_APPLICATION_DATA = 35
    WINDOWS = 36
    SYSTEM = 37
    PROGRAM_FILES = 38
    MY_PICTURES = 39
    USER_PROFILE = 40
    SYSTEM_X86 = 41
    PROGRAM_FILES_X86 = 42
    COMMON_PROGRAM_FILES = 43
    COMMON_PROGRAM_FILES_X86 = 44
    COMMON_TEMPLATES = 45
    COMMON_DOCUMENTS = 46
    COMMON_ADMIN_TOOLS = 47
    ADMIN_TOOLS = 48
    COMMON_MUSIC = 53
    COMMON_PICTURES = 54
    COMMON_VIDEOS = 55
    RESOURCES = 56
    LOCALIZED_RESOURCES = 57
    COMMON_OEM_LINKS = 58
    CD_BURNING = 59


class PlatformID(Enum):
    """Operating system family reported by os_version."""

    WIN32S = 0
    WIN32_WINDOWS = 1
    WIN32_NT = 2
    WIN_CE = 3
    UNIX = 4
    XBOX = 5
    MAC_OSX = 6
    OTHER = 7


_PLATFORM_LABELS = {
    PlatformID.WIN32S: "Microsoft Win32S",
    PlatformID.WIN32_WINDOWS: "Microsoft Windows 98",
    PlatformID.WIN32_NT: "Microsoft Windows NT",
    PlatformID.WIN_CE: "Microsoft Windows CE",
    PlatformID.UNIX: "Unix",
    PlatformID.XBOX: "Xbox",
    PlatformID.MAC_OSX: "Mac OS X",
    PlatformID.OTHER: "<unknown>",
}

_LEADING_DIGITS = re.compile(r"^\d+")


@dataclass(frozen=True, order=True)
class Version:
    """
    Dotted version number.

    build and revision are -1 when the source did not define them.

    Examples:
        Version(3, 12)            -> "3.12"
        Version(6, 18, 44)        -> "6.18.44"
        Version.parse("10.0.19045")
    """

    major: int
    minor: int
    build: int = -1
    revision: int = -1

    def __post_init__(self) -> None:
        if self.major < 0 or self.minor < 0:
            raise ValueError("Version components must be non-negative")

    @classmethod
    def parse(cls, text: str) -> Version:
        """
        Parse two to four dotted components.

        Each component contributes its leading digits, so kernel releases
        such as "6.18.44-fc-v139" parse as 6.18.44.

        Raises:
            ValueError: If fewer than two numeric components are present
        """
        numbers: list[int] = []
        for part in text.strip().split(".")[:4]:
            match = _LEADING_DIGITS.match(part)
            if match is None:
                break
            numbers.append(int(match.group()))
            if match.end() != len(part):
                break
        if len(numbers) < 2:
            raise ValueError(f"Invalid version string: {text!r}")
        return cls(*numbers)

    def __str__(self) -> str:
        parts = [self.major, self.minor]
        if self.build >= 0:
            parts.append(self.build)
            if self.revision >= 0:
                parts.append(self.revision)
        return ".".join(str(p) for p in parts)


@dataclass(frozen=True)
class OperatingSystem:
    """Platform identifier plus version of the running OS."""

    platform: PlatformID
    version: Version
    service_pack: str = ""

    @property
    def version_string(self) -> str:
        """Human readable form, e.g. 'Unix 6.18.44'."""
        text = f"{_PLATFORM_LABELS[self.platform]} {self.version}"
        if self.service_pack:
            text += f" {self.service_pack}"
        return text

    def __str__(self) -> str:
        return self.version_string


class EnvironmentPort(Protocol):
    """
    Host environment interface.

    Implementations:
    - SystemEnvironment: Forwards to the host
    - FakeEnvironment: In-memory test double
    """

    # --- Read-only host facts ---

    @property
    def command_line(self) -> str:
        """Command line of this process as a single string."""
        ...

    @property
    def current_managed_thread_id(self) -> int:
        """Identifier of the calling thread."""
        ...

    @property
    def is_64bit_process(self) -> bool: ...

    @property
    def is_64bit_operating_system(self) -> bool: ...

    @property
    def machine_name(self) -> str:
        """
        Name of this computer.

        Raises:
            OperationFailedError: If the name cannot be obtained
        """
        ...

    @property
    def new_line(self) -> str:
        """Line separator of the platform ("\\r\\n" or "\\n")."""
        ...

    @property
    def os_version(self) -> OperatingSystem:
        """
        Platform identifier and version.

        Raises:
            OperationFailedError: If the version cannot be obtained
        """
        ...

    @property
    def processor_count(self) -> int:
        """Logical processors available to this process."""
        ...

    @property
    def stack_trace(self) -> str:
        """Formatted stack of the caller. May be empty."""
        ...

    @property
    def system_directory(self) -> str:
        """Fully qualified system directory, or "" where there is none."""
        ...

    @property
    def system_page_size(self) -> int: ...

    @property
    def tick_count(self) -> int:
        """Milliseconds elapsed since the system started."""
        ...

    @property
    def user_domain_name(self) -> str:
        """
        Network domain name of the current user.

        Raises:
            NotSupportedError: If the platform has no such concept
            OperationFailedError: If the name cannot be retrieved
        """
        ...

    @property
    def user_interactive(self) -> bool: ...

    @property
    def user_name(self) -> str:
        """
        Login name of the current user.

        Raises:
            OperationFailedError: If the name cannot be retrieved
        """
        ...

    @property
    def version(self) -> Version:
        """Version of the runtime executing this process."""
        ...

    @property
    def working_set(self) -> int:
        """Bytes of physical memory mapped to this process."""
        ...

    @property
    def has_shutdown_started(self) -> bool: ...

    # --- Mutable scalars ---

    @property
    def current_directory(self) -> str:
        """Fully qualified path of the working directory."""
        ...

    @current_directory.setter
    def current_directory(self, path: str) -> None:
        """
        Change the working directory.

        Raises:
            InvalidArgumentError: If path is None or empty
            NotFoundError: If path does not exist
            PermissionDeniedError: If access is denied
            OperationFailedError: For other I/O failures
        """
        ...

    @property
    def exit_code(self) -> int:
        """Exit code reported when the process ends normally. Default 0."""
        ...

    @exit_code.setter
    def exit_code(self, code: int) -> None: ...

    # --- Operations ---

    def exit(self, exit_code: int) -> NoReturn:
        """
        Terminate the process with exit_code.

        Raises:
            PermissionDeniedError: If the caller may not terminate the process
        """
        ...

    def expand_environment_variables(self, text: str) -> str:
        """
        Replace each variable placeholder in text with its value.

        Placeholders of unset variables are left unchanged.

        Raises:
            InvalidArgumentError: If text is None
        """
        ...

    def fail_fast(
        self, message: str | None, exception: BaseException | None = None
    ) -> NoReturn:
        """
        Record message (and exception) to the host error log, then terminate
        immediately without running cleanup.
        """
        ...

    def get_command_line_args(self) -> tuple[str, ...]:
        """
        Command-line arguments of this process.

        The first element is the executable.
        """
        ...

    def get_environment_variable(
        self,
        name: str,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> str | None:
        """
        Value of name in target, or None if unset.

        Raises:
            InvalidArgumentError: If name is None or target is unknown
            PermissionDeniedError: If the scope cannot be read
        """
        ...

    def get_environment_variables(
        self,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> Mapping[str, str]:
        """
        Read-only snapshot of all variables in target.

        Returns an empty mapping if there are none.

        Raises:
            InvalidArgumentError: If target is unknown
            PermissionDeniedError: If the scope cannot be read
        """
        ...

    def get_folder_path(
        self,
        folder: SpecialFolder | int,
        option: SpecialFolderOption = SpecialFolderOption.NONE,
    ) -> str:
        """
        Path of a special folder, or "" if it does not exist on this host.

        Raises:
            InvalidArgumentError: If folder is not a SpecialFolder id
            NotSupportedError: If the platform has no special folders
        """
        ...

    def get_logical_drives(self) -> tuple[str, ...]:
        """
        Logical drive roots (mount points on POSIX).

        Raises:
            OperationFailedError: If enumeration fails
            PermissionDeniedError: If enumeration is denied
        """
        ...

    def set_environment_variable(
        self,
        name: str,
        value: str | None,
        target: EnvironmentVariableTarget = EnvironmentVariableTarget.PROCESS,
    ) -> None:
        """
        Create, modify or delete name in target.

        A None or empty value deletes the variable.

        Raises:
            InvalidArgumentError: For a None/empty name, a name containing
                "\\0" or "=", an over-long name or value, or an unknown target
            PermissionDeniedError: If the scope cannot be written
        """
        ...


class VariableStorePort(Protocol):
    """Persistent variable table backing the USER and MACHINE targets."""

    def get(self, name: str) -> str | None:
        """Stored value, or None."""
        ...

    def set(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None:
        """Remove name. Missing names are ignored."""
        ...

    def snapshot(self) -> dict[str, str]:
        """Copy of all stored variables."""
        ...


# --- Error Types ---


class HostEnvironmentError(Exception):
    """Base exception for host environment errors."""

    pass


class InvalidArgumentError(HostEnvironmentError, ValueError):
    """Missing, malformed or out-of-range argument."""

    def __init__(self, message: str, argument: str | None = None) -> None:
        self.argument = argument
        super().__init__(message)


class NotFoundError(HostEnvironmentError, FileNotFoundError):
    """Target path does not exist."""

    pass


class PermissionDeniedError(HostEnvironmentError, PermissionError):
    """Caller lacks rights for the requested scope or operation."""

    pass


class NotSupportedError(HostEnvironmentError, NotImplementedError):
    """Capability does not exist on this platform."""

    pass


class OperationFailedError(HostEnvironmentError, OSError):
    """Host could not complete the request."""

    pass


# --- Constants ---


# Longest process-scope name or value the host accepts, exclusive
MAX_VARIABLE_LENGTH = 32767

# Longest persistent-scope name the host accepts, exclusive
MAX_PERSISTENT_NAME_LENGTH = 255
