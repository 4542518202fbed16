"""
Special folder resolution.

Windows asks the shell folder API, passing the folder id and option
straight through as CSIDL values. POSIX hosts follow the XDG base
directory and user-dirs conventions, the same table the host runtime
uses on Unix.

Key behaviors:
- Unknown folder ids raise InvalidArgumentError
- Folders the platform does not map resolve to ""
- NONE returns the path only if the directory exists
- CREATE makes the directory; DO_NOT_VERIFY skips the existence check
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Callable, Mapping
from pathlib import Path

from hostenv.core.ports.environment import (
    InvalidArgumentError,
    NotSupportedError,
    OperationFailedError,
    PermissionDeniedError,
    SpecialFolder,
    SpecialFolderOption,
)

logger = logging.getLogger(__name__)

# user-dirs.dirs key and default directory under $HOME
_XDG_USER_DIRS: dict[SpecialFolder, tuple[str, str]] = {
    SpecialFolder.DESKTOP: ("XDG_DESKTOP_DIR", "Desktop"),
    SpecialFolder.DESKTOP_DIRECTORY: ("XDG_DESKTOP_DIR", "Desktop"),
    SpecialFolder.MY_DOCUMENTS: ("XDG_DOCUMENTS_DIR", "Documents"),
    SpecialFolder.MY_MUSIC: ("XDG_MUSIC_DIR", "Music"),
    SpecialFolder.MY_PICTURES: ("XDG_PICTURES_DIR", "Pictures"),
    SpecialFolder.MY_VIDEOS: ("XDG_VIDEOS_DIR", "Videos"),
    SpecialFolder.TEMPLATES: ("XDG_TEMPLATES_DIR", "Templates"),
}

_FIXED_POSIX_PATHS: dict[SpecialFolder, str] = {
    SpecialFolder.COMMON_APPLICATION_DATA: "/usr/share",
    SpecialFolder.COMMON_TEMPLATES: "/usr/share/templates",
}

_MAX_PATH = 260
_S_OK = 0


def coerce_folder(folder: SpecialFolder | int) -> SpecialFolder:
    """Accept a SpecialFolder or its numeric id."""
    if isinstance(folder, SpecialFolder):
        return folder
    if isinstance(folder, bool) or not isinstance(folder, int):
        raise InvalidArgumentError(
            f"Illegal special folder: {folder!r}", argument="folder"
        )
    try:
        return SpecialFolder(folder)
    except ValueError as e:
        raise InvalidArgumentError(
            f"Illegal special folder: {folder!r}", argument="folder"
        ) from e


def coerce_option(option: SpecialFolderOption) -> SpecialFolderOption:
    if not isinstance(option, SpecialFolderOption):
        raise InvalidArgumentError(
            f"Illegal special folder option: {option!r}", argument="option"
        )
    return option


def read_user_dirs(config_home: Path, home: str) -> dict[str, str]:
    """
    Parse user-dirs.dirs into {key: absolute path}.

    Lines look like XDG_DESKTOP_DIR="$HOME/Desktop". Relative entries and
    unreadable files are ignored.
    """
    path = config_home / "user-dirs.dirs"
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return {}

    entries: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            words = shlex.split(raw)
        except ValueError:
            continue
        if len(words) != 1:
            continue
        value = words[0]
        if value.startswith("$HOME"):
            value = home + value[len("$HOME"):]
        elif not value.startswith("/"):
            continue
        entries[key.strip()] = value.rstrip("/") or "/"
    return entries


def resolve_posix_folder(
    folder: SpecialFolder,
    getenv: Callable[[str], str | None],
    home: str,
) -> str:
    """Unverified POSIX path for folder, or "" if unmapped."""
    if folder in _FIXED_POSIX_PATHS:
        return _FIXED_POSIX_PATHS[folder]
    if not home:
        return ""

    config_home = Path(getenv("XDG_CONFIG_HOME") or os.path.join(home, ".config"))

    if folder is SpecialFolder.USER_PROFILE:
        return home
    if folder is SpecialFolder.APPLICATION_DATA:
        return str(config_home)
    if folder is SpecialFolder.LOCAL_APPLICATION_DATA:
        return getenv("XDG_DATA_HOME") or os.path.join(home, ".local", "share")
    if folder is SpecialFolder.FONTS:
        return os.path.join(home, ".fonts")
    if folder in _XDG_USER_DIRS:
        key, default = _XDG_USER_DIRS[folder]
        return read_user_dirs(config_home, home).get(key) or os.path.join(home, default)
    return ""


def resolve_windows_folder(folder: SpecialFolder, option: SpecialFolderOption) -> str:
    """Ask the shell for folder; "" when the shell has no such folder."""
    import ctypes

    buffer = ctypes.create_unicode_buffer(_MAX_PATH)
    result = ctypes.windll.shell32.SHGetFolderPathW(  # type: ignore[attr-defined]
        None, int(folder) | option.value, None, 0, buffer
    )
    if result != _S_OK:
        return ""
    return buffer.value


def verify_folder(path: str, option: SpecialFolderOption) -> str:
    """Apply option to an unverified path."""
    if not path or option is SpecialFolderOption.DO_NOT_VERIFY:
        return path
    if option is SpecialFolderOption.CREATE:
        try:
            os.makedirs(path, exist_ok=True)
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot create folder {path}: {e}") from e
        except OSError as e:
            raise OperationFailedError(f"Cannot create folder {path}: {e}") from e
        logger.debug("Created special folder %s", path)
        return path
    return path if os.path.isdir(path) else ""


def get_folder_path(
    folder: SpecialFolder | int,
    option: SpecialFolderOption,
    *,
    environ: Mapping[str, str],
    os_name: str = os.name,
) -> str:
    """
    Resolve folder on the running host.

    Args:
        folder: Folder id
        option: Existence handling
        environ: Variables consulted for HOME and XDG_* overrides
        os_name: "posix" or "nt"; anything else is not supported

    Returns:
        The folder path, or "" if it does not exist
    """
    folder = coerce_folder(folder)
    option = coerce_option(option)

    if os_name == "nt":
        # The shell applies CREATE and existence checks itself
        return resolve_windows_folder(folder, option)
    if os_name != "posix":
        raise NotSupportedError(f"Special folders are not supported on {os_name}")

    home = environ.get("HOME") or os.path.expanduser("~")
    if home == "~":
        home = ""
    path = resolve_posix_folder(folder, environ.get, home)
    return verify_folder(path, option)
