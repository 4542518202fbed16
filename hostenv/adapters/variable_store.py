"""
Persistent variable stores for the USER and MACHINE targets.

Implements VariableStorePort twice:
1. RegistryVariableStore: the per-user / per-machine Environment keys
   of the Windows registry
2. FileVariableStore: a YAML mapping on disk, for hosts without a
   registry

Key behaviors:
- Reads never cache; every call goes back to the backing store
- Missing names read as None; deleting a missing name is a no-op
- Access denied surfaces as PermissionDeniedError, other failures as
  OperationFailedError
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path

import yaml

from hostenv.core.ports.environment import (
    EnvironmentVariableTarget,
    InvalidArgumentError,
    NotSupportedError,
    OperationFailedError,
    PermissionDeniedError,
    VariableStorePort,
)
from hostenv.settings.models import EnvironmentSettings

logger = logging.getLogger(__name__)

USER_ENVIRONMENT_KEY = "Environment"
MACHINE_ENVIRONMENT_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"


class FileVariableStore:
    """
    YAML file implementation of VariableStorePort.

    The file holds a flat mapping of names to string values. A missing
    file is an empty store; the file and its parent are created on the
    first write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                # Every scalar stays the literal text written in the file
                data = yaml.load(f, Loader=yaml.BaseLoader)
        except FileNotFoundError:
            return {}
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot read {self.path}: {e}") from e
        except OSError as e:
            raise OperationFailedError(f"Cannot read {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise OperationFailedError(f"Invalid YAML in {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise OperationFailedError(f"{self.path} does not contain a mapping")
        values: dict[str, str] = {}
        for key, value in data.items():
            if not isinstance(value, str):
                raise OperationFailedError(f"{self.path}: value of {key} is not a string")
            # An empty value means the variable is unset
            if value:
                values[key] = value
        return values

    def _save(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot write {self.path}: {e}") from e
        except OSError as e:
            raise OperationFailedError(f"Cannot write {self.path}: {e}") from e

    def get(self, name: str) -> str | None:
        return self._load().get(name)

    def set(self, name: str, value: str) -> None:
        data = self._load()
        data[name] = value
        self._save(data)
        logger.debug("Stored %s in %s", name, self.path)

    def delete(self, name: str) -> None:
        data = self._load()
        if data.pop(name, None) is None:
            return
        self._save(data)
        logger.debug("Removed %s from %s", name, self.path)

    def snapshot(self) -> dict[str, str]:
        return self._load()


class RegistryVariableStore:
    """
    Windows registry implementation of VariableStorePort.

    USER maps to HKEY_CURRENT_USER\\Environment, MACHINE to the
    Session Manager\\Environment key of HKEY_LOCAL_MACHINE.
    """

    def __init__(self, target: EnvironmentVariableTarget) -> None:
        try:
            import winreg
        except ImportError as e:
            raise NotSupportedError("The registry store needs Windows") from e

        if target is EnvironmentVariableTarget.USER:
            self._root = winreg.HKEY_CURRENT_USER
            self._key = USER_ENVIRONMENT_KEY
        elif target is EnvironmentVariableTarget.MACHINE:
            self._root = winreg.HKEY_LOCAL_MACHINE
            self._key = MACHINE_ENVIRONMENT_KEY
        else:
            raise InvalidArgumentError(
                f"Registry store needs USER or MACHINE, not {target!r}",
                argument="target",
            )
        self._winreg = winreg
        self.target = target

    def _open(self, access: int):  # type: ignore[no-untyped-def]
        try:
            return self._winreg.OpenKey(self._root, self._key, 0, access)
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot open {self._key}: {e}") from e
        except OSError as e:
            raise OperationFailedError(f"Cannot open {self._key}: {e}") from e

    def get(self, name: str) -> str | None:
        with self._open(self._winreg.KEY_READ) as key:
            try:
                value, _ = self._winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                return None
            except OSError as e:
                raise OperationFailedError(f"Cannot read {name}: {e}") from e
        return str(value)

    def set(self, name: str, value: str) -> None:
        with self._open(self._winreg.KEY_SET_VALUE) as key:
            try:
                self._winreg.SetValueEx(key, name, 0, self._winreg.REG_SZ, value)
            except PermissionError as e:
                raise PermissionDeniedError(f"Cannot write {name}: {e}") from e
            except OSError as e:
                raise OperationFailedError(f"Cannot write {name}: {e}") from e
        logger.debug("Stored %s in registry (%s)", name, self.target.name)

    def delete(self, name: str) -> None:
        with self._open(self._winreg.KEY_SET_VALUE) as key:
            try:
                self._winreg.DeleteValue(key, name)
            except FileNotFoundError:
                return
            except PermissionError as e:
                raise PermissionDeniedError(f"Cannot delete {name}: {e}") from e
            except OSError as e:
                raise OperationFailedError(f"Cannot delete {name}: {e}") from e
        logger.debug("Removed %s from registry (%s)", name, self.target.name)

    def snapshot(self) -> dict[str, str]:
        values: dict[str, str] = {}
        with self._open(self._winreg.KEY_READ) as key:
            index = 0
            while True:
                try:
                    name, value, _ = self._winreg.EnumValue(key, index)
                except OSError:
                    # ERROR_NO_MORE_ITEMS
                    break
                values[name] = str(value)
                index += 1
        return values


def create_variable_store(
    target: EnvironmentVariableTarget,
    settings: EnvironmentSettings | None = None,
) -> VariableStorePort:
    """
    Factory function to create the store backing a persistent target.

    Args:
        target: USER or MACHINE
        settings: Backend choice and file locations (defaults if None)

    Returns:
        Registry store on Windows when backend is auto/registry,
        file store otherwise
    """
    if target is EnvironmentVariableTarget.PROCESS:
        raise InvalidArgumentError(
            "PROCESS variables are not kept in a persistent store", argument="target"
        )

    settings = settings or EnvironmentSettings()
    stores = settings.stores
    backend = stores.backend
    if backend == "auto":
        backend = "registry" if sys.platform == "win32" else "file"

    if backend == "registry":
        return RegistryVariableStore(target)

    path = stores.user_path if target is EnvironmentVariableTarget.USER else stores.machine_path
    return FileVariableStore(path)
