"""
Environment variable argument rules and placeholder expansion.

Shared by every EnvironmentPort adapter so the fake rejects exactly
what the system adapter rejects.

Key behaviors:
- Names and values must be str; names non-empty and free of "\\0" and "="
- Names and process values stay under MAX_VARIABLE_LENGTH
- Persistent names stay under MAX_PERSISTENT_NAME_LENGTH
- None or "" values mean delete
- Expansion follows the POSIX $NAME / ${NAME} rule; unset stays as-is
"""

from __future__ import annotations

import re
from collections.abc import Callable

from hostenv.core.ports.environment import (
    MAX_PERSISTENT_NAME_LENGTH,
    MAX_VARIABLE_LENGTH,
    EnvironmentVariableTarget,
    InvalidArgumentError,
)

# Same shape as posixpath.expandvars
_PLACEHOLDER = re.compile(r"\$(\w+|\{[^}]*\})", re.ASCII)


def check_target(target: object) -> EnvironmentVariableTarget:
    """Return target if it is a known EnvironmentVariableTarget."""
    if not isinstance(target, EnvironmentVariableTarget):
        raise InvalidArgumentError(
            f"Illegal environment variable target: {target!r}", argument="target"
        )
    return target


def check_name(name: str | None) -> str:
    """Validate a name for a read."""
    if name is None:
        raise InvalidArgumentError("Variable name is required", argument="name")
    if not isinstance(name, str):
        raise InvalidArgumentError(
            f"Variable name must be a string, not {type(name).__name__}", argument="name"
        )
    return name


def check_assignment(
    name: str | None,
    value: str | None,
    target: EnvironmentVariableTarget,
) -> str | None:
    """
    Validate a set/delete request.

    Returns:
        The value to store, or None if the request is a delete

    Raises:
        InvalidArgumentError: For any rule violation
    """
    check_target(target)
    check_name(name)
    if value is not None and not isinstance(value, str):
        raise InvalidArgumentError(
            f"Variable value must be a string, not {type(value).__name__}", argument="value"
        )
    if name == "":
        raise InvalidArgumentError("Variable name cannot be empty", argument="name")
    if "\0" in name:
        raise InvalidArgumentError(
            "Variable name cannot contain a zero character", argument="name"
        )
    if "=" in name:
        raise InvalidArgumentError(
            "Variable name cannot contain an equal sign", argument="name"
        )
    if len(name) >= MAX_VARIABLE_LENGTH:
        raise InvalidArgumentError(
            f"Variable name must be shorter than {MAX_VARIABLE_LENGTH} characters",
            argument="name",
        )

    if target is EnvironmentVariableTarget.PROCESS:
        if value is not None and len(value) >= MAX_VARIABLE_LENGTH:
            raise InvalidArgumentError(
                f"Variable value must be shorter than {MAX_VARIABLE_LENGTH} characters",
                argument="value",
            )
    elif len(name) >= MAX_PERSISTENT_NAME_LENGTH:
        raise InvalidArgumentError(
            f"Persistent variable name must be shorter than "
            f"{MAX_PERSISTENT_NAME_LENGTH} characters",
            argument="name",
        )

    if value is not None and "\0" in value:
        raise InvalidArgumentError(
            "Variable value cannot contain a zero character", argument="value"
        )

    return value or None


def expand_placeholders(text: str | None, lookup: Callable[[str], str | None]) -> str:
    """
    Replace $NAME and ${NAME} with lookup(NAME).

    Placeholders whose lookup returns None are kept verbatim.

    Raises:
        InvalidArgumentError: If text is None
    """
    if text is None:
        raise InvalidArgumentError("Text to expand is required", argument="text")
    if "$" not in text:
        return text

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name.startswith("{") and name.endswith("}"):
            name = name[1:-1]
        value = lookup(name)
        return match.group(0) if value is None else value

    return _PLACEHOLDER.sub(_replace, text)
