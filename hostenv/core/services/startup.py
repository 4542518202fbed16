"""
Startup checks run against an injected EnvironmentPort.

check_required_variables is the kind of consumer the port exists for:
it never touches os.environ or sys.exit, so tests drive it with a
FakeEnvironment.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from hostenv.core.ports.environment import EnvironmentPort

logger = logging.getLogger(__name__)


def find_missing_variables(env: EnvironmentPort, required: Iterable[str]) -> list[str]:
    """Names from required that are unset or empty in process scope, in order."""
    return [name for name in required if not env.get_environment_variable(name)]


def check_required_variables(
    env: EnvironmentPort,
    required: Iterable[str],
    *,
    exit_code: int = 1,
) -> None:
    """
    Exit through env when any required variable is missing.

    Args:
        env: Host environment
        required: Variable names that must be set
        exit_code: Code passed to env.exit on failure
    """
    missing = find_missing_variables(env, required)
    if missing:
        logger.critical(
            "Missing required environment variables: %s", ", ".join(missing)
        )
        env.exit(exit_code)

    logger.info("Required environment variables present")
