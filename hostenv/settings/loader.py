from pathlib import Path

import yaml
from pydantic import ValidationError

from hostenv.core.ports.environment import EnvironmentPort
from hostenv.settings.models import EnvironmentSettings

SETTINGS_ENV_VAR = "HOSTENV_CONFIG"


def _strip_fence(content: str) -> str:
    """Return the first ```yaml block of content, or content itself."""
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    return "\n".join(yaml_lines) if found_block else content


def load_settings(path: Path) -> EnvironmentSettings:
    """
    Load and validate a settings file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at: {path}")

    with open(path, encoding="utf-8") as f:
        content = f.read()

    try:
        data = yaml.safe_load(_strip_fence(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in settings file: {e}") from e

    # An empty file means all defaults
    if data is None:
        data = {}

    try:
        return EnvironmentSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Settings validation failed:\n{e}") from e


def resolve_settings(
    env: EnvironmentPort,
    *,
    env_var: str = SETTINGS_ENV_VAR,
) -> EnvironmentSettings:
    """
    Load settings from the file named by env_var, read through env.

    Returns defaults when the variable is unset.
    """
    path = env.get_environment_variable(env_var)
    if not path:
        return EnvironmentSettings()
    return load_settings(Path(path).expanduser())
