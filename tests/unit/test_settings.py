from pathlib import Path

import pytest

from hostenv.adapters.fake_environment import FakeEnvironment
from hostenv.settings.loader import SETTINGS_ENV_VAR, load_settings, resolve_settings
from hostenv.settings.models import EnvironmentSettings


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "hostenv.yaml"
    path.write_text(text)
    return path


def test_defaults():
    settings = EnvironmentSettings()
    assert settings.stores.backend == "auto"
    assert settings.fail_fast.dump_traceback is True


def test_load_full_file(tmp_path):
    path = _write(
        tmp_path,
        "stores:\n"
        "  backend: file\n"
        "  user_path: /tmp/u.yaml\n"
        "  machine_path: /tmp/m.yaml\n"
        "fail_fast:\n"
        "  dump_traceback: false\n",
    )
    settings = load_settings(path)
    assert settings.stores.backend == "file"
    assert settings.stores.user_path == Path("/tmp/u.yaml")
    assert settings.fail_fast.dump_traceback is False


def test_load_fenced_block(tmp_path):
    path = _write(
        tmp_path,
        "# Settings\n\nSome notes.\n\n```yaml\nstores:\n  backend: registry\n```\n",
    )
    assert load_settings(path).stores.backend == "registry"


def test_empty_file_is_defaults(tmp_path):
    assert load_settings(_write(tmp_path, "")) == EnvironmentSettings()


def test_example_file_loads():
    example = Path(__file__).resolve().parents[2] / "hostenv.example.yaml"
    assert load_settings(example) == EnvironmentSettings()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_settings(_write(tmp_path, "stores: [oops\n"))


@pytest.mark.parametrize(
    "text",
    [
        "stores:\n  backend: ftp\n",
        "stores:\n  colour: blue\n",
        "unknown_section: {}\n",
    ],
)
def test_schema_errors(tmp_path, text):
    with pytest.raises(ValueError, match="validation failed"):
        load_settings(_write(tmp_path, text))


def test_resolve_without_variable_is_defaults():
    assert resolve_settings(FakeEnvironment()) == EnvironmentSettings()


def test_resolve_reads_path_through_port(tmp_path):
    path = _write(tmp_path, "stores:\n  backend: file\n")
    env = FakeEnvironment(variables={SETTINGS_ENV_VAR: str(path)})
    assert resolve_settings(env).stores.backend == "file"


def test_resolve_custom_variable(tmp_path):
    path = _write(tmp_path, "fail_fast:\n  dump_traceback: false\n")
    env = FakeEnvironment(variables={"MY_APP_ENV_CONFIG": str(path)})
    settings = resolve_settings(env, env_var="MY_APP_ENV_CONFIG")
    assert settings.fail_fast.dump_traceback is False
