import os
from pathlib import Path

import pytest

from hostenv.adapters import system_environment
from hostenv.adapters.fake_environment import FakeEnvironment
from hostenv.adapters.system_environment import SystemEnvironment
from hostenv.core.ports.environment import SpecialFolder
from hostenv.settings.models import EnvironmentSettings, StoreSettings


@pytest.fixture
def file_settings(tmp_path: Path) -> EnvironmentSettings:
    """Settings whose USER/MACHINE stores are YAML files under tmp_path."""
    return EnvironmentSettings(
        stores=StoreSettings(
            backend="file",
            user_path=tmp_path / "stores" / "user.yaml",
            machine_path=tmp_path / "stores" / "machine.yaml",
        )
    )


@pytest.fixture
def clean_environ():
    """Restore os.environ after tests that write PROCESS variables."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def reset_exit_code():
    """Keep a test-set exit code from leaking into the pytest process."""
    yield
    system_environment._exit_code = 0


@pytest.fixture
def system_env(
    file_settings: EnvironmentSettings,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    clean_environ,
    reset_exit_code,
) -> SystemEnvironment:
    monkeypatch.chdir(tmp_path)
    return SystemEnvironment(file_settings)


@pytest.fixture
def fake_env(tmp_path: Path) -> FakeEnvironment:
    profile = tmp_path / "profile"
    profile.mkdir()
    return FakeEnvironment(
        variables={"HOME": str(profile)},
        current_directory=str(tmp_path),
        directories=[str(profile)],
        folders={
            SpecialFolder.USER_PROFILE: str(profile),
            SpecialFolder.APPLICATION_DATA: str(profile / ".config"),
        },
    )


@pytest.fixture(params=["system", "fake"])
def env(request: pytest.FixtureRequest):
    """Each EnvironmentPort adapter in turn."""
    if request.param == "system":
        return request.getfixturevalue("system_env")
    return request.getfixturevalue("fake_env")
