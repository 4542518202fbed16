import os
from pathlib import Path

import pytest

from hostenv.adapters.special_folders import (
    coerce_folder,
    get_folder_path,
    read_user_dirs,
    resolve_posix_folder,
    verify_folder,
)
from hostenv.core.ports.environment import (
    InvalidArgumentError,
    NotSupportedError,
    SpecialFolder,
    SpecialFolderOption,
)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


def _resolve(folder, home, **env):
    return resolve_posix_folder(folder, env.get, str(home))


class TestCoerceFolder:
    def test_enum_passes_through(self):
        assert coerce_folder(SpecialFolder.FONTS) is SpecialFolder.FONTS

    def test_integer_id(self):
        assert coerce_folder(28) is SpecialFolder.LOCAL_APPLICATION_DATA

    @pytest.mark.parametrize("folder", [True, 3.0, "26", None, 1000])
    def test_rejects_non_folders(self, folder):
        with pytest.raises(InvalidArgumentError):
            coerce_folder(folder)


class TestPosixMapping:
    def test_user_profile_is_home(self, home):
        assert _resolve(SpecialFolder.USER_PROFILE, home) == str(home)

    def test_application_data_defaults(self, home):
        assert _resolve(SpecialFolder.APPLICATION_DATA, home) == str(home / ".config")
        assert _resolve(SpecialFolder.LOCAL_APPLICATION_DATA, home) == os.path.join(
            home, ".local", "share"
        )

    def test_xdg_overrides(self, home):
        assert (
            _resolve(SpecialFolder.APPLICATION_DATA, home, XDG_CONFIG_HOME="/cfg") == "/cfg"
        )
        assert (
            _resolve(SpecialFolder.LOCAL_APPLICATION_DATA, home, XDG_DATA_HOME="/data")
            == "/data"
        )

    def test_user_dir_defaults(self, home):
        assert _resolve(SpecialFolder.MY_MUSIC, home) == os.path.join(home, "Music")
        assert _resolve(SpecialFolder.DESKTOP, home) == os.path.join(home, "Desktop")
        assert _resolve(SpecialFolder.MY_DOCUMENTS, home) == os.path.join(home, "Documents")

    def test_user_dirs_file_wins(self, home):
        config = home / ".config"
        config.mkdir()
        (config / "user-dirs.dirs").write_text(
            '# generated\nXDG_DESKTOP_DIR="$HOME/Bureau"\nXDG_MUSIC_DIR="/srv/music/"\n'
        )
        assert _resolve(SpecialFolder.DESKTOP_DIRECTORY, home) == f"{home}/Bureau"
        assert _resolve(SpecialFolder.MY_MUSIC, home) == "/srv/music"

    def test_fixed_paths(self, home):
        assert _resolve(SpecialFolder.COMMON_APPLICATION_DATA, home) == "/usr/share"
        assert _resolve(SpecialFolder.COMMON_TEMPLATES, home) == "/usr/share/templates"
        assert _resolve(SpecialFolder.FONTS, home) == os.path.join(home, ".fonts")

    def test_windows_only_folders_are_empty(self, home):
        assert _resolve(SpecialFolder.SYSTEM, home) == ""
        assert _resolve(SpecialFolder.PROGRAM_FILES_X86, home) == ""
        assert _resolve(SpecialFolder.CD_BURNING, home) == ""

    def test_no_home(self):
        assert resolve_posix_folder(SpecialFolder.USER_PROFILE, {}.get, "") == ""


class TestReadUserDirs:
    def test_missing_file(self, tmp_path):
        assert read_user_dirs(tmp_path, "/home/x") == {}

    def test_ignores_relative_and_malformed_lines(self, tmp_path):
        (tmp_path / "user-dirs.dirs").write_text(
            'XDG_A_DIR="relative/path"\nnot a pair\nXDG_B_DIR="unterminated\nXDG_C_DIR="$HOME"\n'
        )
        assert read_user_dirs(tmp_path, "/home/x") == {"XDG_C_DIR": "/home/x"}


class TestVerifyFolder:
    def test_none_requires_existence(self, tmp_path):
        assert verify_folder(str(tmp_path), SpecialFolderOption.NONE) == str(tmp_path)
        missing = str(tmp_path / "missing")
        assert verify_folder(missing, SpecialFolderOption.NONE) == ""

    def test_do_not_verify(self, tmp_path):
        missing = str(tmp_path / "missing")
        assert verify_folder(missing, SpecialFolderOption.DO_NOT_VERIFY) == missing
        assert not os.path.exists(missing)

    def test_create(self, tmp_path):
        target = str(tmp_path / "a" / "b")
        assert verify_folder(target, SpecialFolderOption.CREATE) == target
        assert os.path.isdir(target)

    def test_empty_path_stays_empty(self):
        assert verify_folder("", SpecialFolderOption.CREATE) == ""


class TestGetFolderPath:
    def test_posix_resolution_uses_environ(self, home):
        environ = {"HOME": str(home)}
        assert (
            get_folder_path(SpecialFolder.USER_PROFILE, SpecialFolderOption.NONE,
                            environ=environ, os_name="posix")
            == str(home)
        )

    def test_posix_missing_folder_is_empty(self, home):
        environ = {"HOME": str(home)}
        assert (
            get_folder_path(SpecialFolder.MY_VIDEOS, SpecialFolderOption.NONE,
                            environ=environ, os_name="posix")
            == ""
        )

    def test_posix_create(self, home):
        environ = {"HOME": str(home)}
        path = get_folder_path(
            SpecialFolder.TEMPLATES, SpecialFolderOption.CREATE,
            environ=environ, os_name="posix",
        )
        assert path == os.path.join(home, "Templates")
        assert os.path.isdir(path)

    def test_unsupported_platform(self):
        with pytest.raises(NotSupportedError):
            get_folder_path(SpecialFolder.DESKTOP, SpecialFolderOption.NONE,
                            environ={}, os_name="java")

    def test_invalid_folder_checked_before_platform(self):
        with pytest.raises(InvalidArgumentError):
            get_folder_path(1, SpecialFolderOption.NONE, environ={}, os_name="java")
