"""Tests for platforms/desktop.py - Windows and Linux config install."""

from pathlib import Path

import pytest

from core.patching import PatchStatus
from platforms.desktop import LinuxPlatform, WindowsPlatform


class TestDesktopPlatforms:
    """Registry kind and identifier for desktop targets."""

    @pytest.mark.parametrize("cls", [WindowsPlatform, LinuxPlatform])
    def test_backed_by_android_registry_app(self, cls: type) -> None:
        platform = cls()
        assert platform.registry_platform == "android"
        assert platform.identifier_kind == "package_name"
        assert platform.config_file_name == "google-services.json"

    def test_config_dir_prefers_platform_subdir(self, tmp_path: Path) -> None:
        (tmp_path / "windows").mkdir()
        assert WindowsPlatform().config_dir(tmp_path) == tmp_path / "windows"
        assert LinuxPlatform().config_dir(tmp_path) == tmp_path

    def test_install_config(self, tmp_path: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
        (tmp_path / "linux").mkdir()
        artifact = tmp_path_factory.mktemp("dl") / "x.json"
        artifact.write_text("{}")
        installed = LinuxPlatform().install_config(artifact, tmp_path)
        assert installed == tmp_path / "linux" / "google-services.json"
        assert installed.read_text() == "{}"

    def test_inject_code_is_manual_only(self, tmp_path: Path) -> None:
        (tmp_path / "CMakeLists.txt").write_text("project(demo)\n")
        before = (tmp_path / "CMakeLists.txt").read_bytes()
        report = WindowsPlatform().inject_code(tmp_path)
        assert report.results == []
        assert any("C++ SDK" in step for step in report.manual_steps)
        assert (tmp_path / "CMakeLists.txt").read_bytes() == before
        assert all(r.status != PatchStatus.APPLIED for r in report.results)


class TestDetect:
    def test_windows_signals(self, tmp_path: Path) -> None:
        assert not WindowsPlatform().detect(tmp_path)
        (tmp_path / "Demo.sln").write_text("")
        assert WindowsPlatform().detect(tmp_path)

    def test_linux_signals(self, tmp_path: Path) -> None:
        assert not LinuxPlatform().detect(tmp_path)
        (tmp_path / "linux").mkdir()
        assert LinuxPlatform().detect(tmp_path)
