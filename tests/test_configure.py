"""Tests for cli/configure.py - the end-to-end configure pipeline."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cli.configure import ProjectConfig, resolve_platform, run_configure
from core.errors import ConfigurationError, DetectionError, RegistryError
from platforms.android import AndroidPlatform
from platforms.apple import IOSPlatform
from platforms.desktop import LinuxPlatform
from registry.firebase_cli import FirebaseCLI
from registry.models import RemoteApp, RemoteProject

APP_GRADLE = """plugins {
    id 'com.android.application'
}

android {
    defaultConfig {
        applicationId "com.example.demo"
    }
}
"""

MAIN_ACTIVITY = """package com.example.demo

import android.os.Bundle
import androidx.appcompat.app.AppCompatActivity

class MainActivity : AppCompatActivity() {
    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
    }
}
"""

CONFIG_JSON = '{"project_info": {"project_id": "demo-app"}}'


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*")) if p.is_file()
    }


@pytest.fixture
def android_project(tmp_path: Path) -> Path:
    root = tmp_path / "DemoApp"
    _write(root, "settings.gradle", "include ':app'\n")
    _write(root, "app/build.gradle", APP_GRADLE)
    _write(root, "app/src/main/java/com/example/demo/MainActivity.kt", MAIN_ACTIVITY)
    return root


@pytest.fixture
def client(tmp_path_factory: pytest.TempPathFactory) -> MagicMock:
    downloads = tmp_path_factory.mktemp("downloads")

    def download(platform, app_id, project_id):
        path = downloads / f"artifact_{platform.config_file_name}"
        path.write_text(CONFIG_JSON)
        return path

    mock = MagicMock(spec=FirebaseCLI)
    mock.list_projects.return_value = [
        RemoteProject("demo-app", "Demo", "1", "ACTIVE"),
        RemoteProject("other-app", "Other", "2", "ACTIVE"),
    ]
    mock.list_apps.return_value = []
    mock.create_app.return_value = "1:123:android:abc"
    mock.download_config.side_effect = download
    return mock


@pytest.fixture(autouse=True)
def _no_tools():
    with patch("cli.configure.preflight_check", return_value=[]), \
            patch("cli.configure.missing_dependencies", return_value=[]), \
            patch("platforms.android.is_available", return_value=False):
        yield


class TestProjectConfig:
    def test_explicit_identifier_follows_platform(self) -> None:
        cfg = ProjectConfig("p", bundle_id="com.b", package_name="com.p")
        assert cfg.explicit_identifier() == ""
        cfg.platform = IOSPlatform()
        assert cfg.explicit_identifier() == "com.b"
        cfg.platform = LinuxPlatform()
        assert cfg.explicit_identifier() == "com.p"


class TestResolvePlatform:
    def test_explicit_beats_detection(self, android_project: Path) -> None:
        assert isinstance(resolve_platform(android_project, "ios", True), IOSPlatform)

    def test_not_detected(self, tmp_path: Path) -> None:
        with pytest.raises(DetectionError) as exc:
            resolve_platform(tmp_path, None, True)
        assert "--platform" in exc.value.hint

    def test_auto_detect_disabled(self, android_project: Path) -> None:
        with pytest.raises(DetectionError, match="Auto-detect is disabled"):
            resolve_platform(android_project, None, False)


class TestRunConfigure:
    """Full pipeline against a mocked registry."""

    def test_android_end_to_end(self, android_project: Path, client: MagicMock) -> None:
        cfg = run_configure(android_project, project_id="demo-app", client=client)

        assert isinstance(cfg.platform, AndroidPlatform)
        assert cfg.identifier == "com.example.demo"
        assert cfg.app_id == "1:123:android:abc"
        client.validate_project.assert_called_once_with("demo-app")
        client.create_app.assert_called_once_with("android", "DemoApp Android", "demo-app", "com.example.demo")

        installed = android_project / "app" / "google-services.json"
        assert cfg.installed_path == installed
        assert installed.read_text() == CONFIG_JSON
        assert not cfg.artifact_path.exists()

        assert "com.google.gms.google-services" in (android_project / "app/build.gradle").read_text()
        activity = (android_project / "app/src/main/java/com/example/demo/MainActivity.kt").read_text()
        assert "FirebaseApp.initializeApp(this)" in activity
        assert cfg.report.manual_steps  # gradle unavailable

    def test_rerun_reuses_app_and_changes_nothing(self, android_project: Path, client: MagicMock) -> None:
        run_configure(android_project, project_id="demo-app", client=client)
        before = _snapshot(android_project)

        client.list_apps.return_value = [
            RemoteApp("1:123:android:abc", "DemoApp Android", "ANDROID", namespace="com.example.demo"),
        ]
        client.create_app.reset_mock()
        cfg = run_configure(android_project, project_id="demo-app", client=client)

        client.create_app.assert_not_called()
        assert cfg.app_id == "1:123:android:abc"
        assert _snapshot(android_project) == before
        assert not cfg.report.problems

    def test_explicit_app_id_skips_registry_lookup(self, android_project: Path, client: MagicMock) -> None:
        cfg = run_configure(android_project, project_id="demo-app", app_id="1:9:android:given", client=client)
        assert cfg.app_id == "1:9:android:given"
        client.list_apps.assert_not_called()
        client.download_config.assert_called_once()
        assert client.download_config.call_args.args[1] == "1:9:android:given"

    def test_prompts_for_project(self, android_project: Path, client: MagicMock) -> None:
        cfg = run_configure(android_project, client=client, input_fn=lambda prompt: "2")
        assert cfg.project_id == "other-app"
        client.validate_project.assert_called_once_with("other-app")

    def test_prompt_without_input_raises_eof(self, android_project: Path, client: MagicMock) -> None:
        def no_input(prompt: str) -> str:
            raise EOFError

        with pytest.raises(EOFError):
            run_configure(android_project, client=client, input_fn=no_input)

    def test_explicit_desktop_platform(self, tmp_path: Path, client: MagicMock) -> None:
        cfg = run_configure(tmp_path, project_id="demo-app", platform_name="linux", client=client)
        assert isinstance(cfg.platform, LinuxPlatform)
        assert cfg.identifier == "com.demo.app"
        assert (tmp_path / "google-services.json").read_text() == CONFIG_JSON
        assert client.create_app.call_args.args[0] == "android"
        assert any("C++ SDK" in step for step in cfg.report.manual_steps)

    def test_package_name_override(self, android_project: Path, client: MagicMock) -> None:
        cfg = run_configure(
            android_project, project_id="demo-app",
            package_name="com.override", bundle_id="com.ignored", client=client,
        )
        assert cfg.identifier == "com.override"

    def test_wrong_kind_flag_ignored(self, android_project: Path, client: MagicMock, capsys: pytest.CaptureFixture) -> None:
        cfg = run_configure(android_project, project_id="demo-app", bundle_id="com.ignored", client=client)
        assert cfg.identifier == "com.example.demo"
        assert "--bundle-id does not apply" in capsys.readouterr().out

    def test_nothing_detected(self, tmp_path: Path, client: MagicMock) -> None:
        with pytest.raises(DetectionError):
            run_configure(tmp_path, project_id="demo-app", client=client)
        client.download_config.assert_not_called()

    def test_invalid_project_stops_before_mutation(self, android_project: Path, client: MagicMock) -> None:
        client.validate_project.side_effect = RegistryError("Project 'nope' not found")
        before = _snapshot(android_project)
        with pytest.raises(RegistryError):
            run_configure(android_project, project_id="nope", client=client)
        assert _snapshot(android_project) == before

    def test_missing_project_dir(self, tmp_path: Path, client: MagicMock) -> None:
        with pytest.raises(ConfigurationError):
            run_configure(tmp_path / "missing", project_id="demo-app", client=client)
