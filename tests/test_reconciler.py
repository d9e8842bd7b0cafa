"""Tests for registry/reconciler.py - reuse-or-create against the registry."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core.errors import AppCreationError
from platforms.android import AndroidPlatform
from platforms.apple import IOSPlatform, MacOSPlatform
from platforms.desktop import WindowsPlatform
from registry.firebase_cli import FirebaseCLI
from registry.models import RemoteApp
from registry.reconciler import find_matching_app, is_duplicate_error, reconcile


def _client(apps=None, create=None) -> MagicMock:
    client = MagicMock(spec=FirebaseCLI)
    client.list_apps.return_value = apps or []
    if isinstance(create, Exception):
        client.create_app.side_effect = create
    else:
        client.create_app.return_value = create
    return client


IOS_APP = RemoteApp("1:1:ios:a", "Demo iOS", "IOS", namespace="com.example.demo", bundle_id="com.example.demo")
ANDROID_APP = RemoteApp("1:1:android:b", "Demo", "ANDROID", namespace="com.example.demo", package_name="com.example.demo")


class TestFindMatchingApp:
    def test_filters_by_platform(self) -> None:
        assert find_matching_app([IOS_APP, ANDROID_APP], AndroidPlatform(), "com.example.demo") is ANDROID_APP
        assert find_matching_app([ANDROID_APP, IOS_APP], IOSPlatform(), "com.example.demo") is IOS_APP

    def test_macos_uses_ios_apps(self) -> None:
        assert find_matching_app([IOS_APP], MacOSPlatform(), "com.example.demo") is IOS_APP

    def test_desktop_uses_android_apps(self) -> None:
        assert find_matching_app([IOS_APP, ANDROID_APP], WindowsPlatform(), "com.example.demo") is ANDROID_APP

    def test_platform_field_fallback(self) -> None:
        app = RemoteApp("1:1:ios:c", platform="IOS", bundle_id="com.example.other")
        assert find_matching_app([app], IOSPlatform(), "com.example.other") is app

    def test_first_match_in_list_order_wins(self) -> None:
        by_field = RemoteApp("1:1:ios:first", platform="IOS", bundle_id="com.x")
        by_namespace = RemoteApp("1:1:ios:second", platform="IOS", namespace="com.x")
        assert find_matching_app([by_field, by_namespace], IOSPlatform(), "com.x") is by_field
        assert find_matching_app([by_namespace, by_field], IOSPlatform(), "com.x") is by_namespace

    def test_exact_match_only(self) -> None:
        assert find_matching_app([IOS_APP], IOSPlatform(), "com.example") is None


class TestIsDuplicateError:
    @pytest.mark.parametrize("output", [
        "Error: An app with this bundle ID already exists",
        "DUPLICATE entry",
        "Failed to create Android app for project",
    ])
    def test_duplicates(self, output: str) -> None:
        assert is_duplicate_error(output)

    def test_other_errors(self) -> None:
        assert not is_duplicate_error("HTTP Error: 403, permission denied")


class TestReconcile:
    def test_explicit_app_id_short_circuits(self, tmp_path: Path) -> None:
        client = _client()
        assert reconcile(IOSPlatform(), "com.x", "p", "1:1:ios:given", client, tmp_path) == "1:1:ios:given"
        client.list_apps.assert_not_called()
        client.create_app.assert_not_called()

    def test_reuses_existing(self, tmp_path: Path) -> None:
        client = _client(apps=[IOS_APP])
        assert reconcile(IOSPlatform(), "com.example.demo", "p", None, client, tmp_path) == "1:1:ios:a"
        client.create_app.assert_not_called()

    def test_creates_when_missing(self, tmp_path: Path) -> None:
        root = tmp_path / "Demo"
        root.mkdir()
        client = _client(create="1:1:ios:new")
        assert reconcile(IOSPlatform(), "com.example.demo", "p", "", client, root) == "1:1:ios:new"
        client.create_app.assert_called_once_with("ios", "Demo iOS", "p", "com.example.demo")

    def test_duplicate_error_recovers_with_one_relist(self, tmp_path: Path) -> None:
        client = _client(create=AppCreationError("Error: app already exists"))
        client.list_apps.side_effect = [[], [IOS_APP]]
        assert reconcile(IOSPlatform(), "com.example.demo", "p", None, client, tmp_path) == "1:1:ios:a"
        assert client.list_apps.call_count == 2

    def test_duplicate_error_without_match_raises(self, tmp_path: Path) -> None:
        client = _client(create=AppCreationError("Error: app already exists"))
        with pytest.raises(AppCreationError) as exc:
            reconcile(IOSPlatform(), "com.example.demo", "p", None, client, tmp_path)
        assert client.list_apps.call_count == 2
        assert "--app-id" in exc.value.hint

    def test_other_creation_error_raises_without_relist(self, tmp_path: Path) -> None:
        client = _client(create=AppCreationError("HTTP Error: 403"))
        with pytest.raises(AppCreationError) as exc:
            reconcile(AndroidPlatform(), "com.example.demo", "p", None, client, tmp_path)
        assert client.list_apps.call_count == 1
        assert "403" in exc.value.output
        assert "--package-name com.example.demo" in exc.value.hint
