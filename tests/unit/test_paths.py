"""Tests for addons/core/paths.py - default AddOns directory."""
from __future__ import annotations

import os
from unittest.mock import patch

from addons.core import config
from addons.core.paths import default_addons_path, resolve_addons_path


class TestDefaultAddonsPath:
    """Tests for default_addons_path function."""

    def test_windows_documents_folder(self):
        path = default_addons_path("win32", "/home/u")

        assert path == os.path.join("/home/u", "My Documents", "Elder Scrolls Online", "live", "AddOns")

    def test_proton_prefix_elsewhere(self):
        path = default_addons_path("linux", "/home/u")

        assert path.startswith(os.path.join("/home/u", ".steam", "steamapps", "compatdata", "306130"))
        assert path.endswith(os.path.join("Elder Scrolls Online", "live", "AddOns"))

    def test_override_wins(self):
        assert default_addons_path("linux", "/home/u", "/custom/AddOns") == "/custom/AddOns"

    def test_empty_override_ignored(self):
        assert default_addons_path("win32", "/h", "") == default_addons_path("win32", "/h")


class TestResolveAddonsPath:
    """Tests for resolve_addons_path function."""

    def test_cli_path_first(self):
        config._CONFIG_CACHE = {"addons_path": "/from/config"}

        assert resolve_addons_path("/from/cli") == "/from/cli"

    def test_config_path_second(self):
        config._CONFIG_CACHE = {"addons_path": "/from/config"}

        assert resolve_addons_path(None) == "/from/config"

    def test_platform_default_last(self):
        with patch("addons.core.paths.sys.platform", "win32"), \
                patch("addons.core.paths.os.path.expanduser", return_value="/home/u"):
            assert resolve_addons_path(None) == default_addons_path("win32", "/home/u")
