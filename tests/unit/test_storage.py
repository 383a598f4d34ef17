"""Tests for the JSON settings store and connection settings model."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from fortilog.models import PASSWORD_MASK, ConnectionSettings
from fortilog.storage import MOCK_MODE_KEY, SETTINGS_KEY, SettingsStore


class TestConnectionSettings:
    def test_defaults(self) -> None:
        conn = ConnectionSettings()
        assert conn.port == "443"
        assert conn.protocol == "https"
        assert conn.refresh_interval == 30
        assert not conn.is_configured

    def test_base_url(self, conn: ConnectionSettings) -> None:
        assert conn.base_url == "https://fw.example.test:8443/api/v2"

    def test_port_coerced_to_str(self) -> None:
        assert ConnectionSettings(port=80).port == "80"

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionSettings(refresh_interval=0)

    def test_protocol_enum(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionSettings(protocol="ftp")

    def test_redacted(self, conn: ConnectionSettings) -> None:
        assert conn.redacted()["password"] == PASSWORD_MASK
        assert ConnectionSettings().redacted()["password"] == ""


class TestSettingsStore:
    def test_missing_file(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "nope.json")
        assert store.load_settings() is None
        assert store.load_mock_mode() is True

    def test_roundtrip(self, tmp_path: Path, conn: ConnectionSettings) -> None:
        store = SettingsStore(tmp_path / "state" / "fortilog.json")
        store.save_settings(conn)
        store.save_mock_mode(False)

        fresh = SettingsStore(store.path)
        assert fresh.load_settings() == conn
        assert fresh.load_mock_mode() is False

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert set(data) == {SETTINGS_KEY, MOCK_MODE_KEY}

    def test_corrupt_file_is_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "fortilog.json"
        path.write_text("{not json", encoding="utf-8")
        store = SettingsStore(path)
        assert store.load_settings() is None
        assert store.load_mock_mode() is True

    def test_invalid_settings_are_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "fortilog.json"
        path.write_text(json.dumps({SETTINGS_KEY: {"refresh_interval": -5}}), encoding="utf-8")
        assert SettingsStore(path).load_settings() is None

    def test_write_keeps_other_keys(self, tmp_path: Path, conn: ConnectionSettings) -> None:
        store = SettingsStore(tmp_path / "fortilog.json")
        store.save_mock_mode(True)
        store.save_settings(conn)
        assert store.load_mock_mode() is True
        assert store.load_settings() == conn
