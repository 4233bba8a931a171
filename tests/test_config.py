"""Tests for ekctl.config — pydantic-settings backed runtime settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from ekctl.config import REGISTRY_FILE_NAME, Settings, default_config_dir, load_settings
from ekctl.exceptions import ValidationError


class TestDefaults:
    def test_default_config_dir(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EKCTL_CONFIG_DIR", raising=False)
        settings = load_settings()
        assert settings.config_dir == default_config_dir()
        assert settings.config_dir.name == ".ekctl"

    def test_registry_path(self, tmp_path: Path) -> None:
        settings = Settings(config_dir=tmp_path)
        assert settings.registry_path == tmp_path / REGISTRY_FILE_NAME
        assert settings.registry_path.name == "config.json"

    def test_timeout_and_level(self) -> None:
        settings = load_settings()
        assert settings.access_timeout_seconds == 30.0
        assert settings.log_level == "WARNING"


class TestEnvironment:
    def test_config_dir_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("EKCTL_CONFIG_DIR", str(tmp_path / "alt"))
        assert load_settings().registry_path == tmp_path / "alt" / "config.json"

    def test_tilde_expanded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EKCTL_CONFIG_DIR", "~/somewhere")
        assert load_settings().config_dir == Path.home() / "somewhere"

    def test_log_level_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EKCTL_LOG_LEVEL", " debug ")
        assert load_settings().log_level == "DEBUG"

    def test_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EKCTL_ACCESS_TIMEOUT_SECONDS", "2.5")
        assert load_settings().access_timeout_seconds == 2.5


class TestInvalid:
    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("EKCTL_ACCESS_TIMEOUT_SECONDS", "0"),
            ("EKCTL_ACCESS_TIMEOUT_SECONDS", "soon"),
            ("EKCTL_LOG_LEVEL", "chatty"),
        ],
    )
    def test_reported_as_validation_error(
        self,
        monkeypatch: pytest.MonkeyPatch,
        name: str,
        value: str,
    ) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError, match=f"Invalid configuration: {name}"):
            load_settings()
