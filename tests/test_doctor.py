"""Tests for the ``ekctl doctor`` command (cli/doctor.py).

EventKit and the OS are patched — no macOS, no PyObjC.

Coverage:
* Individual check functions return correct tuples.
* Doctor emits a success envelope when nothing fails.
* Doctor emits an error envelope naming failed components.
* CLI routing dispatches to ``run_doctor``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ekctl.cli import exit_codes
from ekctl.cli.app import main
from ekctl.config import Settings


def _settings(tmp_path: Path) -> Settings:
    return Settings(config_dir=tmp_path)


# ---------------------------------------------------------------------------
# Individual check functions
# ---------------------------------------------------------------------------

class TestPythonVersionCheck:
    def test_returns_tuple(self) -> None:
        from ekctl.cli.doctor import _python_version_check

        label, value, status = _python_version_check()
        assert label == "Python"
        assert isinstance(value, str)
        assert "OK" in status


class TestEventKitCheck:
    def test_installed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ekctl.cli.doctor import _eventkit_check

        monkeypatch.setitem(sys.modules, "EventKit", MagicMock())
        label, _, status = _eventkit_check()
        assert label == "EventKit"
        assert "OK" in status

    @patch.dict("sys.modules", {"EventKit": None})
    def test_not_installed(self) -> None:
        from ekctl.cli.doctor import _eventkit_check

        _, value, status = _eventkit_check()
        assert value == "NOT INSTALLED"
        assert "FAIL" in status


class TestOsCheck:
    @patch("ekctl.cli.doctor.platform.system", return_value="Darwin")
    def test_macos_ok(self, _mock_system: object) -> None:
        from ekctl.cli.doctor import _os_check

        label, value, status = _os_check()
        assert label == "OS"
        assert value.startswith("macOS")
        assert "OK" in status

    @patch("ekctl.cli.doctor.platform.system", return_value="Linux")
    def test_other_os_fails(self, _mock_system: object) -> None:
        from ekctl.cli.doctor import _os_check

        _, value, status = _os_check()
        assert value.startswith("Linux")
        assert "FAIL" in status


class TestRegistryCheck:
    def test_absent(self, tmp_path: Path) -> None:
        from ekctl.cli.doctor import _registry_check

        _, value, status = _registry_check(_settings(tmp_path))
        assert "not created yet" in value
        assert "OK" in status

    def test_present(self, tmp_path: Path) -> None:
        from ekctl.cli.doctor import _registry_check

        (tmp_path / "config.json").write_text('{"aliases": {}, "version": 1}')
        _, value, status = _registry_check(_settings(tmp_path))
        assert value == str(tmp_path / "config.json")
        assert "OK" in status

    def test_unreadable_warns(self, tmp_path: Path) -> None:
        from ekctl.cli.doctor import _registry_check

        (tmp_path / "config.json").write_text("{broken")
        _, value, status = _registry_check(_settings(tmp_path))
        assert "unreadable" in value
        assert "WARN" in status


class TestStatusPlain:
    @pytest.mark.parametrize(
        ("markup", "plain"),
        [
            ("[green]OK[/green]", "OK"),
            ("[yellow]WARN[/yellow]", "WARN"),
            ("[red]FAIL (macOS required)[/red]", "FAIL"),
            ("other", "other"),
        ],
    )
    def test_conversion(self, markup: str, plain: str) -> None:
        from ekctl.cli.doctor import _status_plain

        assert _status_plain(markup) == plain


# ---------------------------------------------------------------------------
# run_doctor
# ---------------------------------------------------------------------------

class TestRunDoctor:
    @patch("ekctl.cli.doctor._os_check", return_value=("OS", "macOS 15", "[green]OK[/green]"))
    @patch("ekctl.cli.doctor._eventkit_check", return_value=("EventKit", "pyobjc", "[green]OK[/green]"))
    def test_all_ok(self, _ek: object, _os: object, tmp_path: Path) -> None:
        from ekctl.cli.doctor import run_doctor

        envelope = run_doctor(_settings(tmp_path))
        data = envelope.as_mapping()
        assert data["status"] == "success"
        assert [c["component"] for c in data["checks"]] == [
            "ekctl",
            "Python",
            "EventKit",
            "OS",
            "Aliases",
        ]
        assert all(c["status"] == "OK" for c in data["checks"])

    @patch("ekctl.cli.doctor._os_check", return_value=("OS", "Linux", "[red]FAIL (macOS required)[/red]"))
    @patch("ekctl.cli.doctor._eventkit_check", return_value=("EventKit", "NOT INSTALLED", "[red]FAIL[/red]"))
    def test_failures_named(self, _ek: object, _os: object, tmp_path: Path) -> None:
        from ekctl.cli.doctor import run_doctor

        data = run_doctor(_settings(tmp_path)).as_mapping()
        assert data == {"status": "error", "error": "Doctor checks failed: EventKit, OS"}

    @patch("ekctl.cli.doctor._os_check", return_value=("OS", "macOS 15", "[green]OK[/green]"))
    @patch("ekctl.cli.doctor._eventkit_check", return_value=("EventKit", "pyobjc", "[green]OK[/green]"))
    def test_warning_is_not_failure(self, _ek: object, _os: object, tmp_path: Path) -> None:
        from ekctl.cli.doctor import run_doctor

        (tmp_path / "config.json").write_text("not json")
        assert run_doctor(_settings(tmp_path)).as_mapping()["status"] == "success"


class TestDoctorRouting:
    def test_main_emits_doctor_envelope(self, capsys: pytest.CaptureFixture[str]) -> None:
        from ekctl.core.envelope import ResultEnvelope

        envelope = ResultEnvelope.success({"checks": []})
        with patch("ekctl.cli.doctor.run_doctor", return_value=envelope) as mock_doctor:
            code = main(["doctor"])
        assert code == exit_codes.SUCCESS
        mock_doctor.assert_called_once()
        assert json.loads(capsys.readouterr().out) == {"status": "success", "checks": []}

    def test_failed_doctor_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        from ekctl.core.envelope import ResultEnvelope

        with patch(
            "ekctl.cli.doctor.run_doctor",
            return_value=ResultEnvelope.error("Doctor checks failed: OS"),
        ):
            assert main(["doctor"]) == exit_codes.GENERAL_ERROR

    def test_doctor_table_goes_to_stderr(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        main(["doctor"])
        captured = capsys.readouterr()
        assert "ekctl doctor" in captured.err
        assert json.loads(captured.out)["status"] in ("success", "error")
