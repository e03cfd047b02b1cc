# Tests for the cortex CLI entry point.
# Created: 2026-10-19

import sys
from unittest.mock import patch

import pytest

from cortex.__main__ import main


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("cortex.__main__.setup_logging") as mock:
        yield mock


class TestMain:
    def test_default_command_is_serve(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["cortex"])
        with patch("cortex.server.run_server") as run:
            main()
        run.assert_called_once_with(host=None, port=None)

    def test_serve_with_overrides(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["cortex", "serve", "--host", "0.0.0.0", "-p", "0"])
        with patch("cortex.server.run_server") as run:
            main()
        run.assert_called_once_with(host="0.0.0.0", port=0)

    def test_up_runs_host(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["cortex", "up", "--discovery-timeout", "5"])

        async def fake_run_host(discovery_timeout=None):
            fake_run_host.timeout = discovery_timeout

        with patch("cortex.__main__.run_host", fake_run_host):
            main()
        assert fake_run_host.timeout == 5.0

    def test_log_level_flag(self, monkeypatch, _no_logging_setup):
        monkeypatch.setattr(sys, "argv", ["cortex", "--log-level", "DEBUG"])
        with patch("cortex.server.run_server"):
            main()
        _no_logging_setup.assert_called_once_with(level="DEBUG")

    def test_unknown_command_rejected(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["cortex", "bogus"])
        with pytest.raises(SystemExit):
            main()

    def test_version(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["cortex", "--version"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "cortex" in capsys.readouterr().out
