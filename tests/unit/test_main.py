"""Unit tests for the epaper_calendar command-line entry."""

from unittest.mock import patch

import pytest

from epaper_calendar import __main__ as cli
from epaper_calendar.core.exceptions import ConfigurationError, RenderError

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestCreateParser:
    """Tests for _create_parser."""

    def test_defaults(self):
        args = cli._create_parser().parse_args([])

        assert args.port is None
        assert args.env_file is None

    def test_port_and_env_file(self):
        args = cli._create_parser().parse_args(["--port", "3000", "--env-file", "prod.env"])

        assert args.port == 3000
        assert args.env_file == "prod.env"

    def test_port_must_be_integer(self):
        with pytest.raises(SystemExit):
            cli._create_parser().parse_args(["--port", "abc"])


class TestMain:
    """Tests for main exit codes."""

    def test_main_when_configuration_error_then_exit_2(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["epaper_calendar"])
        with patch.object(cli, "run_server", side_effect=ConfigurationError("missing ha_url")):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == 2
        assert "missing ha_url" in capsys.readouterr().err

    def test_main_when_startup_error_then_exit_1(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["epaper_calendar"])
        with patch.object(cli, "run_server", side_effect=RenderError("fonts missing")):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == 1

    def test_main_when_server_returns_then_exit_0(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["epaper_calendar", "--port", "9000"])
        with patch.object(cli, "run_server") as run_server:
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == 0
        assert run_server.call_args.args[0].port == 9000


def test_run_server_passes_port_override(monkeypatch, tmp_path):
    """Test run_server builds the config from the environment plus CLI overrides."""
    import argparse

    import epaper_calendar

    for key, value in {
        "EPAPER_ICAL_HOLIDAY": "https://example.com/h.ics",
        "EPAPER_ICAL_EVENT": "https://example.com/e.ics",
        "EPAPER_HA_URL": "http://ha.local:8123",
        "EPAPER_HA_TOKEN": "t",
    }.items():
        monkeypatch.setenv(key, value)

    args = argparse.Namespace(port=9100, env_file=str(tmp_path / "none.env"))
    with patch("epaper_calendar.api.server.start_server") as start_server:
        epaper_calendar.run_server(args)

    config = start_server.call_args.args[0]
    assert config.server_port == 9100
    assert config.ha_token == "t"
