"""
Unit tests for the command-line entry point.
"""

import socket

import pytest

from userapi.__main__ import build_parser, config_from_args, main
from userapi.config import ServerConfig


class TestCLI:

    def test_defaults_come_from_config(self):
        defaults = ServerConfig(port=9000, log_format="json")
        args = build_parser(defaults).parse_args([])

        config = config_from_args(args, defaults)

        assert config.port == 9000
        assert config.log_format == "json"
        assert config.max_workers == defaults.max_workers

    def test_flags_override(self):
        defaults = ServerConfig()
        args = build_parser(defaults).parse_args(
            ["-H", "0.0.0.0", "-p", "3000", "-w", "2", "-l", "debug", "--log-format", "json"]
        )

        config = config_from_args(args, defaults)

        assert (config.host, config.port) == ("0.0.0.0", 3000)
        assert (config.min_workers, config.max_workers) == (2, 2)
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "userapi 1.0.0" in capsys.readouterr().out

    def test_invalid_config_exits_1(self, capsys, monkeypatch):
        monkeypatch.delenv("USERAPI_WORKERS", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            main(["--workers", "0"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_environment_exits_1(self, capsys, monkeypatch):
        monkeypatch.setenv("USERAPI_PORT", "not-a-port")
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "invalid environment" in capsys.readouterr().err

    def test_port_in_use_exits_1(self, capsys, monkeypatch):
        for name in ("HOST", "PORT", "WORKERS", "TIMEOUT", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"USERAPI_{name}", raising=False)

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen(1)
            port = taken.getsockname()[1]

            with pytest.raises(SystemExit) as exc_info:
                main(["--port", str(port), "--workers", "1"])

        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err
