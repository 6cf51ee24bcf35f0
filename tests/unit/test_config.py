"""
Unit tests for server configuration and the CLI argument layer.
"""

import pytest

from entrystore.__main__ import build_parser, config_from_args, main
from entrystore.config import ServerConfig


class TestDefaults:
    """Tests for ServerConfig defaults."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.data_file == "data.json"
        assert config.timeout is None
        assert config.max_connections is None
        assert config.log_format == "text"

    def test_defaults_are_valid(self):
        ServerConfig().validate()


class TestFromEnv:
    """Tests for ServerConfig.from_env()."""

    def test_no_variables(self, monkeypatch):
        for name in ("HOST", "PORT", "DATA_FILE", "MAX_CONNECTIONS", "TIMEOUT",
                     "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(f"ENTRYSTORE_{name}", raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("ENTRYSTORE_HOST", "127.0.0.1")
        monkeypatch.setenv("ENTRYSTORE_PORT", "9000")
        monkeypatch.setenv("ENTRYSTORE_DATA_FILE", "/tmp/entries.json")
        monkeypatch.setenv("ENTRYSTORE_MAX_CONNECTIONS", "16")
        monkeypatch.setenv("ENTRYSTORE_TIMEOUT", "2.5")
        monkeypatch.setenv("ENTRYSTORE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ENTRYSTORE_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.data_file == "/tmp/entries.json"
        assert config.max_connections == 16
        assert config.timeout == 2.5
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("ENTRYSTORE_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()


class TestValidate:
    """Tests for ServerConfig.validate()."""

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"buffer_size": 512},
        {"timeout": 0},
        {"timeout": -1.0},
        {"max_connections": 0},
        {"data_file": ""},
        {"log_format": "xml"},
    ])
    def test_invalid(self, overrides: dict):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    @pytest.mark.parametrize("port", [0, 1, 8080, 65535])
    def test_valid_ports(self, port: int):
        ServerConfig(port=port).validate()


class TestCLI:
    """Tests for the argument parser."""

    def test_defaults_come_from_config(self):
        defaults = ServerConfig(port=9100, data_file="x.json")
        args = build_parser(defaults).parse_args([])

        config = config_from_args(args)

        assert config.port == 9100
        assert config.data_file == "x.json"

    def test_flags_override_defaults(self):
        args = build_parser(ServerConfig(port=9100)).parse_args([
            "--port", "3000",
            "--host", "127.0.0.1",
            "--data-file", "todo.json",
            "--max-connections", "4",
            "--timeout", "1.5",
            "--log-level", "debug",
            "--log-format", "json",
        ])

        config = config_from_args(args)

        assert config.port == 3000
        assert config.host == "127.0.0.1"
        assert config.data_file == "todo.json"
        assert config.max_connections == 4
        assert config.timeout == 1.5
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_unknown_log_format_rejected(self):
        with pytest.raises(SystemExit):
            build_parser(ServerConfig()).parse_args(["--log-format", "xml"])


class TestMain:
    """Tests for main() exit codes that do not start a server."""

    def test_invalid_port_exits_1(self, capsys):
        assert main(["--port", "70000"]) == 1
        assert "Invalid port" in capsys.readouterr().err

    def test_invalid_environment_exits_1(self, monkeypatch, capsys):
        monkeypatch.setenv("ENTRYSTORE_TIMEOUT", "soon")

        assert main([]) == 1
        assert "environment" in capsys.readouterr().err
