"""
Tests for configuration parsing, logging profiles and the command line.
"""

import logging

import pytest

from RelayChat.__main__ import parse
from RelayChat.config import Config, _env_int
from RelayChat.core.logging import (
    LogConfig,
    auto_configure,
    configure_logging,
    create_testing_config,
    get_logging_manager,
)


class TestEnvInt:
    """Tests for integer environment variables."""

    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv("RELAYCHAT_TEST_INT", raising=False)
        assert _env_int("RELAYCHAT_TEST_INT", 7) == 7

    def test_parses_value(self, monkeypatch):
        monkeypatch.setenv("RELAYCHAT_TEST_INT", "250")
        assert _env_int("RELAYCHAT_TEST_INT", 7) == 250

    @pytest.mark.parametrize("raw", ["abc", "", "0", "1.5"])
    def test_invalid_or_zero_uses_default(self, monkeypatch, raw):
        monkeypatch.setenv("RELAYCHAT_TEST_INT", raw)
        assert _env_int("RELAYCHAT_TEST_INT", 7) == 7


class TestConfig:
    """Tests for the configuration snapshot."""

    def test_get_config_keys(self):
        values = Config.get_config()
        for key in ("PORT", "WS_PORT", "MAX_FILE_SIZE", "UPLOAD_DIR", "MAX_MESSAGE_HISTORY"):
            assert key in values

    def test_defaults_are_sane(self):
        assert Config.MAX_MESSAGE_HISTORY >= 1
        assert Config.MAX_FILE_SIZE >= 1


class TestLogging:
    """Tests for the logging profiles."""

    def teardown_method(self):
        configure_logging(create_testing_config())

    def test_testing_profile_has_no_file_output(self):
        config = auto_configure("testing")

        assert config.file_output is False
        assert get_logging_manager().config is config

    def test_unknown_profile_falls_back_to_development(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = auto_configure("staging")
        assert config.log_dir == "./logs/dev"

    def test_reconfigure_replaces_handlers(self, tmp_path):
        root = logging.getLogger()
        config = LogConfig(level="WARNING", log_dir=str(tmp_path), file_output=True)

        configure_logging(config)
        first = len(root.handlers)
        configure_logging(config)

        assert len(root.handlers) == first
        assert root.level == logging.WARNING
        assert (tmp_path / "relaychat.log").exists()

    def test_component_levels(self):
        configure_logging(LogConfig(file_output=False, component_levels={"websockets": "ERROR"}))
        assert logging.getLogger("websockets").level == logging.ERROR


class TestCommandLine:
    """Tests for argument parsing."""

    def test_server_command(self):
        args = parse(["server", "--port", "9000", "--ws-port", "9001", "--max-history", "5"])

        assert args.command == "server"
        assert args.port == 9000
        assert args.ws_port == 9001
        assert args.max_history == 5

    def test_relay_only_defaults(self):
        args = parse(["relay-only"])
        assert args.ws_port == Config.WS_PORT

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse([])
