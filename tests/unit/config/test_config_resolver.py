"""Tests for configuration resolution and the configuration file loader."""

from pathlib import Path

import pytest

from nodeboot.cli.invocation import parse_invocation
from nodeboot.config.models import ValueSource
from nodeboot.config.resolver import ConfigResolver, ensure_directory, load_config_file
from nodeboot.errors import ConfigError, ConfigFileError, ErrorCodes


def write_config(directory: Path, text: str, name: str = "nodeboot.yaml") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    """Test resolution without a configuration file."""

    def test_defaults_apply(self, data_dir, resolve):
        """Every option falls back to its registry default."""
        _, config = resolve("--data-dir", str(data_dir))

        assert config.data_dir == data_dir
        assert config.config_file == data_dir / "nodeboot.yaml"
        assert config.config_file_loaded is False
        assert config.log_file == data_dir / "nodeboot.log"
        assert config.log_level == 0
        assert config.rpc_bind_ip == "127.0.0.1"
        assert config.rpc_bind_port == "18081"
        assert config.p2p_bind_port == 18080
        assert config.add_peer == ()
        assert config.detach is False
        assert config.source_of("log-level") is ValueSource.DEFAULT

    def test_command_line_source_is_recorded(self, data_dir, resolve):
        _, config = resolve("--data-dir", str(data_dir), "--log-level", "1")
        assert config.source_of("log-level") is ValueSource.COMMAND_LINE
        assert config.source_of("rpc-bind-ip") is ValueSource.DEFAULT

    def test_positional_tokens_become_command(self, data_dir, resolve):
        _, config = resolve("--data-dir", str(data_dir), "print_height")
        assert config.daemon_command == ("print_height",)

    def test_value_accessor_uses_option_names(self, data_dir, resolve):
        _, config = resolve("--data-dir", str(data_dir), "--p2p-bind-port", "28080")
        assert config.value("p2p-bind-port") == 28080
        assert config.value("p2p_bind_port") == 28080


class TestPrecedence:
    """Test defaults < file < command line."""

    def test_file_overrides_default(self, data_dir, resolve):
        write_config(data_dir, "log-level: 2\nrpc-bind-port: 28081\n")

        _, config = resolve("--data-dir", str(data_dir))

        assert config.config_file_loaded is True
        assert config.log_level == 2
        assert config.rpc_bind_port == "28081"
        assert config.source_of("log-level") is ValueSource.FILE

    def test_command_line_overrides_file(self, data_dir, resolve):
        """A command-line value wins even though the file is read afterwards."""
        write_config(data_dir, "log-level: 2\n")

        _, config = resolve("--log-level", "3", "--data-dir", str(data_dir))

        assert config.log_level == 3
        assert config.source_of("log-level") is ValueSource.COMMAND_LINE

    def test_list_from_file(self, data_dir, resolve):
        write_config(data_dir, "add-peer:\n  - '10.0.0.1:18080'\n  - '10.0.0.2:18080'\n")
        _, config = resolve("--data-dir", str(data_dir))
        assert config.add_peer == ("10.0.0.1:18080", "10.0.0.2:18080")

    def test_scalar_for_list_option(self, data_dir, resolve):
        write_config(data_dir, "add-peer: '10.0.0.1:18080'\n")
        _, config = resolve("--data-dir", str(data_dir))
        assert config.add_peer == ("10.0.0.1:18080",)

    def test_repeated_command_line_option(self, data_dir, resolve):
        write_config(data_dir, "add-peer: '10.0.0.1:18080'\n")
        _, config = resolve(
            "--data-dir",
            str(data_dir),
            "--add-peer",
            "10.0.0.3:18080",
            "--add-peer",
            "10.0.0.4:18080",
        )
        assert config.add_peer == ("10.0.0.3:18080", "10.0.0.4:18080")


class TestPaths:
    """Test data directory and relative path handling."""

    def test_relative_config_file_resolves_against_data_dir(
        self, data_dir, tmp_path, monkeypatch, resolve
    ):
        """The working directory never takes part in resolution."""
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        write_config(elsewhere, "log-level: 4\n", name="custom.yaml")
        write_config(data_dir, "log-level: 1\n", name="custom.yaml")
        monkeypatch.chdir(elsewhere)

        _, config = resolve("--data-dir", str(data_dir), "--config-file", "custom.yaml")

        assert config.config_file == data_dir / "custom.yaml"
        assert config.log_level == 1

    def test_absolute_config_file(self, data_dir, tmp_path, resolve):
        path = write_config(tmp_path, "log-level: 1\n", name="abs.yaml")
        _, config = resolve("--data-dir", str(data_dir), "--config-file", str(path))
        assert config.config_file == path
        assert config.log_level == 1

    def test_relative_log_file_resolves_against_data_dir(self, data_dir, resolve):
        _, config = resolve("--data-dir", str(data_dir), "--log-file", "logs/node.log")
        assert config.log_file == data_dir / "logs" / "node.log"

    def test_relative_data_dir_is_made_absolute(self, tmp_path, monkeypatch, resolve):
        monkeypatch.chdir(tmp_path)
        _, config = resolve("--data-dir", "relative-data")
        assert config.data_dir.is_absolute()
        assert config.data_dir.name == "relative-data"
        assert config.data_dir.is_dir()

    def test_missing_data_dir_is_created(self, tmp_path, resolve):
        target = tmp_path / "new" / "data"
        _, config = resolve("--data-dir", str(target))
        assert target.is_dir()
        assert config.data_dir == target

    def test_directory_creation_is_idempotent(self, tmp_path):
        target = tmp_path / "twice"
        ensure_directory(target)
        ensure_directory(target)
        assert target.is_dir()

    def test_directory_creation_failure(self, tmp_path, resolve):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ConfigError) as exc_info:
            resolve("--data-dir", str(blocker / "data"))

        assert exc_info.value.error_code == ErrorCodes.CONF_DATA_DIR_FAILED
        assert str(blocker) in exc_info.value.message

    def test_data_dir_from_environment(self, tmp_path, monkeypatch, resolve):
        target = tmp_path / "from-env"
        monkeypatch.setenv("NODEBOOT_DATA_DIR", str(target))
        _, config = resolve()
        assert config.data_dir == target

    def test_command_line_data_dir_beats_environment(
        self, data_dir, tmp_path, monkeypatch, resolve
    ):
        monkeypatch.setenv("NODEBOOT_DATA_DIR", str(tmp_path / "from-env"))
        _, config = resolve("--data-dir", str(data_dir))
        assert config.data_dir == data_dir

    def test_platform_default_data_dir(self, tmp_path, monkeypatch, resolve):
        target = tmp_path / "platform-default"
        monkeypatch.setattr(
            "nodeboot.config.resolver.default_data_dir", lambda: target
        )
        _, config = resolve()
        assert config.data_dir == target

    def test_resolve_without_creating_directory(self, tmp_path):
        target = tmp_path / "not-created"
        invocation = parse_invocation(["--data-dir", str(target)])
        ConfigResolver().resolve(invocation, create_data_dir=False)
        assert not target.exists()


class TestConfigFileErrors:
    """Test rejection of bad configuration files."""

    def test_missing_file_is_skipped(self, data_dir, resolve):
        _, config = resolve("--data-dir", str(data_dir), "--config-file", "absent.yaml")
        assert config.config_file_loaded is False

    def test_empty_file(self, data_dir):
        path = write_config(data_dir, "")
        assert load_config_file(path) == {}

    def test_malformed_yaml(self, data_dir, resolve):
        path = write_config(data_dir, "log-level: [1, 2\n")

        with pytest.raises(ConfigFileError) as exc_info:
            resolve("--data-dir", str(data_dir))

        assert exc_info.value.error_code == ErrorCodes.CONF_INVALID_SYNTAX
        assert str(path) in exc_info.value.message

    def test_non_mapping_document(self, data_dir):
        path = write_config(data_dir, "- log-level\n- 2\n")
        with pytest.raises(ConfigFileError) as exc_info:
            load_config_file(path)
        assert exc_info.value.error_code == ErrorCodes.CONF_INVALID_STRUCTURE

    def test_unknown_key(self, data_dir):
        path = write_config(data_dir, "log-levle: 2\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(path)
        assert exc_info.value.error_code == ErrorCodes.CONF_UNKNOWN_OPTION
        assert "log-levle" in exc_info.value.message

    def test_command_line_only_key(self, data_dir):
        """Options outside the settings group cannot come from the file."""
        path = write_config(data_dir, "detach: true\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(path)
        assert exc_info.value.error_code == ErrorCodes.CONF_UNKNOWN_OPTION
        assert exc_info.value.suggestion == "Pass --detach on the command line instead"

    def test_wrong_value_type(self, data_dir):
        path = write_config(data_dir, "log-level: loud\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(path)
        assert exc_info.value.error_code == ErrorCodes.CONF_INVALID_VALUE
        assert "log-level" in exc_info.value.message

    @pytest.mark.parametrize("text", ["log-level: null\n", "log-file: ~\n", "add-peer:\n"])
    def test_null_value(self, data_dir, resolve, text):
        """An option given without a value is rejected, naming the file."""
        path = write_config(data_dir, text)

        with pytest.raises(ConfigError) as exc_info:
            resolve("--data-dir", str(data_dir))

        assert exc_info.value.error_code == ErrorCodes.CONF_INVALID_VALUE
        assert str(path) in exc_info.value.message
        assert exc_info.value.details["file_path"] == str(path)

    def test_nested_value(self, data_dir):
        path = write_config(data_dir, "rpc-bind-ip:\n  host: 127.0.0.1\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config_file(path)
        assert exc_info.value.error_code == ErrorCodes.CONF_INVALID_VALUE

    def test_unreadable_file(self, data_dir):
        directory = data_dir / "nodeboot.yaml"
        directory.mkdir()
        with pytest.raises(ConfigFileError) as exc_info:
            load_config_file(directory)
        assert exc_info.value.error_code == ErrorCodes.CONF_FILE_UNREADABLE
