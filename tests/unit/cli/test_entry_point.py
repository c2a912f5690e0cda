"""
Tests for the nodeboot entry point.

These run whole process starts through run(), with the platform lifecycle
and the control endpoint replaced by fakes.
"""

import logging
import os
from unittest.mock import MagicMock

import httpx
import pytest

from nodeboot.cli import app
from nodeboot.cli.dispatcher import Mode, select_mode
from nodeboot.cli.invocation import parse_invocation
from nodeboot.control import RemoteCommandClient
from nodeboot.errors import ErrorCodes, LifecycleError
from nodeboot.lifecycle import PlatformLifecycle


@pytest.fixture
def lifecycle():
    fake = MagicMock(spec=PlatformLifecycle)
    fake.transition.return_value = 0
    return fake


class FakeControlEndpoint:
    """Records forwarded commands and answers with a fixed payload."""

    def __init__(self, payload=None, error=None):
        self.payload = payload or {"recognized": True, "output": ""}
        self.error = error
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        return httpx.Response(200, json=self.payload)

    def client_factory(self, address):
        return RemoteCommandClient(address, transport=httpx.MockTransport(self.handler))


class TestInformationalModes:
    """Test help and system queries."""

    def test_help(self, tmp_path, lifecycle, capsys):
        target = tmp_path / "never-created"

        code = app.run(["--help", "--data-dir", str(target)], lifecycle=lifecycle)

        out = capsys.readouterr().out
        assert code == 0
        assert "Usage: nodeboot [OPTIONS] [DAEMON_COMMAND]..." in out
        assert "--detach" in out
        assert "--run-as-service" not in out
        assert not target.exists()
        lifecycle.transition.assert_not_called()

    def test_version(self, tmp_path, capsys):
        target = tmp_path / "never-created"

        code = app.run(["--version", "--data-dir", str(target)])

        assert code == 0
        assert capsys.readouterr().out.startswith("nodeboot v")
        assert not target.exists()

    def test_os_version(self, capsys):
        assert app.run(["--os-version"]) == 0
        assert capsys.readouterr().out.startswith("OS: ")

    def test_both_queries(self, capsys):
        assert app.run(["--os-version", "--version"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("nodeboot v")
        assert lines[1].startswith("OS: ")


class TestParseErrors:
    """Test rejection of malformed command lines."""

    def test_unknown_option(self, lifecycle, capsys):
        assert app.run(["--no-such-option"], lifecycle=lifecycle) == 1
        assert "No such option" in capsys.readouterr().err
        lifecycle.transition.assert_not_called()

    def test_bad_integer(self, capsys):
        assert app.run(["--log-level", "loud"]) == 1
        assert "loud" in capsys.readouterr().err


class TestRemoteCommand:
    """Test forwarding a command to a running instance."""

    def test_recognized_command(self, data_dir, lifecycle, capsys):
        endpoint = FakeControlEndpoint({"recognized": True, "output": "Height: 42"})

        code = app.run(
            ["--data-dir", str(data_dir), "print_height"],
            lifecycle=lifecycle,
            client_factory=endpoint.client_factory,
        )

        assert code == 0
        assert capsys.readouterr().out.strip() == "Height: 42"
        assert str(endpoint.requests[0].url) == "http://127.0.0.1:18081/command"
        lifecycle.transition.assert_not_called()

    def test_configured_address_is_used(self, data_dir, capsys):
        (data_dir / "nodeboot.yaml").write_text("rpc-bind-port: 28081\n")
        endpoint = FakeControlEndpoint()

        code = app.run(
            ["--data-dir", str(data_dir), "--rpc-bind-ip", "10.0.0.5", "status"],
            client_factory=endpoint.client_factory,
        )

        assert code == 0
        assert str(endpoint.requests[0].url) == "http://10.0.0.5:28081/command"

    def test_command_beats_detach(self, data_dir, lifecycle):
        endpoint = FakeControlEndpoint()

        code = app.run(
            ["--data-dir", str(data_dir), "--detach", "print_height"],
            lifecycle=lifecycle,
            client_factory=endpoint.client_factory,
        )

        assert code == 0
        assert len(endpoint.requests) == 1
        lifecycle.transition.assert_not_called()

    def test_unknown_command(self, data_dir, capsys):
        endpoint = FakeControlEndpoint({"recognized": False, "output": ""})

        code = app.run(
            ["--data-dir", str(data_dir), "frobnicate"],
            client_factory=endpoint.client_factory,
        )

        assert code == 1
        assert "Unknown command" in capsys.readouterr().err

    def test_unreachable_instance(self, data_dir, capsys):
        endpoint = FakeControlEndpoint(
            error=lambda request: httpx.ConnectError("Connection refused", request=request)
        )

        code = app.run(
            ["--data-dir", str(data_dir), "print_height"],
            client_factory=endpoint.client_factory,
        )

        err = capsys.readouterr().err
        assert code == 1
        assert "Connection error" in err
        assert "Unknown command" not in err

    @pytest.mark.parametrize(
        "args, fragment",
        [
            (["--rpc-bind-ip", "999.999.999.999"], "Invalid IP: 999.999.999.999"),
            (["--rpc-bind-ip", "abc"], "Invalid IP: abc"),
            (["--rpc-bind-port", "abc"], "Invalid port: abc"),
            (["--rpc-bind-port", "²"], "Invalid port: ²"),
        ],
    )
    def test_invalid_address_makes_no_request(self, data_dir, capsys, args, fragment):
        endpoint = FakeControlEndpoint()

        code = app.run(
            ["--data-dir", str(data_dir), *args, "print_height"],
            client_factory=endpoint.client_factory,
        )

        assert code == 1
        assert fragment in capsys.readouterr().err
        assert endpoint.requests == []


class TestNodeStart:
    """Test handing the process to the lifecycle."""

    def test_interactive(self, data_dir, lifecycle):
        assert app.run(["--data-dir", str(data_dir)], lifecycle=lifecycle) == 0

        dispatch, log = lifecycle.transition.call_args.args
        assert dispatch.mode is Mode.INTERACTIVE
        assert log.sinks.console is True
        assert log.sinks.file_path == data_dir / "nodeboot.log"

    def test_detach_logs_to_file_only(self, data_dir, lifecycle):
        assert app.run(["--data-dir", str(data_dir), "--detach"], lifecycle=lifecycle) == 0

        dispatch, log = lifecycle.transition.call_args.args
        assert dispatch.mode is Mode.DETACH
        assert log.sinks.console is False

    def test_log_level_source_is_logged(self, data_dir, lifecycle):
        assert app.run(
            ["--data-dir", str(data_dir), "--log-level", "1"], lifecycle=lifecycle
        ) == 0

        log_text = (data_dir / "nodeboot.log").read_text(encoding="utf-8")
        assert "Log level 1 from command-line" in log_text

    def test_informational_dispatch_never_starts_node(self, lifecycle):
        dispatch = select_mode(parse_invocation(["--help"]), None)

        with pytest.raises(LifecycleError) as exc_info:
            app.start_node(dispatch, lifecycle)

        assert exc_info.value.error_code == ErrorCodes.LIFE_UNSUPPORTED_MODE
        lifecycle.transition.assert_not_called()

    def test_invalid_log_level_is_not_fatal(self, data_dir, lifecycle, caplog):
        with caplog.at_level(logging.WARNING, logger="nodeboot"):
            code = app.run(
                ["--data-dir", str(data_dir), "--log-level", "99"], lifecycle=lifecycle
            )

        assert code == 0
        _, log = lifecycle.transition.call_args.args
        assert log.level == 0
        assert "Wrong log level value: 99" in caplog.text
        log_text = (data_dir / "nodeboot.log").read_text(encoding="utf-8")
        assert "Wrong log level value: 99" in log_text

    def test_config_error_stops_before_lifecycle(self, data_dir, lifecycle, capsys):
        (data_dir / "nodeboot.yaml").write_text("log-level: [1, 2\n")

        code = app.run(["--data-dir", str(data_dir)], lifecycle=lifecycle)

        assert code == 1
        assert "Configuration error" in capsys.readouterr().err
        lifecycle.transition.assert_not_called()

    def test_null_config_value_is_config_error(self, data_dir, lifecycle, capsys):
        (data_dir / "nodeboot.yaml").write_text("log-level: null\n")

        code = app.run(["--data-dir", str(data_dir)], lifecycle=lifecycle)

        err = capsys.readouterr().err
        assert code == 1
        assert "Configuration error: Missing value for 'log-level'" in err
        assert "Unexpected error" not in err
        lifecycle.transition.assert_not_called()

    def test_log_file_is_a_directory(self, data_dir, lifecycle, tmp_path, monkeypatch):
        """An unopenable log file falls back instead of blocking the start."""
        fallback = tmp_path / "fallback.log"
        monkeypatch.setattr("nodeboot.logging.initializer.default_log_file", lambda: fallback)
        (data_dir / "logs").mkdir()

        code = app.run(
            ["--data-dir", str(data_dir), "--log-file", "logs"], lifecycle=lifecycle
        )

        assert code == 0
        _, log = lifecycle.transition.call_args.args
        assert log.sinks.file_path == fallback
        assert "Cannot open log file" in fallback.read_text(encoding="utf-8")

    def test_lifecycle_error(self, data_dir, lifecycle, capsys):
        lifecycle.transition.side_effect = LifecycleError(
            "Cannot fork daemon process", error_code=ErrorCodes.LIFE_FORK_FAILED
        )

        code = app.run(["--data-dir", str(data_dir), "--detach"], lifecycle=lifecycle)

        assert code == 1
        assert "Lifecycle error: Cannot fork daemon process" in capsys.readouterr().err
        log_text = (data_dir / "nodeboot.log").read_text(encoding="utf-8")
        assert "Cannot fork daemon process [LIFE-ForkFailed]" in log_text

    def test_unexpected_error(self, data_dir, lifecycle, capsys):
        lifecycle.transition.side_effect = RuntimeError("boom")

        code = app.run(["--data-dir", str(data_dir), "--detach"], lifecycle=lifecycle)

        assert code == 1
        assert "Unexpected error: boom" in capsys.readouterr().err
        log_text = (data_dir / "nodeboot.log").read_text(encoding="utf-8")
        assert "Traceback" in log_text

    def test_runtime_load_failure(self, data_dir, monkeypatch, capsys):
        monkeypatch.setenv("NODEBOOT_RUNTIME", "nodeboot_missing_module:build")

        code = app.run(["--data-dir", str(data_dir), "--detach"])

        assert code == 1
        assert "Cannot load node runtime" in capsys.readouterr().err


class TestMain:
    """Test the console script wrapper."""

    def test_exit_code_and_dotenv(self, tmp_path, monkeypatch, capsys):
        target = tmp_path / "from-dotenv"
        (tmp_path / ".env").write_text(f"NODEBOOT_DATA_DIR={target}\n")
        monkeypatch.chdir(tmp_path)
        # load_dotenv writes to os.environ; keep that out of other tests
        monkeypatch.setattr(os, "environ", os.environ.copy())
        monkeypatch.setattr("sys.argv", ["nodeboot", "status"])
        endpoint = FakeControlEndpoint({"recognized": True, "output": "ok"})
        monkeypatch.setattr(app, "default_client_factory", endpoint.client_factory)

        with pytest.raises(SystemExit) as exc_info:
            app.main()

        assert exc_info.value.code == 0
        assert target.is_dir()
        assert capsys.readouterr().out.strip() == "ok"
