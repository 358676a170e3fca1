"""Tests for workspace_functions/dev/cli.py - CLI test runner."""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from workspace_functions.dev import cli
from workspace_functions.dev.cli import TestRunner, build_parser, main

FUNCTIONS = [
    {"name": "helloworld", "description": "Hello World function for testing", "schedule": None},
    {"name": "check-unread-emails", "description": "Check unread", "schedule": "*/30 * * * *"},
]


def _dev_server(failing: set[str] | None = None, calls: list | None = None) -> httpx.MockTransport:
    """Fake dev server answering /health, /functions and /test/<name>."""
    failing = failing or set()

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append((request.method, request.url.path))
        path = request.url.path
        if path == "/health":
            return httpx.Response(200, json={"status": "healthy", "functions": len(FUNCTIONS)})
        if path == "/functions":
            return httpx.Response(200, json={"functions": FUNCTIONS, "count": len(FUNCTIONS)})
        if path.startswith("/test/"):
            name = path.removeprefix("/test/")
            if name not in {f["name"] for f in FUNCTIONS}:
                return httpx.Response(
                    404, json={"success": False, "error": f"Function '{name}' not found"}
                )
            if name in failing:
                return httpx.Response(200, json={"success": False, "error": "upstream failed"})
            data = json.loads(request.content or b"{}")
            return httpx.Response(200, json={"success": True, "data": {"input": data}})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


class TestParser:
    """Tests for build_parser."""

    def test_test_command(self):
        args = build_parser().parse_args(["test", "helloworld", "--data", '{"a": 1}'])

        assert args.command == "test"
        assert args.function_name == "helloworld"
        assert args.data == '{"a": 1}'

    def test_create_command_optional_description(self):
        args = build_parser().parse_args(["create", "my-function"])

        assert args.name == "my-function"
        assert args.description == ""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestTestRunner:
    """Tests for TestRunner against a fake server."""

    def test_list_functions(self, capsys):
        runner = TestRunner("http://dev", transport=_dev_server())

        assert runner.list_functions() is True

        out = capsys.readouterr().out
        assert "Available Functions (2)" in out
        assert "helloworld" in out
        assert "Schedule: */30 * * * *" in out

    def test_test_function_sends_default_data(self, capsys):
        runner = TestRunner("http://dev", transport=_dev_server())

        assert runner.test_function("helloworld") is True
        assert '"test": true' in capsys.readouterr().out

    def test_test_function_failure(self, capsys):
        runner = TestRunner("http://dev", transport=_dev_server(failing={"helloworld"}))

        assert runner.test_function("helloworld", {}) is False
        assert "upstream failed" in capsys.readouterr().out

    def test_test_unknown_function(self, capsys):
        runner = TestRunner("http://dev", transport=_dev_server())

        assert runner.test_function("missing") is False
        assert "not found" in capsys.readouterr().out

    def test_test_all(self):
        calls = []
        runner = TestRunner("http://dev", transport=_dev_server(calls=calls))

        assert runner.test_all() is True
        assert ("POST", "/test/helloworld") in calls
        assert ("POST", "/test/check-unread-emails") in calls

    def test_wait_for_server_times_out(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        runner = TestRunner("http://dev", transport=httpx.MockTransport(refuse))

        assert runner.wait_for_server(timeout=0.05, interval=0.01) is False

    def test_wait_for_server_process_exited(self):
        runner = TestRunner("http://dev", transport=_dev_server())
        runner.server = MagicMock()
        runner.server.poll.return_value = 1

        assert runner.wait_for_server(timeout=1) is False

    def test_start_and_stop_server(self):
        runner = TestRunner("http://dev", transport=_dev_server())

        with patch.object(cli.subprocess, "Popen") as popen:
            runner.start_server(9090)
            process = popen.return_value
            runner.stop_server()

        command = popen.call_args.args[0]
        assert command[1:] == ["-m", "workspace_functions.dev.server"]
        assert popen.call_args.kwargs["env"]["PORT"] == "9090"
        process.terminate.assert_called_once()
        assert runner.server is None


class TestMain:
    """Tests for main() with --url so no server is spawned."""

    def test_list(self):
        assert main(["--url", "http://dev", "list"], transport=_dev_server()) == 0

    def test_test_with_data(self, capsys):
        code = main(
            ["--url", "http://dev", "test", "helloworld", "--data", '{"name": "Ada"}'],
            transport=_dev_server(),
        )

        assert code == 0
        assert '"name": "Ada"' in capsys.readouterr().out

    def test_test_failure_exit_code(self):
        code = main(
            ["--url", "http://dev", "test", "helloworld"],
            transport=_dev_server(failing={"helloworld"}),
        )

        assert code == 1

    def test_test_all_with_failure(self):
        code = main(
            ["--url", "http://dev", "test-all"],
            transport=_dev_server(failing={"check-unread-emails"}),
        )

        assert code == 1

    def test_invalid_data(self, capsys):
        code = main(["--url", "http://dev", "test", "helloworld", "--data", "[1]"])

        assert code == 1
        assert "Invalid --data" in capsys.readouterr().out

    def test_server_unreachable(self, capsys):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with patch.object(cli, "SERVER_START_TIMEOUT", 0.05), patch.object(cli.time, "sleep"):
            code = main(
                ["--url", "http://dev", "list"], transport=httpx.MockTransport(refuse)
            )

        assert code == 1
        assert "not reachable" in capsys.readouterr().out

    def test_spawns_server_without_url(self):
        with patch.object(TestRunner, "start_server") as start, patch.object(
            TestRunner, "stop_server"
        ):
            code = main(["--port", "9191", "list"], transport=_dev_server())

        assert code == 0
        start.assert_called_once_with(9191)

    def test_create(self, tmp_path, capsys):
        with patch.object(cli, "create_function", return_value=tmp_path / "my_function.py") as create:
            code = main(["create", "my-function", "Does things"])

        assert code == 0
        create.assert_called_once_with("my-function", "Does things")
        assert "created" in capsys.readouterr().out

    def test_create_existing(self, capsys):
        with patch.object(cli, "create_function", side_effect=FileExistsError("already exists")):
            code = main(["create", "helloworld"])

        assert code == 1
        assert "already exists" in capsys.readouterr().out
