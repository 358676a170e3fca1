#!/usr/bin/env python3
"""
Workspace Functions CLI.

Exercises functions through the local dev server.

Usage:
    workspace-functions list
    workspace-functions test helloworld --data '{"name": "Ada"}'
    workspace-functions test-all
    workspace-functions dev
    workspace-functions create my-function "Does something useful"

list/test/test-all start the dev server in a subprocess, wait for /health,
run, then stop it. Pass --url (or --no-server) to target a server that is
already running.
"""

import argparse
import json
import os
import subprocess
import sys
import time
from typing import Any

import httpx

from workspace_functions.config import get_settings
from workspace_functions.dev.scaffold import create_function
from workspace_functions.exceptions import ValidationError

DEFAULT_TEST_DATA = {"test": True}
SERVER_START_TIMEOUT = 15.0
REQUEST_TIMEOUT = 30.0


class TestRunner:
    """Drives the dev server over HTTP."""

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(
        self,
        base_url: str,
        transport: httpx.BaseTransport | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize runner.

        Args:
            base_url: Dev server URL, e.g. http://localhost:8080
            transport: Optional httpx transport (tests)
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, transport=transport, timeout=timeout)
        self.server: subprocess.Popen | None = None

    def start_server(self, port: int) -> None:
        """Start the dev server as a child process."""
        print("🚀 Starting development server...")
        env = {**os.environ, "PORT": str(port)}
        self.server = subprocess.Popen(
            [sys.executable, "-m", "workspace_functions.dev.server"],
            env=env,
        )

    def wait_for_server(self, timeout: float | None = None, interval: float = 0.5) -> bool:
        """
        Poll /health until the server answers.

        Args:
            timeout: Seconds to wait (defaults to SERVER_START_TIMEOUT)
            interval: Seconds between polls

        Returns:
            True once healthy, False on timeout or if the server process exits
        """
        if timeout is None:
            timeout = SERVER_START_TIMEOUT
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.server is not None and self.server.poll() is not None:
                return False
            try:
                response = self.client.get("/health")
                if response.status_code == 200:
                    return True
            except httpx.TransportError:
                pass
            time.sleep(interval)
        return False

    def stop_server(self) -> None:
        if self.server is None:
            return
        self.server.terminate()
        try:
            self.server.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.server.kill()
        self.server = None
        print("\n👋 Server stopped")

    def close(self) -> None:
        self.stop_server()
        self.client.close()

    def get_functions(self) -> list[dict[str, Any]]:
        response = self.client.get("/functions")
        response.raise_for_status()
        return response.json()["functions"]

    def list_functions(self) -> bool:
        """Print the function list. Returns False if the server is unreachable."""
        try:
            functions = self.get_functions()
        except httpx.HTTPError as e:
            print(f"❌ Failed to list functions: {e}")
            return False

        print(f"\n📋 Available Functions ({len(functions)}):")
        for function in functions:
            print(f"  📝 {function['name']} - {function.get('description', '')}")
            if function.get("schedule"):
                print(f"      ⏰ Schedule: {function['schedule']}")
        return True

    def test_function(self, function_name: str, data: dict[str, Any] | None = None) -> bool:
        """
        Run one function and print its result.

        Returns:
            True if the function reported success
        """
        print(f"\n🧪 Testing function: {function_name}")
        payload = DEFAULT_TEST_DATA if data is None else data

        try:
            response = self.client.post(f"/test/{function_name}", json=payload)
            result = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            print("❌ Test Failed:")
            print(f"Error: {e}")
            return False

        if not result.get("success"):
            print("❌ Test Failed:")
            print(f"Error: {result.get('error', f'HTTP {response.status_code}')}")
            if result.get("availableFunctions"):
                print(f"Available: {', '.join(result['availableFunctions'])}")
            return False

        print("✅ Test Result:")
        print(f"Success: {result['success']}")
        if result.get("data") is not None:
            print(f"Data: {json.dumps(result['data'], indent=2, ensure_ascii=False)}")
        if result.get("logs"):
            print(f"Logs: {result['logs']}")
        return True

    def test_all(self) -> bool:
        """Run every registered function with the default test payload."""
        try:
            functions = self.get_functions()
        except httpx.HTTPError as e:
            print(f"❌ Failed to test all functions: {e}")
            return False

        print(f"\n🧪 Testing all {len(functions)} functions...\n")
        results = [self.test_function(function["name"]) for function in functions]
        passed = sum(results)
        print(f"\n{passed}/{len(results)} functions succeeded")
        return all(results)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workspace-functions",
        description="Run and test Workspace functions locally",
    )
    parser.add_argument("--url", help="Use an already running dev server at this URL")
    parser.add_argument(
        "--no-server",
        action="store_true",
        help="Do not start a dev server (use http://localhost:PORT)",
    )
    parser.add_argument("--port", type=int, default=None, help="Dev server port (default: PORT or 8080)")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list", help="List available functions")

    test_parser = subparsers.add_parser("test", help="Test one function")
    test_parser.add_argument("function_name")
    test_parser.add_argument("--data", help="JSON object passed as function data")

    subparsers.add_parser("test-all", help="Test every function")
    subparsers.add_parser("dev", help="Run the dev server until Ctrl+C")

    create_parser = subparsers.add_parser("create", help="Create a new function module")
    create_parser.add_argument("name")
    create_parser.add_argument("description", nargs="?", default="")

    return parser


def _parse_data(raw: str | None) -> dict[str, Any] | None:
    if raw is None:
        return None
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("--data must be a JSON object")
    return data


def _create(name: str, description: str) -> int:
    try:
        path = create_function(name, description)
    except (ValidationError, FileExistsError) as e:
        print(f"❌ {e}")
        return 1

    print(f"✅ Function '{name}' created at {path}")
    print("\nNext steps:")
    print(f"  1. Implement the handler in {path}")
    print(f"  2. Test it: workspace-functions test {name}")
    return 0


def _run_dev(runner: TestRunner) -> int:
    runner.list_functions()
    print(f"\n🌐 Dashboard: {runner.base_url}")
    print("Press Ctrl+C to stop")
    if runner.server is None:
        return 0
    try:
        runner.server.wait()
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    """
    CLI entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        transport: Optional httpx transport (tests)

    Returns:
        Exit code: 0 on success, 1 if any function failed or the server
        could not be reached
    """
    args = build_parser().parse_args(argv)

    if args.command == "create":
        return _create(args.name, args.description)

    try:
        data = _parse_data(getattr(args, "data", None))
    except ValueError as e:
        print(f"❌ Invalid --data: {e}")
        return 1

    port = args.port or get_settings().port
    base_url = args.url or f"http://localhost:{port}"
    runner = TestRunner(base_url, transport=transport)

    try:
        if not (args.url or args.no_server):
            runner.start_server(port)
        if not runner.wait_for_server():
            print(f"❌ Dev server not reachable at {base_url}")
            return 1

        if args.command == "list":
            ok = runner.list_functions()
        elif args.command == "test":
            ok = runner.test_function(args.function_name, data)
        elif args.command == "test-all":
            ok = runner.test_all()
        else:
            return _run_dev(runner)

        return 0 if ok else 1
    except KeyboardInterrupt:
        return 0
    finally:
        runner.close()


if __name__ == "__main__":
    sys.exit(main())
