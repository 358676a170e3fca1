"""
Pytest configuration and shared fixtures.

Every test runs with ENVIRONMENT=test and fresh settings/resource caches so
no real credentials or config files are needed.
"""

import importlib
import sys
import textwrap
import uuid
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from workspace_functions.config import clear_settings
from workspace_functions.dispatcher import Dispatcher
from workspace_functions.registry import FunctionRegistry
from workspace_functions.resources import clear_resources

_SETTINGS_ENV = (
    "ENVIRONMENT",
    "GOOGLE_CLOUD_PROJECT_ID",
    "OAUTH2_CLIENT_ID",
    "OAUTH2_CLIENT_SECRET",
    "OAUTH2_REFRESH_TOKEN",
    "OAUTH2_REDIRECT_URI",
    "PORT",
    "LOG_LEVEL",
    "FUNCTIONS_PACKAGE",
    "RESOURCES_CONFIG_PATH",
    "BACKUP_SOURCE_FOLDER",
    "CLEANUP_FOLDER_ID",
    "USE_SECRET_MANAGER",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch) -> Generator[None, None, None]:
    """Run each test with a clean test environment and empty caches."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    clear_settings()
    clear_resources()
    yield
    clear_settings()
    clear_resources()


HELLO_MODULE = "workspace_functions.functions.helloworld"


@pytest.fixture
def hello_registry() -> FunctionRegistry:
    """Registry holding only the helloworld function."""
    return FunctionRegistry(modules=[HELLO_MODULE])


@pytest.fixture
def hello_dispatcher(hello_registry) -> Dispatcher:
    return Dispatcher(hello_registry, is_local=True)


@pytest.fixture
def make_package(tmp_path, monkeypatch) -> Generator[Callable[..., str], None, None]:
    """
    Factory that writes a throwaway handler package to disk.

    Usage:
        package = make_package({"alpha": "config = ...\\nhandler = ..."})
        registry = FunctionRegistry(package=package)
    """
    monkeypatch.syspath_prepend(str(tmp_path))
    created: list[str] = []

    def _make(modules: dict[str, str]) -> str:
        package = f"test_functions_{uuid.uuid4().hex[:8]}"
        package_dir = Path(tmp_path) / package
        package_dir.mkdir()
        (package_dir / "__init__.py").write_text("")
        for name, source in modules.items():
            (package_dir / f"{name}.py").write_text(textwrap.dedent(source))
        created.append(package)
        importlib.invalidate_caches()
        return package

    yield _make

    for name in list(sys.modules):
        if any(name == package or name.startswith(f"{package}.") for package in created):
            del sys.modules[name]
