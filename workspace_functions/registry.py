"""
Function Registry.

Discovers handler modules in a Python package and keeps them by name.

A handler module exposes two module-level attributes:

    config = FunctionConfig(name="helloworld", description="...")

    async def handler(data: dict, context: ExecutionContext) -> ExecutionResult:
        ...

Usage:
    from workspace_functions.registry import FunctionRegistry

    registry = FunctionRegistry()          # scans workspace_functions.functions
    registry.load_all()
    function = registry.get("helloworld")

Loading is lazy and idempotent: the first load_all() scans, later calls
return immediately until reset() clears the registry. A module that fails
to import is logged and skipped; it never aborts the scan.
"""

import importlib
import logging
import pkgutil
import threading
from collections.abc import Iterable, Mapping
from types import ModuleType
from typing import Any

from workspace_functions.exceptions import LoadError
from workspace_functions.models import CloudFunction, FunctionConfig

logger = logging.getLogger(__name__)

DEFAULT_FUNCTIONS_PACKAGE = "workspace_functions.functions"


class FunctionRegistry:
    """
    Mapping from function name to its config and handler.

    Constructed explicitly by each entry point (Cloud Functions main, dev
    server, CLI) and passed to the Dispatcher.
    """

    def __init__(
        self,
        package: str | None = DEFAULT_FUNCTIONS_PACKAGE,
        modules: Iterable[str] | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            package: Dotted package whose submodules are scanned
            modules: Explicit module names to load instead of scanning
        """
        self.package = package
        self.modules = list(modules) if modules is not None else None
        self._functions: dict[str, CloudFunction] = {}
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load_all(self) -> None:
        """Scan the source once and register every valid handler module."""
        if self._loaded:
            return

        with self._lock:
            if self._loaded:
                return

            try:
                module_names = self._discover()
            except Exception as e:
                logger.warning(f"Could not list functions in {self.package}: {e}")
                return

            source = self.package if self.modules is None else ", ".join(module_names)
            logger.info(f"Loading functions from: {source}")
            for module_name in module_names:
                try:
                    module = self._import(module_name)
                except LoadError as e:
                    logger.warning(str(e))
                    continue
                self._register_module(module)

            self._loaded = True
            logger.info(f"Loaded {len(self._functions)} functions")

    def _discover(self) -> list[str]:
        """Return the candidate module names, sorted."""
        if self.modules is not None:
            return list(self.modules)

        package = importlib.import_module(self.package)
        search_path = getattr(package, "__path__", None)
        if search_path is None:
            raise ImportError(f"{self.package} is not a package")

        return sorted(
            f"{self.package}.{info.name}"
            for info in pkgutil.iter_modules(search_path)
            if not info.name.startswith("_")
        )

    def _import(self, module_name: str) -> ModuleType:
        try:
            return importlib.import_module(module_name)
        except Exception as e:
            raise LoadError(module_name, f"{type(e).__name__}: {e}") from e

    def _register_module(self, module: ModuleType) -> None:
        if not self.is_valid(module):
            logger.debug(f"Skipping {module.__name__}: no config/handler pair")
            return

        self.register(
            CloudFunction(
                config=FunctionConfig.from_value(module.config),
                handler=module.handler,
                module=module,
            )
        )

    @staticmethod
    def is_valid(candidate: Any) -> bool:
        """
        Check the handler module shape.

        True iff candidate has a `config` with a non-empty string `name`
        (attribute or mapping key) and a callable `handler`.
        """
        if candidate is None:
            return False

        config = getattr(candidate, "config", None)
        if config is None:
            return False

        if isinstance(config, Mapping):
            name = config.get("name")
        else:
            name = getattr(config, "name", None)

        if not isinstance(name, str) or not name:
            return False

        return callable(getattr(candidate, "handler", None))

    def register(self, function: CloudFunction) -> None:
        """Register a function, replacing any entry with the same name."""
        name = function.config.name
        if name in self._functions:
            logger.warning(f"Replacing existing function: {name}")

        self._functions[name] = function
        logger.info(f"  {name}: {function.config.description}")

    def get(self, name: str) -> CloudFunction | None:
        """Get a function by name, or None if it is not registered."""
        return self._functions.get(name)

    def get_all(self) -> list[CloudFunction]:
        """List all registered functions in registration order."""
        return list(self._functions.values())

    def get_names(self) -> list[str]:
        """List all registered function names."""
        return list(self._functions.keys())

    def reset(self) -> None:
        """Clear all entries so the next load_all() rescans."""
        with self._lock:
            self._functions.clear()
            self._loaded = False
        logger.debug("Function registry reset")

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions


__all__ = ["FunctionRegistry", "DEFAULT_FUNCTIONS_PACKAGE"]
