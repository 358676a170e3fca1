"""
Dispatcher.

Resolves a function by name, builds its ExecutionContext and runs the
handler, turning every outcome into an ExecutionResult. The HTTP, Pub/Sub
and CLI entry points all go through Dispatcher.dispatch().
"""

import asyncio
import inspect
import logging
import secrets
import string
import time
from collections.abc import Mapping
from typing import Any

from workspace_functions.exceptions import HandlerError, NotFoundError
from workspace_functions.models import CloudFunction, ExecutionContext, ExecutionResult
from workspace_functions.registry import FunctionRegistry

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"
HANDLER_ERROR = "HANDLER_ERROR"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_request_id(prefix: str = "req") -> str:
    """Generate an opaque request id like ``req_1718000000000_k3j9x0a1b``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class Dispatcher:
    """
    Routes a (function name, payload) pair to its handler.

    Holds no state of its own beyond the registry reference and the default
    locality flag.
    """

    def __init__(self, registry: FunctionRegistry, is_local: bool = False) -> None:
        """Initialize dispatcher.

        Args:
            registry: Registry to resolve function names against
            is_local: Default ExecutionContext.is_local value
        """
        self.registry = registry
        self.is_local = is_local

    def available_functions(self) -> list[str]:
        """Names currently registered, loading the registry if needed."""
        self.registry.load_all()
        return self.registry.get_names()

    def resolve(self, function_name: str) -> CloudFunction:
        """
        Look up a function, loading the registry if needed.

        Raises:
            NotFoundError: If no function is registered under that name
        """
        self.registry.load_all()
        function = self.registry.get(function_name)
        if function is None:
            raise NotFoundError(
                function_name, available_functions=self.registry.get_names()
            )
        return function

    async def dispatch(
        self,
        function_name: str,
        data: Mapping[str, Any] | None = None,
        request_id: str | None = None,
        is_local: bool | None = None,
    ) -> ExecutionResult:
        """
        Execute a function and return its normalized result.

        Never raises for an unknown name or a failing handler; both come back
        as success=False results with error_code NOT_FOUND / HANDLER_ERROR.

        Args:
            function_name: Registered function name
            data: Handler input payload
            request_id: Caller-supplied id (generated when omitted)
            is_local: Overrides the dispatcher's default locality flag

        Returns:
            ExecutionResult from the handler, or a synthesized failure
        """
        request_id = request_id or generate_request_id()
        log_extra = {"request_id": request_id, "function_name": str(function_name)}

        if not isinstance(function_name, str):
            logger.warning(
                f"Dispatch failed: invalid function name {function_name!r}", extra=log_extra
            )
            return ExecutionResult.fail(
                f"Function not found: {function_name!r}", error_code=NOT_FOUND
            )

        try:
            function = self.resolve(function_name)
        except NotFoundError as e:
            logger.warning(f"Dispatch failed: {e}", extra=log_extra)
            return ExecutionResult.fail(str(e), error_code=NOT_FOUND)

        context = ExecutionContext.create(
            function_name=function_name,
            request_id=request_id,
            is_local=self.is_local if is_local is None else is_local,
        )

        logger.info(f"Executing {function_name}", extra=log_extra)
        started = time.monotonic()

        try:
            result = await self._invoke(function, dict(data or {}), context)
        except Exception as e:
            error = HandlerError(str(e) or type(e).__name__, function_name=function_name)
            logger.exception(f"Function {function_name} failed: {error}", extra=log_extra)
            return ExecutionResult.fail(error.message, error_code=HANDLER_ERROR)

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Function {function_name} finished: success={result.success} ({duration_ms}ms)",
            extra=log_extra,
        )
        return result

    async def _invoke(
        self,
        function: CloudFunction,
        data: dict[str, Any],
        context: ExecutionContext,
    ) -> ExecutionResult:
        handler = function.handler

        if inspect.iscoroutinefunction(handler):
            result = await handler(data, context)
        else:
            # Run sync handler in a worker thread
            result = await asyncio.to_thread(handler, data, context)
            if inspect.isawaitable(result):
                result = await result

        if isinstance(result, ExecutionResult):
            return result
        if isinstance(result, Mapping):
            return ExecutionResult.from_dict(result)

        raise TypeError(
            f"Handler returned {type(result).__name__}, expected ExecutionResult"
        )


__all__ = ["Dispatcher", "generate_request_id", "NOT_FOUND", "HANDLER_ERROR"]
