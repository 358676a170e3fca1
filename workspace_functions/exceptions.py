"""
Exception hierarchy for workspace-functions.

Two families live here:

- Dispatch errors (ValidationError, NotFoundError, HandlerError, LoadError,
  ConfigurationError) raised by the registry, dispatcher and trigger adapters.
- Google API client errors (APIClientError and subclasses) raised by the
  Gmail/Drive/Sheets wrappers and the OAuth manager.

Usage:
    from workspace_functions.exceptions import NotFoundError, ValidationError

    try:
        function = dispatcher.resolve(name)
    except NotFoundError as e:
        return {"error": str(e), "availableFunctions": e.available_functions}, 404

Propagation:
    Handler errors never escape the dispatcher, load errors never escape
    FunctionRegistry.load_all(). Only ConfigurationError at startup is fatal.
"""

from typing import Any


class FunctionsError(Exception):
    """Base exception for all workspace-functions errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional error context.
        status_code: HTTP status code the error maps to, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class ValidationError(FunctionsError):
    """Required input is missing or malformed.

    Raised when:
    - An HTTP body has no functionName
    - A Pub/Sub payload is not base64-encoded JSON

    Attributes:
        field: Name of the field that failed validation.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, status_code=400, **kwargs)
        self.field = field


class NotFoundError(FunctionsError):
    """No function is registered under the requested name.

    Attributes:
        function_name: The name that was looked up.
        available_functions: Names currently registered (diagnostic aid).
    """

    def __init__(
        self,
        function_name: str,
        *,
        available_functions: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Function '{function_name}' not found", status_code=404, **kwargs
        )
        self.function_name = function_name
        self.available_functions = list(available_functions or [])


class HandlerError(FunctionsError):
    """A handler raised while executing.

    Never propagated past the dispatcher; it is converted to a failed
    ExecutionResult there.
    """

    def __init__(
        self,
        message: str,
        *,
        function_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, status_code=500, **kwargs)
        self.function_name = function_name


class LoadError(FunctionsError):
    """A handler module could not be imported.

    Attributes:
        module_name: Dotted name of the module that failed.
    """

    def __init__(self, module_name: str, reason: str, **kwargs: Any) -> None:
        super().__init__(f"Failed to load {module_name}: {reason}", **kwargs)
        self.module_name = module_name


class ConfigurationError(FunctionsError):
    """Required configuration is missing or invalid.

    Fatal at startup in production. In development and test the settings
    loader substitutes defaults and logs a warning instead.

    Attributes:
        missing: Names of the missing settings.
    """

    def __init__(
        self,
        message: str = "Configuration is invalid",
        *,
        missing: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.missing = list(missing or [])


# =============================================================================
# Google API client errors
# =============================================================================


class APIClientError(FunctionsError):
    """Base exception for Google Workspace API client errors.

    Attributes:
        service: Name of the API that raised the error (gmail, drive, ...).
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.service = service

    def __str__(self) -> str:
        parts = [self.message]
        if self.service:
            parts.insert(0, f"[{self.service}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


class AuthenticationError(APIClientError):
    """OAuth token refresh failed or the API rejected the credentials."""

    def __init__(self, message: str = "Authentication failed", **kwargs: Any) -> None:
        kwargs.setdefault("status_code", 401)
        super().__init__(message, **kwargs)


class RateLimitError(APIClientError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API).
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class GoogleAPIError(APIClientError):
    """Any other non-success response from a Workspace API."""

    pass


__all__ = [
    "FunctionsError",
    "ValidationError",
    "NotFoundError",
    "HandlerError",
    "LoadError",
    "ConfigurationError",
    "APIClientError",
    "AuthenticationError",
    "RateLimitError",
    "GoogleAPIError",
]
