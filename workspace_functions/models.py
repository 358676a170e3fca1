"""Core types shared by handlers, the registry and the dispatcher."""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import ModuleType
from typing import Any, Union


@dataclass(frozen=True)
class FunctionConfig:
    """Static description of a handler.

    Attributes:
        name: Unique registry key (e.g. "check-unread-emails")
        description: Human-readable summary shown by `list` and the dashboard
        schedule: Optional cron expression for Cloud Scheduler
        timeout: Timeout hint in seconds (enforced by the platform, not here)
        memory: Memory hint in MB (enforced by the platform, not here)
    """

    name: str
    description: str = ""
    schedule: str | None = None
    timeout: int | None = None
    memory: int | None = None

    @classmethod
    def from_value(cls, value: Any) -> "FunctionConfig":
        """Build a FunctionConfig from a config object or a plain mapping."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                name=value["name"],
                description=value.get("description", ""),
                schedule=value.get("schedule"),
                timeout=value.get("timeout"),
                memory=value.get("memory"),
            )
        return cls(
            name=value.name,
            description=getattr(value, "description", ""),
            schedule=getattr(value, "schedule", None),
            timeout=getattr(value, "timeout", None),
            memory=getattr(value, "memory", None),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "schedule": self.schedule,
            "timeout": self.timeout,
            "memory": self.memory,
        }


@dataclass(frozen=True)
class ExecutionContext:
    """Per-invocation metadata handed to a handler alongside its input."""

    function_name: str
    request_id: str
    timestamp: str
    is_local: bool = False

    @classmethod
    def create(
        cls,
        function_name: str,
        request_id: str,
        is_local: bool = False,
    ) -> "ExecutionContext":
        """Create a context stamped with the current UTC time."""
        return cls(
            function_name=function_name,
            request_id=request_id,
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            is_local=is_local,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "functionName": self.function_name,
            "requestId": self.request_id,
            "timestamp": self.timestamp,
            "isLocal": self.is_local,
        }


@dataclass
class ExecutionResult:
    """
    Normalized handler outcome.

    success=False always carries an error message and success=True never
    does; construction fails otherwise.

    Attributes:
        success: Whether the handler completed its job
        data: Optional JSON-serializable payload
        error: Error message (failures only)
        logs: Human-readable progress lines
        error_code: Machine-checkable failure category set by the dispatcher
            ("NOT_FOUND", "HANDLER_ERROR"); None for handler-reported results
    """

    success: bool
    data: Any = None
    error: str | None = None
    logs: list[str] | None = None
    error_code: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("A failed result must carry an error message")

    @classmethod
    def ok(cls, data: Any = None, logs: list[str] | None = None) -> "ExecutionResult":
        """Create a success result."""
        return cls(success=True, data=data, logs=logs)

    @classmethod
    def fail(
        cls,
        error: str,
        *,
        logs: list[str] | None = None,
        error_code: str | None = None,
    ) -> "ExecutionResult":
        """Create a failure result."""
        return cls(success=False, error=error or "Unknown error", logs=logs, error_code=error_code)

    @classmethod
    def from_dict(cls, value: Mapping[str, Any]) -> "ExecutionResult":
        """Coerce a handler's plain-dict return value."""
        success = value.get("success") is True
        error = value.get("error")
        if not success and not error:
            error = "Unknown error"
        return cls(
            success=success,
            data=value.get("data"),
            error=None if success else str(error),
            logs=value.get("logs"),
            error_code=value.get("errorCode"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned by the HTTP adapters."""
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.logs is not None:
            result["logs"] = self.logs
        if self.error_code is not None:
            result["errorCode"] = self.error_code
        return result


HandlerFunc = Callable[
    [dict[str, Any], ExecutionContext],
    Union[ExecutionResult, Awaitable[ExecutionResult]],
]


@dataclass
class CloudFunction:
    """A registry entry: validated config plus the callable handler."""

    config: FunctionConfig
    handler: HandlerFunc
    module: ModuleType | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.config.name

    def summary(self) -> dict[str, Any]:
        """Name, description and schedule, as listed by GET /functions."""
        return {
            "name": self.config.name,
            "description": self.config.description,
            "schedule": self.config.schedule,
        }


__all__ = [
    "FunctionConfig",
    "ExecutionContext",
    "ExecutionResult",
    "HandlerFunc",
    "CloudFunction",
]
