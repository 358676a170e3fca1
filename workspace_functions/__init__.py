"""Google Workspace cloud functions and their local dev harness."""

from workspace_functions.dispatcher import Dispatcher, generate_request_id
from workspace_functions.models import (
    CloudFunction,
    ExecutionContext,
    ExecutionResult,
    FunctionConfig,
)
from workspace_functions.registry import FunctionRegistry

__version__ = "0.1.0"

__all__ = [
    "CloudFunction",
    "Dispatcher",
    "ExecutionContext",
    "ExecutionResult",
    "FunctionConfig",
    "FunctionRegistry",
    "generate_request_id",
]
