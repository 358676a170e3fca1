"""Generates new handler modules from a template."""

import logging
import re
from pathlib import Path

from workspace_functions import functions as functions_package
from workspace_functions.exceptions import ValidationError

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")
DEFAULT_DESCRIPTION = "Auto-generated function"

FUNCTION_TEMPLATE = '''"""{docstring}"""

import logging
from typing import Any

from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

config = FunctionConfig(
    name={name!r},
    description={description!r},
    timeout=60,
    memory=256,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {{"request_id": context.request_id, "function_name": context.function_name}}
    logger.info("Starting execution", extra=extra)

    # Function logic goes here

    logger.info("Completed successfully", extra=extra)
    return ExecutionResult.ok(
        data={{
            "message": "Function executed successfully",
            "timestamp": context.timestamp,
            "input": data,
        }},
        logs=["Function executed successfully"],
    )
'''


def module_name_for(name: str) -> str:
    """Map a function name to its module name (``clean-old-files`` -> ``clean_old_files``)."""
    return name.replace("-", "_")


def _docstring_text(description: str) -> str:
    """Escape text for a triple-quoted module docstring."""
    return description.replace("\\", "\\\\").replace('"', '\\"')


def render_function(name: str, description: str = "") -> str:
    description = description or DEFAULT_DESCRIPTION
    return FUNCTION_TEMPLATE.format(
        name=name, description=description, docstring=_docstring_text(description)
    )


def create_function(
    name: str,
    description: str = "",
    directory: str | Path | None = None,
) -> Path:
    """
    Write a new handler module.

    Args:
        name: Function name (lowercase letters, digits and dashes)
        description: Description stored in the module's config
        directory: Target directory (defaults to the functions package)

    Returns:
        Path of the created module

    Raises:
        ValidationError: If the name is not a valid function name
        FileExistsError: If the module already exists
    """
    if not NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid function name '{name}': use lowercase letters, digits and dashes, "
            "starting with a letter",
            field="name",
        )

    target_dir = Path(directory) if directory else Path(functions_package.__file__).parent
    path = target_dir / f"{module_name_for(name)}.py"
    if path.exists():
        raise FileExistsError(f"Function module {path.name} already exists")

    path.write_text(render_function(name, description), encoding="utf-8")
    logger.info(f"Created function: {path}")
    return path
