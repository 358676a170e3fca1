"""Hello World function for smoke-testing the dispatch path."""

import logging
from datetime import UTC, datetime
from typing import Any

from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

config = FunctionConfig(
    name="helloworld",
    description="Hello World function for testing",
    timeout=60,
    memory=256,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    greeting = f"Hello, {data['name']}!" if data.get("name") else "Hello, World!"
    timestamp = datetime.now(UTC).isoformat()

    logger.info(
        f"Hello World message generated: {greeting}",
        extra={"request_id": context.request_id, "function_name": context.function_name},
    )

    return ExecutionResult.ok(
        data={
            "message": greeting,
            "timestamp": timestamp,
            "requestId": context.request_id,
            "functionName": context.function_name,
            "input": data,
        },
        logs=[f"Hello World function executed successfully at {timestamp}"],
    )
