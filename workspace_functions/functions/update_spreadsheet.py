"""Append caller-supplied rows to a spreadsheet."""

import logging
from typing import Any

from workspace_functions.exceptions import APIClientError
from workspace_functions.google import SheetsService, get_oauth_manager
from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

config = FunctionConfig(
    name="update-spreadsheet",
    description="Update spreadsheet data",
    timeout=120,
    memory=256,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {"request_id": context.request_id, "function_name": context.function_name}
    logger.info("Starting execution", extra=extra)

    spreadsheet_id = data.get("spreadsheetId")
    rows = data.get("data")

    if not spreadsheet_id or not rows:
        return ExecutionResult.fail("spreadsheetId and data are required")
    if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
        return ExecutionResult.fail("data must be a list of rows")

    try:
        sheets = SheetsService(get_oauth_manager())
        await sheets.initialize()

        try:
            existing = await sheets.read_data(spreadsheet_id, "A:C")
        except APIClientError:
            logger.info("No existing data found, creating new", extra=extra)
            existing = []

        await sheets.append_data(spreadsheet_id, "A1", rows)
    except APIClientError as e:
        logger.error(f"Spreadsheet update failed: {e}", extra=extra)
        return ExecutionResult.fail(str(e))

    logger.info(f"Updated spreadsheet with {len(rows)} rows", extra=extra)

    return ExecutionResult.ok(
        data={
            "spreadsheetId": spreadsheet_id,
            "rowsAdded": len(rows),
            "totalRows": len(existing) + len(rows),
        },
        logs=[f"Updated spreadsheet {spreadsheet_id}"],
    )
