"""Record the daily unread-mail count in a spreadsheet."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from workspace_functions.exceptions import APIClientError, ConfigurationError
from workspace_functions.google import GmailService, SheetsService, get_oauth_manager
from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig
from workspace_functions.resources import DEFAULT_CONFIG_NAME, get_resources

logger = logging.getLogger(__name__)

config = FunctionConfig(
    name="send-daily-report",
    description="Generate a daily report and record it in a spreadsheet",
    schedule="0 18 * * *",  # daily at 18:00
    timeout=180,
    memory=256,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {"request_id": context.request_id, "function_name": context.function_name}
    logger.info("Starting execution", extra=extra)

    config_name = str(data.get("config") or DEFAULT_CONFIG_NAME)

    try:
        spreadsheet_id = get_resources().get_spreadsheet_id(config_name)
    except ConfigurationError as e:
        return ExecutionResult.fail(str(e))

    if not spreadsheet_id:
        return ExecutionResult.fail(f"No spreadsheet ID found for config: {config_name}")

    try:
        oauth = get_oauth_manager()
        sheets = SheetsService(oauth)
        gmail = GmailService(oauth)
        await asyncio.gather(sheets.initialize(), gmail.initialize())

        unread_emails = await gmail.get_unread_emails()

        today = datetime.now(UTC).date().isoformat()
        report = [
            ["Date", "Unread Emails"],
            [today, len(unread_emails)],
        ]
        await sheets.append_data(spreadsheet_id, "A1", report)
    except APIClientError as e:
        logger.error(f"Daily report failed: {e}", extra=extra)
        return ExecutionResult.fail(str(e))

    logger.info(f"Daily report generated: {len(unread_emails)} unread emails", extra=extra)

    return ExecutionResult.ok(
        data={
            "date": today,
            "unreadEmails": len(unread_emails),
            "configName": config_name,
            "spreadsheetId": spreadsheet_id,
        },
        logs=[f"Generated report for {today} using config: {config_name}"],
    )
