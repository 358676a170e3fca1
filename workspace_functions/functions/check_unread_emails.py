"""Count unread Gmail messages."""

import logging
from datetime import UTC, datetime
from typing import Any

from workspace_functions.exceptions import APIClientError
from workspace_functions.google import GmailService, get_oauth_manager
from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

config = FunctionConfig(
    name="check-unread-emails",
    description="Check the number of unread emails",
    schedule="*/30 * * * *",  # every 30 minutes
    timeout=60,
    memory=256,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {"request_id": context.request_id, "function_name": context.function_name}
    logger.info("Starting execution", extra=extra)

    try:
        gmail = GmailService(get_oauth_manager())
        await gmail.initialize()
        unread_emails = await gmail.get_unread_emails()
    except APIClientError as e:
        logger.error(f"Gmail request failed: {e}", extra=extra)
        return ExecutionResult.fail(str(e))

    logger.info(f"Found {len(unread_emails)} unread emails", extra=extra)

    return ExecutionResult.ok(
        data={
            "unreadCount": len(unread_emails),
            "timestamp": datetime.now(UTC).isoformat(),
        },
        logs=[f"Checked unread emails: {len(unread_emails)} found"],
    )
