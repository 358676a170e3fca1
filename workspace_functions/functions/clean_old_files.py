"""Delete stale files from a Drive folder."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from workspace_functions.config import get_settings
from workspace_functions.exceptions import APIClientError
from workspace_functions.google import DriveService, get_oauth_manager
from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

DEFAULT_DAYS_OLD = 90

config = FunctionConfig(
    name="clean-old-files",
    description="Delete old files to save storage",
    schedule="0 3 * * 0",  # Sundays at 03:00
    timeout=300,
    memory=512,
)


def _parse_time(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {"request_id": context.request_id, "function_name": context.function_name}
    logger.info("Starting execution", extra=extra)

    folder_id = data.get("folderId") or get_settings().cleanup_folder_id
    if not folder_id:
        return ExecutionResult.fail("Folder ID is required")

    try:
        days_old = int(data.get("daysOld") or DEFAULT_DAYS_OLD)
    except (TypeError, ValueError):
        return ExecutionResult.fail("daysOld must be an integer")

    try:
        drive = DriveService(get_oauth_manager())
        await drive.initialize()
        files = await drive.list_files(folder_id)
    except APIClientError as e:
        logger.error(f"Cleanup failed: {e}", extra=extra)
        return ExecutionResult.fail(str(e))

    cutoff = datetime.now(UTC) - timedelta(days=days_old)
    deleted = 0
    bytes_saved = 0

    for file in files:
        modified = _parse_time(file.modified_time)
        if modified is None or modified >= cutoff:
            continue
        try:
            await drive.delete_file(file.id)
        except APIClientError as e:
            logger.warning(f"Failed to delete {file.name}: {e}", extra=extra)
            continue

        deleted += 1
        if file.size:
            bytes_saved += int(file.size)
        logger.info(f"Deleted old file: {file.name}", extra=extra)

    size_mb = round(bytes_saved / (1024 * 1024), 2)
    logger.info(f"Cleaned up {deleted} old files, saved {size_mb} MB", extra=extra)

    return ExecutionResult.ok(
        data={
            "folderId": folder_id,
            "daysOld": days_old,
            "totalFiles": len(files),
            "deletedFiles": deleted,
            "sizeSavedMB": size_mb,
        },
        logs=[f"Cleanup completed for folder {folder_id}"],
    )
