"""Copy files from a Drive folder into a dated backup folder."""

import logging
from datetime import UTC, datetime
from typing import Any

from workspace_functions.config import get_settings
from workspace_functions.exceptions import APIClientError
from workspace_functions.google import DriveService, get_oauth_manager
from workspace_functions.models import ExecutionContext, ExecutionResult, FunctionConfig

logger = logging.getLogger(__name__)

# Files copied per run
MAX_FILES_PER_RUN = 10

config = FunctionConfig(
    name="backup-drive-files",
    description="Backup important files to backup folder",
    schedule="0 2 * * 0",  # Sundays at 02:00
    timeout=300,
    memory=512,
)


async def handler(data: dict[str, Any], context: ExecutionContext) -> ExecutionResult:
    extra = {"request_id": context.request_id, "function_name": context.function_name}
    logger.info("Starting execution", extra=extra)

    source_folder_id = data.get("sourceFolderId") or get_settings().backup_source_folder
    if not source_folder_id:
        return ExecutionResult.fail("Source folder ID not specified")

    try:
        drive = DriveService(get_oauth_manager())
        await drive.initialize()

        backup_folder_name = f"Backup_{datetime.now(UTC).date().isoformat()}"
        backup_folder_id = await drive.create_folder(backup_folder_name)

        files = await drive.list_files(source_folder_id)
    except APIClientError as e:
        logger.error(f"Backup failed: {e}", extra=extra)
        return ExecutionResult.fail(str(e))

    backed_up = 0
    for file in files[:MAX_FILES_PER_RUN]:
        if not file.id or not file.name:
            continue
        try:
            content = await drive.download_file(file.id)
            await drive.upload_file(
                f"backup_{file.name}",
                content,
                file.mime_type or "application/octet-stream",
                backup_folder_id,
            )
            backed_up += 1
        except APIClientError as e:
            logger.warning(f"Failed to backup {file.name}: {e}", extra=extra)

    logger.info(f"Backed up {backed_up}/{len(files)} files", extra=extra)

    return ExecutionResult.ok(
        data={
            "totalFiles": len(files),
            "backedUpFiles": backed_up,
            "backupFolderId": backup_folder_id,
        },
        logs=[f"Backed up {backed_up} files"],
    )
