"""Google Drive API wrapper."""

import json
import logging
import uuid
from dataclasses import dataclass

from workspace_functions.exceptions import APIClientError, GoogleAPIError
from workspace_functions.google.base import GoogleAPIClient

logger = logging.getLogger(__name__)

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id,name,mimeType,size,createdTime,modifiedTime,parents"


@dataclass
class DriveFile:
    """File metadata."""

    id: str
    name: str
    mime_type: str
    created_time: str
    modified_time: str
    size: str | None = None
    parents: list[str] | None = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_api(cls, raw: dict) -> "DriveFile":
        return cls(
            id=raw.get("id", ""),
            name=raw.get("name", ""),
            mime_type=raw.get("mimeType", ""),
            created_time=raw.get("createdTime", ""),
            modified_time=raw.get("modifiedTime", ""),
            size=raw.get("size"),
            parents=raw.get("parents"),
        )


class DriveService(GoogleAPIClient):
    """File listing, transfer and cleanup in My Drive."""

    service = "drive"

    async def initialize(self) -> None:
        """Verify API access with a one-item listing."""
        try:
            await self._get_json(f"{DRIVE_API_BASE}/files", params={"pageSize": 1})
            logger.info("Drive service initialized successfully")
        except APIClientError as e:
            logger.error(f"Failed to initialize Drive service: {e}")
            raise

    async def list_files(self, folder_id: str | None = None) -> list[DriveFile]:
        """List up to 1000 files, optionally restricted to a parent folder."""
        params = {"fields": f"files({FILE_FIELDS})", "pageSize": 1000}
        if folder_id:
            params["q"] = f"'{folder_id}' in parents"

        data = await self._get_json(f"{DRIVE_API_BASE}/files", params=params)
        files = [DriveFile.from_api(f) for f in data.get("files", [])]

        logger.info(f"Found {len(files)} files in Drive")
        return files

    async def create_folder(self, name: str, parent_id: str | None = None) -> str:
        """Create a folder and return its ID."""
        metadata: dict = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            metadata["parents"] = [parent_id]

        response = await self._request(
            "POST", f"{DRIVE_API_BASE}/files", params={"fields": "id"}, json=metadata
        )
        folder_id = response.json().get("id")
        if not folder_id:
            raise GoogleAPIError("Folder ID missing from create response", service=self.service)

        logger.info(f"Created folder {name} (ID: {folder_id})")
        return folder_id

    async def upload_file(
        self,
        name: str,
        content: bytes,
        mime_type: str,
        parent_id: str | None = None,
    ) -> str:
        """Upload a file with a multipart request and return its ID."""
        metadata: dict = {"name": name}
        if parent_id:
            metadata["parents"] = [parent_id]

        boundary = f"upload-{uuid.uuid4().hex}"
        body = b"".join(
            [
                f"--{boundary}\r\n".encode(),
                b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
                json.dumps(metadata).encode(),
                f"\r\n--{boundary}\r\n".encode(),
                f"Content-Type: {mime_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{boundary}--".encode(),
            ]
        )

        response = await self._request(
            "POST",
            f"{DRIVE_UPLOAD_BASE}/files",
            params={"uploadType": "multipart", "fields": "id"},
            content=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )
        file_id = response.json().get("id")
        if not file_id:
            raise GoogleAPIError("File ID missing from upload response", service=self.service)

        logger.info(f"Uploaded file {name} (ID: {file_id})")
        return file_id

    async def download_file(self, file_id: str) -> bytes:
        response = await self._request(
            "GET", f"{DRIVE_API_BASE}/files/{file_id}", params={"alt": "media"}
        )
        logger.info(f"Downloaded file {file_id}")
        return response.content

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"{DRIVE_API_BASE}/files/{file_id}")
        logger.info(f"File {file_id} deleted successfully")

    async def get_file_metadata(self, file_id: str) -> DriveFile | None:
        """File metadata, or None if it cannot be read or is incomplete."""
        try:
            raw = await self._get_json(
                f"{DRIVE_API_BASE}/files/{file_id}", params={"fields": FILE_FIELDS}
            )
        except APIClientError as e:
            logger.error(f"Failed to get metadata for file {file_id}: {e}")
            return None

        required = ("id", "name", "mimeType", "createdTime", "modifiedTime")
        if not all(raw.get(key) for key in required):
            logger.warning(f"File {file_id} missing required fields")
            return None

        return DriveFile.from_api(raw)
