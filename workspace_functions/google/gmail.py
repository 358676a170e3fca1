"""Gmail API wrapper."""

import logging
from dataclasses import dataclass, field
from typing import Any

from workspace_functions.exceptions import APIClientError
from workspace_functions.google.base import GoogleAPIClient

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"


@dataclass
class GmailMessage:
    """Message summary as returned by messages.list."""

    id: str
    thread_id: str
    label_ids: list[str] = field(default_factory=list)
    snippet: str = ""
    history_id: str = ""
    internal_date: str = ""


@dataclass
class GmailMessageDetail(GmailMessage):
    """Full message including headers and MIME payload."""

    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def headers(self) -> dict[str, str]:
        return {h["name"]: h["value"] for h in self.payload.get("headers", [])}

    @property
    def subject(self) -> str:
        return self.headers.get("Subject", "")

    @property
    def sender(self) -> str:
        return self.headers.get("From", "")


class GmailService(GoogleAPIClient):
    """Reads and labels messages in the authenticated user's mailbox."""

    service = "gmail"

    async def initialize(self) -> None:
        """Verify API access by fetching the profile."""
        try:
            await self.get_profile()
            logger.info("Gmail service initialized successfully")
        except APIClientError as e:
            logger.error(f"Failed to initialize Gmail service: {e}")
            raise

    async def get_profile(self) -> dict[str, Any]:
        return await self._get_json(f"{GMAIL_API_BASE}/profile")

    async def get_unread_emails(self, max_results: int = 100) -> list[GmailMessage]:
        """List unread messages.

        Messages missing id, threadId, historyId or internalDate are skipped.
        """
        data = await self._get_json(
            f"{GMAIL_API_BASE}/messages",
            params={"q": "is:unread", "maxResults": max_results},
        )

        messages = []
        for raw in data.get("messages", []):
            if not all(raw.get(key) for key in ("id", "threadId", "historyId", "internalDate")):
                logger.warning(f"Skipping message with missing required fields: {raw.get('id')}")
                continue
            messages.append(
                GmailMessage(
                    id=raw["id"],
                    thread_id=raw["threadId"],
                    label_ids=raw.get("labelIds", []),
                    snippet=raw.get("snippet", ""),
                    history_id=raw["historyId"],
                    internal_date=raw["internalDate"],
                )
            )

        logger.info(f"Found {len(messages)} unread emails")
        return messages

    async def mark_as_read(self, message_id: str) -> None:
        await self._request(
            "POST",
            f"{GMAIL_API_BASE}/messages/{message_id}/modify",
            json={"removeLabelIds": ["UNREAD"]},
        )
        logger.info(f"Email {message_id} marked as read")

    async def get_email_details(self, message_id: str) -> GmailMessageDetail | None:
        """Fetch a full message, or None if it cannot be read or is incomplete."""
        try:
            raw = await self._get_json(
                f"{GMAIL_API_BASE}/messages/{message_id}", params={"format": "full"}
            )
        except APIClientError as e:
            logger.error(f"Failed to get email details for {message_id}: {e}")
            return None

        required = ("id", "threadId", "historyId", "internalDate", "payload")
        if not all(raw.get(key) for key in required):
            logger.warning(f"Message {message_id} missing required fields")
            return None

        return GmailMessageDetail(
            id=raw["id"],
            thread_id=raw["threadId"],
            label_ids=raw.get("labelIds", []),
            snippet=raw.get("snippet", ""),
            history_id=raw["historyId"],
            internal_date=raw["internalDate"],
            payload=raw["payload"],
        )
