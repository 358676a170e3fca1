"""Tests for workspace_functions/google/gmail.py and the shared client base."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from workspace_functions.exceptions import AuthenticationError, GoogleAPIError, RateLimitError
from workspace_functions.google.gmail import GmailService


@pytest.fixture
def oauth():
    manager = MagicMock()
    manager.get_auth_headers = AsyncMock(return_value={"Authorization": "Bearer test-token"})
    return manager


def _service(oauth, handler) -> GmailService:
    return GmailService(oauth, transport=httpx.MockTransport(handler))


def _message(message_id: str, **overrides) -> dict:
    message = {
        "id": message_id,
        "threadId": f"thread-{message_id}",
        "historyId": "100",
        "internalDate": "1718000000000",
        "labelIds": ["UNREAD", "INBOX"],
    }
    message.update(overrides)
    return message


class TestGetUnreadEmails:
    """Tests for GmailService.get_unread_emails."""

    @pytest.mark.asyncio
    async def test_lists_unread(self, oauth):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"messages": [_message("a"), _message("b")]})

        messages = await _service(oauth, handler).get_unread_emails(max_results=5)

        assert [m.id for m in messages] == ["a", "b"]
        assert messages[0].thread_id == "thread-a"
        assert seen["params"] == {"q": "is:unread", "maxResults": "5"}
        assert seen["auth"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_skips_incomplete_messages(self, oauth):
        def handler(request):
            return httpx.Response(
                200, json={"messages": [_message("a"), {"id": "b", "threadId": "t"}]}
            )

        messages = await _service(oauth, handler).get_unread_emails()

        assert [m.id for m in messages] == ["a"]

    @pytest.mark.asyncio
    async def test_empty_mailbox(self, oauth):
        messages = await _service(oauth, lambda request: httpx.Response(200, json={})).get_unread_emails()

        assert messages == []


class TestMarkAsRead:
    @pytest.mark.asyncio
    async def test_removes_unread_label(self, oauth):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        await _service(oauth, handler).mark_as_read("abc")

        assert seen["method"] == "POST"
        assert seen["path"].endswith("/messages/abc/modify")
        assert seen["body"] == {"removeLabelIds": ["UNREAD"]}


class TestGetEmailDetails:
    """Tests for GmailService.get_email_details."""

    @pytest.mark.asyncio
    async def test_returns_detail(self, oauth):
        payload = {"headers": [{"name": "Subject", "value": "Hi"}, {"name": "From", "value": "a@b.c"}]}

        def handler(request):
            assert request.url.params["format"] == "full"
            return httpx.Response(200, json=_message("a", payload=payload))

        detail = await _service(oauth, handler).get_email_details("a")

        assert detail.subject == "Hi"
        assert detail.sender == "a@b.c"

    @pytest.mark.asyncio
    async def test_missing_fields_returns_none(self, oauth):
        detail = await _service(
            oauth, lambda request: httpx.Response(200, json=_message("a"))
        ).get_email_details("a")

        assert detail is None

    @pytest.mark.asyncio
    async def test_api_error_returns_none(self, oauth):
        detail = await _service(
            oauth, lambda request: httpx.Response(404, json={"error": {"message": "Not Found"}})
        ).get_email_details("a")

        assert detail is None


class TestErrorMapping:
    """Status codes map onto the APIClientError hierarchy."""

    @pytest.mark.asyncio
    async def test_unauthorized(self, oauth):
        service = _service(
            oauth, lambda request: httpx.Response(401, json={"error": {"message": "Invalid Credentials"}})
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await service.get_profile()

        assert exc_info.value.message == "Invalid Credentials"
        assert exc_info.value.service == "gmail"
        assert str(exc_info.value) == "[gmail] Invalid Credentials (HTTP 401)"

    @pytest.mark.asyncio
    async def test_rate_limited(self, oauth):
        service = _service(
            oauth, lambda request: httpx.Response(429, headers={"Retry-After": "7"}, json={})
        )

        with pytest.raises(RateLimitError) as exc_info:
            await service.get_profile()

        assert exc_info.value.retry_after == 7

    @pytest.mark.asyncio
    async def test_server_error(self, oauth):
        service = _service(oauth, lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(GoogleAPIError) as exc_info:
            await service.initialize()

        assert exc_info.value.status_code == 503
