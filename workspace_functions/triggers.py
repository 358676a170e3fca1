"""
Trigger adapters.

Translate an external event into a Dispatcher.dispatch() call:

- HTTP: JSON body ``{"functionName": "...", ...data}``
- Pub/Sub: CloudEvent data ``{"message": {"data": "<base64 JSON>"}}``

Both are framework-free so the Cloud Functions entry point (main.py) and the
local dev server share them.
"""

import base64
import binascii
import json
import logging
from typing import Any

from workspace_functions.dispatcher import NOT_FOUND, Dispatcher, generate_request_id
from workspace_functions.exceptions import NotFoundError, ValidationError
from workspace_functions.models import ExecutionResult

logger = logging.getLogger(__name__)

FUNCTION_NAME_FIELD = "functionName"


async def handle_http_request(
    body: Any,
    dispatcher: Dispatcher,
    request_id: str | None = None,
    is_local: bool | None = None,
) -> tuple[dict[str, Any], int]:
    """
    Dispatch an HTTP request body.

    Args:
        body: Parsed JSON body
        dispatcher: Dispatcher to route through
        request_id: Request id (generated with a ``req`` prefix when omitted)
        is_local: Overrides the dispatcher's locality flag

    Returns:
        Tuple of (response payload, HTTP status code):
        200 with the ExecutionResult, 400 when functionName is missing,
        404 for an unknown function, 500 for an unexpected failure.
    """
    request_id = request_id or generate_request_id("req")

    try:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object", field="body")

        data = dict(body)
        function_name = data.pop(FUNCTION_NAME_FIELD, None)
        if not function_name or not isinstance(function_name, str):
            raise ValidationError(
                f"{FUNCTION_NAME_FIELD} is required", field=FUNCTION_NAME_FIELD
            )

        result = await dispatcher.dispatch(
            function_name, data, request_id=request_id, is_local=is_local
        )
    except ValidationError as e:
        return {
            "success": False,
            "error": e.message,
            "availableFunctions": dispatcher.available_functions(),
        }, 400
    except Exception as e:
        logger.exception("HTTP execution failed", extra={"request_id": request_id})
        return {"success": False, "error": str(e) or "Unknown error", "requestId": request_id}, 500

    if result.error_code == NOT_FOUND:
        return {
            "success": False,
            "error": result.error,
            "availableFunctions": dispatcher.available_functions(),
        }, 404

    return result.to_dict(), 200


def decode_pubsub_message(event_data: Any) -> dict[str, Any]:
    """
    Decode the base64 JSON payload of a Pub/Sub CloudEvent.

    Returns:
        Decoded payload, or an empty dict when the message carries no data

    Raises:
        ValidationError: If the data is not base64-encoded JSON object
    """
    message = (event_data or {}).get("message") or {}
    encoded = message.get("data")
    if not encoded:
        return {}

    try:
        payload = json.loads(base64.b64decode(encoded).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid Pub/Sub message data: {e}", field="message.data") from e

    if not isinstance(payload, dict):
        raise ValidationError("Pub/Sub payload must be a JSON object", field="message.data")
    return payload


async def handle_pubsub_event(
    event_data: Any,
    dispatcher: Dispatcher,
    request_id: str | None = None,
) -> ExecutionResult | None:
    """
    Dispatch a Pub/Sub message.

    Fire-and-forget: the result is only logged. Undecodable payloads and
    unknown functions raise so the platform can redeliver.

    Returns:
        The ExecutionResult, or None when the payload names no function

    Raises:
        ValidationError: If the payload cannot be decoded or functionName is
            not a string
        NotFoundError: If the named function is not registered
    """
    request_id = request_id or generate_request_id("pubsub")
    extra = {"request_id": request_id, "trigger": "pubsub"}

    payload = decode_pubsub_message(event_data)
    function_name = payload.pop(FUNCTION_NAME_FIELD, None)
    if not function_name:
        logger.warning("Pub/Sub message has no functionName, ignoring", extra=extra)
        return None
    if not isinstance(function_name, str):
        raise ValidationError(
            f"{FUNCTION_NAME_FIELD} must be a string", field=FUNCTION_NAME_FIELD
        )

    result = await dispatcher.dispatch(function_name, payload, request_id=request_id)

    if result.error_code == NOT_FOUND:
        raise NotFoundError(
            function_name, available_functions=dispatcher.available_functions()
        )
    if not result.success:
        logger.error(f"Pub/Sub execution of {function_name} failed: {result.error}", extra=extra)

    return result


__all__ = [
    "handle_http_request",
    "handle_pubsub_event",
    "decode_pubsub_message",
    "FUNCTION_NAME_FIELD",
]
