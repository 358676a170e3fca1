"""
Cloud Functions entry points.

Deploy with either target:

    gcloud functions deploy workspace-functions --gen2 --runtime=python312 \
        --entry-point=http_handler --trigger-http
    gcloud functions deploy workspace-functions-scheduled --gen2 --runtime=python312 \
        --entry-point=pubsub_handler --trigger-topic=workspace-functions

HTTP body:   {"functionName": "check-unread-emails", ...data}
Pub/Sub:     base64 JSON with the same shape (Cloud Scheduler payload)
"""

import asyncio
import json
import logging

import functions_framework
from cloudevents.http import CloudEvent
from flask import Request

from workspace_functions.config import get_settings
from workspace_functions.dispatcher import Dispatcher, generate_request_id
from workspace_functions.logging_config import setup_logging
from workspace_functions.registry import FunctionRegistry
from workspace_functions.triggers import handle_http_request, handle_pubsub_event

# Fails fast with ConfigurationError in production when settings are missing
settings = get_settings()
setup_logging(level=settings.log_level)
logger = logging.getLogger(__name__)

registry = FunctionRegistry(package=settings.functions_package)
dispatcher = Dispatcher(registry, is_local=settings.is_local)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


@functions_framework.http
def http_handler(request: Request):
    """
    HTTP Cloud Function entry point.

    Args:
        request: Flask request object

    Returns:
        Tuple of (body, status_code, headers)
    """
    # CORS preflight
    if request.method == "OPTIONS":
        return (
            "",
            204,
            {
                **CORS_HEADERS,
                "Access-Control-Allow-Methods": "POST, OPTIONS",
                "Access-Control-Allow-Headers": "Content-Type, Authorization",
                "Access-Control-Max-Age": "3600",
            },
        )

    headers = {**CORS_HEADERS, "Content-Type": "application/json"}
    request_id = generate_request_id("req")

    body = request.get_json(silent=True)
    payload, status = asyncio.run(handle_http_request(body, dispatcher, request_id=request_id))

    logger.info(
        f"HTTP request completed with {status}",
        extra={"request_id": request_id, "status_code": status},
    )
    return (json.dumps(payload, default=str), status, headers)


@functions_framework.cloud_event
def pubsub_handler(cloud_event: CloudEvent) -> None:
    """
    Pub/Sub Cloud Function entry point.

    Errors are re-raised so Pub/Sub redelivers according to the
    subscription's retry policy.
    """
    request_id = generate_request_id("pubsub")
    try:
        asyncio.run(handle_pubsub_event(cloud_event.data, dispatcher, request_id=request_id))
    except Exception:
        logger.exception("Pub/Sub execution failed", extra={"request_id": request_id})
        raise
