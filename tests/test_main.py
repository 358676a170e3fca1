"""Tests for main.py - Cloud Functions entry points."""

import base64
import json

import pytest
from cloudevents.http import CloudEvent
from flask import Flask, request

import main
from workspace_functions.exceptions import NotFoundError


@pytest.fixture
def flask_app() -> Flask:
    return Flask(__name__)


@pytest.fixture(autouse=True)
def hello_only(monkeypatch, hello_dispatcher):
    """Route main.py through a helloworld-only dispatcher."""
    monkeypatch.setattr(main, "dispatcher", hello_dispatcher)


def _pubsub_event(payload: dict) -> CloudEvent:
    encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    attributes = {
        "type": "google.cloud.pubsub.topic.v1.messagePublished",
        "source": "//pubsub.googleapis.com/projects/test/topics/workspace-functions",
    }
    return CloudEvent(attributes, {"message": {"data": encoded, "messageId": "1"}})


class TestHttpHandler:
    """Tests for http_handler."""

    def test_options_preflight(self, flask_app):
        with flask_app.test_request_context("/", method="OPTIONS"):
            body, status, headers = main.http_handler(request)

        assert status == 204
        assert body == ""
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in headers["Access-Control-Allow-Methods"]

    def test_dispatches_function(self, flask_app):
        with flask_app.test_request_context(
            "/", method="POST", json={"functionName": "helloworld", "name": "Ada"}
        ):
            body, status, headers = main.http_handler(request)

        payload = json.loads(body)
        assert status == 200
        assert payload["success"] is True
        assert payload["data"]["message"] == "Hello, Ada!"
        assert payload["data"]["requestId"].startswith("req_")
        assert headers["Content-Type"] == "application/json"

    def test_missing_function_name(self, flask_app):
        with flask_app.test_request_context("/", method="POST", json={}):
            body, status, _ = main.http_handler(request)

        assert status == 400
        assert json.loads(body)["availableFunctions"] == ["helloworld"]

    def test_invalid_json_body(self, flask_app):
        with flask_app.test_request_context(
            "/", method="POST", data="not json", content_type="application/json"
        ):
            body, status, _ = main.http_handler(request)

        assert status == 400
        assert json.loads(body)["success"] is False

    def test_unknown_function(self, flask_app):
        with flask_app.test_request_context("/", method="POST", json={"functionName": "missing"}):
            body, status, _ = main.http_handler(request)

        payload = json.loads(body)
        assert status == 404
        assert payload["error"] == "Function 'missing' not found"
        assert payload["availableFunctions"] == ["helloworld"]


class TestPubsubHandler:
    """Tests for pubsub_handler."""

    def test_dispatches_function(self):
        assert main.pubsub_handler(_pubsub_event({"functionName": "helloworld"})) is None

    def test_unknown_function_is_reraised(self):
        with pytest.raises(NotFoundError):
            main.pubsub_handler(_pubsub_event({"functionName": "missing"}))
