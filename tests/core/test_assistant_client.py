"""
Tests for AssistantClient - HTTP client for the assistant chat endpoint.

Tests verify:
- Request shape (URL, JSON body, headers, no auth)
- Reply extraction fallbacks (reply -> text -> "No response.")
- Normalized failure reply for HTTP errors, network errors and bad bodies
- Privacy of request logging (message hash only)
- Bodies built from real host data (NaN, Inf, dates) still reach the service
"""

import asyncio
import hashlib
import json
from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests
from metabolite_assistant.core.assistant_client import (
    NO_RESPONSE_REPLY,
    UNAVAILABLE_REPLY,
    AssistantClient,
    AssistantReply,
    RequestPayload,
    TaskKind,
)
from metabolite_assistant.core.snapshot import build_snapshot

from fixtures.factories import make_metabolite

API_URL = "https://assistant.test/api/chat"
POST_TARGET = "metabolite_assistant.core.assistant_client.requests.post"
SESSION_SEND_TARGET = "requests.sessions.Session.send"


def _response(status_code: int = 200, body=None, json_error: Exception | None = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


def _wire_response(body) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response._content = json.dumps(body).encode("utf-8")
    return response


@pytest.fixture
def client():
    return AssistantClient(api_url=API_URL)


@pytest.fixture
def payload():
    return RequestPayload(user_message="Why is lactate up?", task=TaskKind.chat, context={"topHits": []})


class TestRequestPayload:
    """Test suite for RequestPayload serialization."""

    def test_request_payload_to_dict_uses_task_value(self):
        # Arrange
        payload = RequestPayload(user_message="hi", task=TaskKind.filter_summary, context={"a": 1})

        # Act
        result = payload.to_dict()

        # Assert
        assert result == {"user_message": "hi", "task": "filter_summary", "context": {"a": 1}}

    def test_task_kind_values_match_wire_tags(self):
        assert {task.value for task in TaskKind} == {
            "chat",
            "interpret_volcano",
            "metabolite_detail",
            "filter_summary",
        }


class TestAssistantClientSuccess:
    """Test suite for successful responses."""

    def test_send_posts_json_to_configured_endpoint(self, client, payload):
        # Arrange
        with patch(POST_TARGET, return_value=_response(body={"reply": "hi"})) as mock_post:
            # Act
            asyncio.run(client.send(payload))

        # Assert
        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        assert args[0] == API_URL
        assert json.loads(kwargs["data"]) == payload.to_dict()
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert kwargs["timeout"] is None
        assert "auth" not in kwargs

    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"reply": "hi"}, "hi"),
            ({"text": "hi"}, "hi"),
            ({"reply": "", "text": "from text"}, "from text"),
            ({}, NO_RESPONSE_REPLY),
            (["not", "an", "object"], NO_RESPONSE_REPLY),
            (None, NO_RESPONSE_REPLY),
        ],
    )
    def test_send_extracts_reply_with_fallbacks(self, client, payload, body, expected):
        # Arrange
        with patch(POST_TARGET, return_value=_response(body=body)):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result == AssistantReply(expected)
        assert result.to_dict() == {"reply": expected}

    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"reply": 42}, "42"),
            ({"reply": {"a": 1}}, '{"a": 1}'),
            ({"text": ["x", "y"]}, '["x", "y"]'),
        ],
    )
    def test_send_non_string_reply_is_returned_as_json_text(self, client, payload, body, expected):
        # Arrange
        with patch(POST_TARGET, return_value=_response(body=body)):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result == AssistantReply(expected)

    def test_send_logs_hash_not_raw_message(self, client, payload):
        # Arrange
        with patch(POST_TARGET, return_value=_response(body={"reply": "ok"})):
            with patch("metabolite_assistant.core.assistant_client.logger") as mock_logger:
                # Act
                asyncio.run(client.send(payload))

        # Assert
        _, kwargs = mock_logger.info.call_args
        assert kwargs["message_hash"] == hashlib.sha256(payload.user_message.encode()).hexdigest()
        assert payload.user_message not in str(mock_logger.info.call_args)


class TestAssistantClientFailure:
    """Test suite for normalized failure replies."""

    def test_send_http_500_returns_unavailable_reply(self, client, payload):
        # Arrange
        with patch(POST_TARGET, return_value=_response(status_code=500, body={"reply": "ignored"})):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result.to_dict() == {"reply": UNAVAILABLE_REPLY, "error": True}

    def test_send_http_error_logs_status_code(self, client, payload):
        # Arrange
        with patch(POST_TARGET, return_value=_response(status_code=503)):
            with patch("metabolite_assistant.core.assistant_client.logger") as mock_logger:
                # Act
                asyncio.run(client.send(payload))

        # Assert
        event, kwargs = mock_logger.warning.call_args
        assert event[0] == "assistant_request_failed"
        assert kwargs["status_code"] == 503

    @pytest.mark.parametrize(
        "exception",
        [
            requests.ConnectionError("Connection refused"),
            requests.Timeout("Request timed out"),
            requests.RequestException("boom"),
        ],
    )
    def test_send_network_exception_returns_unavailable_reply(self, client, payload, exception):
        # Arrange
        with patch(POST_TARGET, side_effect=exception):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result == AssistantReply(UNAVAILABLE_REPLY, error=True)

    def test_send_malformed_body_returns_unavailable_reply(self, client, payload):
        # Arrange
        response = _response(json_error=ValueError("Expecting value"))
        with patch(POST_TARGET, return_value=response):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result.error is True
        assert result.reply == UNAVAILABLE_REPLY

    def test_send_failure_reply_never_contains_cause(self, client, payload):
        # Arrange
        with patch(POST_TARGET, side_effect=requests.ConnectionError("secret-host:9999 refused")):
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert "secret-host" not in result.reply


class TestAssistantClientConfig:
    """Test suite for client construction from config."""

    def test_from_config_zero_timeout_means_no_timeout(self):
        # Act
        client = AssistantClient.from_config({"api_url": API_URL, "timeout_seconds": 0.0})

        # Assert
        assert client.api_url == API_URL
        assert client.timeout_seconds is None

    def test_from_config_passes_timeout_to_requests(self, payload):
        # Arrange
        client = AssistantClient.from_config({"api_url": API_URL, "timeout_seconds": 12.5})

        with patch(POST_TARGET, return_value=_response(body={"reply": "ok"})) as mock_post:
            # Act
            client.send_blocking(payload)

        # Assert
        assert mock_post.call_args.kwargs["timeout"] == 12.5


class TestAssistantClientBodyEncoding:
    """Test suite for request bodies built from real host data, encoded by requests."""

    @pytest.mark.parametrize(
        "context,path,expected",
        [
            (
                build_snapshot({"metabolites": [make_metabolite("lactate", 0.01, log2fc=float("nan"), fc=float("nan"))]})
                .to_dict(),
                ("topHits", 0, "log2fc"),
                None,
            ),
            (
                build_snapshot({"metabolites": [make_metabolite("citrate", 0.02, log2fc=float("inf"))]}).to_dict(),
                ("topHits", 0, "log2fc"),
                None,
            ),
            (
                {"selection": {"normalMean": float("nan"), "tumorMean": float("-inf")}},
                ("selection", "tumorMean"),
                None,
            ),
            ({"filters": {"since": date(2024, 1, 1)}}, ("filters", "since"), "2024-01-01"),
            ({"filters": {"classes": ("Amino acids", "Lipids")}}, ("filters", "classes"), ["Amino acids", "Lipids"]),
        ],
    )
    def test_send_encodes_non_json_context_and_reaches_service(self, client, context, path, expected):
        # Arrange
        payload = RequestPayload(user_message="What stands out?", context=context)

        with patch(SESSION_SEND_TARGET, return_value=_wire_response({"reply": "hi"})) as mock_send:
            # Act
            result = asyncio.run(client.send(payload))

        # Assert
        assert result == AssistantReply("hi")
        mock_send.assert_called_once()
        prepared = mock_send.call_args.args[0]
        assert prepared.headers["Content-Type"] == "application/json"
        value = json.loads(prepared.body)["context"]
        for key in path:
            value = value[key]
        assert value == expected

    def test_send_keeps_finite_values_unchanged(self, client):
        # Arrange
        context = build_snapshot({"metabolites": [make_metabolite("lactate", 0.01, log2fc=-1.5, fc=0.35)]}).to_dict()
        payload = RequestPayload(user_message="hi", context=context)

        with patch(SESSION_SEND_TARGET, return_value=_wire_response({"reply": "ok"})) as mock_send:
            # Act
            client.send_blocking(payload)

        # Assert
        hit = json.loads(mock_send.call_args.args[0].body)["context"]["topHits"][0]
        assert hit["log2fc"] == -1.5
        assert hit["fc"] == 0.35
        assert hit["p"] == 0.01

    def test_send_unencodable_body_returns_unavailable_reply(self, client, payload):
        # Arrange
        with patch(
            "metabolite_assistant.core.assistant_client._encode_payload",
            side_effect=TypeError("Object of type set is not JSON serializable"),
        ):
            with patch(POST_TARGET) as mock_post:
                # Act
                result = asyncio.run(client.send(payload))

        # Assert
        assert result == AssistantReply(UNAVAILABLE_REPLY, error=True)
        mock_post.assert_not_called()
