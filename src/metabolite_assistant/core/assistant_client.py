"""
Assistant Client - HTTP client for the remote AI chat endpoint.

Sends a structured request (user message, task tag, grounding context) and
normalizes every outcome into a single AssistantReply. Callers never need an error
branch: HTTP errors, network exceptions and malformed bodies all degrade to a fixed
user-facing fallback message, while the underlying cause is logged.

Privacy: the raw user message is never logged, only its SHA256 hash.
"""

import asyncio
import hashlib
import json
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import requests
import structlog

__all__ = [
    "TaskKind",
    "RequestPayload",
    "AssistantReply",
    "AssistantClient",
    "NO_RESPONSE_REPLY",
    "UNAVAILABLE_REPLY",
]

logger = structlog.get_logger()

NO_RESPONSE_REPLY = "No response."
UNAVAILABLE_REPLY = "Sorry, the AI service is unavailable right now."


class TaskKind(str, Enum):
    """Task tag telling the assistant what kind of answer is expected."""

    chat = "chat"
    interpret_volcano = "interpret_volcano"
    metabolite_detail = "metabolite_detail"
    filter_summary = "filter_summary"


@dataclass(frozen=True)
class RequestPayload:
    """Request body sent to the assistant endpoint."""

    user_message: str
    task: TaskKind = TaskKind.chat
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_message": self.user_message,
            "task": self.task.value,
            "context": self.context,
        }


@dataclass(frozen=True)
class AssistantReply:
    """Normalized assistant reply. ``error`` marks the fallback path."""

    reply: str
    error: bool = False

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"reply": self.reply, "error": True}
        return {"reply": self.reply}


def _sanitize_for_json(obj: Any) -> Any:
    """Recursively replace NaN/Inf floats with None, as JSON has no encoding for them."""
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {str(k): _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    return obj


def _encode_payload(payload: RequestPayload) -> bytes:
    """
    Encode the request body.

    Non-finite floats become null and values json cannot encode natively (dates,
    decimals, host objects) are sent as their string form.
    """
    return json.dumps(_sanitize_for_json(payload.to_dict()), default=str).encode("utf-8")


def _extract_reply(body: Any) -> str:
    """Pick ``reply``, then ``text``, then the no-response placeholder.

    Non-string replies (numbers, objects) are returned as JSON text.
    """
    if not isinstance(body, dict):
        return NO_RESPONSE_REPLY
    reply = body.get("reply") or body.get("text")
    if not reply:
        return NO_RESPONSE_REPLY
    if isinstance(reply, str):
        return reply
    return json.dumps(reply, default=str)


class AssistantClient:
    """
    Client for the remote assistant chat endpoint.

    The blocking HTTP call runs in a worker thread so the event loop driving the
    chat UI stays responsive while a reply is pending.
    """

    def __init__(self, api_url: str, timeout_seconds: float | None = None):
        """
        Initialize assistant client.

        Args:
            api_url: Chat endpoint URL (POST, JSON body)
            timeout_seconds: Optional request timeout. None waits indefinitely.
        """
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds or None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AssistantClient":
        """
        Build a client from load_assistant_config() output.

        Args:
            config: Assistant config dict (api_url, timeout_seconds)

        Returns:
            AssistantClient instance
        """
        return cls(api_url=config["api_url"], timeout_seconds=config.get("timeout_seconds") or None)

    async def send(self, payload: RequestPayload) -> AssistantReply:
        """
        Send a request to the assistant and return its normalized reply.

        Never raises: every failure mode becomes the unavailable fallback reply.

        Args:
            payload: Request payload

        Returns:
            AssistantReply (error=True on failure)
        """
        return await asyncio.to_thread(self.send_blocking, payload)

    def send_blocking(self, payload: RequestPayload) -> AssistantReply:
        """Synchronous variant of send() for scripts and non-async callers."""
        started = time.perf_counter()
        status_code: int | None = None

        try:
            response = requests.post(
                self.api_url,
                data=_encode_payload(payload),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
            status_code = response.status_code

            if not response.ok:
                logger.warning(
                    "assistant_request_failed",
                    status_code=status_code,
                    task=payload.task.value,
                    api_url=self.api_url,
                )
                return AssistantReply(UNAVAILABLE_REPLY, error=True)

            result = AssistantReply(_extract_reply(response.json()))

        except requests.Timeout:
            logger.warning(
                "assistant_request_timeout",
                timeout_seconds=self.timeout_seconds,
                task=payload.task.value,
            )
            return AssistantReply(UNAVAILABLE_REPLY, error=True)
        except (requests.RequestException, ValueError, TypeError) as e:
            # requests' JSONDecodeError is a ValueError; TypeError covers unencodable bodies
            logger.warning(
                "assistant_request_error",
                error=str(e),
                error_type=type(e).__name__,
                status_code=status_code,
                task=payload.task.value,
            )
            return AssistantReply(UNAVAILABLE_REPLY, error=True)

        logger.info(
            "assistant_request_completed",
            task=payload.task.value,
            status_code=status_code,
            latency_ms=round((time.perf_counter() - started) * 1000, 1),
            message_hash=hashlib.sha256(payload.user_message.encode()).hexdigest(),
        )
        return result
