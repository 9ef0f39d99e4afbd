"""
ChatSession - Caller-owned chat transcript and UI state.

Replaces ambient, process-wide globals: the session is created by the caller and
handed to the orchestrator, which is the only component that mutates it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

from metabolite_assistant.core.markdown_renderer import render_message

__all__ = ["ChatMessage", "ChatUIState", "ChatSession"]

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A single message in the visible transcript."""

    role: Role
    text: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    def to_html(self) -> str:
        """Escaped and rendered HTML for display."""
        return render_message(self.text)


@dataclass
class ChatUIState:
    """Panel visibility and typing indicator flags."""

    panel_open: bool = False
    typing: bool = False

    @property
    def label(self) -> str:
        """State machine label: Closed, Open/Idle or Open/Typing."""
        if not self.panel_open:
            return "Closed"
        return "Open/Typing" if self.typing else "Open/Idle"


class ChatSession:
    """
    Transcript plus UI state for one chat overlay.

    The transcript is append-only; the only other mutation is clearing it wholesale.
    """

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []
        self.ui_state = ChatUIState()

    @property
    def messages(self) -> list[ChatMessage]:
        """Transcript in chronological order (copy)."""
        return self._messages.copy()

    def append_message(self, role: Role, text: str) -> ChatMessage:
        """
        Append a message to the transcript.

        Args:
            role: "user" or "assistant"
            text: Raw message text (rendered only at display time)

        Returns:
            The appended ChatMessage
        """
        message = ChatMessage(role=role, text=text)
        self._messages.append(message)
        return message

    def clear_messages(self) -> None:
        self._messages = []

    def serialize(self) -> dict[str, Any]:
        """
        Serialize session state to dict (for export and debugging).

        Returns:
            Serializable dict representation
        """
        return {
            "messages": [
                {
                    "id": msg.id,
                    "role": msg.role,
                    "text": msg.text,
                    "timestamp": msg.timestamp.isoformat(),
                }
                for msg in self._messages
            ],
            "ui_state": {
                "panel_open": self.ui_state.panel_open,
                "typing": self.ui_state.typing,
            },
        }
