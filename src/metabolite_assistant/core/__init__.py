"""Core assistant logic: snapshot building, request orchestration, rendering."""

from metabolite_assistant.core.assistant_client import AssistantClient, AssistantReply, RequestPayload, TaskKind
from metabolite_assistant.core.chat_orchestrator import ChatOrchestrator
from metabolite_assistant.core.chat_session import ChatMessage, ChatSession, ChatUIState
from metabolite_assistant.core.markdown_renderer import escape_html, render_markdown, render_message
from metabolite_assistant.core.snapshot import build_snapshot, rank_top_entities, summarize_groups

__all__ = [
    "AssistantClient",
    "AssistantReply",
    "ChatMessage",
    "ChatOrchestrator",
    "ChatSession",
    "ChatUIState",
    "RequestPayload",
    "TaskKind",
    "build_snapshot",
    "escape_html",
    "rank_top_entities",
    "render_markdown",
    "render_message",
    "summarize_groups",
]
