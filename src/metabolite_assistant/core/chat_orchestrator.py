"""
ChatOrchestrator - Drives the assistant overlay's request lifecycle.

Composes the snapshot builder and the assistant client, and is the only component
allowed to mutate a ChatSession (transcript and UI flags).

UI state machine:
    Closed  --open_panel-->  Open/Idle  --submit-->  Open/Typing  --reply-->  Open/Idle
    Any state --close_panel--> Closed (in-flight requests keep running)

Concurrency policy: one in-flight exchange per orchestrator. A submission or
canned task started while another is pending is rejected (no transcript change, no
network call). The slot is claimed before the first await, so the check is race-free
on a single event loop.
"""

from collections.abc import Callable, Mapping
from typing import Any

import structlog

from metabolite_assistant.core.assistant_client import (
    AssistantClient,
    AssistantReply,
    RequestPayload,
    TaskKind,
)
from metabolite_assistant.core.chat_session import ChatMessage, ChatSession
from metabolite_assistant.core.dashboard_state import DashboardState
from metabolite_assistant.core.snapshot import (
    DEFAULT_TOP_HITS_LIMIT,
    build_selection_context,
    build_snapshot,
)

__all__ = ["ChatOrchestrator", "HostStateProvider"]

logger = structlog.get_logger()

HostStateProvider = Callable[[], "Mapping[str, Any] | DashboardState | None"]

CLEAR_GREETING = "Chat cleared. How can I help?"
NO_SELECTION_MESSAGE = "Select a metabolite in the table or charts first."

VOLCANO_PROMPT = "Explain the volcano plot for the current filters."
VOLCANO_REQUEST = "Explain the metabolite volcano plot."
SELECTION_PROMPT = "Explain the selected metabolite: {name}."
SELECTION_REQUEST = "Explain the selected metabolite with group differences."
FILTERS_PROMPT = "Summarize the current metabolite filters and highlights."
FILTERS_REQUEST = "Summarize the current filters and notable metabolites."


class ChatOrchestrator:
    """
    Top-level coordinator for the dashboard chat overlay.

    Every public method is callable independently by the surrounding application
    (buttons, keyboard shortcuts, scripts).
    """

    def __init__(
        self,
        session: ChatSession,
        client: AssistantClient,
        state_provider: HostStateProvider,
        top_hits_limit: int = DEFAULT_TOP_HITS_LIMIT,
        greeting: str = CLEAR_GREETING,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            session: Caller-owned chat session to drive
            client: Assistant client used for every exchange
            state_provider: Zero-argument callable returning the host's current data
            top_hits_limit: Maximum top hits in each snapshot (default: 5)
            greeting: Assistant message appended after clearing the transcript
        """
        self.session = session
        self.client = client
        self.state_provider = state_provider
        self.top_hits_limit = top_hits_limit
        self.greeting = greeting
        self._in_flight: TaskKind | None = None

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        state_provider: HostStateProvider,
        session: ChatSession | None = None,
    ) -> "ChatOrchestrator":
        """Build an orchestrator from load_assistant_config() output."""
        return cls(
            session=session or ChatSession(),
            client=AssistantClient.from_config(config),
            state_provider=state_provider,
            top_hits_limit=config.get("top_hits_limit", DEFAULT_TOP_HITS_LIMIT),
            greeting=config.get("greeting", CLEAR_GREETING),
        )

    # ---------- UI affordances ----------

    @property
    def is_busy(self) -> bool:
        """True while an exchange is in flight."""
        return self._in_flight is not None

    def open_panel(self) -> None:
        self.session.ui_state.panel_open = True

    def close_panel(self) -> None:
        """Close the panel. A pending reply is still appended when it arrives."""
        self.session.ui_state.panel_open = False

    def toggle_panel(self) -> None:
        if self.session.ui_state.panel_open:
            self.close_panel()
        else:
            self.open_panel()

    def show_typing_indicator(self) -> None:
        self.session.ui_state.typing = True

    def hide_typing_indicator(self) -> None:
        self.session.ui_state.typing = False

    def append_user_message(self, text: str) -> ChatMessage:
        return self.session.append_message("user", text)

    def append_assistant_message(self, text: str) -> ChatMessage:
        return self.session.append_message("assistant", text)

    def clear_transcript(self) -> None:
        """Empty the transcript and greet again. UI flags are left untouched."""
        self.session.clear_messages()
        self.append_assistant_message(self.greeting)

    # ---------- Request lifecycle ----------

    def _claim(self, task: TaskKind) -> bool:
        """Claim the in-flight slot, or log and refuse if it is taken."""
        if self._in_flight is not None:
            logger.warning(
                "assistant_request_rejected",
                task=task.value,
                in_flight_task=self._in_flight.value,
            )
            return False
        self._in_flight = task
        return True

    def _release(self) -> None:
        self._in_flight = None
        self.hide_typing_indicator()

    def _snapshot_context(self) -> dict[str, Any]:
        return build_snapshot(self.state_provider(), top_hits_limit=self.top_hits_limit).to_dict()

    async def _exchange(self, payload: RequestPayload) -> AssistantReply:
        reply = await self.client.send(payload)
        self.append_assistant_message(reply.reply)
        return reply

    async def submit(self, user_text: str | None) -> AssistantReply | None:
        """
        Send a free-form user question grounded in the current dashboard snapshot.

        Whitespace-only input is ignored without any side effect.

        Args:
            user_text: Raw text from the chat input

        Returns:
            AssistantReply, or None if the input was empty or the request was rejected
        """
        text = (user_text or "").strip()
        if not text:
            return None
        if not self._claim(TaskKind.chat):
            return None

        try:
            self.append_user_message(text)
            self.open_panel()
            self.show_typing_indicator()
            context = self._snapshot_context()
            return await self._exchange(RequestPayload(user_message=text, task=TaskKind.chat, context=context))
        finally:
            self._release()

    async def _run_canned_task(self, task: TaskKind, prompt: str, request: str) -> AssistantReply | None:
        """Run a fixed-prompt task grounded in the full snapshot."""
        if not self._claim(task):
            return None

        try:
            self.open_panel()
            self.show_typing_indicator()
            self.append_user_message(prompt)
            context = self._snapshot_context()
            return await self._exchange(RequestPayload(user_message=request, task=task, context=context))
        finally:
            self._release()

    async def interpret_volcano(self) -> AssistantReply | None:
        """Ask the assistant to explain the volcano plot for the current filters."""
        return await self._run_canned_task(TaskKind.interpret_volcano, VOLCANO_PROMPT, VOLCANO_REQUEST)

    async def summarize_filters(self) -> AssistantReply | None:
        """Ask the assistant to summarize active filters and notable metabolites."""
        return await self._run_canned_task(TaskKind.filter_summary, FILTERS_PROMPT, FILTERS_REQUEST)

    async def explain_selection(self) -> AssistantReply | None:
        """
        Ask the assistant to explain the selected metabolite and its group differences.

        Sends only the selection, its per-group sample values and the active filters.
        With nothing selected, shows an instructional message and makes no request.

        Returns:
            AssistantReply, or None if nothing is selected or the request was rejected
        """
        if not self._claim(TaskKind.metabolite_detail):
            return None

        try:
            self.open_panel()
            self.show_typing_indicator()
            context = build_selection_context(self.state_provider())
            if context is None:
                self.append_assistant_message(NO_SELECTION_MESSAGE)
                return None

            name = context["selection"]["metabolite"] or "Unknown"
            self.append_user_message(SELECTION_PROMPT.format(name=name))
            return await self._exchange(
                RequestPayload(user_message=SELECTION_REQUEST, task=TaskKind.metabolite_detail, context=context)
            )
        finally:
            self._release()
