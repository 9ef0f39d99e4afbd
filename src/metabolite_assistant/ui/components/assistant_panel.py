"""
Assistant Panel - Streamlit overlay for the dashboard chat assistant.

Thin wiring only: every button and input dispatches to ChatOrchestrator, which owns
all state transitions. The orchestrator (and its ChatSession) lives in
st.session_state so the transcript survives Streamlit reruns.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

import streamlit as st

from metabolite_assistant.core.chat_orchestrator import ChatOrchestrator, HostStateProvider
from metabolite_assistant.core.chat_session import ChatSession
from metabolite_assistant.core.config_loader import load_assistant_config

SESSION_KEY = "assistant_orchestrator"
TYPING_LABEL = "Assistant is typing…"


class AssistantPanel:
    """Streamlit chat overlay bound to a ChatOrchestrator."""

    @staticmethod
    def get_orchestrator(state_provider: HostStateProvider, config: dict[str, Any] | None = None) -> ChatOrchestrator:
        """
        Get (or create) the orchestrator stored in session state.

        The state provider is refreshed on every call so it always reads the data the
        current rerun is displaying.

        Args:
            state_provider: Zero-argument callable returning the host dashboard data
            config: Optional assistant config (default: load_assistant_config())

        Returns:
            ChatOrchestrator for this browser session
        """
        if SESSION_KEY not in st.session_state:
            st.session_state[SESSION_KEY] = ChatOrchestrator.from_config(
                config or load_assistant_config(),
                state_provider,
                session=ChatSession(),
            )
        orchestrator: ChatOrchestrator = st.session_state[SESSION_KEY]
        orchestrator.state_provider = state_provider
        return orchestrator

    @staticmethod
    def _run(orchestrator: ChatOrchestrator, coroutine: Coroutine[Any, Any, Any]) -> Any:
        """Run one orchestrator coroutine to completion behind a typing spinner."""
        with st.spinner(TYPING_LABEL):
            return asyncio.run(coroutine)

    @staticmethod
    def render_transcript(session: ChatSession) -> None:
        """Render the transcript. Message HTML is escaped before markdown expansion."""
        for message in session.messages:
            with st.chat_message(message.role):
                st.markdown(message.to_html(), unsafe_allow_html=True)

    @staticmethod
    def render(state_provider: HostStateProvider, config: dict[str, Any] | None = None) -> None:
        """
        Render the floating toggle and, when open, the chat panel.

        Args:
            state_provider: Zero-argument callable returning the host dashboard data
            config: Optional assistant config
        """
        orchestrator = AssistantPanel.get_orchestrator(state_provider, config)

        if st.button("💬 Ask AI", key="assistant_fab"):
            orchestrator.toggle_panel()

        if not orchestrator.session.ui_state.panel_open:
            return

        with st.container(border=True):
            volcano_col, selection_col, filters_col, clear_col, close_col = st.columns(5)
            if volcano_col.button("Interpret volcano", key="assistant_volcano"):
                AssistantPanel._run(orchestrator, orchestrator.interpret_volcano())
            if selection_col.button("Explain selection", key="assistant_selection"):
                AssistantPanel._run(orchestrator, orchestrator.explain_selection())
            if filters_col.button("Summarize filters", key="assistant_filters"):
                AssistantPanel._run(orchestrator, orchestrator.summarize_filters())
            if clear_col.button("Clear", key="assistant_clear"):
                orchestrator.clear_transcript()
            if close_col.button("Close", key="assistant_close"):
                orchestrator.close_panel()
                st.rerun()

            AssistantPanel.render_transcript(orchestrator.session)

            user_text = st.chat_input("Ask about the data on screen", key="assistant_input")
            if user_text:
                AssistantPanel._run(orchestrator, orchestrator.submit(user_text))
                st.rerun()
