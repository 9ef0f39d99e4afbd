"""
Pytest configuration and fixtures for metabolite assistant tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src and tests to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from metabolite_assistant.core.assistant_client import AssistantClient, AssistantReply  # noqa: E402
from metabolite_assistant.core.chat_orchestrator import ChatOrchestrator  # noqa: E402
from metabolite_assistant.core.chat_session import ChatSession  # noqa: E402

from fixtures.factories import make_metabolite, make_samples  # noqa: E402


@pytest.fixture(scope="session")
def project_root():
    """Return project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def metabolites():
    """Seven metabolites with mixed p-values (one non-numeric)."""
    return [
        make_metabolite("glutamine", 0.04),
        make_metabolite("lactate", 0.0001),
        make_metabolite("citrate", "n/a"),
        make_metabolite("alanine", 0.2),
        make_metabolite("glycine", 0.003),
        make_metabolite("serine", 0.01),
        make_metabolite("taurine", 0.0005),
    ]


@pytest.fixture
def selected_metabolite():
    """Selected metabolite with per-sample values."""
    return make_metabolite(
        "lactate",
        0.0001,
        normalMean=1.2,
        tumorMean=3.4,
        sampleValues=[
            {"group": "Normal", "value": 1.0},
            {"group": "Tumor", "value": 3.0},
            {"group": "Tumor", "value": float("nan")},
            {"group": None, "value": 2.0},
            {"group": "tumor", "value": "bad"},
        ],
    )


@pytest.fixture
def dashboard_data(metabolites, selected_metabolite):
    """Fully populated host data object (metaboliteData)."""
    return {
        "filters": {"class": "Amino acids", "pMax": 0.05},
        "summary": {"significant": 4},
        "sampleMeta": make_samples(["Normal tissue", "normal", "TUMOR", "Tumor-2", "pooled QC", "", None]),
        "metabolites": metabolites,
        "filtered": metabolites[:5],
        "selected": selected_metabolite,
    }


@pytest.fixture
def mock_client():
    """AssistantClient whose send() resolves immediately with a fixed reply."""
    client = MagicMock(spec=AssistantClient)
    client.send = AsyncMock(return_value=AssistantReply("Lactate is elevated in tumor samples."))
    return client


@pytest.fixture
def orchestrator(mock_client, dashboard_data):
    """Orchestrator over a fresh session, mock client and populated dashboard."""
    return ChatOrchestrator(ChatSession(), mock_client, lambda: dashboard_data)
