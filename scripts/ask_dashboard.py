#!/usr/bin/env python3
"""Ask the dashboard assistant a question from the command line.

Loads a saved dashboard state (the host's metaboliteData object as JSON), runs one
exchange through the orchestrator and prints the transcript.

Usage:
    python scripts/ask_dashboard.py --state dashboard.json "Which metabolites stand out?"
    python scripts/ask_dashboard.py --state dashboard.json --task interpret_volcano
    python scripts/ask_dashboard.py --state dashboard.json --snapshot-only
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from metabolite_assistant.core.chat_orchestrator import ChatOrchestrator
from metabolite_assistant.core.config_loader import load_assistant_config
from metabolite_assistant.core.snapshot import build_snapshot
from metabolite_assistant.ui.logging_config import configure_logging

logger = structlog.get_logger(__name__)

TASKS = ("chat", "interpret_volcano", "metabolite_detail", "filter_summary")


def load_dashboard_state(state_path: Path | None) -> dict:
    """Load host dashboard data from a JSON file (empty state if no file)."""
    if state_path is None:
        return {}
    with open(state_path) as f:
        return json.load(f)


async def run_task(orchestrator: ChatOrchestrator, task: str, question: str | None) -> None:
    if task == "interpret_volcano":
        await orchestrator.interpret_volcano()
    elif task == "metabolite_detail":
        await orchestrator.explain_selection()
    elif task == "filter_summary":
        await orchestrator.summarize_filters()
    else:
        await orchestrator.submit(question)


def main():
    """Run one assistant exchange and print the transcript."""
    parser = argparse.ArgumentParser(description="Ask the metabolite dashboard assistant")
    parser.add_argument("question", nargs="?", default=None, help="Free-form question (task=chat)")
    parser.add_argument("--state", type=Path, default=None, help="Path to dashboard state JSON")
    parser.add_argument("--task", choices=TASKS, default="chat", help="Task to run (default: chat)")
    parser.add_argument("--config", type=Path, default=None, help="Path to assistant.yaml")
    parser.add_argument(
        "--snapshot-only",
        action="store_true",
        help="Print the grounding snapshot without contacting the assistant",
    )
    args = parser.parse_args()

    configure_logging()
    config = load_assistant_config(config_path=args.config)
    dashboard_state = load_dashboard_state(args.state)

    if args.snapshot_only:
        snapshot = build_snapshot(dashboard_state, top_hits_limit=config["top_hits_limit"])
        print(json.dumps(snapshot.to_dict(), indent=2, default=str))
        return 0

    if args.task == "chat" and not (args.question or "").strip():
        parser.error("a question is required for task=chat")

    orchestrator = ChatOrchestrator.from_config(config, lambda: dashboard_state)
    logger.info("ask_dashboard_start", task=args.task, api_url=config["api_url"])
    asyncio.run(run_task(orchestrator, args.task, args.question))

    for message in orchestrator.session.messages:
        print(f"[{message.role}] {message.text}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
