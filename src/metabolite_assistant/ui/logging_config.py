"""
Centralized logging configuration for the assistant UI.

Configure once at the entry point (Streamlit app or script), not per component.
"""

import logging
import sys
from pathlib import Path

from metabolite_assistant.core.config_loader import load_logging_config


def configure_logging(level: int | None = None, config_path: Path | None = None) -> None:
    """
    Configure Python logging for the entire application.

    Truly idempotent: safe to call multiple times without side effects.
    Checks if root logger already has handlers before configuring.
    No force=True to avoid Streamlit handler issues.

    Args:
        level: Optional root level overriding the configured root_level
        config_path: Optional logging.yaml path (default: config/logging.yaml)
    """
    root_logger = logging.getLogger()

    # Only configure if no handlers exist (truly idempotent)
    if root_logger.handlers:
        return

    config = load_logging_config(config_path=config_path)
    root_level = level if level is not None else getattr(logging, str(config["root_level"]).upper(), logging.INFO)

    logging.basicConfig(
        level=root_level,
        format=config["format"],
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for logger_name, logger_level in config["module_levels"].items():
        logging.getLogger(logger_name).setLevel(logger_level.upper())

    # Reduce noise
    for logger_name, logger_level in config["reduce_noise"].items():
        logging.getLogger(logger_name).setLevel(logger_level.upper())
