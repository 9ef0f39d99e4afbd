"""Tests for logging configuration module.

Following the project test conventions:
- AAA pattern (Arrange-Act-Assert)
- Descriptive test names: test_unit_scenario_expectedBehavior
- Test isolation (root logger state restored after each test)
"""

import logging

import pytest
import yaml
from metabolite_assistant.ui.logging_config import configure_logging


@pytest.fixture
def bare_root_logger():
    """Root logger whose handlers and level are restored after the test.

    Tests clear the handlers themselves: pytest attaches its capture handlers
    after fixture setup.
    """
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    yield root_logger
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)


class TestConfigureLogging:
    """Test suite for configure_logging()."""

    def test_configure_logging_is_idempotent(self, bare_root_logger):
        # Arrange
        bare_root_logger.handlers.clear()

        # Act: Call configure_logging multiple times
        configure_logging()
        handler_count_1 = len(bare_root_logger.handlers)

        configure_logging()
        handler_count_2 = len(bare_root_logger.handlers)

        # Assert: Should only configure once (idempotent)
        assert handler_count_1 == handler_count_2
        assert handler_count_1 > 0

    def test_configure_logging_applies_yaml_settings(self, bare_root_logger, tmp_path):
        # Arrange
        bare_root_logger.handlers.clear()
        config_file = tmp_path / "logging.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "root_level": "WARNING",
                    "module_levels": {"metabolite_assistant.core": "DEBUG"},
                    "reduce_noise": {"urllib3": "ERROR"},
                }
            )
        )

        # Act
        configure_logging(config_path=config_file)

        # Assert
        assert bare_root_logger.level == logging.WARNING
        assert logging.getLogger("metabolite_assistant.core").level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.ERROR
        assert logging.getLogger("streamlit").level == logging.WARNING

    def test_configure_logging_explicit_level_wins(self, bare_root_logger, tmp_path):
        # Arrange
        bare_root_logger.handlers.clear()

        # Act
        configure_logging(level=logging.DEBUG, config_path=tmp_path / "missing.yaml")

        # Assert
        assert bare_root_logger.level == logging.DEBUG

    def test_configure_logging_skips_when_handlers_exist(self, bare_root_logger):
        # Arrange
        bare_root_logger.handlers.clear()
        existing = logging.NullHandler()
        bare_root_logger.addHandler(existing)

        # Act
        configure_logging()

        # Assert
        assert bare_root_logger.handlers == [existing]
