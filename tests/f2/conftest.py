"""Fixtures for F2 tests - LLM transport and sentence grading."""

from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture
def mock_openai_client():
    """Create a mock OpenAI client."""
    with patch("wordquiz.llm.client.OpenAI") as mock:
        mock_instance = MagicMock()
        mock.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def app_config_file(tmp_path, fresh_app_config):
    """Point the app config at a temporary YAML file."""
    config_file = tmp_path / "wordquiz_v1.yaml"
    with patch("wordquiz.config.app_config.CONFIG_FILE", config_file):
        yield config_file
