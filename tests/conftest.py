"""Shared fixtures for wordquiz tests.

Tests are organized by feature (f1 collection and questions, f2 grading,
f3 quiz session, f4 CLI and config), each with its own conftest.py.

No test touches the network or sleeps: the LLM transport is a MagicMock
and time.sleep is patched in the grading module.
"""

import random
from unittest.mock import MagicMock, patch

import pytest

from wordquiz.config.app_config import GradingConfig, clear_config_cache
from wordquiz.core.evaluator import AnswerEvaluator
from wordquiz.core.grading_client import GradingClient
from wordquiz.core.models import Word
from wordquiz.core.question_generator import QuestionGenerator
from wordquiz.core.session import SessionController
from wordquiz.core.word_store import InMemoryWordStore
from wordquiz.llm.client import LLMResponse


def make_words(n: int) -> list[Word]:
    """Build n distinct words w01..wNN."""
    return [
        Word(
            id=f"w{i:02d}",
            word=f"word{i}",
            definition=f"definition of word {i}",
            part_of_speech="noun",
        )
        for i in range(1, n + 1)
    ]


def llm_reply(content: str) -> LLMResponse:
    """LLMResponse as returned by LLMClient.chat."""
    return LLMResponse(content=content, model="test-model", provider="gemini")


@pytest.fixture
def sample_words() -> list[Word]:
    """Small realistic vocabulary list."""
    return [
        Word(id="w1", word="ephemeral", definition="lasting for a very short time", part_of_speech="adjective"),
        Word(id="w2", word="ubiquitous", definition="found everywhere", part_of_speech="adjective"),
        Word(id="w3", word="mitigate", definition="make less severe", part_of_speech="verb"),
        Word(id="w4", word="candor", definition="openness and honesty", part_of_speech="noun"),
        Word(id="w5", word="laconic", definition="using very few words", part_of_speech="adjective"),
    ]


@pytest.fixture
def word_store(sample_words) -> InMemoryWordStore:
    return InMemoryWordStore(sample_words)


@pytest.fixture
def mock_llm():
    """LLM transport with credentials and a default CORRECT reply."""
    llm = MagicMock()
    llm.config = MagicMock()
    llm.config.provider = "gemini"
    llm.config.model = "test-model"
    llm.has_credentials.return_value = True
    llm.chat.return_value = llm_reply("VERDICT: CORRECT\nFEEDBACK: Great usage!")
    return llm


@pytest.fixture
def grading_config() -> GradingConfig:
    """Default protocol settings without the chunk replay delay."""
    return GradingConfig(chunk_delay=0)


@pytest.fixture
def mock_sleep():
    """Patch the sleep used for backoff and chunk replay."""
    with patch("wordquiz.core.grading_client.time.sleep") as sleep:
        yield sleep


@pytest.fixture
def grading_client(mock_llm, grading_config, mock_sleep) -> GradingClient:
    return GradingClient(mock_llm, grading_config)


@pytest.fixture
def controller(word_store, grading_client) -> SessionController:
    """Controller with a seeded generator."""
    return SessionController(
        word_store,
        AnswerEvaluator(grading_client),
        QuestionGenerator(random.Random(1234)),
    )


@pytest.fixture
def words_factory():
    """Factory for collections of n distinct words."""
    return make_words


@pytest.fixture
def make_reply():
    """Factory for LLM replies."""
    return llm_reply


@pytest.fixture
def fresh_app_config():
    """Drop the cached app config before and after the test."""
    clear_config_cache()
    yield
    clear_config_cache()
