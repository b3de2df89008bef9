"""Fixtures for F1 tests - Word collection, questions and answer checking."""

import random

import pytest

from wordquiz.core.models import Word
from wordquiz.core.question_generator import QuestionGenerator


@pytest.fixture
def generator() -> QuestionGenerator:
    """Generator with a fixed seed."""
    return QuestionGenerator(random.Random(42))


@pytest.fixture
def target() -> Word:
    """Target word with a capitalized spelling."""
    return Word(id="w1", word="Ephemeral", definition="lasting for a very short time")
