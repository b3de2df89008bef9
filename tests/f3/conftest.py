"""Fixtures for F3 tests - Quiz session controller."""

import random

import pytest

from wordquiz.core.evaluator import AnswerEvaluator
from wordquiz.core.question_generator import QuestionGenerator
from wordquiz.core.session import SessionController


@pytest.fixture
def make_controller(grading_client):
    """Factory for a controller over a given store, seeded generator."""

    def _make(store, seed=0):
        return SessionController(
            store,
            AnswerEvaluator(grading_client),
            QuestionGenerator(random.Random(seed)),
        )

    return _make
