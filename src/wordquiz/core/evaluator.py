"""Answer evaluation.

Written and choice answers are checked locally and deterministically.
Sentence answers are handed to the GradingClient.
"""

from __future__ import annotations

from typing import Any, Iterator

import structlog

from wordquiz.core.grading_client import GradingClient, GradingEvent
from wordquiz.core.models import GameMode, Question, Word
from wordquiz.utils.text_utils import normalize_answer

logger = structlog.get_logger(__name__)


def check_written(answer: str, target: Word) -> bool:
    """Typed answer matches the word, ignoring case and surrounding spaces."""
    return normalize_answer(answer) == normalize_answer(target.word)


def check_choice(answer: Word | str, target: Word) -> bool:
    """Selected option is the target. Accepts the Word or its id."""
    answer_id = answer.id if isinstance(answer, Word) else answer
    return answer_id == target.id


class AnswerEvaluator:
    """Decides correctness per game mode."""

    def __init__(self, grading_client: GradingClient):
        self.grading_client = grading_client

    def evaluate(self, question: Question, mode: GameMode, answer: Any) -> bool:
        """Check a written or choice answer.

        Raises:
            ValueError: For sentence mode, which is graded remotely
        """
        if mode is GameMode.WRITTEN:
            is_correct = check_written(str(answer), question.target)
        elif mode.is_choice:
            is_correct = check_choice(answer, question.target)
        else:
            raise ValueError(f"Mode '{mode.value}' is graded remotely, use grade_sentence()")

        logger.debug(
            "answer_evaluated",
            mode=mode.value,
            target_id=question.target.id,
            is_correct=is_correct,
        )
        return is_correct

    def grade_sentence(self, question: Question, sentence: str) -> Iterator[GradingEvent]:
        """Start remote grading of a sentence; returns the event stream."""
        target = question.target
        return self.grading_client.stream(target.word, target.definition, sentence)
