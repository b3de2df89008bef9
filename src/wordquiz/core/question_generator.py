"""Question generation.

Draws the next target from the session queue and, for choice modes,
picks distractors from the rest of the collection.
"""

from __future__ import annotations

import random
from typing import Sequence

import structlog

from wordquiz.core.models import (
    EmptyQueueError,
    GameMode,
    InsufficientWordsError,
    Question,
    Word,
)

logger = structlog.get_logger(__name__)

DEFAULT_CHOICE_COUNT = 4


class QuestionGenerator:
    """Builds questions from a queue of words.

    Args:
        rng: Random source (seed it for reproducible sessions)
        choice_count: Number of options in choice modes, target included
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        choice_count: int = DEFAULT_CHOICE_COUNT,
    ):
        self.rng = rng or random.Random()
        self.choice_count = choice_count

    def shuffle(self, words: Sequence[Word]) -> list[Word]:
        """Return a uniformly shuffled copy of `words`."""
        shuffled = list(words)
        self.rng.shuffle(shuffled)
        return shuffled

    def pick_distractors(
        self,
        target: Word,
        words: Sequence[Word],
        mode: GameMode = GameMode.MC_DEF,
    ) -> list[Word]:
        """Draw distinct distractors uniformly, never the target itself."""
        needed = self.choice_count - 1
        seen: set[str] = {target.id}
        candidates = []
        for word in words:
            if word.id not in seen:
                seen.add(word.id)
                candidates.append(word)

        if len(candidates) < needed:
            raise InsufficientWordsError(
                mode, required=self.choice_count, available=len(candidates) + 1
            )
        return self.rng.sample(candidates, needed)

    def next_question(
        self,
        queue: Sequence[Word],
        words: Sequence[Word],
        mode: GameMode,
    ) -> tuple[Question, list[Word]]:
        """Pop the head of the queue and build a question for it.

        Args:
            queue: Remaining words, head first
            words: Full collection to draw distractors from
            mode: Game mode

        Returns:
            (question, remaining queue)

        Raises:
            EmptyQueueError: If the queue is exhausted
        """
        if not queue:
            raise EmptyQueueError("No words left in the queue")

        target = queue[0]
        remaining = list(queue[1:])

        options = None
        if mode.is_choice:
            options = [target, *self.pick_distractors(target, words, mode)]
            self.rng.shuffle(options)
            options = tuple(options)

        logger.debug(
            "question_generated",
            mode=mode.value,
            target_id=target.id,
            remaining=len(remaining),
        )

        return Question(target=target, options=options), remaining
