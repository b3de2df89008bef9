"""Quiz domain types.

Words and their mastery stats, questions, sessions, grading results
and the error taxonomy shared by the session engine.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

# =============================================================================
# ENUMS
# =============================================================================


class GameMode(str, Enum):
    """Answer modes a quiz session can run in."""

    WRITTEN = "written"
    MC_DEF = "mc_def"
    MC_WORD = "mc_word"
    SENTENCE_BUILDER = "sentence_builder"

    @property
    def is_choice(self) -> bool:
        """Multiple-choice modes pick among options."""
        return self in (GameMode.MC_DEF, GameMode.MC_WORD)

    @property
    def is_remote_graded(self) -> bool:
        """Sentence answers are graded by the language model."""
        return self is GameMode.SENTENCE_BUILDER

    @property
    def title(self) -> str:
        """Menu title."""
        return _MODE_TITLES[self]

    @property
    def instruction(self) -> str:
        """Instruction shown above the question."""
        if self is GameMode.MC_WORD:
            return "What is the definition of:"
        if self is GameMode.SENTENCE_BUILDER:
            return "Use this word in a sentence:"
        return "What word matches this definition?"


_MODE_TITLES = {
    GameMode.MC_DEF: "Pick the Word (Easy)",
    GameMode.MC_WORD: "Pick the Definition (Medium)",
    GameMode.WRITTEN: "Written (Hard)",
    GameMode.SENTENCE_BUILDER: "Use it in a Sentence",
}


class SessionState(Enum):
    """States of the quiz session controller."""

    MENU = auto()
    PLAYING = auto()
    FEEDBACK = auto()
    FINISHED = auto()


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class WordStats:
    """Per-word mastery counters."""

    correct: int = 0
    incorrect: int = 0

    @property
    def attempts(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float | None:
        """Share of correct attempts, None if never attempted."""
        if self.attempts == 0:
            return None
        return self.correct / self.attempts

    def to_dict(self) -> dict[str, int]:
        return {"correct": self.correct, "incorrect": self.incorrect}


@dataclass
class Word:
    """A vocabulary entry."""

    id: str
    word: str
    definition: str
    part_of_speech: str | None = None
    language: str = "en"
    stats: WordStats = field(default_factory=WordStats)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "word": self.word,
            "definition": self.definition,
            "part_of_speech": self.part_of_speech,
            "language": self.language,
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Word:
        """Build a Word from its serialized form."""
        stats = data.get("stats") or {}
        return cls(
            id=str(data["id"]),
            word=data["word"],
            definition=data.get("definition", ""),
            part_of_speech=data.get("part_of_speech"),
            language=data.get("language", "en"),
            stats=WordStats(
                correct=int(stats.get("correct", 0)),
                incorrect=int(stats.get("incorrect", 0)),
            ),
        )


@dataclass(frozen=True)
class Question:
    """One quiz question. `options` is set only for choice modes."""

    target: Word
    options: tuple[Word, ...] | None = None

    def prompt_text(self, mode: GameMode) -> str:
        """What the learner is shown for this question."""
        if mode in (GameMode.MC_WORD, GameMode.SENTENCE_BUILDER):
            return self.target.word
        return self.target.definition

    @staticmethod
    def option_label(option: Word, mode: GameMode) -> str:
        """How a choice option is displayed."""
        return option.definition if mode is GameMode.MC_WORD else option.word


@dataclass
class Session:
    """State of one quiz run, owned by the SessionController."""

    mode: GameMode
    queue: list[Word]
    total: int
    score: int = 0
    session_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    @property
    def asked(self) -> int:
        """Questions drawn from the queue so far."""
        return self.total - len(self.queue)


@dataclass(frozen=True)
class GradingResult:
    """Verdict and feedback for a sentence-mode answer."""

    is_correct: bool
    feedback: str


@dataclass
class AnswerFeedback:
    """Feedback for the current question. `correct` is None while pending."""

    correct: bool | None
    message: str = ""


# =============================================================================
# ERRORS
# =============================================================================


class QuizError(Exception):
    """Base error for the quiz engine."""

    pass


class InsufficientWordsError(QuizError):
    """Not enough words to start a session in the requested mode."""

    def __init__(self, mode: GameMode, required: int, available: int):
        self.mode = mode
        self.required = required
        self.available = available
        if available == 0:
            message = "No words available. Please add some words first!"
        else:
            message = (
                f"Mode '{mode.value}' needs at least {required} words, "
                f"only {available} available"
            )
        super().__init__(message)


class InvalidStateError(QuizError):
    """Operation invoked in a state that does not allow it."""

    pass


class EmptyQueueError(QuizError):
    """Question requested from an exhausted queue."""

    pass


class WordNotFoundError(QuizError):
    """Word id not present in the store."""

    pass
