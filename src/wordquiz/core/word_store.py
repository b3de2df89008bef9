"""Word store adapters.

The session engine only needs two operations from a store:
get_words() and record_attempt(). Storage itself lives outside the
engine; these adapters cover tests (in memory) and the CLI (JSON file).

Output structure (JSON):
- words_v1 schema with a words array
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from wordquiz.core.models import Word, WordNotFoundError, WordStats

logger = structlog.get_logger(__name__)

WORDS_SCHEMA = "words_v1"


class WordStore:
    """Interface consumed by the session engine."""

    def get_words(self) -> list[Word]:
        """Return a snapshot of the active collection."""
        raise NotImplementedError

    def record_attempt(self, word_id: str, correct: bool) -> list[Word]:
        """Increment mastery stats and return the updated collection."""
        raise NotImplementedError


class InMemoryWordStore(WordStore):
    """Copy-on-write store kept in memory.

    Every update swaps in a new list; callers always get copies, so a
    snapshot taken at session start never changes under them.
    """

    def __init__(self, words: list[Word] | None = None):
        self._words: tuple[Word, ...] = tuple(words or ())

    def get_words(self) -> list[Word]:
        return list(self._words)

    def record_attempt(self, word_id: str, correct: bool) -> list[Word]:
        updated = []
        found = False
        for word in self._words:
            if word.id == word_id:
                found = True
                stats = WordStats(
                    correct=word.stats.correct + (1 if correct else 0),
                    incorrect=word.stats.incorrect + (0 if correct else 1),
                )
                word = replace(word, stats=stats)
            updated.append(word)

        if not found:
            raise WordNotFoundError(f"Word not found: {word_id}")

        self._words = tuple(updated)
        self._on_change()

        logger.debug("attempt_recorded", word_id=word_id, correct=correct)
        return list(self._words)

    def _on_change(self) -> None:
        """Hook for subclasses that persist the collection."""


class JsonWordStore(InMemoryWordStore):
    """Store backed by a words_v1 JSON file."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(self._load())

    def _load(self) -> list[Word]:
        if not self.path.exists():
            logger.info("word_file_not_found", path=str(self.path))
            return []

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)

        words = [Word.from_dict(item) for item in data.get("words", [])]
        logger.debug("words_loaded", path=str(self.path), count=len(words))
        return words

    def _on_change(self) -> None:
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "$schema": WORDS_SCHEMA,
            "words": [w.to_dict() for w in self._words],
        }

    def save(self) -> None:
        """Write the collection back to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
