"""Tests for word store adapters."""

import json

import pytest

from wordquiz.core.models import Word, WordNotFoundError, WordStats
from wordquiz.core.word_store import WORDS_SCHEMA, InMemoryWordStore, JsonWordStore, WordStore


class TestInMemoryWordStore:
    """Tests for the in-memory store."""

    def test_get_words_returns_copy(self, word_store):
        words = word_store.get_words()
        words.clear()

        assert len(word_store.get_words()) == 5

    def test_record_correct(self, word_store):
        updated = word_store.record_attempt("w1", True)

        target = next(w for w in updated if w.id == "w1")
        assert target.stats == WordStats(correct=1, incorrect=0)

    def test_record_incorrect(self, word_store):
        word_store.record_attempt("w2", False)
        word_store.record_attempt("w2", False)

        target = next(w for w in word_store.get_words() if w.id == "w2")
        assert target.stats.incorrect == 2
        assert target.stats.accuracy == 0.0

    def test_snapshot_not_mutated(self, word_store):
        """Words handed out earlier keep their old stats."""
        before = word_store.get_words()

        word_store.record_attempt("w1", True)

        assert before[0].stats.attempts == 0

    def test_unknown_word(self, word_store):
        with pytest.raises(WordNotFoundError):
            word_store.record_attempt("missing", True)

    def test_base_class_is_abstract(self):
        with pytest.raises(NotImplementedError):
            WordStore().get_words()


class TestJsonWordStore:
    """Tests for the JSON-backed store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonWordStore(tmp_path / "words.json")

        assert store.get_words() == []

    def test_load(self, tmp_path, sample_words):
        path = tmp_path / "words.json"
        path.write_text(
            json.dumps({"$schema": WORDS_SCHEMA, "words": [w.to_dict() for w in sample_words]})
        )

        store = JsonWordStore(path)

        assert [w.word for w in store.get_words()] == [w.word for w in sample_words]

    def test_record_persists(self, tmp_path, sample_words):
        path = tmp_path / "words.json"
        path.write_text(json.dumps({"words": [w.to_dict() for w in sample_words]}))
        store = JsonWordStore(path)

        store.record_attempt("w3", True)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["$schema"] == WORDS_SCHEMA
        saved = {item["id"]: item for item in data["words"]}
        assert saved["w3"]["stats"] == {"correct": 1, "incorrect": 0}

        reloaded = JsonWordStore(path)
        assert next(w for w in reloaded.get_words() if w.id == "w3").stats.correct == 1

    def test_save_creates_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "words.json"
        store = JsonWordStore(path)

        store.save()

        assert json.loads(path.read_text(encoding="utf-8")) == {"$schema": WORDS_SCHEMA, "words": []}


class TestWordSerialization:
    """Tests for Word.from_dict defaults."""

    def test_minimal_entry(self):
        word = Word.from_dict({"id": 7, "word": "terse"})

        assert word.id == "7"
        assert word.definition == ""
        assert word.language == "en"
        assert word.stats.attempts == 0
        assert word.stats.accuracy is None
