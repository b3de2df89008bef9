"""Fixtures for F4 tests - CLI and configuration."""

import json

import pytest

from wordquiz.core.word_store import WORDS_SCHEMA


@pytest.fixture
def data_dir(tmp_path):
    """Return a helper that writes a words file and returns its directory."""

    def _write(words):
        path = tmp_path / "words_v1.json"
        path.write_text(
            json.dumps({"$schema": WORDS_SCHEMA, "words": [w.to_dict() for w in words]}),
            encoding="utf-8",
        )
        return tmp_path

    return _write
