"""Text processing utilities.

Common text manipulation functions used across modules.
"""

import re
from typing import Iterator

# Patterns for removing thinking/reasoning blocks from LLM output
THINK_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<thinking>.*?</thinking>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]


def strip_think(text: str) -> str:
    """Remove thinking/reasoning tags from LLM output.

    Removes:
    - <think>...</think> blocks
    - <thinking>...</thinking> blocks
    - <analysis>...</analysis> blocks
    - <reasoning>...</reasoning> blocks

    Args:
        text: Raw LLM output text

    Returns:
        Cleaned text without thinking artifacts
    """
    result = text
    for pattern in THINK_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def chunk_text(text: str, size: int) -> Iterator[str]:
    """Yield consecutive slices of `text`, each at most `size` characters.

    Concatenating the slices gives back `text` exactly.
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(text), size):
        yield text[start : start + size]


def normalize_answer(text: str) -> str:
    """Case- and whitespace-insensitive form of a typed answer."""
    return text.strip().lower()
