"""Core quiz engine.

Modules:
- models: Words, questions, sessions, grading results, errors
- word_store: WordStore interface plus in-memory and JSON adapters
- question_generator: Queue draw and distractor selection
- evaluator: Per-mode answer checking
- grading_client: Remote sentence grading with retry and chunk replay
- session: SessionController state machine
"""

__all__ = [
    "models",
    "word_store",
    "question_generator",
    "evaluator",
    "grading_client",
    "session",
]
