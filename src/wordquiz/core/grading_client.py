"""Sentence grading module.

Responsibilities:
- Ask the language model whether a sentence uses a word correctly
- Retry with exponential backoff while the service is overloaded
- Parse the VERDICT / FEEDBACK reply
- Replay the feedback in small chunks for incremental display

The grade is produced as a generator of GradingEvent objects. The
consumer can stop iterating and close() it at any point; nothing is
emitted, requested or slept on after that.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterator

import structlog

from wordquiz.config.app_config import GradingConfig
from wordquiz.core.models import GradingResult
from wordquiz.llm.client import LLMClient, LLMTransientError, Message
from wordquiz.prompts.registry import get_prompt
from wordquiz.utils.text_utils import chunk_text, strip_think

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

CONFIG_ERROR_FEEDBACK = (
    "API key missing. Please set GEMINI_API_KEY (or the key for your "
    "configured provider) in your environment."
)

APOLOGY_FEEDBACK = (
    "Sorry, I couldn't evaluate that right now due to high server traffic (503). "
    "Please try again in a moment."
)

RETRY_NOTICE = " ... (Server busy, retrying in {delay:g}s) ... "

VERDICT_PATTERN = re.compile(r"VERDICT:\s*\[?\s*(CORRECT|INCORRECT)", re.IGNORECASE)
FEEDBACK_PATTERN = re.compile(r"FEEDBACK:([\s\S]*)", re.IGNORECASE)


# =============================================================================
# EVENTS
# =============================================================================


class GradingEventType(Enum):
    """Kinds of event in a grading stream."""

    VERDICT = auto()  # Correctness decided, before any feedback
    CHUNK = auto()  # Next slice of feedback text
    NOTICE = auto()  # Status message (service busy, retrying)
    DONE = auto()  # Final result, always last


@dataclass(frozen=True)
class GradingEvent:
    """One event emitted while grading a sentence."""

    event_type: GradingEventType
    text: str = ""
    is_correct: bool | None = None
    result: GradingResult | None = None


def _verdict(is_correct: bool) -> GradingEvent:
    return GradingEvent(GradingEventType.VERDICT, is_correct=is_correct)


def _chunk(text: str) -> GradingEvent:
    return GradingEvent(GradingEventType.CHUNK, text=text)


def _done(result: GradingResult) -> GradingEvent:
    return GradingEvent(
        GradingEventType.DONE, is_correct=result.is_correct, result=result
    )


# =============================================================================
# PARSING
# =============================================================================


def build_grading_prompt(word: str, definition: str, sentence: str) -> str:
    """Render the grading prompt for one sentence."""
    return get_prompt(
        "grading/sentence_usage",
        word=word,
        definition=definition,
        sentence=sentence,
    )


def parse_grading_response(text: str) -> GradingResult:
    """Extract verdict and feedback from a model reply.

    A reply without a VERDICT line counts as incorrect. A reply without
    a FEEDBACK line is used verbatim as the feedback (the raw reply if
    nothing is left once reasoning blocks are stripped).
    """
    cleaned = strip_think(text)

    verdict_match = VERDICT_PATTERN.search(cleaned)
    is_correct = bool(verdict_match) and verdict_match.group(1).upper() == "CORRECT"

    feedback_match = FEEDBACK_PATTERN.search(cleaned)
    if feedback_match:
        feedback = feedback_match.group(1).strip()
    else:
        feedback = cleaned or text.strip()

    if verdict_match is None or feedback_match is None:
        logger.warning(
            "grading_response_unparsed",
            has_verdict=verdict_match is not None,
            has_feedback=feedback_match is not None,
            content=cleaned[:100],
        )

    return GradingResult(is_correct=is_correct, feedback=feedback)


# =============================================================================
# GRADING CLIENT
# =============================================================================


class GradingClient:
    """Grades sentence usage through a language model.

    Args:
        llm: Transport client for the grading service
        config: Retry and chunk replay settings
    """

    def __init__(self, llm: LLMClient, config: GradingConfig | None = None):
        self.llm = llm
        self.config = config or GradingConfig()

    def _system_prompt(self) -> str:
        return get_prompt("grading/system")

    def _backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after failed attempt number `attempt`."""
        return self.config.backoff_base**attempt

    def _failure(self, feedback: str) -> Iterator[GradingEvent]:
        result = GradingResult(is_correct=False, feedback=feedback)
        yield _verdict(False)
        yield _chunk(feedback)
        yield _done(result)

    def stream(self, word: str, definition: str, sentence: str) -> Iterator[GradingEvent]:
        """Grade a sentence, yielding events as the grade progresses.

        Order: zero or more NOTICE, one VERDICT, CHUNK events, one DONE.
        Never raises; every failure ends in an unsuccessful DONE.

        Args:
            word: Target word
            definition: Meaning the learner should use
            sentence: Learner's sentence

        Yields:
            GradingEvent objects
        """
        if not self.llm.has_credentials():
            logger.warning("grading_credential_missing", provider=self.llm.config.provider)
            yield from self._failure(CONFIG_ERROR_FEEDBACK)
            return

        prompt = build_grading_prompt(word, definition, sentence)
        messages = [
            Message(role="system", content=self._system_prompt()),
            Message(role="user", content=prompt),
        ]

        attempt = 0
        try:
            while True:
                try:
                    response = self.llm.chat(messages)
                    break
                except LLMTransientError as e:
                    attempt += 1
                    if attempt >= self.config.max_attempts:
                        logger.error(
                            "grading_retries_exhausted", attempts=attempt, error=str(e)
                        )
                        yield from self._failure(APOLOGY_FEEDBACK)
                        return

                    delay = self._backoff_delay(attempt)
                    logger.warning(
                        "grading_service_busy",
                        attempt=attempt,
                        max_attempts=self.config.max_attempts,
                        delay_s=delay,
                    )
                    yield GradingEvent(
                        GradingEventType.NOTICE, text=RETRY_NOTICE.format(delay=delay)
                    )
                    time.sleep(delay)
                except Exception as e:
                    logger.error("grading_failed", attempt=attempt + 1, error=str(e))
                    yield from self._failure(APOLOGY_FEEDBACK)
                    return

            result = parse_grading_response(response.content)
            logger.info(
                "grading_received",
                word=word,
                is_correct=result.is_correct,
                attempts=attempt + 1,
                latency_ms=response.latency_ms,
            )

            yield _verdict(result.is_correct)

            for piece in chunk_text(result.feedback, self.config.chunk_size):
                yield _chunk(piece)
                if self.config.chunk_delay > 0:
                    time.sleep(self.config.chunk_delay)

            yield _done(result)
        except GeneratorExit:
            logger.debug("grading_cancelled", word=word, attempt=attempt)
            raise

    def evaluate(
        self,
        word: str,
        definition: str,
        sentence: str,
        on_chunk: Callable[[str], None] | None = None,
        on_verdict: Callable[[bool], None] | None = None,
    ) -> GradingResult:
        """Grade a sentence, reporting progress through callbacks.

        Retry notices and feedback chunks both go to `on_chunk`.

        Returns:
            GradingResult once all chunks have been delivered
        """
        result = GradingResult(is_correct=False, feedback=APOLOGY_FEEDBACK)
        for event in self.stream(word, definition, sentence):
            if event.event_type is GradingEventType.VERDICT:
                if on_verdict:
                    on_verdict(bool(event.is_correct))
            elif event.event_type in (GradingEventType.CHUNK, GradingEventType.NOTICE):
                if on_chunk:
                    on_chunk(event.text)
            elif event.event_type is GradingEventType.DONE and event.result is not None:
                result = event.result
        return result
