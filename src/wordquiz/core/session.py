"""Quiz session controller.

State machine driving one quiz run:

    MENU -> PLAYING -> FEEDBACK -> (PLAYING | FINISHED)

exit() returns to MENU from any state.

Sentence answers are graded remotely. submit_answer() moves to FEEDBACK
straight away and the caller drives the grade with stream_feedback().
Every pending grade carries the generation number it was issued under.
Once exit(), advance() or start_session() bumps the generation, the
grade's remaining events are dropped and its stream is closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import structlog

from wordquiz.core.evaluator import AnswerEvaluator
from wordquiz.core.grading_client import GradingEvent, GradingEventType
from wordquiz.core.models import (
    AnswerFeedback,
    GameMode,
    InsufficientWordsError,
    InvalidStateError,
    Question,
    Session,
    SessionState,
    Word,
)
from wordquiz.core.question_generator import QuestionGenerator
from wordquiz.core.word_store import WordStore

logger = structlog.get_logger(__name__)

CORRECT_MESSAGE = "Correct!"
SENTENCE_RETRY_MESSAGE = "Try Again!"


def wrong_answer_message(target: Word) -> str:
    return f'Wrong! It was "{target.word}"'


def _close(events: Iterator[GradingEvent]) -> None:
    close = getattr(events, "close", None)
    if close is not None:
        close()


@dataclass
class PendingGrade:
    """A remote grade in flight for one question."""

    generation: int
    target: Word
    events: Iterator[GradingEvent]


class SessionController:
    """Owns the quiz session and reacts to start/submit/advance/exit.

    Args:
        store: Source of words and sink for mastery stats
        evaluator: Answer checker (wraps the grading client)
        generator: Question generator (seedable for tests)
    """

    def __init__(
        self,
        store: WordStore,
        evaluator: AnswerEvaluator,
        generator: QuestionGenerator | None = None,
    ):
        self.store = store
        self.evaluator = evaluator
        self.generator = generator or QuestionGenerator()

        self.state = SessionState.MENU
        self.session: Session | None = None
        self.question: Question | None = None
        self.words: list[Word] = []
        self.feedback: AnswerFeedback | None = None
        self.streamed_feedback = ""
        self.notice = ""

        self._generation = 0
        self._pending: PendingGrade | None = None

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def is_evaluating(self) -> bool:
        """True while a remote grade is pending."""
        return self._pending is not None

    @property
    def has_next(self) -> bool:
        """True if advance() will produce another question."""
        return self.session is not None and bool(self.session.queue)

    @property
    def mode(self) -> GameMode | None:
        return self.session.mode if self.session else None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_state(self, expected: SessionState, operation: str) -> None:
        if self.state is not expected:
            raise InvalidStateError(
                f"{operation}() requires state {expected.name}, current state is {self.state.name}"
            )

    def _invalidate_pending(self) -> None:
        """Bump the generation and cancel any grade still in flight."""
        self._generation += 1
        pending = self._pending
        self._pending = None
        if pending is not None:
            logger.info(
                "pending_grade_abandoned",
                session_id=self.session.session_id if self.session else None,
                target_id=pending.target.id,
            )
            _close(pending.events)

    def _is_current(self, pending: PendingGrade) -> bool:
        return self._pending is pending and pending.generation == self._generation

    def _next_question(self) -> None:
        session = self.session
        self.question, session.queue = self.generator.next_question(
            session.queue, self.words, session.mode
        )
        self.feedback = None
        self.streamed_feedback = ""
        self.notice = ""
        self.state = SessionState.PLAYING

    def _record(self, target: Word, is_correct: bool) -> None:
        """Apply a verdict: mastery stats first, score only once they are stored."""
        updated = {w.id: w for w in self.store.record_attempt(target.id, is_correct)}
        self.words = [updated.get(w.id, w) for w in self.words]
        if is_correct:
            self.session.score += 1

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def start_session(self, mode: GameMode | str, words: Sequence[Word] | None = None) -> Question:
        """Start a quiz and produce its first question.

        Args:
            mode: Game mode
            words: Collection to quiz on (default: the store's words)

        Returns:
            The first Question

        Raises:
            InsufficientWordsError: Too few words for the mode; state stays MENU
            InvalidStateError: Not in MENU
        """
        self._require_state(SessionState.MENU, "start_session")
        mode = GameMode(mode)

        if words is None:
            words = self.store.get_words()

        unique: dict[str, Word] = {}
        for word in words:
            unique.setdefault(word.id, word)
        collection = list(unique.values())

        required = self.generator.choice_count if mode.is_choice else 1
        if len(collection) < required:
            logger.info(
                "session_rejected",
                mode=mode.value,
                required=required,
                available=len(collection),
            )
            raise InsufficientWordsError(mode, required, len(collection))

        self._invalidate_pending()
        self.words = collection
        queue = self.generator.shuffle(collection)
        self.session = Session(mode=mode, queue=queue, total=len(queue))
        self._next_question()

        logger.info(
            "session_started",
            session_id=self.session.session_id,
            mode=mode.value,
            total=self.session.total,
        )
        return self.question

    def submit_answer(self, answer: Any) -> AnswerFeedback:
        """Submit an answer for the current question.

        Written answers are strings, choice answers the selected Word (or
        its id), sentence answers the learner's sentence.

        Returns:
            Feedback for the question. For sentence mode `correct` is None
            until stream_feedback() has delivered the verdict.

        Raises:
            InvalidStateError: Not in PLAYING
        """
        self._require_state(SessionState.PLAYING, "submit_answer")
        session = self.session
        question = self.question

        if session.mode.is_remote_graded:
            self.feedback = AnswerFeedback(correct=None, message="")
            self.streamed_feedback = ""
            self.notice = ""
            self._pending = PendingGrade(
                generation=self._generation,
                target=question.target,
                events=self.evaluator.grade_sentence(question, str(answer)),
            )
            self.state = SessionState.FEEDBACK
            logger.debug(
                "grade_pending", session_id=session.session_id, target_id=question.target.id
            )
            return self.feedback

        is_correct = self.evaluator.evaluate(question, session.mode, answer)
        self._record(question.target, is_correct)
        self.feedback = AnswerFeedback(
            correct=is_correct,
            message=CORRECT_MESSAGE if is_correct else wrong_answer_message(question.target),
        )
        self.state = SessionState.FEEDBACK

        logger.info(
            "answer_submitted",
            session_id=session.session_id,
            target_id=question.target.id,
            is_correct=is_correct,
            score=session.score,
        )
        return self.feedback

    def _apply(self, pending: PendingGrade, event: GradingEvent) -> None:
        if event.event_type is GradingEventType.VERDICT:
            self.feedback.correct = event.is_correct
        elif event.event_type is GradingEventType.CHUNK:
            self.streamed_feedback += event.text
        elif event.event_type is GradingEventType.NOTICE:
            self.notice = event.text
        elif event.event_type is GradingEventType.DONE:
            result = event.result
            self._record(pending.target, result.is_correct)
            self.feedback = AnswerFeedback(
                correct=result.is_correct,
                message=CORRECT_MESSAGE if result.is_correct else SENTENCE_RETRY_MESSAGE,
            )
            self.notice = ""
            self._pending = None
            logger.info(
                "sentence_graded",
                session_id=self.session.session_id,
                target_id=pending.target.id,
                is_correct=result.is_correct,
                score=self.session.score,
            )

    def stream_feedback(self) -> Iterator[GradingEvent]:
        """Drive the pending remote grade, applying each event before yielding it.

        Yields nothing if no grade is pending. Stops early, without
        applying anything further, once the session moves on.
        """
        pending = self._pending
        if pending is None:
            return

        try:
            for event in pending.events:
                if not self._is_current(pending):
                    logger.debug("stale_grading_event_dropped", target_id=pending.target.id)
                    break
                self._apply(pending, event)
                yield event
                if event.event_type is GradingEventType.DONE or not self._is_current(pending):
                    break
        finally:
            _close(pending.events)
            if self._pending is pending:
                # Consumer stopped early: the grade is abandoned, not applied
                self._pending = None
                logger.info("pending_grade_cancelled", target_id=pending.target.id)

    def advance(self) -> Question | None:
        """Move past the feedback to the next question.

        Returns:
            The next Question, or None if the session is finished

        Raises:
            InvalidStateError: Not in FEEDBACK
        """
        self._require_state(SessionState.FEEDBACK, "advance")
        self._invalidate_pending()

        if not self.session.queue:
            self.state = SessionState.FINISHED
            self.question = None
            logger.info(
                "session_finished",
                session_id=self.session.session_id,
                score=self.session.score,
                total=self.session.total,
            )
            return None

        self._next_question()
        return self.question

    def exit(self) -> None:
        """Return to the menu, discarding the session."""
        self._invalidate_pending()
        if self.session is not None:
            logger.info(
                "session_exited",
                session_id=self.session.session_id,
                state=self.state.name,
                asked=self.session.asked,
            )
        self.state = SessionState.MENU
        self.session = None
        self.question = None
        self.feedback = None
        self.streamed_feedback = ""
        self.notice = ""
