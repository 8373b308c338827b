"""Session state machine: practice, test, optional review, result.

The machine is a pure function over an immutable ``SessionState``. It never
sleeps or writes; it returns effects (feedback to show, phase changes, the
final result) and leaves timing and persistence to the caller.
"""
import logging
import random
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Sequence

from vocab_drill.models import QuizMode, Question
from vocab_drill.question_bank import reshuffle

logger = logging.getLogger(__name__)

DEFAULT_CORRECT_DELAY = 1.0
DEFAULT_INCORRECT_DELAY = 1.5


class Phase(str, Enum):
    PRACTICE = "practice"
    TEST = "test"
    REVIEW = "review"
    RESULT = "result"


# Events

@dataclass(frozen=True)
class Answer:
    value: str


@dataclass(frozen=True)
class Advance:
    """The feedback delay for the current answer has elapsed."""


# Effects

@dataclass(frozen=True)
class Feedback:
    correct: bool
    expected: str
    delay: float


@dataclass(frozen=True)
class PhaseChanged:
    previous: Phase
    current: Phase


@dataclass(frozen=True)
class SessionFinished:
    score: int
    total: int
    missed: tuple
    attempted: tuple
    practice_misses: frozenset = frozenset()


@dataclass(frozen=True)
class SessionState:
    questions: tuple
    mode: QuizMode = QuizMode.CHOICE
    phase: Phase = Phase.PRACTICE
    index: int = 0
    score: int = 0
    practice_misses: frozenset = frozenset()
    test_misses: tuple = ()
    review_queue: tuple = ()
    # Correctness of the answer whose feedback is showing; None when accepting input.
    pending: Optional[bool] = None
    correct_delay: float = DEFAULT_CORRECT_DELAY
    incorrect_delay: float = DEFAULT_INCORRECT_DELAY

    @property
    def queue(self) -> tuple:
        if self.phase is Phase.REVIEW:
            return self.review_queue
        if self.phase is Phase.RESULT:
            return ()
        return self.questions

    @property
    def current_question(self) -> Optional[Question]:
        queue = self.queue
        return queue[self.index] if self.index < len(queue) else None


def is_correct(question: Question, value: str, mode: QuizMode) -> bool:
    if mode is QuizMode.CHOICE:
        return value == question.meaning
    return value.strip().lower() == question.word.lower()


def spelling_hint(word: str, full: bool = False) -> str:
    """Letter hint for easy spelling: first, last, middle of long words, and non-letters."""
    if full:
        return word
    length = len(word)
    shown = []
    for index, char in enumerate(word):
        visible = (
            index == 0
            or index == length - 1
            or (length > 5 and index == length // 2)
            or not (char.isascii() and char.isalpha())
        )
        shown.append(char if visible else "_")
    return " ".join(shown)


def _finish(state: SessionState) -> tuple[SessionState, list]:
    finished = SessionFinished(
        score=state.score,
        total=len(state.questions),
        missed=state.test_misses,
        attempted=state.questions,
        practice_misses=state.practice_misses,
    )
    new_state = replace(state, phase=Phase.RESULT, index=0)
    return new_state, [PhaseChanged(state.phase, Phase.RESULT), finished]


def _end_of_phase(state: SessionState, rng: random.Random) -> tuple[SessionState, list]:
    if state.phase is Phase.PRACTICE:
        questions = tuple(reshuffle(list(state.questions), rng))
        return (
            replace(state, phase=Phase.TEST, questions=questions, index=0),
            [PhaseChanged(Phase.PRACTICE, Phase.TEST)],
        )
    if state.phase is Phase.TEST and state.test_misses:
        return (
            replace(state, phase=Phase.REVIEW, review_queue=state.test_misses, index=0),
            [PhaseChanged(Phase.TEST, Phase.REVIEW)],
        )
    return _finish(state)


def _answer(state: SessionState, value: str) -> tuple[SessionState, list]:
    question = state.current_question
    if state.pending is not None or question is None:
        return state, []
    correct = is_correct(question, value, state.mode)
    changes = {"pending": correct}
    if state.phase is Phase.PRACTICE and not correct:
        changes["practice_misses"] = state.practice_misses | {question.id}
    elif state.phase is Phase.TEST:
        if correct:
            changes["score"] = state.score + 1
        else:
            changes["test_misses"] = state.test_misses + (question,)
    expected = question.meaning if state.mode is QuizMode.CHOICE else question.word
    delay = state.correct_delay if correct else state.incorrect_delay
    return replace(state, **changes), [Feedback(correct, expected, delay)]


def _advance(state: SessionState, rng: random.Random) -> tuple[SessionState, list]:
    if state.pending is None:
        return state, []
    state = replace(state, pending=None, index=state.index + 1)
    if state.index < len(state.queue):
        return state, []
    return _end_of_phase(state, rng)


def transition(
    state: SessionState, event, rng: Optional[random.Random] = None
) -> tuple[SessionState, list]:
    """Apply one event, returning the next state and the effects it produced."""
    if state.phase is Phase.RESULT:
        return state, []
    if isinstance(event, Answer):
        return _answer(state, event.value)
    if isinstance(event, Advance):
        return _advance(state, rng or random.Random())
    raise TypeError(f"Unknown session event: {event!r}")


class SessionEngine:
    """Holds one session's state and feeds events through ``transition``."""

    def __init__(
        self,
        questions: Sequence[Question],
        mode: QuizMode = QuizMode.CHOICE,
        correct_delay: float = DEFAULT_CORRECT_DELAY,
        incorrect_delay: float = DEFAULT_INCORRECT_DELAY,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not questions:
            raise ValueError("A session needs at least one question")
        self.state = SessionState(
            questions=tuple(questions),
            mode=mode,
            correct_delay=correct_delay,
            incorrect_delay=incorrect_delay,
        )
        self.rng = rng or random.Random()
        self.result: Optional[SessionFinished] = None
        self._clock = clock
        self._started = clock()
        logger.debug("Session started: %d questions, mode %s", len(questions), mode.value)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def current_question(self) -> Optional[Question]:
        return self.state.current_question

    @property
    def position(self) -> tuple[int, int]:
        """1-based index of the current question and the length of the phase."""
        return self.state.index + 1, len(self.state.queue)

    @property
    def finished(self) -> bool:
        return self.state.phase is Phase.RESULT

    def dispatch(self, event) -> list:
        self.state, effects = transition(self.state, event, self.rng)
        for effect in effects:
            if isinstance(effect, PhaseChanged):
                logger.debug("Phase %s -> %s", effect.previous.value, effect.current.value)
            elif isinstance(effect, SessionFinished):
                self.result = effect
                logger.info("Session finished: %d/%d", effect.score, effect.total)
        return effects

    def submit(self, value: str) -> list:
        return self.dispatch(Answer(value))

    def advance(self) -> list:
        return self.dispatch(Advance())

    def answer_and_wait(self, value: str, sleep: Callable[[float], None] = time.sleep) -> Optional[Feedback]:
        """Submit, wait out the feedback delay, then move on."""
        effects = self.submit(value)
        feedback = next((e for e in effects if isinstance(e, Feedback)), None)
        if feedback is None:
            return None
        sleep(feedback.delay)
        self.advance()
        return feedback

    def elapsed_seconds(self) -> int:
        return int(self._clock() - self._started)
