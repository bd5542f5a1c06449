"""
Deck iteration for study and test activities.

A run owns everything that lives only as long as one activity: the deck
snapshot, the current position and, for tests, the ordered log of results
recorded so far. Nothing is kept in module state, so several runs can exist
side by side without seeing each other's answers.

Test runs advance strictly one word at a time. An answer is scored, recorded,
and only then does the run move on; if recording fails the position stays put
and the same word can be answered again.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from .errors import SessionCompleted
from .logger import logger
from .models import MAX_SESSION_WORDS, LearningSession, SessionSummary, TestResult, TestType, Word
from .recorder import ResultRecorder
from .scoring import expected_answer, score
from .session import CompletionGate, cap_deck


@dataclass
class AnswerOutcome:
    result: TestResult
    expected: str
    summary: Optional[SessionSummary] = None

    @property
    def finished(self) -> bool:
        return self.summary is not None


class TestRun:
    """One listening or speaking test over a session's deck."""
    __test__ = False

    def __init__(
        self,
        session: LearningSession,
        deck: Sequence[Word],
        test_type: Union[TestType, str],
        recorder: ResultRecorder,
        gate: CompletionGate,
    ):
        self.session = session
        self.test_type = TestType(test_type)
        self.deck: List[Word] = cap_deck(deck)
        if [w.id for w in self.deck] != session.word_ids[:MAX_SESSION_WORDS]:
            raise ValueError("Deck does not match the session's word set")
        self.recorder = recorder
        self.gate = gate
        self.summary: Optional[SessionSummary] = None
        self._position = 0
        self._results: List[TestResult] = []

    @property
    def position(self) -> int:
        return self._position

    @property
    def total(self) -> int:
        return len(self.deck)

    @property
    def results(self) -> Tuple[TestResult, ...]:
        return tuple(self._results)

    @property
    def finished(self) -> bool:
        return self.summary is not None

    @property
    def awaiting_completion(self) -> bool:
        """The last answer is recorded but marking the session complete failed."""
        return not self.finished and len(self._results) == self.total

    @property
    def current(self) -> Optional[Word]:
        if self.finished or self._position >= self.total:
            return None
        return self.deck[self._position]

    def prompt(self) -> Tuple[str, str]:
        """
        (text, language) to present for the current word: the translation to
        play for listening, the original word to read aloud for speaking.
        Recognition for speaking listens in the word's target language.
        """
        word = self._require_current()
        if self.test_type is TestType.LISTEN_WRITE:
            return word.translation, word.target_language
        return word.original_word, word.target_language

    def _require_current(self) -> Word:
        word = self.current
        if word is None:
            raise SessionCompleted(f"Session {self.session.id} has no words left to answer")
        return word

    def submit(self, answer: str) -> AnswerOutcome:
        """
        Score and record an answer for the current word.

        Raises:
            PersistenceError: recording (or completing, for the last word)
                failed; the position has not moved
            SessionCompleted: the run is already finished
        """
        if self.awaiting_completion:
            return self.retry_completion()

        word = self._require_current()
        expected = expected_answer(word, self.test_type)
        correct = score(expected, answer)

        result = self.recorder.record(self.session.id, word.id, self.test_type, correct, answer)
        self._results.append(result)
        logger.session(f"Word {self._position + 1}/{self.total}: {'correct' if correct else 'incorrect'}")

        if self._position < self.total - 1:
            self._position += 1
            return AnswerOutcome(result=result, expected=expected)

        self.summary = self.gate.complete(self.session, self._position, self._results, self.test_type)
        return AnswerOutcome(result=result, expected=expected, summary=self.summary)

    def retry_completion(self) -> AnswerOutcome:
        """Try again to mark the session complete after a failed update."""
        if not self.awaiting_completion:
            raise SessionCompleted(f"Session {self.session.id} is not waiting to be completed")
        last = self._results[-1]
        self.summary = self.gate.complete(self.session, self._position, self._results, self.test_type)
        return AnswerOutcome(
            result=last,
            expected=expected_answer(self.deck[self._position], self.test_type),
            summary=self.summary,
        )


@dataclass
class Flashcard:
    front: str
    back: str
    audio_text: str
    audio_language: str
    revealed: bool = False


class StudyRun:
    """
    Flashcard walk through a study session's deck.

    Cards are shown with the learning language on the front: when the learner
    is studying a word's target language, the translation is the front and the
    original the back. Free navigation in both directions; nothing is scored.
    """

    def __init__(self, session: LearningSession, deck: Sequence[Word], learning_language: Optional[str] = None):
        self.session = session
        self.deck: List[Word] = cap_deck(deck)
        self.learning_language = learning_language
        self.revealed = False
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    @property
    def total(self) -> int:
        return len(self.deck)

    @property
    def at_end(self) -> bool:
        return self._position >= self.total - 1

    def card(self) -> Flashcard:
        word = self.deck[self._position]
        learning = self.learning_language or word.target_language or word.grouping_code
        if word.target_language == learning:
            front, back, audio_language = word.translation, word.original_word, word.target_language
        else:
            front, back, audio_language = word.original_word, word.translation, word.source_language
        return Flashcard(front=front, back=back, audio_text=front,
                         audio_language=audio_language, revealed=self.revealed)

    def reveal(self) -> Flashcard:
        self.revealed = True
        return self.card()

    def next(self) -> Flashcard:
        self.revealed = False
        self._position = min(self.total - 1, self._position + 1)
        return self.card()

    def previous(self) -> Flashcard:
        self.revealed = False
        self._position = max(0, self._position - 1)
        return self.card()
