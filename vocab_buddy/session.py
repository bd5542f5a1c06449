"""
Learning session lifecycle.

A session snapshots up to MAX_SESSION_WORDS word ids when it is created and
never changes membership afterwards. It starts ``active`` and can move to
``completed`` exactly once, through CompletionGate, after the last word of its
deck has a recorded result. Abandoned sessions simply stay active; starting
the activity again creates a fresh session.
"""

from typing import List, Optional, Sequence, Tuple, Union

from .auth import UserContext, require_user
from .database import RowStore
from .errors import EmptySelection, PersistenceError, SessionCompleted
from .logger import logger
from .models import (
    MAX_SESSION_WORDS, SESSIONS_TABLE, LearningSession, SessionState, SessionSummary,
    SessionType, TestResult, TestType, Word,
)
from .scoring import summarize
from .vocabulary import WordStore


def cap_deck(words: Sequence[Word]) -> List[Word]:
    """The first MAX_SESSION_WORDS words, in the order given."""
    return list(words[:MAX_SESSION_WORDS])


class SessionManager:
    def __init__(self, store: RowStore, words: Optional[WordStore] = None):
        self.store = store
        self.words = words or WordStore(store)

    def load_words_for_language(self, user_id: str, language_code: str) -> List[Word]:
        return self.words.load_words_for_language(user_id, language_code)

    def create_session(
        self,
        user: Optional[UserContext],
        kind: Union[SessionType, str],
        selected_words: Sequence[Word],
    ) -> str:
        """
        Insert a session row for the first 20 of ``selected_words``.

        Raises:
            AuthRequired: nobody is signed in (checked before any store call)
            EmptySelection: ``selected_words`` is empty
            PersistenceError: the insert failed
        """
        user = require_user(user)
        deck = cap_deck(selected_words)
        if not deck:
            raise EmptySelection()

        row = self.store.insert(SESSIONS_TABLE, {
            "user_id": user.user_id,
            "word_ids": [w.id for w in deck],
            "session_type": SessionType(kind).value,
            "completed": False,
        })
        logger.session(f"Created {SessionType(kind).value} session {row['id'][:8]} with {len(deck)} word(s)")
        return row["id"]

    def start(
        self,
        user: Optional[UserContext],
        kind: Union[SessionType, str],
        language_code: str,
    ) -> Tuple[LearningSession, List[Word]]:
        """
        Load the language's words, refuse an empty deck, and create a session.

        Returns the session and its deck (the snapshot of Word objects the
        session was created from, in session order).
        """
        user = require_user(user)
        words = self.load_words_for_language(user.user_id, language_code)
        if not words:
            logger.warning(f"No words saved for {language_code}, not starting a session")
            raise EmptySelection(language_code)

        deck = cap_deck(words)
        session_id = self.create_session(user, kind, deck)
        session = LearningSession(
            id=session_id,
            user_id=user.user_id,
            word_ids=[w.id for w in deck],
            session_type=SessionType(kind).value,
            completed=False,
        )
        return session, deck

    def get_session(self, session_id: str) -> Optional[LearningSession]:
        rows = self.store.select(SESSIONS_TABLE, where={"id": session_id})
        return LearningSession.from_row(rows[0]) if rows else None


class CompletionGate:
    """Sole authority for flipping a session's ``completed`` flag."""

    def __init__(self, store: RowStore):
        self.store = store

    @staticmethod
    def is_ready(session: LearningSession, position: int, results: Sequence[TestResult]) -> bool:
        """
        True when ``position`` is the last slot of the session's deck and every
        member word has exactly one recorded result.
        """
        word_ids = session.word_ids[:MAX_SESSION_WORDS]
        if not word_ids or position != len(word_ids) - 1:
            return False
        recorded = [r.word_id for r in results]
        return len(recorded) == len(word_ids) and sorted(recorded) == sorted(word_ids)

    def complete(
        self,
        session: LearningSession,
        position: int,
        results: Sequence[TestResult],
        test_type: Union[TestType, str],
    ) -> Optional[SessionSummary]:
        """
        Mark ``session`` completed if it is ready and return the summary.

        Returns None when the session is not ready yet. The in-memory session
        is only flipped after the store confirms the update.

        Raises:
            SessionCompleted: the session was already completed
            PersistenceError: the update failed; the session stays active
        """
        if session.completed:
            raise SessionCompleted(f"Session {session.id} is already completed")
        if not self.is_ready(session, position, results):
            return None

        changed = self.store.update(SESSIONS_TABLE, where={"id": session.id}, patch={"completed": True})
        if changed == 0:
            raise PersistenceError(f"Session {session.id} not found", table=SESSIONS_TABLE)

        session.completed = True
        logger.session_transition(session.id, SessionState.ACTIVE.value, SessionState.COMPLETED.value)
        return summarize(session.id, test_type, results)
