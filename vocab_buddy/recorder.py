from typing import List, Union

from .database import RowStore
from .logger import logger
from .models import RESULTS_TABLE, TestResult, TestType


class ResultRecorder:
    """Appends test results. Never updates or deletes them, never retries."""

    def __init__(self, store: RowStore):
        self.store = store

    def record(
        self,
        session_id: str,
        word_id: str,
        test_type: Union[TestType, str],
        correct: bool,
        user_answer: str,
    ) -> TestResult:
        """
        Insert one result row.

        Raises:
            PersistenceError: the insert failed; the caller must not advance
        """
        row = self.store.insert(RESULTS_TABLE, {
            "session_id": session_id,
            "word_id": word_id,
            "test_type": TestType(test_type).value,
            "correct": bool(correct),
            "user_answer": (user_answer or "").strip(),
        })
        logger.session(f"Recorded {'✓' if correct else '✗'} for word {word_id[:8]} in session {session_id[:8]}")
        return TestResult.from_row(row)

    def results_for_session(self, session_id: str) -> List[TestResult]:
        """A session's results in the order they were recorded."""
        rows = self.store.select(RESULTS_TABLE, where={"session_id": session_id}, order_by="created_at")
        return [TestResult.from_row(row) for row in rows]
