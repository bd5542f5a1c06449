"""
Answer scoring.

Matching is deliberately strict: answers are trimmed and lower-cased, then
compared for exact equality. Punctuation and accents count, so "hola!" does
not match "Hola".
"""

from typing import Iterable, Union

from .models import SessionSummary, TestResult, TestType, Word


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def score(expected: str, submitted: str) -> bool:
    """True when ``submitted`` equals ``expected`` after normalization."""
    return normalize(expected) == normalize(submitted)


def expected_answer(word: Word, test_type: Union[TestType, str]) -> str:
    """
    The text an answer is judged against.

    Listening tests play the translation and expect it typed back; speaking
    tests show the original word and expect it read aloud.
    """
    if TestType(test_type) is TestType.LISTEN_WRITE:
        return word.translation
    return word.original_word


def accuracy_percent(correct: int, total: int) -> int:
    """Percentage rounded half up (1 of 8 is 13%), 0 for an empty run."""
    if total <= 0:
        return 0
    return (correct * 200 + total) // (total * 2)


def summarize(session_id: str, test_type: Union[TestType, str], results: Iterable[TestResult]) -> SessionSummary:
    results = tuple(results)
    correct = sum(1 for r in results if r.correct)
    return SessionSummary(
        session_id=session_id,
        test_type=TestType(test_type).value,
        results=results,
        correct_count=correct,
        total=len(results),
        accuracy=accuracy_percent(correct, len(results)),
    )
