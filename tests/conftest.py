import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Settings are read at import time; keep the suite offline and quiet.
os.environ["VOCAB_BUDDY_STORE"] = "memory"
os.environ["VOCAB_BUDDY_DEBUG"] = "0"
os.environ["OPENAI_API_KEY"] = ""

from vocab_buddy.auth import UserContext
from vocab_buddy.database import MemoryRowStore
from vocab_buddy.models import WORDS_TABLE, Word
from vocab_buddy.recorder import ResultRecorder
from vocab_buddy.session import CompletionGate, SessionManager
from vocab_buddy.vocabulary import WordStore


@pytest.fixture
def store():
    return MemoryRowStore()


@pytest.fixture
def user():
    return UserContext(user_id="user-1", email="learner@example.com")


@pytest.fixture
def word_store(store):
    return WordStore(store)


@pytest.fixture
def manager(store, word_store):
    return SessionManager(store, word_store)


@pytest.fixture
def recorder(store):
    return ResultRecorder(store)


@pytest.fixture
def gate(store):
    return CompletionGate(store)


@pytest.fixture
def add_word(word_store, user):
    """Save a word for ``user``; defaults to an English -> Spanish pair."""
    def _add(original, translation, source="en", target="es", language_code=None):
        return word_store.add_word(user, original, translation, source, target, language_code=language_code)
    return _add


@pytest.fixture
def add_legacy_word(store, user):
    """Insert a row the way it was stored before decks had a grouping code."""
    def _add(original, translation, target="es", source="en"):
        row = store.insert(WORDS_TABLE, {
            "user_id": user.user_id,
            "original_word": original,
            "translation": translation,
            "source_language": source,
            "target_language": target,
        })
        return Word.from_row(row)
    return _add
