from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple

# Table names double as the wire contract with the hosted store.
WORDS_TABLE = "words"
SESSIONS_TABLE = "learning_sessions"
RESULTS_TABLE = "test_results"

MAX_SESSION_WORDS = 20


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionType(str, Enum):
    """Kind of activity a learning session was created for."""
    STUDY = "study"
    TEST = "test"


class TestType(str, Enum):
    """Which test produced a result."""
    __test__ = False  # keep pytest from collecting this as a test class

    LISTEN_WRITE = "listen_write"  # hear the translation, type it
    READ_SPEAK = "read_speak"      # read the original aloud

    @property
    def label(self) -> str:
        return "Listening" if self is TestType.LISTEN_WRITE else "Speaking"


class SessionState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# Display names for the languages the add-word form offers.
SUPPORTED_LANGUAGES: Dict[str, str] = {
    "de": "German",
    "ko": "Korean",
    "ja": "Japanese",
    "es": "Spanish",
    "fr": "French",
    "pt": "Portuguese",
    "en": "English",
}


def language_label(code: str) -> str:
    return SUPPORTED_LANGUAGES.get(code, code.upper())


@dataclass
class Word:
    """A user-owned vocabulary entry."""
    id: str
    user_id: str
    original_word: str
    translation: str
    source_language: str
    target_language: str
    language_code: Optional[str] = None    # grouping code for decks
    audio_url: Optional[str] = None
    created_at: str = ""

    @property
    def grouping_code(self) -> str:
        return self.language_code or self.target_language

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Word":
        """
        Build a Word from a stored row.

        Rows written before the grouping field existed carry only
        ``target_language``; the grouping code is resolved here so nothing
        past the store boundary needs to know about the older layout.
        """
        data = {k: v for k, v in row.items() if k in cls.__dataclass_fields__}
        word = cls(**data)
        if not word.language_code:
            word.language_code = word.target_language
        return word


@dataclass
class LearningSession:
    """A bounded snapshot of one study or test activity."""
    id: str
    user_id: str
    word_ids: List[str] = field(default_factory=list)
    session_type: str = SessionType.TEST.value
    completed: bool = False
    created_at: str = ""

    @property
    def state(self) -> SessionState:
        return SessionState.COMPLETED if self.completed else SessionState.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LearningSession":
        data = {k: v for k, v in row.items() if k in cls.__dataclass_fields__}
        data["word_ids"] = list(data.get("word_ids") or [])
        return cls(**data)


@dataclass
class TestResult:
    """One scored answer inside a session. Immutable once stored."""
    __test__ = False

    id: str
    session_id: str
    word_id: str
    test_type: str
    correct: bool
    user_answer: str = ""
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TestResult":
        return cls(**{k: v for k, v in row.items() if k in cls.__dataclass_fields__})


@dataclass
class SessionSummary:
    """Aggregate score handed to the presentation layer once a session completes."""
    session_id: str
    test_type: str
    results: Tuple[TestResult, ...] = ()
    correct_count: int = 0
    total: int = 0
    accuracy: int = 0                    # 0-100, rounded half up


@dataclass
class TranslationResult:
    """Outcome of a translation request: either a translation or an error message."""
    translation: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.translation) and self.error is None


@dataclass
class LanguageCount:
    """How many words a user has saved under one grouping code."""
    code: str
    count: int

    @property
    def label(self) -> str:
        return language_label(self.code)
