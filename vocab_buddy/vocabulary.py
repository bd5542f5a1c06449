"""
Word store: the user's saved vocabulary, grouped into per-language decks.

A word's deck is its ``language_code``; rows saved before that field existed
only have ``target_language``, so every language filter matches either field
and ``Word.from_row`` resolves the grouping code on the way out.
"""

from collections import Counter
from typing import Callable, List, Optional

from .auth import UserContext, require_user
from .database import RowStore
from .errors import TranslationFailed
from .logger import logger
from .models import WORDS_TABLE, LanguageCount, TranslationResult, Word

Translator = Callable[[str, str, str], TranslationResult]


def _language_filter(language_code: str) -> dict:
    return {"language_code": language_code, "target_language": language_code}


class WordStore:
    def __init__(self, store: RowStore):
        self.store = store

    def load_words(self, user_id: str) -> List[Word]:
        """All of a user's words, newest first."""
        rows = self.store.select(
            WORDS_TABLE, where={"user_id": user_id}, order_by="created_at", descending=True
        )
        return [Word.from_row(row) for row in rows]

    def load_words_for_language(self, user_id: str, language_code: str) -> List[Word]:
        """
        A user's words whose grouping code or legacy target language matches,
        newest first. Returns an empty list when there are none.
        """
        rows = self.store.select(
            WORDS_TABLE,
            where={"user_id": user_id},
            any_of=_language_filter(language_code),
            order_by="created_at",
            descending=True,
        )
        words = [Word.from_row(row) for row in rows]
        logger.debug(f"Loaded {len(words)} word(s) for {language_code}")
        return words

    def language_counts(self, user_id: str) -> List[LanguageCount]:
        """Word count per deck, largest deck first."""
        counts = Counter(word.grouping_code for word in self.load_words(user_id) if word.grouping_code)
        return [LanguageCount(code=code, count=n) for code, n in counts.most_common()]

    def add_word(
        self,
        user: Optional[UserContext],
        original_word: str,
        translation: str,
        source_language: str,
        target_language: str,
        language_code: Optional[str] = None,
        translator: Optional[Translator] = None,
    ) -> Word:
        """
        Save a new word. A blank translation is filled in by ``translator``;
        when that fails the caller gets TranslationFailed and should ask the
        user to type the translation instead.
        """
        user = require_user(user)
        original_word = (original_word or "").strip()
        translation = (translation or "").strip()
        if not original_word:
            raise ValueError("Word or phrase is required")

        if not translation:
            if translator is None:
                raise TranslationFailed("Enter a translation")
            result = translator(original_word, source_language, target_language)
            if not result.ok:
                raise TranslationFailed(result.error or "Translation failed")
            translation = result.translation.strip()

        row = self.store.insert(WORDS_TABLE, {
            "user_id": user.user_id,
            "original_word": original_word,
            "translation": translation,
            "source_language": source_language,
            "target_language": target_language,
            "language_code": language_code or target_language,
        })
        logger.success(f"Saved '{original_word}' → '{translation}'")
        return Word.from_row(row)

    def update_word(self, user: Optional[UserContext], word_id: str, original_word: str, translation: str) -> None:
        user = require_user(user)
        original_word = (original_word or "").strip()
        translation = (translation or "").strip()
        if not original_word or not translation:
            raise ValueError("Both the word and its translation are required")

        self.store.update(
            WORDS_TABLE,
            where={"id": word_id, "user_id": user.user_id},
            patch={"original_word": original_word, "translation": translation},
        )

    def delete_word(self, user: Optional[UserContext], word_id: str) -> None:
        user = require_user(user)
        self.store.delete(WORDS_TABLE, where={"id": word_id, "user_id": user.user_id})

    def delete_language(self, user: Optional[UserContext], language_code: str) -> int:
        """Remove a whole deck. Returns how many words were deleted."""
        user = require_user(user)
        removed = self.store.delete(
            WORDS_TABLE, where={"user_id": user.user_id}, any_of=_language_filter(language_code)
        )
        logger.warning(f"Deleted {removed} word(s) from the {language_code} deck")
        return removed
