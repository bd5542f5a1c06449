from unittest.mock import MagicMock

import pytest

from vocab_buddy.errors import AuthRequired, TranslationFailed
from vocab_buddy.models import WORDS_TABLE, TranslationResult


def test_legacy_rows_group_by_target_language(word_store, add_word, add_legacy_word, user):
    legacy = add_legacy_word("dog", "perro", target="es")
    current = add_word("cat", "gato")

    words = word_store.load_words_for_language(user.user_id, "es")

    assert {w.id for w in words} == {legacy.id, current.id}
    assert all(w.language_code == "es" for w in words)


def test_load_words_for_language_is_scoped_to_user(word_store, add_word, store, user):
    add_word("dog", "perro")
    store.insert(WORDS_TABLE, {
        "user_id": "someone-else", "original_word": "cat", "translation": "gato",
        "source_language": "en", "target_language": "es", "language_code": "es",
    })

    words = word_store.load_words_for_language(user.user_id, "es")

    assert [w.original_word for w in words] == ["dog"]


def test_load_words_for_unknown_language_is_empty(word_store, add_word, user):
    add_word("dog", "perro")
    assert word_store.load_words_for_language(user.user_id, "ko") == []


def test_language_counts_largest_deck_first(word_store, add_word, add_legacy_word, user):
    add_word("dog", "perro")
    add_legacy_word("cat", "gato", target="es")
    add_word("Hund", "dog", source="de", target="en", language_code="de")

    counts = word_store.language_counts(user.user_id)

    assert [(c.code, c.count) for c in counts] == [("es", 2), ("de", 1)]
    assert counts[0].label == "Spanish"


def test_add_word_uses_translator_for_blank_translation(word_store, user):
    translator = MagicMock(return_value=TranslationResult(translation=" perro "))

    word = word_store.add_word(user, " dog ", "", "en", "es", translator=translator)

    translator.assert_called_once_with("dog", "en", "es")
    assert word.original_word == "dog"
    assert word.translation == "perro"
    assert word.language_code == "es"


def test_add_word_reports_translation_failure(word_store, user, store):
    translator = MagicMock(return_value=TranslationResult(error="Could not translate (network error)"))

    with pytest.raises(TranslationFailed) as excinfo:
        word_store.add_word(user, "dog", "", "en", "es", translator=translator)

    assert "network error" in str(excinfo.value)
    assert store.select(WORDS_TABLE) == []


def test_add_word_without_translator_needs_translation(word_store, user):
    with pytest.raises(TranslationFailed):
        word_store.add_word(user, "dog", "  ", "en", "es")


def test_add_word_requires_text(word_store, user):
    with pytest.raises(ValueError):
        word_store.add_word(user, "   ", "perro", "en", "es")


def test_add_word_requires_user(word_store):
    with pytest.raises(AuthRequired):
        word_store.add_word(None, "dog", "perro", "en", "es")


def test_update_word(word_store, add_word, user):
    word = add_word("dog", "perro")

    word_store.update_word(user, word.id, "dog ", " perrito")

    updated = word_store.load_words(user.user_id)[0]
    assert updated.translation == "perrito"
    assert updated.original_word == "dog"


def test_update_word_rejects_blank_fields(word_store, add_word, user):
    word = add_word("dog", "perro")
    with pytest.raises(ValueError):
        word_store.update_word(user, word.id, "dog", "")


def test_delete_word(word_store, add_word, user):
    dog = add_word("dog", "perro")
    add_word("cat", "gato")

    word_store.delete_word(user, dog.id)

    assert [w.original_word for w in word_store.load_words(user.user_id)] == ["cat"]


def test_delete_language_removes_legacy_rows_too(word_store, add_word, add_legacy_word, user):
    add_word("dog", "perro")
    add_legacy_word("cat", "gato", target="es")
    add_word("chat", "cat", source="fr", target="en", language_code="fr")

    removed = word_store.delete_language(user, "es")

    assert removed == 2
    assert [w.original_word for w in word_store.load_words(user.user_id)] == ["chat"]
