from unittest.mock import patch

import pytest

from vocab_buddy.errors import NetworkError, PersistenceError, SessionCompleted
from vocab_buddy.models import RESULTS_TABLE, SESSIONS_TABLE, SessionType, TestType
from vocab_buddy.workflow import StudyRun, TestRun


def _start_test(manager, recorder, gate, user, test_type=TestType.LISTEN_WRITE, language="es"):
    session, deck = manager.start(user, SessionType.TEST, language)
    return TestRun(session, deck, test_type, recorder, gate)


def test_listening_test_single_word_all_correct(manager, recorder, gate, add_word, user, store):
    add_word("dog", "perro")
    run = _start_test(manager, recorder, gate, user)

    assert run.prompt() == ("perro", "es")
    outcome = run.submit("Perro ")

    assert outcome.result.correct is True
    assert outcome.finished
    assert outcome.summary.accuracy == 100
    assert outcome.summary.correct_count == 1
    assert run.finished
    assert store.select(SESSIONS_TABLE)[0]["completed"] is True

    rows = store.select(RESULTS_TABLE)
    assert len(rows) == 1
    assert rows[0]["user_answer"] == "Perro"
    assert rows[0]["test_type"] == "listen_write"


def test_near_miss_is_scored_wrong_and_still_completes(manager, recorder, gate, add_word, user, store):
    add_word("gato", "cat", source="es", target="en", language_code="es")
    run = _start_test(manager, recorder, gate, user, test_type=TestType.READ_SPEAK)

    outcome = run.submit("gatos")

    assert outcome.result.correct is False
    assert outcome.expected == "gato"
    assert outcome.summary.accuracy == 0
    assert store.select(SESSIONS_TABLE)[0]["completed"] is True


def test_speaking_test_expects_the_original_word(manager, recorder, gate, add_word, user):
    add_word("dog", "perro")
    run = _start_test(manager, recorder, gate, user, test_type=TestType.READ_SPEAK)

    assert run.prompt() == ("dog", "es")
    outcome = run.submit("Dog")

    assert outcome.result.correct is True
    assert outcome.summary.test_type == "read_speak"


def test_run_advances_one_word_at_a_time(manager, recorder, gate, add_word, user, store):
    add_word("dog", "perro")
    add_word("cat", "gato")
    add_word("house", "casa")
    run = _start_test(manager, recorder, gate, user)

    first = run.submit("casa")
    assert not first.finished
    assert run.position == 1
    assert store.select(SESSIONS_TABLE)[0]["completed"] is False

    run.submit("perro")  # wrong word for "gato"
    final = run.submit("perro")

    assert final.finished
    assert final.summary.correct_count == 2
    assert final.summary.total == 3
    assert final.summary.accuracy == 67
    assert [r.word_id for r in final.summary.results] == run.session.word_ids
    assert [r.word_id for r in recorder.results_for_session(run.session.id)] == run.session.word_ids


def test_failed_recording_on_last_word_keeps_session_active(manager, recorder, gate, add_word, user, store):
    add_word("dog", "perro")
    add_word("cat", "gato")
    run = _start_test(manager, recorder, gate, user)
    run.submit("gato")

    with patch.object(store, "insert", side_effect=PersistenceError("insert failed", table=RESULTS_TABLE)):
        with pytest.raises(PersistenceError):
            run.submit("perro")

    assert run.position == 1
    assert run.summary is None
    assert not run.finished
    assert len(run.results) == 1
    assert store.select(SESSIONS_TABLE)[0]["completed"] is False

    # same word can be answered again once the store recovers
    outcome = run.submit("perro")
    assert outcome.finished
    assert outcome.summary.accuracy == 100
    assert len(store.select(RESULTS_TABLE)) == 2


def test_failed_completion_is_retried_without_recording_twice(manager, recorder, gate, add_word, user, store):
    add_word("dog", "perro")
    run = _start_test(manager, recorder, gate, user)

    with patch.object(store, "update", side_effect=NetworkError("timeout", table=SESSIONS_TABLE)):
        with pytest.raises(NetworkError):
            run.submit("perro")

    assert run.awaiting_completion
    assert run.session.completed is False
    assert len(store.select(RESULTS_TABLE)) == 1

    outcome = run.retry_completion()

    assert outcome.finished
    assert outcome.summary.accuracy == 100
    assert len(store.select(RESULTS_TABLE)) == 1
    assert store.select(SESSIONS_TABLE)[0]["completed"] is True


def test_submit_after_failed_completion_retries(manager, recorder, gate, add_word, user, store):
    add_word("dog", "perro")
    run = _start_test(manager, recorder, gate, user)

    with patch.object(store, "update", side_effect=PersistenceError("denied", table=SESSIONS_TABLE)):
        with pytest.raises(PersistenceError):
            run.submit("perro")

    outcome = run.submit("")
    assert outcome.finished
    assert len(store.select(RESULTS_TABLE)) == 1


def test_finished_run_rejects_more_answers(manager, recorder, gate, add_word, user):
    add_word("dog", "perro")
    run = _start_test(manager, recorder, gate, user)
    run.submit("perro")

    assert run.current is None
    with pytest.raises(SessionCompleted):
        run.submit("perro")
    with pytest.raises(SessionCompleted):
        run.retry_completion()


def test_runs_do_not_share_results(manager, recorder, gate, add_word, user):
    add_word("dog", "perro")
    add_word("cat", "gato")
    first = _start_test(manager, recorder, gate, user)
    second = _start_test(manager, recorder, gate, user)

    first.submit("gato")

    assert len(first.results) == 1
    assert second.results == ()
    assert second.position == 0


def test_deck_must_match_session(manager, recorder, gate, add_word, user):
    add_word("dog", "perro")
    add_word("cat", "gato")
    session, deck = manager.start(user, SessionType.TEST, "es")

    with pytest.raises(ValueError):
        TestRun(session, list(reversed(deck)), TestType.LISTEN_WRITE, recorder, gate)


def test_study_cards_show_learning_language_first(manager, add_word, user):
    add_word("dog", "perro")
    session, deck = manager.start(user, SessionType.STUDY, "es")
    run = StudyRun(session, deck, learning_language="es")

    card = run.card()
    assert card.front == "perro"
    assert card.back == "dog"
    assert card.audio_language == "es"
    assert card.revealed is False
    assert run.reveal().revealed is True


def test_study_cards_from_learning_language_deck(manager, add_word, user):
    add_word("Hund", "dog", source="de", target="en", language_code="de")
    session, deck = manager.start(user, SessionType.STUDY, "de")
    run = StudyRun(session, deck, learning_language="de")

    card = run.card()
    assert card.front == "Hund"
    assert card.back == "dog"
    assert card.audio_language == "de"


def test_study_navigation_is_clamped(manager, add_word, user, store):
    add_word("dog", "perro")
    add_word("cat", "gato")
    session, deck = manager.start(user, SessionType.STUDY, "es")
    run = StudyRun(session, deck, learning_language="es")

    run.previous()
    assert run.position == 0
    run.reveal()
    run.next()
    assert run.position == 1
    assert run.at_end
    assert run.card().revealed is False
    run.next()
    assert run.position == 1

    # studying never records results or completes the session
    assert store.select(RESULTS_TABLE) == []
    assert store.select(SESSIONS_TABLE)[0]["completed"] is False
