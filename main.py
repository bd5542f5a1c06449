"""
Vocab Buddy - console front-end

Flow:
1. Sign in: a Firebase ID token (VOCAB_BUDDY_ID_TOKEN), or the local user when
   running against the in-memory store.
2. Home: one deck per language, with word counts.
3. Add words (translated by OpenAI when the translation is left blank).
4. Study a deck as flashcards, then take a listening test on it.
5. Listening test: hear the word, type it. Speaking test: read it aloud.
6. Results: accuracy and every answer.

Setup (from repo root):

    python -m venv .venv
    source .venv/bin/activate   # or .venv\\Scripts\\activate on Windows
    pip install -e .

Ensure .env contains:
    OPENAI_API_KEY=sk-...
    FIREBASE_CREDENTIALS_PATH=./firebase-credentials.json
    VOCAB_BUDDY_ID_TOKEN=...           # or VOCAB_BUDDY_STORE=memory

Then run:
    python main.py
"""

import sys
from typing import List, Optional

from vocab_buddy import api
from vocab_buddy.auth import UserContext, local_user, verify_id_token
from vocab_buddy.config import STORE_MEMORY, settings
from vocab_buddy.database import RowStore, initialize_database
from vocab_buddy.errors import (
    AuthRequired, EmptySelection, PersistenceError, SessionCompleted,
    TranslationFailed, UnsupportedCapability, VocabBuddyError,
)
from vocab_buddy.logger import logger
from vocab_buddy.models import SUPPORTED_LANGUAGES, SessionSummary, SessionType, TestType, language_label
from vocab_buddy.recorder import ResultRecorder
from vocab_buddy.session import CompletionGate, SessionManager
from vocab_buddy.speech import SpeechCapabilities, detect_speech_capabilities
from vocab_buddy.vocabulary import WordStore
from vocab_buddy.workflow import StudyRun, TestRun

QUIT = "/q"
REPLAY = "/r"


def ask(prompt: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    try:
        answer = input(f"{prompt}{suffix}: ").strip()
    except EOFError:
        return QUIT
    return answer or default


def notice(message: str) -> None:
    print(f"  ! {message}")


class ConsoleApp:
    """Screen loop. Every workflow error is caught here, logged and shown."""

    def __init__(self, store: RowStore, user: UserContext, speech: SpeechCapabilities):
        self.user = user
        self.speech = speech
        self.words = WordStore(store)
        self.sessions = SessionManager(store, self.words)
        self.recorder = ResultRecorder(store)
        self.gate = CompletionGate(store)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def run(self) -> None:
        actions = {
            "a": ("Add words", self.add_words),
            "s": ("Study", self.study),
            "l": ("Listening test", lambda code: self.take_test(TestType.LISTEN_WRITE, code)),
            "p": ("Speaking test", lambda code: self.take_test(TestType.READ_SPEAK, code)),
            "m": ("Manage a deck", self.manage),
        }
        while True:
            self._guard(self.home)
            print()
            for key, (label, _) in actions.items():
                print(f"  [{key}] {label}")
            print("  [q] Quit")
            choice = ask("Choose").lower()
            if choice in ("q", QUIT):
                logger.ui_transition("home", "exit")
                return
            if choice not in actions:
                continue

            label, action = actions[choice]
            code = self.pick_language(all_languages=(choice == "a"))
            if code:
                logger.ui_transition("home", label)
                self._guard(lambda: action(code))

    def _guard(self, action) -> None:
        try:
            action()
        except (EmptySelection, UnsupportedCapability, TranslationFailed) as e:
            notice(str(e))
        except AuthRequired as e:
            logger.error(f"Not signed in: {e}")
            notice(str(e))
        except PersistenceError as e:
            logger.error(f"Store error: {e}")
            notice("Something went wrong talking to the server. Please try again.")
        except VocabBuddyError as e:
            logger.error(str(e))
            notice(str(e))
        except ValueError as e:
            notice(str(e))

    def home(self) -> None:
        logger.separator("Home")
        counts = self.words.language_counts(self.user.user_id)
        if not counts:
            print("  No words yet. Add some to start a deck.")
        for entry in counts:
            print(f"  {entry.label:<12} {entry.count:>3} word(s)")

    def pick_language(self, all_languages: bool = False) -> Optional[str]:
        codes: List[str] = list(SUPPORTED_LANGUAGES)
        if not all_languages:
            learning = [c.code for c in self.words.language_counts(self.user.user_id)]
            codes = learning or codes
        for i, code in enumerate(codes, start=1):
            print(f"  {i}. {language_label(code)} ({code})")
        choice = ask("Language")
        if choice.isdigit() and 1 <= int(choice) <= len(codes):
            return codes[int(choice) - 1]
        if choice in codes:
            return choice
        return None

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    def add_words(self, code: str) -> None:
        logger.separator(f"Add words - {language_label(code)}")
        source = ask("Source language", "en")
        while True:
            original = ask("Word or phrase (blank to finish)")
            if not original or original == QUIT:
                return
            translation = ask("Translation (blank to translate automatically)")
            try:
                word = self.words.add_word(
                    self.user, original, translation, source, code,
                    language_code=code, translator=api.translate,
                )
            except TranslationFailed as e:
                notice(f"{e}. Type the translation yourself.")
                translation = ask("Translation")
                if not translation:
                    continue
                word = self.words.add_word(self.user, original, translation, source, code, language_code=code)
            print(f"  Saved: {word.original_word} → {word.translation}")

    def study(self, code: str) -> None:
        session, deck = self.sessions.start(self.user, SessionType.STUDY, code)
        run = StudyRun(session, deck, learning_language=code)
        logger.separator(f"Study - {language_label(code)}")
        while True:
            card = run.card()
            print(f"\n  Card {run.position + 1} / {run.total}")
            print(f"  {card.front}")
            if card.revealed:
                print(f"  → {card.back}")
            choice = ask("[Enter] reveal/next  [b] back  [r] play  [t] take the listening test  [q] quit").lower()
            if choice in ("q", QUIT):
                return
            if choice == "t":
                self.take_test(TestType.LISTEN_WRITE, code)
                return
            if choice == "b":
                run.previous()
            elif choice == "r":
                self._speak(card.audio_text, card.audio_language)
            elif not card.revealed:
                run.reveal()
            elif run.at_end:
                self.take_test(TestType.LISTEN_WRITE, code)
                return
            else:
                run.next()

    def take_test(self, test_type: TestType, code: str) -> None:
        session, deck = self.sessions.start(self.user, SessionType.TEST, code)
        run = TestRun(session, deck, test_type, self.recorder, self.gate)
        logger.separator(f"{test_type.label} test - {language_label(code)}")

        while not run.finished:
            if run.awaiting_completion:
                if ask(f"[Enter] retry saving the session ({QUIT} quit)") == QUIT:
                    return
                answer = ""
            else:
                text, language = run.prompt()
                print(f"\n  Word {run.position + 1} / {run.total}   (session {session.id[:8]})")
                answer = self._collect_answer(run, text, language)
                if answer == QUIT:
                    logger.warning(f"Test abandoned at word {run.position + 1}, session stays active")
                    return
                if not answer:
                    continue
            try:
                outcome = run.submit(answer)
            except PersistenceError as e:
                logger.error(f"Failed to save {test_type.value} result: {e}")
                notice("Your answer was not saved. Submit it again.")
                continue
            except SessionCompleted as e:
                notice(str(e))
                return
            print("  ✓ Correct" if outcome.result.correct else f"  ✗ Expected: {outcome.expected}")

        self.show_results(run.summary)

    def _collect_answer(self, run: TestRun, text: str, language: str) -> str:
        if run.test_type is TestType.LISTEN_WRITE:
            self._speak(text, language)
            while True:
                answer = ask(f"Type what you hear ({REPLAY} replay, {QUIT} quit)")
                if answer != REPLAY:
                    return answer
                self._speak(text, language)

        print(f"  Say this word in {language.upper()}: {text}")
        if ask(f"[Enter] start speaking ({QUIT} quit)") == QUIT:
            return QUIT
        try:
            transcript = self.speech.recognizer.recognize(language)
        except UnsupportedCapability as e:
            notice(str(e))
            return ask("Type what you said")
        except PersistenceError as e:
            notice(f"{e}. Try again.")
            return ""
        print(f"  Heard: {transcript}")
        return transcript

    def _speak(self, text: str, language: str) -> None:
        try:
            self.speech.synthesizer.speak(text, language)
        except UnsupportedCapability as e:
            notice(str(e))

    def show_results(self, summary: SessionSummary) -> None:
        logger.separator("Results")
        print(f"  {TestType(summary.test_type).label} test   Accuracy {summary.accuracy}%")
        print(f"  {summary.correct_count} / {summary.total} correct\n")
        for result in summary.results:
            mark = "Correct" if result.correct else "Needs work"
            print(f"  {mark:<11} {result.user_answer}")

    def manage(self, code: str) -> None:
        label = language_label(code)
        while True:
            logger.separator(f"Manage - {label}")
            words = self.words.load_words_for_language(self.user.user_id, code)
            if not words:
                print("  No words saved for this language yet.")
                return
            for i, word in enumerate(words, start=1):
                print(f"  {i:>3}. {word.original_word} → {word.translation}")
            choice = ask("[e N] edit  [d N] delete  [D] delete the whole deck  [q] back")
            if choice in ("q", QUIT, ""):
                return
            if choice == "D":
                if ask(f"Delete the entire {label} deck? (yes/no)", "no").lower() == "yes":
                    self.words.delete_language(self.user, code)
                    return
                continue

            command, _, number = choice.partition(" ")
            if not number.isdigit() or not 1 <= int(number) <= len(words):
                continue
            word = words[int(number) - 1]
            if command == "e":
                original = ask("Original", word.original_word)
                translation = ask("Translation", word.translation)
                self.words.update_word(self.user, word.id, original, translation)
            elif command == "d":
                self.words.delete_word(self.user, word.id)


def sign_in() -> UserContext:
    if settings.store_backend == STORE_MEMORY:
        return local_user()
    return verify_id_token(settings.id_token)


def main() -> int:
    logger.banner("Vocab Buddy")
    try:
        store = initialize_database(settings)
        user = sign_in()
    except (PersistenceError, AuthRequired) as e:
        logger.error(f"Startup failed: {e}")
        return 1

    speech = detect_speech_capabilities(settings)
    ConsoleApp(store, user, speech).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
