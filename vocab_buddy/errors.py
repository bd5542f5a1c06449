"""Exception taxonomy for the session and scoring workflow."""


class VocabBuddyError(Exception):
    """Base class for every error the workflow raises on purpose."""


class AuthRequired(VocabBuddyError):
    """No authenticated user in context; raised before any store call."""


class EmptySelection(VocabBuddyError):
    """The language filter matched no words, so no session can be created."""

    def __init__(self, language_code: str = ""):
        target = f"'{language_code}'" if language_code else "this language"
        super().__init__(f"No words saved for {target} yet. Add some first.")
        self.language_code = language_code


class PersistenceError(VocabBuddyError):
    """A store read or write did not succeed."""

    def __init__(self, message: str, table: str = ""):
        super().__init__(message)
        self.table = table


class NetworkError(PersistenceError):
    """Transport failure or timeout reaching the store or the OpenAI API."""


class UnsupportedCapability(VocabBuddyError):
    """A speech feature is not available in this runtime."""

    def __init__(self, capability: str, reason: str = ""):
        message = f"{capability} is not supported"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.capability = capability
        self.reason = reason


class SessionCompleted(VocabBuddyError):
    """A write was attempted against a session that is already completed."""


class TranslationFailed(VocabBuddyError):
    """No translation could be obtained; the caller should ask for one manually."""
